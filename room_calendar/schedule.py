"""Use cases shared by the Flask app and the MCP server."""

from __future__ import annotations

from datetime import datetime, time, timedelta

from .booking import DEFAULT_POLICY, OpenSlot, Reservation, WorkWeekPolicy
from .slots import free_slots_for_day, free_slots_for_week, work_window_end, work_window_start
from .yaml_store import ReservationYamlRepository


def create_reservation(
    repository: ReservationYamlRepository,
    booking_person_name: str,
    start: datetime,
    end: datetime,
    now: datetime,
    policy: WorkWeekPolicy = DEFAULT_POLICY,
) -> Reservation:
    return repository.add_reservation(booking_person_name, start, end, now=now, policy=policy)


def current_week_bounds(now: datetime, policy: WorkWeekPolicy = DEFAULT_POLICY) -> tuple[datetime, datetime]:
    first_day = now.date() - timedelta(days=now.weekday() - policy.first_weekday)
    last_day = now.date() + timedelta(days=policy.last_weekday - now.weekday())
    return datetime.combine(first_day, time.min), datetime.combine(last_day, time.max)


def list_weekly_reservations(
    repository: ReservationYamlRepository,
    now: datetime,
    policy: WorkWeekPolicy = DEFAULT_POLICY,
) -> list[Reservation]:
    week_start, week_end = current_week_bounds(now, policy)
    return repository.find_by_start_between(week_start, week_end)


def list_daily_open_slots(
    repository: ReservationYamlRepository,
    now: datetime,
    policy: WorkWeekPolicy = DEFAULT_POLICY,
) -> list[OpenSlot]:
    reservations = repository.find_by_start_between(work_window_start(now, policy), work_window_end(now, policy))
    return free_slots_for_day(now, reservations, policy)


def list_weekly_open_slots(
    repository: ReservationYamlRepository,
    now: datetime,
    policy: WorkWeekPolicy = DEFAULT_POLICY,
) -> list[OpenSlot]:
    return free_slots_for_week(now, repository.find_by_start_between, policy)


def find_person_name_by_date(repository: ReservationYamlRepository, instant: datetime) -> str | None:
    record = repository.find_containing(instant)
    return record.booking_person_name if record is not None else None
