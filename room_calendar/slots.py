from __future__ import annotations

from datetime import datetime, time, timedelta
from typing import Callable, Iterable, Sequence

from .booking import DEFAULT_POLICY, OpenSlot, Reservation, WorkWeekPolicy

NOT_A_WEEKDAY_MESSAGE = "Today is not weekday, reservation is not available!"

ReservationFetcher = Callable[[datetime, datetime], Sequence[Reservation]]


class NotAWeekdayError(ValueError):
    code = "NOT_A_WEEKDAY"

    def __init__(self, day: datetime) -> None:
        super().__init__(NOT_A_WEEKDAY_MESSAGE)
        self.day = day


def work_window_start(day: datetime, policy: WorkWeekPolicy = DEFAULT_POLICY) -> datetime:
    return datetime.combine(day.date(), time(policy.start_hour))


def work_window_end(day: datetime, policy: WorkWeekPolicy = DEFAULT_POLICY) -> datetime:
    return datetime.combine(day.date(), time(policy.end_hour))


def scan_start(day: datetime, policy: WorkWeekPolicy = DEFAULT_POLICY) -> datetime:
    """Round ``day`` up to the next slot boundary, never earlier than the work window."""
    value = day.replace(second=0, microsecond=0)
    if value.hour < policy.start_hour:
        return work_window_start(day, policy)

    remainder = value.minute % policy.slot_minutes
    if remainder == 0:
        return value
    return value + timedelta(minutes=policy.slot_minutes - remainder)


def free_slots_for_day(
    day: datetime,
    reservations: Iterable[Reservation],
    policy: WorkWeekPolicy = DEFAULT_POLICY,
) -> list[OpenSlot]:
    """Return the unbooked intervals of ``day`` in chronological order.

    ``reservations`` are the day's reservations. The walk alternates between an
    open slot and a reservation: a reservation starting within the cursor's
    slot, or still running at the cursor, closes the pending open slot at its
    own start and moves the cursor to its end. Whatever is still pending at the
    end of the work window is always emitted.
    """
    if not policy.is_working_day(day.date()):
        raise NotAWeekdayError(day)
    if policy.is_holiday(day.date()):
        return []

    day_start = scan_start(day, policy)
    day_end = work_window_end(day, policy)
    upcoming = sorted(
        (reservation for reservation in reservations if reservation.end > day_start),
        key=lambda reservation: reservation.start,
    )

    open_slots: list[OpenSlot] = []
    pending: datetime | None = None
    cursor = day_start
    index = 0
    while cursor < day_end:
        while index < len(upcoming) and upcoming[index].end <= cursor:
            index += 1
        booked = upcoming[index] if index < len(upcoming) else None
        if booked is not None and booked.start < cursor + policy.slot:
            if pending is not None:
                boundary = min(max(booked.start, cursor), day_end)
                if boundary > pending:
                    open_slots.append(OpenSlot(pending, boundary))
                pending = None
            cursor = booked.end
            index += 1
        else:
            if pending is None:
                pending = cursor
            cursor += policy.slot

    if pending is not None:
        open_slots.append(OpenSlot(pending, day_end))
    return open_slots


def remaining_days_of_week(now: datetime, policy: WorkWeekPolicy = DEFAULT_POLICY) -> list[datetime]:
    """``now`` itself followed by the midnight of every later working day of the week."""
    days = [now]
    midnight = datetime.combine(now.date(), time.min)
    for offset in range(1, policy.last_weekday - now.weekday() + 1):
        days.append(midnight + timedelta(days=offset))
    return days


def free_slots_for_week(
    now: datetime,
    fetch_reservations: ReservationFetcher,
    policy: WorkWeekPolicy = DEFAULT_POLICY,
) -> list[OpenSlot]:
    open_slots: list[OpenSlot] = []
    for day in remaining_days_of_week(now, policy):
        reservations = fetch_reservations(work_window_start(day, policy), work_window_end(day, policy))
        open_slots.extend(free_slots_for_day(day, reservations, policy))
    return open_slots
