from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any, Iterable

import holidays as pyholidays

SLOT_MINUTES = 30
_HOLIDAY_CACHE: dict[tuple[str, int], set[date]] = {}


@dataclass(frozen=True)
class WorkWeekPolicy:
    first_weekday: int = 0
    last_weekday: int = 4
    start_hour: int = 9
    end_hour: int = 17
    slot_minutes: int = SLOT_MINUTES
    min_slots: int = 1
    max_slots: int = 6
    holiday_country: str | None = None

    def __post_init__(self) -> None:
        if not 0 <= self.first_weekday <= self.last_weekday <= 6:
            raise ValueError("Working days must be an ordered range within Monday..Sunday.")
        if not 0 <= self.start_hour < self.end_hour <= 23:
            raise ValueError("start_hour must be earlier than end_hour, both within 0..23.")
        if self.slot_minutes <= 0 or 60 % self.slot_minutes != 0:
            raise ValueError("slot_minutes must be a positive divisor of 60.")
        if not 0 < self.min_slots <= self.max_slots:
            raise ValueError("min_slots must be positive and not larger than max_slots.")

    @property
    def slot(self) -> timedelta:
        return timedelta(minutes=self.slot_minutes)

    def is_working_day(self, target_date: date) -> bool:
        return self.first_weekday <= target_date.weekday() <= self.last_weekday

    def is_holiday(self, target_date: date) -> bool:
        if self.holiday_country is None:
            return False
        key = (self.holiday_country, target_date.year)
        if key not in _HOLIDAY_CACHE:
            holiday_map = pyholidays.country_holidays(self.holiday_country, years=[target_date.year])
            _HOLIDAY_CACHE[key] = set(holiday_map.keys())
        return target_date in _HOLIDAY_CACHE[key]

    def to_dict(self) -> dict[str, Any]:
        return {
            "working_days": f"{self.first_weekday}-{self.last_weekday}",
            "working_hours": f"{self.start_hour:02d}:00-{self.end_hour:02d}:00",
            "slot_minutes": self.slot_minutes,
            "min_slots": self.min_slots,
            "max_slots": self.max_slots,
            "holiday_country": self.holiday_country,
        }


DEFAULT_POLICY = WorkWeekPolicy()


@dataclass(frozen=True)
class Reservation:
    booking_person_name: str
    start: datetime
    end: datetime
    reservation_id: str | None = None
    created_at: datetime | None = field(default=None, compare=False)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.reservation_id,
            "bookingPersonName": self.booking_person_name,
            "startDate": self.start.isoformat(timespec="seconds"),
            "endDate": self.end.isoformat(timespec="seconds"),
        }

    def covers(self, instant: datetime) -> bool:
        return self.start <= instant <= self.end


@dataclass(frozen=True)
class OpenSlot:
    start: datetime
    end: datetime

    def to_dict(self) -> dict[str, str]:
        return {
            "slotStartDate": self.start.isoformat(timespec="seconds"),
            "slotEndDate": self.end.isoformat(timespec="seconds"),
        }


def truncate_to_seconds(value: datetime) -> datetime:
    return value.replace(microsecond=0)


def has_time_overlap(new_start: datetime, new_end: datetime, exist_start: datetime, exist_end: datetime) -> bool:
    """Return True when an existing interval collides with a requested one.

    An existing reservation collides when it is running at the requested start,
    still running at the requested end, or encloses the whole request. Touching
    boundaries (10:00-11:00 against 11:00-12:00) do not collide.
    """
    return (
        (exist_start <= new_start and exist_end > new_start)
        or (exist_start < new_end and exist_end >= new_end)
        or (exist_start <= new_start and exist_end >= new_end)
    )


def count_overlaps(new_start: datetime, new_end: datetime, existing_reservations: Iterable[Reservation]) -> int:
    return sum(
        1
        for reservation in existing_reservations
        if has_time_overlap(new_start, new_end, reservation.start, reservation.end)
    )
