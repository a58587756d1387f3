"""Business rules a reservation has to pass before it is stored.

The rules run in a fixed order and the first failing one decides the outcome.
``validate`` never raises for a rule violation; callers that prefer exceptions
use ``ValidationResult.raise_for_rejection``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, time, timedelta
from enum import StrEnum
from typing import Callable

from .booking import DEFAULT_POLICY, Reservation, WorkWeekPolicy

OverlapCounter = Callable[[datetime, datetime], int]


class ReasonCode(StrEnum):
    END_BEFORE_START = "END_BEFORE_START"
    START_NOT_IN_FUTURE = "START_NOT_IN_FUTURE"
    NOT_WITHIN_WORKWEEK = "NOT_WITHIN_WORKWEEK"
    ON_HOLIDAY = "ON_HOLIDAY"
    START_TOO_EARLY = "START_TOO_EARLY"
    END_TOO_LATE = "END_TOO_LATE"
    TOO_SHORT = "TOO_SHORT"
    TOO_LONG = "TOO_LONG"
    NOT_SLOT_ALIGNED = "NOT_SLOT_ALIGNED"
    START_NOT_ON_HALF_HOUR = "START_NOT_ON_HALF_HOUR"
    OVERLAPS_EXISTING = "OVERLAPS_EXISTING"


REASON_TEMPLATES: dict[ReasonCode, str] = {
    ReasonCode.END_BEFORE_START: "Start date must be before end date!",
    ReasonCode.START_NOT_IN_FUTURE: "Start date must be in the future!",
    ReasonCode.NOT_WITHIN_WORKWEEK: "Reservation must be on a weekday!",
    ReasonCode.ON_HOLIDAY: "Reservation is not allowed on public holidays!",
    ReasonCode.START_TOO_EARLY: "Reservation must start after {start_hour}:00!",
    ReasonCode.END_TOO_LATE: "Reservation must end before {end_hour}:00!",
    ReasonCode.TOO_SHORT: "Reservation length should be at least {min_length}!",
    ReasonCode.TOO_LONG: "Reservation can't be longer than {max_length}!",
    ReasonCode.NOT_SLOT_ALIGNED: "Reservation should use {slot_minutes} minutes long slots!",
    ReasonCode.START_NOT_ON_HALF_HOUR: "Reservation must start at {start_minutes} minutes!",
    ReasonCode.OVERLAPS_EXISTING: "Reservation dates overlapping with existing reservation(s)!",
}


def _describe_length(minutes: int) -> str:
    if minutes % 60 != 0:
        return f"{minutes} minutes"
    hours = minutes // 60
    return "1 hour" if hours == 1 else f"{hours} hours"


def _describe_start_minutes(slot_minutes: int) -> str:
    minutes = [f"{minute:02d}" for minute in range(0, 60, slot_minutes)]
    if len(minutes) == 1:
        return minutes[0]
    return ", ".join(minutes[:-1]) + " or " + minutes[-1]


def reason_message(reason: ReasonCode, policy: WorkWeekPolicy = DEFAULT_POLICY) -> str:
    """User-facing text for ``reason``, worded after the limits of ``policy``."""
    return REASON_TEMPLATES[reason].format(
        start_hour=policy.start_hour,
        end_hour=policy.end_hour,
        min_length=_describe_length(policy.min_slots * policy.slot_minutes),
        max_length=_describe_length(policy.max_slots * policy.slot_minutes),
        slot_minutes=policy.slot_minutes,
        start_minutes=_describe_start_minutes(policy.slot_minutes),
    )


REASON_MESSAGES: dict[ReasonCode, str] = {reason: reason_message(reason) for reason in ReasonCode}


class ReservationValidationError(ValueError):
    def __init__(self, reason: ReasonCode, message: str | None = None) -> None:
        super().__init__(message or REASON_MESSAGES[reason])
        self.reason = reason


@dataclass(frozen=True)
class ValidationResult:
    reason: ReasonCode | None = None
    policy: WorkWeekPolicy = field(default=DEFAULT_POLICY, compare=False)

    @property
    def ok(self) -> bool:
        return self.reason is None

    @property
    def message(self) -> str | None:
        return reason_message(self.reason, self.policy) if self.reason is not None else None

    def raise_for_rejection(self) -> None:
        if self.reason is not None:
            raise ReservationValidationError(self.reason, self.message)


ACCEPTED = ValidationResult()


def end_of_workweek(now: datetime, policy: WorkWeekPolicy = DEFAULT_POLICY) -> datetime:
    """Last representable instant of the final working day in the week of ``now``."""
    last_day = now.date() + timedelta(days=policy.last_weekday - now.weekday())
    return datetime.combine(last_day, time.max)


def validate(
    candidate: Reservation,
    now: datetime,
    overlap_counter: OverlapCounter,
    policy: WorkWeekPolicy = DEFAULT_POLICY,
) -> ValidationResult:
    start = candidate.start
    end = candidate.end

    if start >= end:
        return ValidationResult(ReasonCode.END_BEFORE_START, policy)
    if start < now:
        return ValidationResult(ReasonCode.START_NOT_IN_FUTURE, policy)
    if start > end_of_workweek(now, policy):
        return ValidationResult(ReasonCode.NOT_WITHIN_WORKWEEK, policy)
    if policy.is_holiday(start.date()):
        return ValidationResult(ReasonCode.ON_HOLIDAY, policy)

    if start.hour < policy.start_hour:
        return ValidationResult(ReasonCode.START_TOO_EARLY, policy)
    if end.hour > policy.end_hour:
        return ValidationResult(ReasonCode.END_TOO_LATE, policy)

    length_minutes = int((end - start).total_seconds() // 60)
    slots = length_minutes // policy.slot_minutes
    if slots < policy.min_slots:
        return ValidationResult(ReasonCode.TOO_SHORT, policy)
    if slots > policy.max_slots:
        return ValidationResult(ReasonCode.TOO_LONG, policy)
    if length_minutes % policy.slot_minutes != 0:
        return ValidationResult(ReasonCode.NOT_SLOT_ALIGNED, policy)

    if start.minute % policy.slot_minutes != 0:
        return ValidationResult(ReasonCode.START_NOT_ON_HALF_HOUR, policy)

    if overlap_counter(start, end) > 0:
        return ValidationResult(ReasonCode.OVERLAPS_EXISTING, policy)
    return ACCEPTED
