from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime
from typing import Any

LOOKUP_DATE_FORMAT = "yy.MM.dd HH:mm"
_LOOKUP_DATE_RE = re.compile(
    r"^\s*(?P<year>\d{2})\.(?P<month>\d{1,2})\.(?P<day>\d{1,2})\s+(?P<hour>\d{1,2}):(?P<minute>\d{2})\s*$"
)

PERSON_NAME_FIELD = "bookingPersonName"
START_FIELD = "startDate"
END_FIELD = "endDate"

_MISSING_MESSAGES = {
    PERSON_NAME_FIELD: "Name of the person is mandatory",
    START_FIELD: "Reservation start date is mandatory",
    END_FIELD: "Reservation end date is mandatory",
}
_MALFORMED_MESSAGES = {
    START_FIELD: "Reservation start date is malformed",
    END_FIELD: "Reservation end date is malformed",
}


class FieldPresenceError(ValueError):
    def __init__(self, errors: dict[str, str]) -> None:
        super().__init__("; ".join(f"{name}: {message}" for name, message in errors.items()))
        self.errors = errors


@dataclass(frozen=True)
class ParsedReservationRequest:
    booking_person_name: str
    start: datetime
    end: datetime


def _to_local_naive(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


def parse_timestamp(value: Any) -> datetime:
    """Accept ISO-8601 strings or ``[year, month, day, hour, minute, second?, nano?]`` arrays."""
    if isinstance(value, datetime):
        return _to_local_naive(value)
    if isinstance(value, str):
        text = value.strip()
        if not text:
            raise ValueError("timestamp must not be empty")
        return _to_local_naive(datetime.fromisoformat(text))
    if isinstance(value, (list, tuple)) and 5 <= len(value) <= 7:
        if not all(isinstance(part, int) and not isinstance(part, bool) for part in value):
            raise ValueError("timestamp array must only contain integers")
        year, month, day, hour, minute, *rest = value
        second = rest[0] if rest else 0
        microsecond = rest[1] // 1000 if len(rest) > 1 else 0
        return datetime(year, month, day, hour, minute, second, microsecond)
    raise ValueError(f"Unsupported timestamp value: {value!r}")


def parse_reservation_payload(payload: Any) -> ParsedReservationRequest:
    if not isinstance(payload, dict):
        payload = {}

    errors: dict[str, str] = {}
    name = payload.get(PERSON_NAME_FIELD)
    if not isinstance(name, str) or not name.strip():
        errors[PERSON_NAME_FIELD] = _MISSING_MESSAGES[PERSON_NAME_FIELD]

    parsed_times: dict[str, datetime] = {}
    for field_name in (START_FIELD, END_FIELD):
        raw = payload.get(field_name)
        if raw is None or raw == "":
            errors[field_name] = _MISSING_MESSAGES[field_name]
            continue
        try:
            parsed_times[field_name] = parse_timestamp(raw)
        except (TypeError, ValueError, OverflowError):
            errors[field_name] = _MALFORMED_MESSAGES[field_name]

    if errors:
        raise FieldPresenceError(errors)

    return ParsedReservationRequest(
        booking_person_name=name.strip(),
        start=parsed_times[START_FIELD],
        end=parsed_times[END_FIELD],
    )


def parse_lookup_datetime(date_string: str | None) -> datetime:
    """Parse ``yy.MM.dd HH:mm``; two-digit years map to 2000-2099."""
    if not date_string:
        raise ValueError(f"dateString is required in format {LOOKUP_DATE_FORMAT}")

    match = _LOOKUP_DATE_RE.match(date_string)
    if not match:
        raise ValueError(f"dateString must match format {LOOKUP_DATE_FORMAT}")

    return datetime(
        2000 + int(match.group("year")),
        int(match.group("month")),
        int(match.group("day")),
        int(match.group("hour")),
        int(match.group("minute")),
    )
