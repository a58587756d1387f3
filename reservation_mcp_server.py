from __future__ import annotations

from datetime import datetime
from typing import Any

from mcp.server.fastmcp import FastMCP

from room_calendar import ReservationYamlRepository
from room_calendar.config import load_settings
from room_calendar.parsing import parse_lookup_datetime, parse_timestamp
from room_calendar.schedule import (
    create_reservation,
    find_person_name_by_date,
    list_daily_open_slots,
    list_weekly_open_slots,
    list_weekly_reservations,
)

mcp = FastMCP(
    "Room Calendar MCP Server",
    instructions="Book the meeting room and inspect its weekly schedule and free slots.",
    json_response=True,
)

SETTINGS = load_settings()
REPOSITORY = ReservationYamlRepository(SETTINGS.data_dir)


@mcp.resource("calendar://policy")
async def get_policy() -> dict[str, Any]:
    """Describe the working days, hours and slot rules reservations must follow."""
    return SETTINGS.policy.to_dict()


@mcp.tool()
def list_reservations_this_week() -> list[dict[str, Any]]:
    """Return reservations of the current Monday-Friday, ordered by start."""
    records = list_weekly_reservations(REPOSITORY, datetime.now(), SETTINGS.policy)
    return [record.to_dict() for record in records]


@mcp.tool()
def list_open_slots_today() -> list[dict[str, str]]:
    """Return the free intervals left today within working hours."""
    return [slot.to_dict() for slot in list_daily_open_slots(REPOSITORY, datetime.now(), SETTINGS.policy)]


@mcp.tool()
def list_open_slots_this_week() -> list[dict[str, str]]:
    """Return the free intervals from now until the end of the work week."""
    return [slot.to_dict() for slot in list_weekly_open_slots(REPOSITORY, datetime.now(), SETTINGS.policy)]


@mcp.tool()
def add_reservation(booking_person_name: str, start_iso: str, end_iso: str) -> dict[str, Any]:
    """Create a reservation using ISO timestamps."""
    created = create_reservation(
        REPOSITORY,
        booking_person_name,
        parse_timestamp(start_iso),
        parse_timestamp(end_iso),
        now=datetime.now(),
        policy=SETTINGS.policy,
    )
    return created.to_dict()


@mcp.tool()
def get_person_name_by_date(date_string: str) -> str | None:
    """Return who booked the room at ``yy.MM.dd HH:mm``, or null when it is free."""
    return find_person_name_by_date(REPOSITORY, parse_lookup_datetime(date_string))


def main() -> None:
    mcp.run()


if __name__ == "__main__":
    main()
