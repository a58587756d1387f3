from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Any, Callable

from flask import Flask, Response, jsonify, request

from .booking import DEFAULT_POLICY, WorkWeekPolicy
from .config import load_settings
from .parsing import FieldPresenceError, parse_lookup_datetime, parse_reservation_payload
from .schedule import (
    create_reservation,
    find_person_name_by_date,
    list_daily_open_slots,
    list_weekly_open_slots,
    list_weekly_reservations,
)
from .slots import NotAWeekdayError
from .validation import ReservationValidationError
from .yaml_store import ReservationYamlRepository

NO_RESERVATION_MESSAGE = "No reservation is available at the specified date and time."
REJECTION_REASON_HEADER = "X-Rejection-Reason"


def _plain_text(message: str, status: int = 200) -> Response:
    return Response(message, status=status, mimetype="text/plain")


def create_app(
    data_dir: str | Path = "data",
    now_provider: Callable[[], datetime] | None = None,
    policy: WorkWeekPolicy = DEFAULT_POLICY,
) -> Flask:
    app = Flask(__name__)
    repository = ReservationYamlRepository(data_dir)
    clock: Callable[[], datetime] = now_provider or datetime.now

    @app.after_request
    def add_cors_headers(response: Any) -> Any:
        response.headers["Access-Control-Allow-Origin"] = "*"
        response.headers["Access-Control-Allow-Methods"] = "GET,POST,OPTIONS"
        response.headers["Access-Control-Allow-Headers"] = "Content-Type"
        return response

    @app.post("/reservation")
    def create_new_reservation() -> Any:
        try:
            parsed = parse_reservation_payload(request.get_json(silent=True))
        except FieldPresenceError as error:
            return jsonify(error.errors), 400

        try:
            created = create_reservation(
                repository,
                parsed.booking_person_name,
                parsed.start,
                parsed.end,
                now=clock(),
                policy=policy,
            )
        except ReservationValidationError as error:
            response = _plain_text(str(error), 400)
            response.headers[REJECTION_REASON_HEADER] = str(error.reason)
            return response

        return jsonify(created.to_dict())

    @app.get("/reservations/weekly")
    def list_weekly_schedule() -> Any:
        reservations = list_weekly_reservations(repository, clock(), policy)
        return jsonify([record.to_dict() for record in reservations])

    @app.get("/reservations/freehours/day")
    def list_daily_free_hours() -> Any:
        try:
            open_slots = list_daily_open_slots(repository, clock(), policy)
        except NotAWeekdayError as error:
            return _plain_text(str(error), 400)
        return jsonify([slot.to_dict() for slot in open_slots])

    @app.get("/reservations/freehours/week")
    def list_weekly_free_hours() -> Any:
        try:
            open_slots = list_weekly_open_slots(repository, clock(), policy)
        except NotAWeekdayError as error:
            return _plain_text(str(error), 400)
        return jsonify([slot.to_dict() for slot in open_slots])

    @app.get("/reservations/personname/bydate")
    def get_person_name_by_date() -> Any:
        try:
            instant = parse_lookup_datetime(request.args.get("dateString"))
        except ValueError as error:
            return _plain_text(str(error), 400)

        name = find_person_name_by_date(repository, instant)
        return _plain_text(name if name is not None else NO_RESERVATION_MESSAGE)

    return app


if __name__ == "__main__":
    settings = load_settings()
    app = create_app(settings.data_dir, policy=settings.policy)
    app.run(host="127.0.0.1", port=5000, debug=False)
