import tempfile
import unittest
from datetime import datetime
from pathlib import Path

from room_calendar import ReservationYamlRepository, WorkWeekPolicy
from room_calendar.web_app import NO_RESERVATION_MESSAGE, REJECTION_REASON_HEADER, create_app

MONDAY_MORNING = datetime(2026, 2, 23, 8, 0)


class TestWebApp(unittest.TestCase):
    def setUp(self) -> None:
        self._temp_dir = tempfile.TemporaryDirectory()
        self.data_dir = Path(self._temp_dir.name) / "data"
        self.repo = ReservationYamlRepository(self.data_dir)
        self.now = MONDAY_MORNING

    def tearDown(self) -> None:
        self._temp_dir.cleanup()

    def _client(self):
        app = create_app(self.data_dir, now_provider=lambda: self.now)
        return app.test_client()

    def _post(self, name: str | None, start: str | None, end: str | None):
        payload = {"bookingPersonName": name, "startDate": start, "endDate": end}
        return self._client().post("/reservation", json=payload)

    def test_create_reservation_success(self) -> None:
        response = self._post("Anna", "2026-02-24T09:00:00", "2026-02-24T10:00:00")

        self.assertEqual(response.status_code, 200)
        payload = response.get_json()
        self.assertEqual(payload["bookingPersonName"], "Anna")
        self.assertEqual(payload["startDate"], "2026-02-24T09:00:00")
        self.assertEqual(payload["endDate"], "2026-02-24T10:00:00")
        self.assertTrue(payload["id"])

    def test_create_reservation_accepts_timestamp_arrays(self) -> None:
        response = self._client().post(
            "/reservation",
            json={"bookingPersonName": "Anna", "startDate": [2026, 2, 24, 9, 0, 0], "endDate": [2026, 2, 24, 9, 30]},
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json()["endDate"], "2026-02-24T09:30:00")

    def test_missing_fields_return_field_error_map(self) -> None:
        response = self._post(None, None, "2026-02-24T10:00:00")

        self.assertEqual(response.status_code, 400)
        self.assertTrue(response.is_json)
        self.assertEqual(
            response.get_json(),
            {
                "bookingPersonName": "Name of the person is mandatory",
                "startDate": "Reservation start date is mandatory",
            },
        )

    def test_blank_name_is_missing(self) -> None:
        response = self._post("   ", "2026-02-24T09:00:00", "2026-02-24T10:00:00")

        self.assertEqual(response.status_code, 400)
        self.assertIn("bookingPersonName", response.get_json())

    def test_malformed_timestamp_is_field_error(self) -> None:
        response = self._post("Anna", "tomorrow", "2026-02-24T10:00:00")

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json(), {"startDate": "Reservation start date is malformed"})

    def test_out_of_range_timestamp_array_is_field_error(self) -> None:
        payload = {"bookingPersonName": "Anna", "startDate": [10**20, 2, 24, 10, 0], "endDate": "2026-02-24T11:00:00"}
        response = self._client().post("/reservation", json=payload)

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json(), {"startDate": "Reservation start date is malformed"})

    def test_rule_violations_return_plain_text(self) -> None:
        cases = [
            ("2026-02-16T09:00:00", "2026-02-16T09:30:00", "START_NOT_IN_FUTURE", "Start date must be in the future!"),
            ("2026-02-24T09:00:00", "2026-02-24T09:01:00", "TOO_SHORT", "Reservation length should be at least 30 minutes!"),
            ("2026-02-24T09:00:00", "2026-02-24T13:00:00", "TOO_LONG", "Reservation can't be longer than 3 hours!"),
            ("2026-02-24T09:15:00", "2026-02-24T11:15:00", "START_NOT_ON_HALF_HOUR", "Reservation must start at 00 or 30 minutes!"),
            ("2026-02-28T09:00:00", "2026-02-28T11:00:00", "NOT_WITHIN_WORKWEEK", "Reservation must be on a weekday!"),
            ("2026-02-24T05:00:00", "2026-02-24T07:00:00", "START_TOO_EARLY", "Reservation must start after 9:00!"),
            ("2026-02-24T16:00:00", "2026-02-24T18:00:00", "END_TOO_LATE", "Reservation must end before 17:00!"),
        ]
        for start, end, code, message in cases:
            with self.subTest(code=code):
                response = self._post("Anna", start, end)
                self.assertEqual(response.status_code, 400)
                self.assertEqual(response.mimetype, "text/plain")
                self.assertEqual(response.get_data(as_text=True), message)
                self.assertEqual(response.headers[REJECTION_REASON_HEADER], code)

    def test_overlapping_reservation_is_rejected(self) -> None:
        first = self._post("Anna", "2026-02-24T10:00:00", "2026-02-24T12:00:00")
        self.assertEqual(first.status_code, 200)

        overlapping = [
            ("2026-02-24T10:30:00", "2026-02-24T12:30:00"),
            ("2026-02-24T09:30:00", "2026-02-24T10:30:00"),
            ("2026-02-24T10:00:00", "2026-02-24T12:00:00"),
            ("2026-02-24T10:30:00", "2026-02-24T11:30:00"),
        ]
        for start, end in overlapping:
            with self.subTest(start=start, end=end):
                response = self._post("Bela", start, end)
                self.assertEqual(response.status_code, 400)
                self.assertEqual(
                    response.get_data(as_text=True),
                    "Reservation dates overlapping with existing reservation(s)!",
                )

    def test_weekly_schedule_lists_current_week_only(self) -> None:
        self.repo.add_reservation("Bela", datetime(2026, 2, 26, 10, 0), datetime(2026, 2, 26, 11, 0), now=self.now)
        self.repo.add_reservation("Anna", datetime(2026, 2, 24, 10, 0), datetime(2026, 2, 24, 11, 0), now=self.now)
        self.repo.add_reservation(
            "Cecil",
            datetime(2026, 3, 2, 10, 0),
            datetime(2026, 3, 2, 11, 0),
            now=datetime(2026, 3, 2, 8, 0),
        )

        self.now = datetime(2026, 2, 25, 12, 0)
        response = self._client().get("/reservations/weekly")

        self.assertEqual(response.status_code, 200)
        self.assertEqual([row["bookingPersonName"] for row in response.get_json()], ["Anna", "Bela"])

    def test_daily_free_hours(self) -> None:
        self.repo.add_reservation("Anna", datetime(2026, 2, 24, 10, 0), datetime(2026, 2, 24, 12, 0), now=self.now)

        self.now = datetime(2026, 2, 24, 7, 30)
        response = self._client().get("/reservations/freehours/day")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(
            response.get_json(),
            [
                {"slotStartDate": "2026-02-24T09:00:00", "slotEndDate": "2026-02-24T10:00:00"},
                {"slotStartDate": "2026-02-24T12:00:00", "slotEndDate": "2026-02-24T17:00:00"},
            ],
        )

    def test_weekly_free_hours_from_thursday(self) -> None:
        self.now = datetime(2026, 2, 26, 16, 0)
        response = self._client().get("/reservations/freehours/week")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(
            response.get_json(),
            [
                {"slotStartDate": "2026-02-26T16:00:00", "slotEndDate": "2026-02-26T17:00:00"},
                {"slotStartDate": "2026-02-27T09:00:00", "slotEndDate": "2026-02-27T17:00:00"},
            ],
        )

    def test_free_hours_on_weekend_is_bad_request(self) -> None:
        self.now = datetime(2026, 2, 28, 10, 0)
        client = self._client()

        for path in ("/reservations/freehours/day", "/reservations/freehours/week"):
            with self.subTest(path=path):
                response = client.get(path)
                self.assertEqual(response.status_code, 400)
                self.assertEqual(response.get_data(as_text=True), "Today is not weekday, reservation is not available!")

    def test_person_name_by_date(self) -> None:
        self.repo.add_reservation("Anna", datetime(2026, 2, 24, 10, 0), datetime(2026, 2, 24, 11, 0), now=self.now)
        client = self._client()

        found = client.get("/reservations/personname/bydate", query_string={"dateString": "26.02.24 10:30"})
        missing = client.get("/reservations/personname/bydate", query_string={"dateString": "26.02.24 12:00"})
        malformed = client.get("/reservations/personname/bydate", query_string={"dateString": "2026-02-24"})

        self.assertEqual(found.status_code, 200)
        self.assertEqual(found.get_data(as_text=True), "Anna")
        self.assertEqual(missing.status_code, 200)
        self.assertEqual(missing.get_data(as_text=True), NO_RESERVATION_MESSAGE)
        self.assertEqual(malformed.status_code, 400)

    def test_rejection_message_uses_configured_policy(self) -> None:
        app = create_app(self.data_dir, now_provider=lambda: self.now, policy=WorkWeekPolicy(slot_minutes=15))
        payload = {"bookingPersonName": "Anna", "startDate": "2026-02-24T10:10:00", "endDate": "2026-02-24T11:10:00"}

        response = app.test_client().post("/reservation", json=payload)

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.headers[REJECTION_REASON_HEADER], "START_NOT_ON_HALF_HOUR")
        self.assertEqual(response.get_data(as_text=True), "Reservation must start at 00, 15, 30 or 45 minutes!")

    def test_cors_headers_are_added(self) -> None:
        response = self._client().get("/reservations/weekly")
        self.assertEqual(response.headers["Access-Control-Allow-Origin"], "*")


if __name__ == "__main__":
    unittest.main()
