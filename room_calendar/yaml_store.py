from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from pathlib import Path
from threading import RLock
from typing import Any
import shutil
from uuid import uuid4

import yaml

from .booking import DEFAULT_POLICY, Reservation, WorkWeekPolicy, count_overlaps, truncate_to_seconds
from .validation import validate


class ReservationStorageError(RuntimeError):
    pass


def reservation_to_row(record: Reservation) -> dict[str, Any]:
    row: dict[str, Any] = {
        "reservation_id": record.reservation_id,
        "booking_person_name": record.booking_person_name,
        "start": record.start.isoformat(timespec="seconds"),
        "end": record.end.isoformat(timespec="seconds"),
    }
    if record.created_at is not None:
        row["created_at"] = record.created_at.isoformat(timespec="seconds")
    return row


def reservation_from_row(data: dict[str, Any]) -> Reservation:
    created_at = data.get("created_at")
    return Reservation(
        reservation_id=str(data["reservation_id"]),
        booking_person_name=str(data["booking_person_name"]),
        start=datetime.fromisoformat(str(data["start"])),
        end=datetime.fromisoformat(str(data["end"])),
        created_at=datetime.fromisoformat(str(created_at)) if created_at is not None else None,
    )


class ReservationYamlRepository:
    def __init__(self, base_dir: str | Path = "data") -> None:
        self.base_dir = Path(base_dir)
        self.reservations_file = self.base_dir / "reservations.yaml"
        self.log_file = self.base_dir / "reservation_events.yaml"
        self._lock = RLock()
        self._ensure_files()

    def _ensure_files(self) -> None:
        self.base_dir.mkdir(parents=True, exist_ok=True)
        for path in (self.reservations_file, self.log_file):
            if not path.exists():
                path.write_text("[]\n", encoding="utf-8")

    def _read_yaml_list(self, path: Path) -> list[dict[str, Any]]:
        try:
            payload = yaml.safe_load(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            path.write_text("[]\n", encoding="utf-8")
            return []
        except (OSError, UnicodeDecodeError, yaml.YAMLError) as error:
            self._recover_corrupted_yaml(path, error)
            return []

        if payload is None:
            return []
        if not isinstance(payload, list):
            self._recover_corrupted_yaml(path, ValueError("top-level YAML is not a list"))
            return []

        sanitized: list[dict[str, Any]] = []
        for index, row in enumerate(payload):
            if isinstance(row, dict):
                sanitized.append(row)
            else:
                self._log_event(
                    "YAML_ROW_SKIPPED",
                    {
                        "file": str(path.name),
                        "index": index,
                        "reason": "row is not a mapping",
                    },
                )
        return sanitized

    def _write_yaml_list(self, path: Path, rows: list[dict[str, Any]]) -> None:
        temp_path = path.with_suffix(path.suffix + ".tmp")
        try:
            temp_path.write_text(yaml.safe_dump(rows, allow_unicode=True, sort_keys=False), encoding="utf-8")
            temp_path.replace(path)
        except OSError as error:
            raise ReservationStorageError(f"Failed to write YAML file: {path}") from error
        finally:
            if temp_path.exists():
                temp_path.unlink(missing_ok=True)

    def _recover_corrupted_yaml(self, path: Path, error: Exception) -> None:
        timestamp = datetime.now().strftime("%Y%m%d%H%M%S")
        backup_path = path.with_name(f"{path.stem}.corrupt.{timestamp}{path.suffix}")
        backup_error: OSError | None = None
        try:
            if path.exists():
                shutil.copy2(path, backup_path)
        except OSError as copy_error:
            backup_error = copy_error

        path.write_text("[]\n", encoding="utf-8")
        if path != self.log_file:
            self._log_event(
                "YAML_RECOVERED",
                {
                    "file": str(path.name),
                    "backup": None if backup_error else str(backup_path.name),
                    "reason": str(error),
                    "backup_error": str(backup_error) if backup_error else None,
                },
            )

    def _log_event(self, event_type: str, payload: dict[str, Any], event_time: datetime | None = None) -> None:
        timestamp = (event_time or datetime.now()).isoformat(timespec="seconds")
        with self._lock:
            events = self._read_yaml_list(self.log_file)
            events.append({"event_time": timestamp, "event_type": event_type, "payload": payload})
            self._write_yaml_list(self.log_file, events)

    def get_events(self) -> list[dict[str, Any]]:
        with self._lock:
            return self._read_yaml_list(self.log_file)

    def get_reservations(self) -> list[Reservation]:
        # Reads may rewrite files (event log, corruption recovery).
        with self._lock:
            rows = self._read_yaml_list(self.reservations_file)
        return [reservation_from_row(row) for row in rows]

    def save(self, reservation: Reservation) -> Reservation:
        with self._lock:
            record = replace(reservation, reservation_id=str(uuid4()))
            rows = self._read_yaml_list(self.reservations_file)
            rows.append(reservation_to_row(record))
            self._write_yaml_list(self.reservations_file, rows)
        return record

    def find_by_start_between(self, start: datetime, end: datetime) -> list[Reservation]:
        matching = [record for record in self.get_reservations() if start <= record.start <= end]
        return sorted(matching, key=lambda record: record.start)

    def count_overlapping(self, start: datetime, end: datetime) -> int:
        return count_overlaps(start, end, self.get_reservations())

    def find_containing(self, instant: datetime) -> Reservation | None:
        covering = [record for record in self.get_reservations() if record.covers(instant)]
        if not covering:
            return None
        return max(covering, key=lambda record: record.start)

    def add_reservation(
        self,
        booking_person_name: str,
        start: datetime,
        end: datetime,
        now: datetime | None = None,
        policy: WorkWeekPolicy = DEFAULT_POLICY,
    ) -> Reservation:
        effective_now = now or datetime.now()
        candidate = Reservation(
            booking_person_name=booking_person_name,
            start=truncate_to_seconds(start),
            end=truncate_to_seconds(end),
            created_at=truncate_to_seconds(effective_now),
        )

        # Overlap check and insert must not interleave with another writer.
        with self._lock:
            result = validate(candidate, effective_now, self.count_overlapping, policy)
            if not result.ok:
                self._log_event(
                    "RESERVATION_REJECTED",
                    {
                        "booking_person_name": booking_person_name,
                        "start": candidate.start.isoformat(timespec="seconds"),
                        "end": candidate.end.isoformat(timespec="seconds"),
                        "reason": str(result.reason),
                    },
                    effective_now,
                )
                result.raise_for_rejection()

            record = self.save(candidate)
            self._log_event(
                "RESERVATION_CREATED",
                {
                    "reservation_id": record.reservation_id,
                    "booking_person_name": record.booking_person_name,
                    "start": record.start.isoformat(timespec="seconds"),
                    "end": record.end.isoformat(timespec="seconds"),
                },
                effective_now,
            )
        return record
