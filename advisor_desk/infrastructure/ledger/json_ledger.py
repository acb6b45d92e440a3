from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Callable

from advisor_desk.domain.entities.booking import Booking, BookingStatus
from advisor_desk.infrastructure.ledger.memory_ledger import MemoryBookingLedger, _utc_now


class JsonBookingLedger(MemoryBookingLedger):
    """
    File-backed ledger: the in-memory indexes are the working copy and every
    mutation rewrites `bookings.json` through a temp file and atomic rename
    before it is applied, so a failed write leaves both copies unchanged.
    """

    def __init__(self, data_dir: str = "./data", clock: Callable[[], datetime] = _utc_now) -> None:
        super().__init__(clock=clock)
        self._data_dir = Path(data_dir)
        self._data_dir.mkdir(parents=True, exist_ok=True)
        self._file_path = self._data_dir / "bookings.json"
        self.logger = logging.getLogger(__name__)
        self._load()

    def _load(self) -> None:
        if not self._file_path.exists():
            return
        try:
            with open(self._file_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, IOError) as e:
            self.logger.error("Could not read booking ledger, starting empty", extra={"reason": str(e)})
            return

        for raw in data.get("bookings", []):
            booking = self._deserialize_booking(raw)
            self._bookings[booking.code] = booking
            if booking.is_active:
                self._intervals[booking.code] = booking.slot

    def _persist(self, bookings: dict[str, Booking]) -> None:
        payload = {
            "version": 1,
            "bookings": [self._serialize_booking(b) for b in bookings.values()],
        }
        temp_path = self._file_path.with_suffix(".json.tmp")
        try:
            with open(temp_path, "w", encoding="utf-8") as f:
                json.dump(payload, f, indent=2, ensure_ascii=False)
            temp_path.replace(self._file_path)
        except Exception:
            if temp_path.exists():
                temp_path.unlink(missing_ok=True)
            raise

    @staticmethod
    def _serialize_booking(booking: Booking) -> dict[str, Any]:
        return {
            "code": booking.code,
            "topic": booking.topic,
            "slot_start": booking.slot_start.isoformat(),
            "slot_end": booking.slot_end.isoformat(),
            "status": booking.status.value,
            "is_waitlist": booking.is_waitlist,
            "external_event_ref": booking.external_event_ref,
            "created_at": booking.created_at.isoformat() if booking.created_at else None,
            "updated_at": booking.updated_at.isoformat() if booking.updated_at else None,
        }

    @staticmethod
    def _deserialize_booking(data: dict[str, Any]) -> Booking:
        created_at = data.get("created_at")
        updated_at = data.get("updated_at")
        return Booking(
            code=data["code"],
            topic=data.get("topic", ""),
            slot_start=datetime.fromisoformat(data["slot_start"]),
            slot_end=datetime.fromisoformat(data["slot_end"]),
            status=BookingStatus(data.get("status", BookingStatus.CREATED.value)),
            is_waitlist=bool(data.get("is_waitlist", False)),
            external_event_ref=data.get("external_event_ref"),
            created_at=datetime.fromisoformat(created_at) if created_at else None,
            updated_at=datetime.fromisoformat(updated_at) if updated_at else None,
        )
