import tempfile
import threading
from datetime import datetime, timedelta
from pathlib import Path
from zoneinfo import ZoneInfo

import pytest

from advisor_desk.domain.entities.booking import BookingStatus
from advisor_desk.infrastructure.ledger import json_ledger
from advisor_desk.infrastructure.ledger.json_ledger import JsonBookingLedger
from advisor_desk.infrastructure.ledger.memory_ledger import MemoryBookingLedger

IST = ZoneInfo("Asia/Kolkata")
NOON = datetime(2026, 10, 20, 12, 0, tzinfo=IST)
HALF = timedelta(minutes=30)


def test_conflicts_use_half_open_intervals():
    ledger = MemoryBookingLedger()
    ledger.set_booking("AB-123", "KYC/Onboarding", NOON, NOON + HALF)

    assert ledger.check_conflict(NOON + timedelta(minutes=15), NOON + timedelta(minutes=45)) is True
    assert ledger.check_conflict(NOON + HALF, NOON + 2 * HALF) is False
    assert ledger.check_conflict(NOON, NOON + HALF, exclude_code="AB-123") is False


def test_clashing_booking_is_forced_onto_waitlist():
    ledger = MemoryBookingLedger()
    ledger.set_booking("AB-123", "KYC/Onboarding", NOON, NOON + HALF)
    second = ledger.set_booking("CD-456", "SIP/Mandates", NOON, NOON + HALF)

    assert second.is_waitlist is True
    assert ledger.active_intervals() == [ledger.get_booking("AB-123").slot]


def test_waitlisted_bookings_never_block():
    ledger = MemoryBookingLedger()
    ledger.set_booking("AB-123", "KYC/Onboarding", NOON, NOON + HALF, is_waitlist=True)
    assert ledger.check_conflict(NOON, NOON + HALF) is False


def test_cancel_frees_interval_and_second_cancel_is_not_found():
    ledger = MemoryBookingLedger()
    ledger.set_booking("AB-123", "KYC/Onboarding", NOON, NOON + HALF)

    assert ledger.delete_booking("AB-123") is True
    assert ledger.get_booking("AB-123").status == BookingStatus.CANCELLED
    assert ledger.check_conflict(NOON, NOON + HALF) is False
    assert ledger.delete_booking("AB-123") is False
    assert ledger.delete_booking("ZZ-000") is False
    # cancelled codes are never reissued
    assert "AB-123" in ledger.issued_codes()


def test_reschedule_keeps_code_and_moves_interval():
    ledger = MemoryBookingLedger()
    ledger.set_booking("AB-123", "KYC/Onboarding", NOON, NOON + HALF)
    moved = ledger.set_booking(
        "AB-123", "KYC/Onboarding", NOON + 2 * HALF, NOON + 3 * HALF, status=BookingStatus.RESCHEDULED
    )

    assert moved.code == "AB-123"
    assert moved.status == BookingStatus.RESCHEDULED
    assert moved.slot_start == NOON + 2 * HALF
    assert ledger.check_conflict(NOON, NOON + HALF) is False
    assert ledger.check_conflict(NOON + 2 * HALF, NOON + 3 * HALF) is True


def test_lookup_is_case_insensitive_and_refs_attach():
    ledger = MemoryBookingLedger()
    ledger.set_booking("AB-123", "KYC/Onboarding", NOON, NOON + HALF)

    assert ledger.get_booking(" ab-123 ").code == "AB-123"
    assert ledger.get_booking("") is None
    assert ledger.attach_external_ref("AB-123", "evt_1").external_event_ref == "evt_1"
    assert ledger.attach_external_ref("ZZ-000", "evt_2") is None
    # a later update without a ref keeps the attached one
    updated = ledger.set_booking("AB-123", "KYC/Onboarding", NOON, NOON + HALF, status=BookingStatus.RESCHEDULED)
    assert updated.external_event_ref == "evt_1"


def test_concurrent_commits_under_transaction_book_the_slot_once():
    ledger = MemoryBookingLedger()
    winners: list[str] = []
    barrier = threading.Barrier(8)

    def attempt(code: str) -> None:
        barrier.wait()
        with ledger.transaction():
            if ledger.check_conflict(NOON, NOON + HALF):
                return
            ledger.set_booking(code, "KYC/Onboarding", NOON, NOON + HALF)
            winners.append(code)

    threads = [threading.Thread(target=attempt, args=(f"AB-{i:03d}",)) for i in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(winners) == 1
    assert len(ledger.active_intervals()) == 1


def test_json_ledger_survives_restart():
    with tempfile.TemporaryDirectory() as tmpdir:
        ledger = JsonBookingLedger(data_dir=tmpdir)
        ledger.set_booking("AB-123", "KYC/Onboarding", NOON, NOON + HALF)
        ledger.set_booking("CD-456", "SIP/Mandates", NOON + HALF, NOON + 2 * HALF)
        ledger.delete_booking("CD-456")
        ledger.attach_external_ref("AB-123", "evt_9")

        reloaded = JsonBookingLedger(data_dir=tmpdir)
        kept = reloaded.get_booking("AB-123")
        assert kept.slot_start == NOON
        assert kept.external_event_ref == "evt_9"
        assert reloaded.get_booking("CD-456").status == BookingStatus.CANCELLED
        assert reloaded.check_conflict(NOON, NOON + HALF) is True
        assert reloaded.check_conflict(NOON + HALF, NOON + 2 * HALF) is False
        assert reloaded.issued_codes() == {"AB-123", "CD-456"}


def test_cancel_and_ref_accept_untidy_codes():
    ledger = MemoryBookingLedger()
    ledger.set_booking(" ab-123", "KYC/Onboarding", NOON, NOON + HALF)

    assert ledger.issued_codes() == {"AB-123"}
    assert ledger.attach_external_ref(" ab-123 ", "evt_1").code == "AB-123"
    assert ledger.delete_booking("ab-123 ") is True
    assert ledger.get_booking("AB-123").status == BookingStatus.CANCELLED
    assert ledger.check_conflict(NOON, NOON + HALF) is False


def test_failed_write_leaves_ledger_unchanged(monkeypatch):
    with tempfile.TemporaryDirectory() as tmpdir:
        ledger = JsonBookingLedger(data_dir=tmpdir)
        ledger.set_booking("AB-123", "KYC/Onboarding", NOON, NOON + HALF)
        before = (Path(tmpdir) / "bookings.json").read_text(encoding="utf-8")

        def full_disk(*args, **kwargs):
            raise OSError("no space left on device")

        monkeypatch.setattr(json_ledger.json, "dump", full_disk)
        with pytest.raises(OSError):
            ledger.set_booking("CD-456", "SIP/Mandates", NOON + HALF, NOON + 2 * HALF)
        with pytest.raises(OSError):
            ledger.delete_booking("AB-123")

        assert ledger.get_booking("CD-456") is None
        assert ledger.get_booking("AB-123").status == BookingStatus.CREATED
        assert ledger.check_conflict(NOON + HALF, NOON + 2 * HALF) is False
        assert ledger.check_conflict(NOON, NOON + HALF) is True
        assert (Path(tmpdir) / "bookings.json").read_text(encoding="utf-8") == before
        assert list(Path(tmpdir).iterdir()) == [Path(tmpdir) / "bookings.json"]
