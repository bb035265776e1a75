from datetime import date

import pytest

from meeting_booking.models import AuditLog, Booking, BookingStatus
from meeting_booking.schemas.booking import BookingCreateRequest, BookingUpdateRequest
from meeting_booking.services.booking_service import booking_service
from meeting_booking.utils.exceptions import (
    BookingAlreadyStartedException, BookingConflictException, ForbiddenException,
    NotFoundException, TransientStoreException, ValidationException,
)

from conftest import ADMIN, ALICE, BOB, add_booking, fail_booking_reads


def _create(db, identity=ALICE, **fields):
    body = {"room_id": 1, "date": "2099-07-01", "start_time": "09:00", "end_time": "10:00"}
    body.update(fields)
    return booking_service.create_booking(db, BookingCreateRequest(**body), identity)


def _actions(db, booking_id):
    rows = db.query(AuditLog).filter(AuditLog.entity_id == booking_id).order_by(AuditLog.id).all()
    return [r.action for r in rows]


# ─── Create ───────────────────────────────────────────────────────────────────
def test_create_simple_booking_is_pending(test_db, rooms):
    data = _create(test_db, date="2024-07-01")

    assert data["status"] == "pending"
    assert data["room_id"] == 1
    assert data["room_name"] == "Board Room"
    assert data["requester_id"] == ALICE.id
    assert data["date"] == "2024-07-01"
    assert (data["start_time"], data["end_time"]) == ("09:00", "10:00")
    assert data["purpose"] == "Meeting"
    assert _actions(test_db, data["id"]) == ["CREATE"]


def test_create_normalizes_dates_and_keeps_purpose(test_db, rooms):
    data = _create(test_db, date="2099-07-01T22:00:00+07:00", purpose="  Sprint review ")
    assert data["date"] == "2099-07-01"
    assert data["purpose"] == "Sprint review"


def test_create_all_day_multi_day(test_db, rooms):
    data = _create(test_db, all_day=True, is_multi_day=True, end_date="2099-07-03",
                   start_time=None, end_time=None)
    assert data["is_multi_day"] and data["all_day"]
    assert data["end_date"] == "2099-07-03"
    assert data["start_time"] is None


def test_create_rejects_invalid_request(test_db, rooms):
    with pytest.raises(ValidationException) as exc:
        _create(test_db, end_time="08:00")
    assert exc.value.message == "End time must be after start time"
    assert test_db.query(Booking).count() == 0


def test_create_unknown_room(test_db, rooms):
    with pytest.raises(NotFoundException):
        _create(test_db, room_id=42)


def test_create_blocked_by_multi_day_all_day(test_db, rooms):
    add_booking(test_db, room_id=2, day="2024-07-05", end_day="2024-07-07", all_day=True)

    with pytest.raises(BookingConflictException) as exc:
        _create(test_db, room_id=2, date="2024-07-06")

    assert [c["conflict_type"] for c in exc.value.conflicts] == ["blocked_by_all_day"]
    assert test_db.query(Booking).filter(Booking.requester_id == ALICE.id, Booking.room_id == 2,
                                         Booking.date == date(2024, 7, 6)).count() == 0


def test_pending_request_does_not_block_another(test_db, rooms):
    _create(test_db)
    second = _create(test_db, identity=BOB)
    assert second["status"] == "pending"


# ─── Edit ─────────────────────────────────────────────────────────────────────
def test_edit_ownership(test_db, rooms):
    booking = _create(test_db)
    body = BookingUpdateRequest(purpose="Board sync")

    with pytest.raises(ForbiddenException):
        booking_service.edit_booking(test_db, booking["id"], body, BOB)

    data, changes = booking_service.edit_booking(test_db, booking["id"], body, ADMIN)
    assert changes == ["purpose"]
    assert data["purpose"] == "Board sync"


def test_edit_same_values_is_noop(test_db, rooms):
    booking = _create(test_db)
    body = BookingUpdateRequest(date="2099-07-01", start_time="09:00", end_time="10:00", purpose="Meeting")

    data, changes = booking_service.edit_booking(test_db, booking["id"], body, ALICE)

    assert changes == []
    assert data["updated_at"] == booking["updated_at"]
    assert _actions(test_db, booking["id"]) == ["CREATE"]


def test_edit_only_reports_changed_fields(test_db, rooms):
    booking = _create(test_db)
    body = BookingUpdateRequest(date="2099-07-01", start_time="13:00", end_time="10:00")

    # Merged record 13:00-10:00 is invalid
    with pytest.raises(ValidationException):
        booking_service.edit_booking(test_db, booking["id"], body, ALICE)

    data, changes = booking_service.edit_booking(
        test_db, booking["id"], BookingUpdateRequest(start_time="13:00", end_time="14:00"), ALICE,
    )
    assert sorted(changes) == ["end_time", "start_time"]
    assert (data["start_time"], data["end_time"]) == ("13:00", "14:00")
    assert _actions(test_db, booking["id"]) == ["CREATE", "UPDATE"]


def test_edit_to_all_day_clears_times(test_db, rooms):
    booking = _create(test_db)
    data, changes = booking_service.edit_booking(test_db, booking["id"], BookingUpdateRequest(all_day=True), ALICE)

    assert "all_day" in changes
    assert data["all_day"] is True
    assert data["start_time"] is None and data["end_time"] is None


def test_edit_non_admin_cannot_set_status(test_db, rooms):
    booking = _create(test_db)
    with pytest.raises(ForbiddenException):
        booking_service.edit_booking(test_db, booking["id"], BookingUpdateRequest(status="approved"), ALICE)


def test_edit_started_booking_rejected_for_owner(test_db, rooms):
    past = add_booking(test_db, day="2000-01-03", status=BookingStatus.PENDING)
    with pytest.raises(BookingAlreadyStartedException):
        booking_service.edit_booking(test_db, past.id, BookingUpdateRequest(purpose="x"), ALICE)


def test_edit_approved_booking_rechecks_conflicts(test_db, rooms):
    add_booking(test_db, day="2099-07-01", start="11:00", end="12:00", requester_id=BOB.id)
    mine = add_booking(test_db, day="2099-07-01", start="09:00", end="10:00")

    with pytest.raises(BookingConflictException):
        booking_service.edit_booking(
            test_db, mine.id, BookingUpdateRequest(start_time="10:30", end_time="11:30"), ALICE,
        )

    # Moving within its own slot does not conflict with itself
    _, changes = booking_service.edit_booking(
        test_db, mine.id, BookingUpdateRequest(start_time="09:00", end_time="11:00"), ALICE,
    )
    assert changes == ["end_time"]


def test_edit_pending_booking_may_overlap(test_db, rooms):
    add_booking(test_db, day="2099-07-01", start="11:00", end="12:00", requester_id=BOB.id)
    mine = _create(test_db)

    _, changes = booking_service.edit_booking(
        test_db, mine["id"], BookingUpdateRequest(start_time="10:30", end_time="11:30"), ALICE,
    )
    assert sorted(changes) == ["end_time", "start_time"]


def test_admin_remarks_saved_without_status_change(test_db, rooms):
    booking = _create(test_db)
    data, changes = booking_service.edit_booking(
        test_db, booking["id"], BookingUpdateRequest(admin_remarks="Projector is broken"), ADMIN,
    )

    assert changes == ["admin_remarks"]
    assert data["admin_remarks"] == "Projector is broken"
    assert data["status"] == "pending"

    # Owners cannot write remarks
    _, changes = booking_service.edit_booking(
        test_db, booking["id"], BookingUpdateRequest(admin_remarks="All good"), ALICE,
    )
    assert changes == []


def test_edit_missing_booking(test_db, rooms):
    with pytest.raises(NotFoundException):
        booking_service.edit_booking(test_db, 999, BookingUpdateRequest(purpose="x"), ALICE)


# ─── Cancel ───────────────────────────────────────────────────────────────────
def test_owner_cancel_deletes(test_db, rooms):
    booking = _create(test_db)
    result = booking_service.cancel_booking(test_db, booking["id"], ALICE)

    assert result["action"] == "cancelled"
    assert result["is_admin_action"] is False
    assert test_db.get(Booking, booking["id"]) is None
    assert _actions(test_db, booking["id"]) == ["CREATE", "CANCEL"]


def test_other_user_cannot_cancel(test_db, rooms):
    booking = _create(test_db)
    with pytest.raises(ForbiddenException):
        booking_service.cancel_booking(test_db, booking["id"], BOB)


def test_admin_cancel_of_pending_is_reject(test_db, rooms):
    booking = _create(test_db)
    result = booking_service.cancel_booking(test_db, booking["id"], ADMIN)

    assert result["action"] == "rejected"
    assert result["status"] == "rejected"
    stored = test_db.get(Booking, booking["id"])
    assert stored.status == BookingStatus.REJECTED
    assert stored.admin_remarks == "Booking rejected by admin"


def test_admin_cancel_of_approved_deletes(test_db, rooms):
    approved = add_booking(test_db, day="2000-01-03")
    result = booking_service.cancel_booking(test_db, approved.id, ADMIN)

    assert result["action"] == "cancelled"
    assert result["is_admin_action"] is True
    assert test_db.get(Booking, approved.id) is None


def test_owner_cannot_cancel_started_booking(test_db, rooms):
    past = add_booking(test_db, day="2000-01-03", status=BookingStatus.PENDING)
    with pytest.raises(BookingAlreadyStartedException):
        booking_service.cancel_booking(test_db, past.id, ALICE)


# ─── Status ───────────────────────────────────────────────────────────────────
def test_approve_and_reject(test_db, rooms):
    booking = _create(test_db)
    data = booking_service.update_status(test_db, booking["id"], "approved", "Enjoy", ADMIN)

    assert data["status"] == "approved"
    assert data["admin_remarks"] == "Enjoy"
    assert _actions(test_db, booking["id"]) == ["CREATE", "APPROVE"]

    other = _create(test_db, identity=BOB, date="2099-07-02")
    data = booking_service.update_status(test_db, other["id"], "rejected", None, ADMIN)
    assert data["status"] == "rejected"
    assert _actions(test_db, other["id"]) == ["CREATE", "REJECT"]


def test_approve_rechecks_conflicts(test_db, rooms):
    first = _create(test_db)
    second = _create(test_db, identity=BOB, start_time="09:30", end_time="10:30")
    booking_service.update_status(test_db, first["id"], "approved", None, ADMIN)

    with pytest.raises(BookingConflictException):
        booking_service.update_status(test_db, second["id"], "approved", None, ADMIN)
    assert test_db.get(Booking, second["id"]).status == BookingStatus.PENDING


def test_approve_with_store_outage_is_not_treated_as_clear(test_db, rooms, monkeypatch):
    booking = _create(test_db)
    # The booking lookup succeeds; the conflict read behind it fails
    fail_booking_reads(test_db, monkeypatch, after=1)

    with pytest.raises(TransientStoreException) as exc:
        booking_service.update_status(test_db, booking["id"], "approved", None, ADMIN)
    assert exc.value.status_code == 503

    monkeypatch.undo()
    assert test_db.get(Booking, booking["id"]).status == BookingStatus.PENDING
    assert _actions(test_db, booking["id"]) == ["CREATE"]


def test_status_requires_admin_and_known_value(test_db, rooms):
    booking = _create(test_db)
    with pytest.raises(ForbiddenException):
        booking_service.update_status(test_db, booking["id"], "approved", None, ALICE)
    with pytest.raises(ValidationException) as exc:
        booking_service.update_status(test_db, booking["id"], "done", None, ADMIN)
    assert exc.value.message == "Invalid status. Must be: pending, approved, rejected, or cancelled"


# ─── Reads ────────────────────────────────────────────────────────────────────
def test_get_booking_owner_or_admin(test_db, rooms):
    booking = _create(test_db)
    assert booking_service.get_booking(test_db, booking["id"], ALICE)["id"] == booking["id"]
    assert booking_service.get_booking(test_db, booking["id"], ADMIN)["id"] == booking["id"]
    with pytest.raises(ForbiddenException):
        booking_service.get_booking(test_db, booking["id"], BOB)


def test_my_bookings_split(test_db, rooms):
    future = _create(test_db)
    past = add_booking(test_db, day="2000-01-03", status=BookingStatus.APPROVED)
    add_booking(test_db, day="2099-07-05", requester_id=BOB.id)

    data = booking_service.list_my_bookings(test_db, ALICE)

    assert sorted(b["id"] for b in data["all"]) == sorted([future["id"], past.id])
    assert [b["id"] for b in data["upcoming"]] == [future["id"]]
    assert [b["id"] for b in data["past"]] == [past.id]

    only_approved = booking_service.list_my_bookings(test_db, ALICE, ["approved"])
    assert [b["id"] for b in only_approved["all"]] == [past.id]


def test_room_bookings_for_date(test_db, rooms):
    add_booking(test_db, day="2099-07-01", start="11:00", end="12:00")
    add_booking(test_db, day="2099-07-01", all_day=True, status=BookingStatus.PENDING)
    add_booking(test_db, day="2099-07-02")

    data = booking_service.list_room_bookings(test_db, 1, "2099-07-01")
    # All-day first, then by start time
    assert [b["all_day"] for b in data] == [True, False]

    with pytest.raises(NotFoundException):
        booking_service.list_room_bookings(test_db, 77)


def test_admin_lists(test_db, rooms):
    _create(test_db)
    _create(test_db, identity=BOB, date="2099-07-02")
    add_booking(test_db, room_id=2, day="2099-08-01")

    items, total = booking_service.list_bookings(test_db, 1, 20, status="pending")
    assert total == 2
    assert {b["status"] for b in items} == {"pending"}

    items, total = booking_service.list_bookings(test_db, 1, 20, room_id=2)
    assert total == 1

    items, total = booking_service.list_bookings(test_db, 1, 1)
    assert total == 3 and len(items) == 1

    pending, total = booking_service.list_pending(test_db, 1, 20)
    assert total == 2


def test_check_request_is_dry_run(test_db, rooms):
    add_booking(test_db, day="2099-07-01", start="09:00", end="10:00")
    data = booking_service.check_request(
        test_db, BookingCreateRequest(room_id=1, date="2099-07-01", start_time="09:30", end_time="10:30"),
    )
    assert data["has_conflicts"] is True
    assert test_db.query(Booking).count() == 1
