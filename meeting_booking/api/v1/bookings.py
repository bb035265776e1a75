from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional

from meeting_booking.database import get_db
from meeting_booking.dependencies import get_current_identity, get_admin_identity
from meeting_booking.schemas.booking import BookingCreateRequest, BookingUpdateRequest, StatusUpdateRequest
from meeting_booking.schemas.common import success_response, paginated_response
from meeting_booking.schemas.identity import Identity
from meeting_booking.services.availability_service import availability_service
from meeting_booking.services.booking_service import booking_service
from meeting_booking.services.room_service import room_service
from meeting_booking.utils.exceptions import NotFoundException

router = APIRouter(prefix="/bookings")


@router.post("", status_code=status.HTTP_201_CREATED, summary="Request a meeting room")
def create_booking(
    body:     BookingCreateRequest,
    db:       Session  = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    data = booking_service.create_booking(db, body, identity)
    return success_response("Booking created successfully. Waiting for admin approval.", data)


@router.get("/my-bookings", summary="Own bookings split into upcoming and past")
def my_bookings(
    status:   Optional[str] = Query(None, description="Comma-separated statuses"),
    db:       Session       = Depends(get_db),
    identity: Identity      = Depends(get_current_identity),
):
    statuses = [s for s in status.split(",") if s.strip()] if status else None
    return success_response("Bookings retrieved successfully",
                            booking_service.list_my_bookings(db, identity, statuses))


@router.post("/check-conflicts", summary="Dry-run conflict check")
def check_conflicts(
    body: BookingCreateRequest,
    db:   Session  = Depends(get_db),
    _:    Identity = Depends(get_current_identity),
):
    data = booking_service.check_request(db, body)
    message = "Conflicts found" if data["has_conflicts"] else "No conflicts found"
    return success_response(message, data)


# ─── Room-scoped reads ────────────────────────────────────────────────────────
@router.get("/room/{room_id}", summary="Bookings of a room, optionally for one date")
def room_bookings(
    room_id: int,
    date:    Optional[str] = Query(None, description="YYYY-MM-DD"),
    db:      Session       = Depends(get_db),
    _:       Identity      = Depends(get_current_identity),
):
    return success_response("Room bookings retrieved successfully",
                            booking_service.list_room_bookings(db, room_id, date))


@router.get("/room/{room_id}/available-slots", summary="Hourly slots for one day")
def available_slots(
    room_id: int,
    date:    str      = Query(..., description="YYYY-MM-DD"),
    db:      Session  = Depends(get_db),
    _:       Identity = Depends(get_current_identity),
):
    result = availability_service.get_available_slots(db, room_id, date)
    if not result.success:
        raise NotFoundException("Meeting room")
    return success_response(result.message, result.to_dict())


@router.get("/room/{room_id}/availability/multi-day", summary="Per-day availability over a range")
def multi_day_availability(
    room_id:    int,
    start_date: str      = Query(..., description="YYYY-MM-DD"),
    end_date:   str      = Query(..., description="YYYY-MM-DD"),
    db:         Session  = Depends(get_db),
    _:          Identity = Depends(get_current_identity),
):
    room_service.get_room(db, room_id)
    data = availability_service.get_multi_day_availability(db, room_id, start_date, end_date)
    return success_response("Multi-day availability retrieved successfully", data)


# ─── Admin ────────────────────────────────────────────────────────────────────
@router.get("/admin/all", summary="All bookings (Admin)")
def list_all_bookings(
    page:         int           = Query(1, ge=1),
    limit:        int           = Query(20, ge=1, le=100),
    status:       Optional[str] = Query(None, description="pending | approved | rejected | cancelled"),
    room_id:      Optional[int] = Query(None),
    requester_id: Optional[int] = Query(None),
    start_date:   Optional[str] = Query(None),
    end_date:     Optional[str] = Query(None),
    db:           Session       = Depends(get_db),
    _:            Identity      = Depends(get_admin_identity),
):
    data, total = booking_service.list_bookings(
        db, page, limit, status, room_id, requester_id, start_date, end_date,
    )
    return paginated_response("Bookings retrieved successfully", data, total, page, limit)


@router.get("/admin/pending", summary="Pending approvals, oldest first (Admin)")
def list_pending(
    page:  int      = Query(1, ge=1),
    limit: int      = Query(20, ge=1, le=100),
    db:    Session  = Depends(get_db),
    _:     Identity = Depends(get_admin_identity),
):
    data, total = booking_service.list_pending(db, page, limit)
    return paginated_response("Pending bookings retrieved successfully", data, total, page, limit)


@router.patch("/admin/{booking_id}/status", summary="Approve / reject / change status (Admin)")
def update_status(
    booking_id: int,
    body:       StatusUpdateRequest,
    db:         Session  = Depends(get_db),
    identity:   Identity = Depends(get_admin_identity),
):
    data = booking_service.update_status(db, booking_id, body.status, body.admin_remarks, identity)
    return success_response(f"Booking {data['status']} successfully", data)


# ─── Single booking ───────────────────────────────────────────────────────────
@router.get("/{booking_id}", summary="Get booking detail")
def get_booking(
    booking_id: int,
    db:         Session  = Depends(get_db),
    identity:   Identity = Depends(get_current_identity),
):
    return success_response("Booking retrieved", booking_service.get_booking(db, booking_id, identity))


@router.put("/{booking_id}", summary="Edit booking (owner or Admin)")
def edit_booking(
    booking_id: int,
    body:       BookingUpdateRequest,
    db:         Session  = Depends(get_db),
    identity:   Identity = Depends(get_current_identity),
):
    data, changes = booking_service.edit_booking(db, booking_id, body, identity)
    if not changes:
        return success_response("No changes were made to the booking", data, changes=[])
    return success_response("Booking updated successfully", data, changes=changes)


@router.delete("/{booking_id}", summary="Cancel booking (owner or Admin)")
def cancel_booking(
    booking_id: int,
    db:         Session  = Depends(get_db),
    identity:   Identity = Depends(get_current_identity),
):
    data = booking_service.cancel_booking(db, booking_id, identity)
    message = "Booking rejected successfully" if data["action"] == "rejected" else "Booking cancelled successfully"
    return success_response(message, data)
