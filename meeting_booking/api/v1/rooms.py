from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from meeting_booking.database import get_db
from meeting_booking.dependencies import get_current_identity
from meeting_booking.schemas.common import success_response
from meeting_booking.schemas.identity import Identity
from meeting_booking.services.availability_service import availability_service
from meeting_booking.services.room_service import room_service
from meeting_booking.utils.exceptions import NotFoundException

router = APIRouter(prefix="/rooms")


@router.get("", summary="List meeting rooms")
def list_rooms(db: Session = Depends(get_db), _: Identity = Depends(get_current_identity)):
    return success_response("Rooms retrieved successfully", room_service.list_rooms(db))


@router.get("/{room_id}", summary="Get room by ID")
def get_room(room_id: int, db: Session = Depends(get_db), _: Identity = Depends(get_current_identity)):
    return success_response("Room retrieved", room_service.get_room(db, room_id))


@router.get("/{room_id}/availability", summary="Hourly availability for one day")
def room_availability(
    room_id: int,
    date:    str      = Query(..., description="YYYY-MM-DD"),
    db:      Session  = Depends(get_db),
    _:       Identity = Depends(get_current_identity),
):
    result = availability_service.get_available_slots(db, room_id, date)
    if not result.success:
        raise NotFoundException("Meeting room")
    return success_response(result.message, result.to_dict())
