from sqlalchemy.orm import Session

from meeting_booking.models.room import Room
from meeting_booking.services.booking_store import BookingStore
from meeting_booking.utils.exceptions import NotFoundException


def _serialize(r: Room) -> dict:
    return {
        "id":       r.id,
        "name":     r.name,
        "location": r.location,
        "capacity": r.capacity,
    }


class RoomService:

    def list_rooms(self, db: Session) -> list[dict]:
        return [_serialize(r) for r in BookingStore(db).list_rooms()]

    def get_room(self, db: Session, room_id: int) -> dict:
        r = BookingStore(db).get_room(room_id)
        if not r:
            raise NotFoundException("Meeting room")
        return _serialize(r)


room_service = RoomService()
