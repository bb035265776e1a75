import enum
import logging
from dataclasses import dataclass, field
from datetime import date, timedelta

from sqlalchemy.orm import Session

from meeting_booking.config import settings
from meeting_booking.models.booking import Booking, BookingStatus
from meeting_booking.services.booking_store import BookingStore
from meeting_booking.utils.exceptions import InvalidRangeException
from meeting_booking.utils.normalize import minutes_to_time, to_calendar_date
from meeting_booking.utils.overlap import effective_time_range, time_ranges_overlap

logger = logging.getLogger(__name__)


class SlotReason(str, enum.Enum):
    AVAILABLE = "available"
    TIME_SLOT = "time_slot"
    ALL_DAY   = "all_day"


@dataclass
class TimeSlot:
    start_time: str
    end_time:   str
    available:  bool
    reason:     SlotReason

    def to_dict(self) -> dict:
        return {
            "start_time": self.start_time,
            "end_time":   self.end_time,
            "available":  self.available,
            "reason":     self.reason.value,
        }


@dataclass
class AvailabilityResult:
    success:          bool
    date:             str
    room_id:          int
    slots:            list[TimeSlot] = field(default_factory=list)
    is_day_available: bool = False
    message:          str = "Available slots retrieved successfully"

    @property
    def available_count(self) -> int:
        return sum(1 for s in self.slots if s.available)

    def to_dict(self) -> dict:
        return {
            "date":             self.date,
            "room_id":          self.room_id,
            "slots":            [s.to_dict() for s in self.slots],
            "available_count":  self.available_count,
            "is_day_available": self.is_day_available,
        }


def _working_window() -> list[tuple[int, int]]:
    day_start = settings.WORKING_HOURS_START * 60
    day_end   = settings.WORKING_HOURS_END * 60
    step      = settings.SLOT_LENGTH_MINUTES
    return [(m, min(m + step, day_end)) for m in range(day_start, day_end, step)]


class AvailabilityService:

    def get_approved_bookings_for_date(self, db: Session, room_id: int, on_date) -> list[Booking]:
        """Approved bookings of the room that occupy ``on_date``, including multi-day spans."""
        day = to_calendar_date(on_date, "date")
        return BookingStore(db).find_bookings(room_id=room_id, status=BookingStatus.APPROVED, on_date=day)

    def get_available_slots(self, db: Session, room_id: int, on_date) -> AvailabilityResult:
        day = to_calendar_date(on_date, "date")
        store = BookingStore(db)
        if store.get_room(room_id) is None:
            return AvailabilityResult(
                success=False, date=day.isoformat(), room_id=room_id,
                message="Meeting room not found",
            )

        bookings = self.get_approved_bookings_for_date(db, room_id, day)
        day_blocked = any(b.all_day for b in bookings)

        slots = []
        for slot_start, slot_end in _working_window():
            if day_blocked:
                reason = SlotReason.ALL_DAY
            elif any(time_ranges_overlap(slot_start, slot_end, *effective_time_range(b)) for b in bookings):
                reason = SlotReason.TIME_SLOT
            else:
                reason = SlotReason.AVAILABLE
            slots.append(TimeSlot(
                start_time=minutes_to_time(slot_start),
                end_time=minutes_to_time(slot_end),
                available=reason is SlotReason.AVAILABLE,
                reason=reason,
            ))

        return AvailabilityResult(
            success=True, date=day.isoformat(), room_id=room_id,
            slots=slots, is_day_available=not day_blocked,
        )

    def get_multi_day_availability(self, db: Session, room_id: int, start_date, end_date) -> list[dict]:
        """Per-day summary over [start_date, end_date] inclusive."""
        first = to_calendar_date(start_date, "start_date")
        last  = to_calendar_date(end_date, "end_date")
        if last <= first:
            raise InvalidRangeException()

        availability = []
        day: date = first
        while day <= last:
            result = self.get_available_slots(db, room_id, day)
            availability.append({
                "date":            day.isoformat(),
                "is_available":    result.success and result.is_day_available,
                "available_slots": result.available_count if result.success else 0,
            })
            day += timedelta(days=1)
        return availability


availability_service = AvailabilityService()
