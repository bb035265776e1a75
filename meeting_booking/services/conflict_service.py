"""
Conflict detection for prospective bookings.

Only ``approved`` bookings block. A candidate first has to share at least one
day with the request (inclusive date rule); the kind of conflict then depends
on which side is all-day. Two timed bookings only collide when their minute
windows overlap (half-open time rule).
"""

import enum
import logging
from dataclasses import dataclass, field

from sqlalchemy.orm import Session

from meeting_booking.models.booking import Booking, BookingStatus
from meeting_booking.services.booking_store import BookingStore
from meeting_booking.utils.exceptions import BookingConflictException
from meeting_booking.utils.normalize import MINUTES_PER_DAY, minutes_to_time, time_to_minutes, to_calendar_date
from meeting_booking.utils.overlap import (
    date_ranges_overlap, effective_date_range, effective_time_range, time_ranges_overlap,
)

logger = logging.getLogger(__name__)


class ConflictKind(str, enum.Enum):
    ALL_DAY            = "all_day"
    ALL_DAY_OVERRIDE   = "all_day_override"
    BLOCKED_BY_ALL_DAY = "blocked_by_all_day"
    TIME_SLOT          = "time_slot"


# (new request is all-day, existing booking is all-day) -> kind
_KIND_BY_SHAPE = {
    (True,  True):  ConflictKind.ALL_DAY,
    (True,  False): ConflictKind.ALL_DAY_OVERRIDE,
    (False, True):  ConflictKind.BLOCKED_BY_ALL_DAY,
    (False, False): ConflictKind.TIME_SLOT,
}

_MESSAGES = {
    ConflictKind.ALL_DAY:            "Room {room} already booked for all day on {span}",
    ConflictKind.ALL_DAY_OVERRIDE:   "Room {room} already has timed bookings on overlapping dates",
    ConflictKind.BLOCKED_BY_ALL_DAY: "Room {room} is fully booked for all day on {span}",
    ConflictKind.TIME_SLOT:          "Time slot {start}-{end} conflicts in room {room}",
}


@dataclass(frozen=True)
class BookingSnapshot:
    id:           int
    purpose:      str
    date:         str
    end_date:     str | None
    start_time:   str | None
    end_time:     str | None
    all_day:      bool
    is_multi_day: bool

    @classmethod
    def from_booking(cls, b: Booking) -> "BookingSnapshot":
        return cls(
            id=b.id,
            purpose=b.purpose,
            date=b.date.isoformat(),
            end_date=b.end_date.isoformat() if b.end_date else None,
            start_time=minutes_to_time(b.start_time),
            end_time=minutes_to_time(b.end_time),
            all_day=bool(b.all_day),
            is_multi_day=bool(b.is_multi_day),
        )

    @property
    def span(self) -> str:
        return f"{self.date} to {self.end_date}" if self.is_multi_day and self.end_date else self.date


@dataclass(frozen=True)
class ConflictDescriptor:
    kind:     ConflictKind
    message:  str
    existing: BookingSnapshot

    def to_dict(self) -> dict:
        return {
            "conflict_type":    self.kind.value,
            "message":          self.message,
            "existing_booking": {
                "id":           self.existing.id,
                "purpose":      self.existing.purpose,
                "date":         self.existing.date,
                "end_date":     self.existing.end_date,
                "start_time":   self.existing.start_time,
                "end_time":     self.existing.end_time,
                "all_day":      self.existing.all_day,
                "is_multi_day": self.existing.is_multi_day,
            },
        }


@dataclass
class ConflictCheckResult:
    room_id:   int
    conflicts: list[ConflictDescriptor] = field(default_factory=list)

    @property
    def has_conflicts(self) -> bool:
        return bool(self.conflicts)

    def to_dict(self) -> dict:
        return {
            "room_id":       self.room_id,
            "has_conflicts": self.has_conflicts,
            "conflicts":     [c.to_dict() for c in self.conflicts],
        }


def _as_minutes(value, field_name: str) -> int:
    if isinstance(value, int):
        return value
    return time_to_minutes(value, field_name)


def _describe(kind: ConflictKind, room_id: int, existing: BookingSnapshot) -> str:
    return _MESSAGES[kind].format(
        room=room_id, span=existing.span, start=existing.start_time, end=existing.end_time,
    )


class ConflictService:

    def check_conflicts(
        self,
        db: Session,
        room_id: int,
        date,
        start_time=None,
        end_time=None,
        is_multi_day: bool = False,
        end_date=None,
        all_day: bool = False,
        exclude_id: int | None = None,
    ) -> ConflictCheckResult:
        """
        Classify every approved booking of ``room_id`` that collides with the request.

        ``start_time``/``end_time`` may be ``HH:MM`` strings or minute-of-day ints and are
        ignored for all-day requests. ``exclude_id`` leaves out the booking being edited.
        """
        new_start = to_calendar_date(date, "date")
        multi = bool(is_multi_day and end_date)
        new_end = to_calendar_date(end_date, "end_date") if multi else new_start

        if all_day:
            window = (0, MINUTES_PER_DAY)
        else:
            window = (_as_minutes(start_time, "start_time"), _as_minutes(end_time, "end_time"))

        store = BookingStore(db)
        if multi:
            candidates = store.find_bookings(
                room_id=room_id, status=BookingStatus.APPROVED,
                date_overlap=(new_start, new_end), exclude_id=exclude_id,
            )
        else:
            candidates = store.find_bookings(
                room_id=room_id, status=BookingStatus.APPROVED,
                on_date=new_start, exclude_id=exclude_id,
            )

        conflicts = []
        for existing in candidates:
            if not date_ranges_overlap(new_start, new_end, *effective_date_range(existing)):
                continue

            kind = _KIND_BY_SHAPE[(bool(all_day), bool(existing.all_day))]
            if kind is ConflictKind.TIME_SLOT and not time_ranges_overlap(*window, *effective_time_range(existing)):
                continue

            snapshot = BookingSnapshot.from_booking(existing)
            conflicts.append(ConflictDescriptor(kind, _describe(kind, room_id, snapshot), snapshot))

        if conflicts:
            logger.warning(
                f"Room {room_id}: {len(conflicts)} conflict(s) for {new_start}..{new_end} "
                f"({', '.join(c.kind.value for c in conflicts)})"
            )
        return ConflictCheckResult(room_id=room_id, conflicts=conflicts)

    def ensure_no_conflicts(self, db: Session, room_id: int, **schedule) -> None:
        """Raise BookingConflictException carrying the conflict list if the request collides."""
        result = self.check_conflicts(db, room_id, **schedule)
        if result.has_conflicts:
            raise BookingConflictException([c.to_dict() for c in result.conflicts], room_id=room_id)


conflict_service = ConflictService()
