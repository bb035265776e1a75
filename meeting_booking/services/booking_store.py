import logging
from contextlib import contextmanager
from datetime import date

from sqlalchemy import and_, or_, func
from sqlalchemy.exc import InterfaceError, OperationalError, TimeoutError as PoolTimeoutError
from sqlalchemy.orm import Session

from meeting_booking.models.booking import Booking, BookingStatus
from meeting_booking.models.room import Room
from meeting_booking.utils.exceptions import TransientStoreException

logger = logging.getLogger(__name__)

# Connectivity / driver failures: retryable, unrelated to the request itself
_TRANSIENT_ERRORS = (OperationalError, InterfaceError, PoolTimeoutError)

# All-day bookings sort ahead of timed ones on the same day
_SCHEDULE_ORDER = (Booking.date.asc(), Booking.all_day.desc(), Booking.start_time.asc(), Booking.id.asc())


class BookingStore:
    """Booking and room persistence bound to one request-scoped session."""

    def __init__(self, db: Session):
        self.db = db

    @contextmanager
    def _guard(self, operation: str):
        try:
            yield
        except _TRANSIENT_ERRORS as e:
            logger.error(f"Booking store {operation} failed: {e}")
            self.db.rollback()
            raise TransientStoreException() from e

    # ─── Rooms ────────────────────────────────────────────────────────────────
    def get_room(self, room_id: int, lock: bool = False) -> Room | None:
        """Fetch a room; ``lock`` holds its row until commit to serialize check-then-write."""
        with self._guard("room lookup"):
            q = self.db.query(Room).filter(Room.id == room_id)
            if lock:
                q = q.with_for_update()
            return q.first()

    def list_rooms(self) -> list[Room]:
        with self._guard("room listing"):
            return self.db.query(Room).order_by(Room.id).all()

    # ─── Booking reads ────────────────────────────────────────────────────────
    def get_booking(self, booking_id: int) -> Booking | None:
        with self._guard("booking lookup"):
            return self.db.query(Booking).filter(Booking.id == booking_id).first()

    def find_bookings(
        self,
        room_id: int | None = None,
        status: BookingStatus | None = None,
        on_date: date | None = None,
        date_overlap: tuple[date, date] | None = None,
        requester_id: int | None = None,
        statuses: list[BookingStatus] | None = None,
        exclude_id: int | None = None,
    ) -> list[Booking]:
        """
        Filtered booking read.

        on_date:      bookings occupying that day (single-day on it, or multi-day spanning it)
        date_overlap: (start, end) inclusive; bookings whose [date, end_date or date] intersects it
        """
        with self._guard("booking search"):
            q = self.db.query(Booking)
        if room_id is not None:      q = q.filter(Booking.room_id == room_id)
        if status is not None:       q = q.filter(Booking.status == status)
        if statuses:                 q = q.filter(Booking.status.in_(statuses))
        if requester_id is not None: q = q.filter(Booking.requester_id == requester_id)
        if exclude_id is not None:   q = q.filter(Booking.id != exclude_id)
        if on_date is not None:
            q = q.filter(or_(
                and_(Booking.is_multi_day.is_(False), Booking.date == on_date),
                and_(Booking.is_multi_day.is_(True), Booking.date <= on_date, Booking.end_date >= on_date),
            ))
        if date_overlap is not None:
            start, end = date_overlap
            q = q.filter(
                Booking.date <= end,
                func.coalesce(Booking.end_date, Booking.date) >= start,
            )
        with self._guard("booking search"):
            return q.order_by(*_SCHEDULE_ORDER).all()

    def page_bookings(
        self,
        page: int,
        limit: int,
        status: BookingStatus | None = None,
        room_id: int | None = None,
        requester_id: int | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
        oldest_first: bool = False,
    ) -> tuple[list[Booking], int]:
        with self._guard("booking listing"):
            q = self.db.query(Booking)
        if status is not None:       q = q.filter(Booking.status == status)
        if room_id is not None:      q = q.filter(Booking.room_id == room_id)
        if requester_id is not None: q = q.filter(Booking.requester_id == requester_id)
        if start_date is not None:   q = q.filter(Booking.date >= start_date)
        if end_date is not None:     q = q.filter(Booking.date <= end_date)

        if oldest_first:
            q = q.order_by(Booking.created_at.asc(), Booking.date.asc(), Booking.start_time.asc(), Booking.id.asc())
        else:
            q = q.order_by(Booking.date.desc(), Booking.start_time.asc(), Booking.id.asc())

        with self._guard("booking listing"):
            total = q.count()
            items = q.offset((page - 1) * limit).limit(limit).all()
        return items, total

    # ─── Booking writes ───────────────────────────────────────────────────────
    def insert_booking(self, booking: Booking) -> Booking:
        with self._guard("booking insert"):
            self.db.add(booking)
            self.db.flush()
        return booking

    def update_booking(self, booking: Booking, patch: dict) -> Booking:
        for key, value in patch.items():
            setattr(booking, key, value)
        with self._guard("booking update"):
            self.db.flush()
        return booking

    def delete_booking(self, booking: Booking) -> None:
        with self._guard("booking delete"):
            self.db.delete(booking)
            self.db.flush()

    def commit(self) -> None:
        with self._guard("commit"):
            self.db.commit()

    def refresh(self, booking: Booking) -> Booking:
        with self._guard("refresh"):
            self.db.refresh(booking)
        return booking
