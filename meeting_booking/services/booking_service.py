import logging
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from meeting_booking.config import settings
from meeting_booking.models.booking import Booking, BookingStatus
from meeting_booking.schemas.booking import BookingCreateRequest, BookingUpdateRequest
from meeting_booking.schemas.identity import Identity
from meeting_booking.services.booking_store import BookingStore
from meeting_booking.services.booking_validation import validate_booking_data
from meeting_booking.services.conflict_service import conflict_service
from meeting_booking.utils.audit import log_action
from meeting_booking.utils.exceptions import (
    NotFoundException, ForbiddenException, ValidationException, BookingAlreadyStartedException,
)
from meeting_booking.utils.normalize import (
    current_wall_clock, minutes_to_time, time_to_minutes, to_calendar_date,
)

logger = logging.getLogger(__name__)

# Fields whose change can move a booking onto someone else's slot
SCHEDULE_FIELDS = ("room_id", "date", "end_date", "is_multi_day", "all_day", "start_time", "end_time")

_STATUS_AUDIT_ACTION = {
    BookingStatus.APPROVED: "APPROVE",
    BookingStatus.REJECTED: "REJECT",
}


def _serialize(b: Booking) -> dict:
    return {
        "id":            b.id,
        "room_id":       b.room_id,
        "room_name":     b.room.name if b.room else None,
        "requester_id":  b.requester_id,
        "date":          b.date.isoformat(),
        "end_date":      b.end_date.isoformat() if b.end_date else None,
        "is_multi_day":  b.is_multi_day,
        "all_day":       b.all_day,
        "start_time":    minutes_to_time(b.start_time),
        "end_time":      minutes_to_time(b.end_time),
        "purpose":       b.purpose,
        "description":   b.description,
        "status":        b.status.value,
        "admin_remarks": b.admin_remarks,
        "created_at":    b.created_at.isoformat() if b.created_at else None,
        "updated_at":    b.updated_at.isoformat() if b.updated_at else None,
    }


def _parse_status(value: str) -> BookingStatus:
    try:
        return BookingStatus(value.strip().lower())
    except (ValueError, AttributeError):
        raise ValidationException(
            "Invalid status. Must be: pending, approved, rejected, or cancelled", "status",
        )


def _has_started(b: Booking) -> bool:
    """True once the booking's first day is past, or it is today and its start time has come."""
    today, now = current_wall_clock()
    if b.date < today:
        return True
    return b.date == today and not b.all_day and b.start_time is not None and b.start_time <= now


def _is_upcoming(b: Booking, today, now) -> bool:
    last_day = b.end_date if b.is_multi_day and b.end_date else b.date
    if last_day > today:
        return True
    return last_day == today and (b.all_day or b.start_time is None or b.start_time > now)


def _schedule_of(b: Booking) -> dict:
    return {
        "date":         b.date,
        "end_date":     b.end_date,
        "is_multi_day": b.is_multi_day,
        "all_day":      b.all_day,
        "start_time":   b.start_time,
        "end_time":     b.end_time,
    }


class BookingService:

    # ─── Create ───────────────────────────────────────────────────────────────
    def create_booking(self, db: Session, data: BookingCreateRequest, identity: Identity) -> dict:
        result = validate_booking_data(data.model_dump())
        if not result.valid:
            raise ValidationException(result.message, result.field)

        start_day = to_calendar_date(data.date, "date")
        end_day   = to_calendar_date(data.end_date, "end_date") if data.is_multi_day else None
        start_min = None if data.all_day else time_to_minutes(data.start_time, "start_time")
        end_min   = None if data.all_day else time_to_minutes(data.end_time, "end_time")

        store = BookingStore(db)
        room = store.get_room(data.room_id, lock=True)
        if not room:
            raise NotFoundException("Meeting room")

        conflict_service.ensure_no_conflicts(
            db, data.room_id,
            date=start_day, end_date=end_day, is_multi_day=data.is_multi_day,
            all_day=data.all_day, start_time=start_min, end_time=end_min,
        )

        b = Booking(
            room_id=data.room_id,
            requester_id=identity.id,
            date=start_day,
            is_multi_day=data.is_multi_day,
            end_date=end_day,
            all_day=data.all_day,
            start_time=start_min,
            end_time=end_min,
            purpose=data.purpose or settings.DEFAULT_PURPOSE,
            description=data.description or "",
            status=BookingStatus.PENDING,
        )
        store.insert_booking(b)
        log_action(db, identity.id, "CREATE", "Booking", b.id,
                   f"{identity.login_id} requested {room.name} on {start_day}")
        store.commit()
        store.refresh(b)
        logger.info(f"Booking #{b.id} created by {identity.login_id} for room {room.id} (pending approval)")
        return _serialize(b)

    # ─── Edit ─────────────────────────────────────────────────────────────────
    def edit_booking(
        self, db: Session, booking_id: int, data: BookingUpdateRequest, identity: Identity,
    ) -> tuple[dict, list[str]]:
        """Apply only the fields that differ. Returns the record and the changed field names."""
        store = BookingStore(db)
        b = store.get_booking(booking_id)
        if not b:
            raise NotFoundException("Booking")
        if not identity.is_admin and b.requester_id != identity.id:
            logger.warning(f"Unauthorized edit attempt on booking #{booking_id} by {identity.login_id}")
            raise ForbiddenException("You are not authorized to edit this booking")

        updates = data.model_dump(exclude_unset=True)
        if not identity.is_admin and updates.get("status") is not None:
            raise ForbiddenException("Only admins can change booking status")
        if not identity.is_admin and _has_started(b):
            raise BookingAlreadyStartedException("edit")

        changes = self._diff(b, updates, identity)

        merged = {f: changes.get(f, getattr(b, f)) for f in SCHEDULE_FIELDS}
        if merged["all_day"]:
            changes["start_time"] = changes["end_time"] = merged["start_time"] = merged["end_time"] = None
        if not merged["is_multi_day"]:
            changes["end_date"] = merged["end_date"] = None
        changes = {k: v for k, v in changes.items() if v != getattr(b, k)}

        if not changes:
            logger.info(f"No changes detected for booking #{booking_id}")
            return _serialize(b), []

        result = validate_booking_data({
            "room_id":      merged["room_id"],
            "date":         merged["date"],
            "end_date":     merged["end_date"],
            "is_multi_day": merged["is_multi_day"],
            "all_day":      merged["all_day"],
            "start_time":   minutes_to_time(merged["start_time"]),
            "end_time":     minutes_to_time(merged["end_time"]),
        })
        if not result.valid:
            raise ValidationException(result.message, result.field)

        room = store.get_room(merged["room_id"], lock=True)
        if not room:
            raise NotFoundException("Meeting room")

        new_status = changes.get("status", b.status)
        schedule_changed = any(f in changes for f in SCHEDULE_FIELDS)
        becomes_approved = new_status == BookingStatus.APPROVED and b.status != BookingStatus.APPROVED
        if (schedule_changed and BookingStatus.APPROVED in (b.status, new_status)) or becomes_approved:
            conflict_service.ensure_no_conflicts(
                db, merged["room_id"],
                date=merged["date"], end_date=merged["end_date"], is_multi_day=merged["is_multi_day"],
                all_day=merged["all_day"], start_time=merged["start_time"], end_time=merged["end_time"],
                exclude_id=b.id,
            )

        store.update_booking(b, changes)
        actor = "Admin" if identity.is_admin else "User"
        log_action(db, identity.id, "UPDATE", "Booking", b.id,
                   f"{actor} {identity.login_id} edited booking #{b.id}: {', '.join(changes)}")
        store.commit()
        store.refresh(b)
        logger.info(f"{actor} edited booking #{b.id}: {sorted(changes)}")
        return _serialize(b), list(changes)

    def _diff(self, b: Booking, updates: dict, identity: Identity) -> dict:
        """Canonicalize the submitted fields and keep those that differ from the stored record."""
        changes = {}

        if updates.get("room_id") is not None and updates["room_id"] != b.room_id:
            changes["room_id"] = updates["room_id"]

        if updates.get("date") is not None:
            new_date = to_calendar_date(updates["date"], "date")
            if new_date != b.date:
                changes["date"] = new_date

        if "end_date" in updates:
            raw = updates["end_date"]
            new_end = to_calendar_date(raw, "end_date") if raw else None
            if new_end != b.end_date:
                changes["end_date"] = new_end

        for flag in ("is_multi_day", "all_day"):
            if updates.get(flag) is not None and bool(updates[flag]) != bool(getattr(b, flag)):
                changes[flag] = bool(updates[flag])

        for f in ("start_time", "end_time"):
            if f in updates:
                raw = updates[f]
                minutes = time_to_minutes(raw, f) if raw else None
                if minutes != getattr(b, f):
                    changes[f] = minutes

        for f in ("purpose", "description"):
            if updates.get(f) is not None and updates[f] != getattr(b, f):
                changes[f] = updates[f]

        # Admin-only: status and remarks, independently of each other
        if identity.is_admin:
            if updates.get("status") is not None:
                new_status = _parse_status(updates["status"])
                if new_status != b.status:
                    changes["status"] = new_status
            if updates.get("admin_remarks") is not None and updates["admin_remarks"] != b.admin_remarks:
                changes["admin_remarks"] = updates["admin_remarks"]

        return changes

    # ─── Cancel ───────────────────────────────────────────────────────────────
    def cancel_booking(self, db: Session, booking_id: int, identity: Identity) -> dict:
        """
        Owner cancels their own future booking; an admin cancels anything.

        An admin cancelling a still-pending request rejects it instead of deleting it,
        so the request stays on record. Every other cancellation deletes the row.
        """
        store = BookingStore(db)
        b = store.get_booking(booking_id)
        if not b:
            raise NotFoundException("Booking")
        if not identity.is_admin and b.requester_id != identity.id:
            logger.warning(f"Unauthorized cancel attempt on booking #{booking_id} by {identity.login_id}")
            raise ForbiddenException("You are not authorized to cancel this booking")
        if not identity.is_admin and _has_started(b):
            raise BookingAlreadyStartedException("cancel")

        at = datetime.now(timezone.utc).isoformat()

        if identity.is_admin and b.status == BookingStatus.PENDING:
            store.update_booking(b, {
                "status":        BookingStatus.REJECTED,
                "admin_remarks": "Booking rejected by admin",
            })
            log_action(db, identity.id, "REJECT", "Booking", b.id,
                       f"Pending booking #{b.id} rejected via cancellation by {identity.login_id}")
            store.commit()
            logger.info(f"Admin {identity.login_id} rejected pending booking #{b.id}")
            return {
                "id":              b.id,
                "status":          BookingStatus.REJECTED.value,
                "action":          "rejected",
                "is_admin_action": True,
                "actor_id":        identity.id,
                "at":              at,
            }

        log_action(db, identity.id, "CANCEL", "Booking", b.id,
                   f"Booking #{b.id} ({b.status.value}) cancelled by {identity.login_id}")
        store.delete_booking(b)
        store.commit()
        logger.info(f"Booking #{booking_id} cancelled by {identity.login_id}")
        return {
            "id":              booking_id,
            "status":          "deleted",
            "action":          "cancelled",
            "is_admin_action": identity.is_admin,
            "actor_id":        identity.id,
            "at":              at,
        }

    # ─── Status (Admin) ───────────────────────────────────────────────────────
    def update_status(
        self, db: Session, booking_id: int, status: str, remarks: str | None, identity: Identity,
    ) -> dict:
        if not identity.is_admin:
            raise ForbiddenException("Only admins can change booking status")
        new_status = _parse_status(status)

        store = BookingStore(db)
        b = store.get_booking(booking_id)
        if not b:
            raise NotFoundException("Booking")

        # A pending request did not block anyone; re-check now that it would
        if new_status == BookingStatus.APPROVED and b.status != BookingStatus.APPROVED:
            store.get_room(b.room_id, lock=True)
            conflict_service.ensure_no_conflicts(db, b.room_id, exclude_id=b.id, **_schedule_of(b))

        patch = {"status": new_status}
        if remarks:
            patch["admin_remarks"] = remarks
        old = b.status.value
        store.update_booking(b, patch)
        log_action(db, identity.id, _STATUS_AUDIT_ACTION.get(new_status, "STATUS"), "Booking", b.id,
                   f"Status {old} -> {new_status.value}" + (f" | {remarks}" if remarks else ""))
        store.commit()
        store.refresh(b)
        logger.info(f"Booking #{b.id} {new_status.value} by admin {identity.login_id}")
        return _serialize(b)

    # ─── Reads ────────────────────────────────────────────────────────────────
    def get_booking(self, db: Session, booking_id: int, identity: Identity) -> dict:
        b = BookingStore(db).get_booking(booking_id)
        if not b:
            raise NotFoundException("Booking")
        if not identity.is_admin and b.requester_id != identity.id:
            raise ForbiddenException("You can only view your own bookings")
        return _serialize(b)

    def list_my_bookings(self, db: Session, identity: Identity, statuses: list[str] | None = None) -> dict:
        wanted = [_parse_status(s) for s in statuses] if statuses else None
        bookings = BookingStore(db).find_bookings(requester_id=identity.id, statuses=wanted)
        today, now = current_wall_clock()
        upcoming = [b for b in bookings if _is_upcoming(b, today, now)]
        past     = [b for b in bookings if not _is_upcoming(b, today, now)]
        return {
            "all":      [_serialize(b) for b in bookings],
            "upcoming": [_serialize(b) for b in upcoming],
            "past":     [_serialize(b) for b in past],
        }

    def list_room_bookings(self, db: Session, room_id: int, on_date: str | None = None) -> list[dict]:
        store = BookingStore(db)
        if not store.get_room(room_id):
            raise NotFoundException("Meeting room")
        day = to_calendar_date(on_date, "date") if on_date else None
        return [_serialize(b) for b in store.find_bookings(room_id=room_id, on_date=day)]

    def list_bookings(
        self, db: Session, page: int, limit: int,
        status: str | None = None, room_id: int | None = None, requester_id: int | None = None,
        start_date: str | None = None, end_date: str | None = None,
    ) -> tuple[list[dict], int]:
        items, total = BookingStore(db).page_bookings(
            page, limit,
            status=_parse_status(status) if status else None,
            room_id=room_id,
            requester_id=requester_id,
            start_date=to_calendar_date(start_date, "start_date") if start_date else None,
            end_date=to_calendar_date(end_date, "end_date") if end_date else None,
        )
        return [_serialize(b) for b in items], total

    def list_pending(self, db: Session, page: int, limit: int) -> tuple[list[dict], int]:
        items, total = BookingStore(db).page_bookings(
            page, limit, status=BookingStatus.PENDING, oldest_first=True,
        )
        return [_serialize(b) for b in items], total

    def check_request(self, db: Session, data: BookingCreateRequest) -> dict:
        """Dry-run of the create gate: validation plus conflict detection, nothing written."""
        result = validate_booking_data(data.model_dump())
        if not result.valid:
            raise ValidationException(result.message, result.field)
        if not BookingStore(db).get_room(data.room_id):
            raise NotFoundException("Meeting room")
        return conflict_service.check_conflicts(
            db, data.room_id,
            date=data.date, end_date=data.end_date if data.is_multi_day else None,
            is_multi_day=data.is_multi_day, all_day=data.all_day,
            start_time=data.start_time, end_time=data.end_time,
        ).to_dict()


booking_service = BookingService()
