"""
Import all models here so that:
1. Alembic can auto-detect them when generating migrations
2. Relationships between models resolve correctly

Order matters: import parent tables before child tables.
"""

from meeting_booking.models.room import Room
from meeting_booking.models.booking import Booking, BookingStatus
from meeting_booking.models.audit_log import AuditLog

__all__ = [
    "Room",
    "Booking",
    "BookingStatus",
    "AuditLog",
]
