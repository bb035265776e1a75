import enum
from sqlalchemy import Column, Integer, String, Text, Boolean, Date, ForeignKey, TIMESTAMP, Enum, Index
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from meeting_booking.database import Base


class BookingStatus(str, enum.Enum):
    PENDING   = "pending"
    APPROVED  = "approved"
    REJECTED  = "rejected"
    CANCELLED = "cancelled"


class Booking(Base):
    __tablename__ = "bookings"
    __table_args__ = (
        Index("ix_bookings_room_status_date", "room_id", "status", "date"),
    )

    id            = Column(Integer, primary_key=True, index=True)
    room_id       = Column(Integer, ForeignKey("meeting_rooms.id"), nullable=False)
    requester_id  = Column(Integer, nullable=False, index=True)
    date          = Column(Date, nullable=False)
    is_multi_day  = Column(Boolean, default=False, nullable=False)
    end_date      = Column(Date, nullable=True)
    all_day       = Column(Boolean, default=False, nullable=False)
    # Minute of day; NULL for all-day bookings
    start_time    = Column(Integer, nullable=True)
    end_time      = Column(Integer, nullable=True)
    purpose       = Column(String(255), nullable=False, default="Meeting")
    description   = Column(Text, nullable=False, default="")
    status        = Column(
        Enum(BookingStatus, values_callable=lambda e: [s.value for s in e], name="booking_status"),
        default=BookingStatus.PENDING, nullable=False, index=True,
    )
    admin_remarks = Column(Text, nullable=True)
    created_at    = Column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)
    updated_at    = Column(TIMESTAMP(timezone=True), server_default=func.now(),
                           onupdate=func.now(), nullable=False)

    # ─── Relationships ─────────────────────────────────────────────────────────
    room = relationship("Room", back_populates="bookings")

    def __repr__(self):
        return f"<Booking id={self.id} status={self.status} room_id={self.room_id} date={self.date}>"
