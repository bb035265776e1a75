from sqlalchemy import Column, Integer, String
from sqlalchemy.orm import relationship
from meeting_booking.database import Base


class Room(Base):
    __tablename__ = "meeting_rooms"

    id       = Column(Integer, primary_key=True, index=True)
    name     = Column(String(200), nullable=False)
    location = Column(String(255), nullable=True)
    capacity = Column(Integer, nullable=True)

    # ─── Relationships ─────────────────────────────────────────────────────────
    bookings = relationship("Booking", back_populates="room")

    def __repr__(self):
        return f"<Room id={self.id} name={self.name}>"
