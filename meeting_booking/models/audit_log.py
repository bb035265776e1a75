from sqlalchemy import Column, Integer, String, Text, TIMESTAMP
from sqlalchemy.sql import func
from meeting_booking.database import Base


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id          = Column(Integer, primary_key=True, index=True)
    # Identity id from the token; employees live in the legacy directory, so no FK
    actor_id    = Column(Integer, nullable=True)                 # NULL = system action
    action      = Column(String(100), nullable=False)            # CREATE, UPDATE, CANCEL, APPROVE, REJECT, STATUS
    entity_type = Column(String(100), nullable=False)            # e.g. Booking
    entity_id   = Column(Integer, nullable=True)
    description = Column(Text, nullable=True)
    created_at  = Column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<AuditLog id={self.id} action={self.action} entity={self.entity_type}:{self.entity_id}>"
