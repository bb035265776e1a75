from sqlalchemy.orm import Session
from meeting_booking.models.audit_log import AuditLog


def log_action(
    db: Session,
    actor_id: int | None,
    action: str,
    entity_type: str,
    entity_id: int | None = None,
    description: str | None = None,
) -> None:
    """
    Stage an audit entry in ``db`` for a booking lifecycle change.

    ``action`` is one of CREATE, UPDATE, CANCEL, APPROVE, REJECT, STATUS. The entry is
    only added; it lands with the caller's commit or disappears with its rollback.
    """
    db.add(AuditLog(
        actor_id=actor_id,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        description=description,
    ))
