from sqlalchemy.orm import Session

from marcfix.enums import AuditAction, AuditObjectType
from marcfix.models.core import AuditEvent
from marcfix.services.utils import now_utc


def emit_audit_event(
    db: Session,
    *,
    actor: str,
    action: AuditAction,
    object_type: AuditObjectType,
    object_id: str,
    correlation_id: str,
    metadata_blob: dict | None = None,
) -> AuditEvent:
    event = AuditEvent(
        actor=actor,
        action=action.value,
        object_type=object_type.value,
        object_id=object_id,
        correlation_id=correlation_id,
        timestamp=now_utc(),
        metadata_blob=metadata_blob or {},
    )
    db.add(event)
    db.flush()
    return event
