"""Audit trail for sensitive writes."""

from datetime import datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from fuelops.models.audit_log import AuditLog
from fuelops.models.enums import AuditAction


def record_audit(
    db: Session,
    actor_id: int | None,
    action: AuditAction,
    model: str,
    record_id: int,
    old_data: dict[str, Any] | None = None,
    new_data: dict[str, Any] | None = None,
    at: datetime | None = None,
) -> AuditLog:
    """Stage an audit entry in the caller's unit.

    Nothing is committed here, so the entry is written only if the change
    it describes is.
    """
    entry = AuditLog(
        actor_id=actor_id,
        action=action,
        model=model,
        record_id=record_id,
        old_data=old_data,
        new_data=new_data,
    )
    if at is not None:
        entry.created_at = at
    db.add(entry)
    return entry


def get_audit_trail(db: Session, model: str, record_id: int) -> list[AuditLog]:
    """Entries for one record, newest first."""
    return list(
        db.scalars(
            select(AuditLog)
            .where(AuditLog.model == model, AuditLog.record_id == record_id)
            .order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
        ).all()
    )
