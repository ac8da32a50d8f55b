"""Audit trail API routes."""

from typing import Literal

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from fuelops.core.database import get_db
from fuelops.schemas.audit import AuditLogResponse
from fuelops.services.audit import get_audit_trail

router = APIRouter(prefix="/audit", tags=["audit"])


@router.get("/", response_model=list[AuditLogResponse])
def list_audit_trail(
    model: Literal["Shift", "Transaction"],
    record_id: int,
    db: Session = Depends(get_db),
) -> list[AuditLogResponse]:
    """Audit entries for one record, newest first."""
    return [AuditLogResponse.model_validate(e) for e in get_audit_trail(db, model, record_id)]
