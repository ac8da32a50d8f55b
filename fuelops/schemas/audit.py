"""Audit trail schemas."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel

from fuelops.models.enums import AuditAction


class AuditLogResponse(BaseModel):
    """Stored audit entry."""

    id: int
    actor_id: int | None
    action: AuditAction
    model: str
    record_id: int
    old_data: dict[str, Any] | None
    new_data: dict[str, Any] | None
    created_at: datetime

    model_config = {"from_attributes": True}
