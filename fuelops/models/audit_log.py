"""AuditLog database model."""

from datetime import UTC, datetime
from typing import Any

from sqlalchemy import JSON, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from fuelops.core.database import Base
from fuelops.models.enums import AuditAction


class AuditLog(Base):
    """Before and after state of a sensitive write, kept for review.

    Rows are appended in the same unit as the write they describe and are
    never updated.
    """

    __tablename__ = "audit_logs"
    __table_args__ = (Index("ix_audit_logs_record", "model", "record_id"),)

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    actor_id: Mapped[int | None] = mapped_column(nullable=True)
    action: Mapped[AuditAction] = mapped_column(String(20))
    model: Mapped[str] = mapped_column(String(50))  # e.g. "Shift", "Transaction"
    record_id: Mapped[int] = mapped_column()
    old_data: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    new_data: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        default=lambda: datetime.now(UTC),
        index=True,
    )

    def __repr__(self) -> str:
        return f"<AuditLog {self.model}:{self.record_id} {self.action}>"
