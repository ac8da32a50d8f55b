"""MeterAnomaly database model."""

from datetime import UTC, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Numeric, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from fuelops.core.database import Base
from fuelops.models.enums import AnomalySeverity

if TYPE_CHECKING:
    from fuelops.models.shift import Shift


class MeterAnomaly(Base):
    """Sold quantity that deviated from the nozzle's rolling average at close.

    Immutable once written except for the review fields.
    """

    __tablename__ = "meter_anomalies"
    __table_args__ = (
        UniqueConstraint("shift_id", "nozzle_number", name="uq_anomaly_shift_nozzle"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    shift_id: Mapped[int] = mapped_column(ForeignKey("shifts.id"), index=True)
    nozzle_number: Mapped[int] = mapped_column()
    sold_qty: Mapped[Decimal] = mapped_column(Numeric(precision=14, scale=3))
    average_qty: Mapped[Decimal] = mapped_column(Numeric(precision=14, scale=3))
    percent_diff: Mapped[Decimal] = mapped_column(Numeric(precision=10, scale=2))
    severity: Mapped[AnomalySeverity] = mapped_column(String(20), index=True)
    note: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        default=lambda: datetime.now(UTC),
        index=True,
    )

    # Review
    reviewed_by_id: Mapped[int | None] = mapped_column(nullable=True)
    reviewed_at: Mapped[datetime | None] = mapped_column(nullable=True, index=True)

    # Relationships
    shift: Mapped["Shift"] = relationship(back_populates="anomalies")
