"""Shift database model."""

from datetime import UTC, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Numeric, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from fuelops.core.database import Base
from fuelops.models.enums import ShiftStatus

if TYPE_CHECKING:
    from fuelops.models.daily_record import DailyRecord
    from fuelops.models.meter_anomaly import MeterAnomaly
    from fuelops.models.meter_reading import MeterReading
    from fuelops.models.shift_reconciliation import ShiftReconciliation


class Shift(Base):
    """Staff shift within a daily record.

    Status only moves OPEN -> CLOSED -> LOCKED, and only through the
    shift lifecycle service. Business data is editable while OPEN.
    """

    __tablename__ = "shifts"
    __table_args__ = (
        UniqueConstraint("daily_record_id", "shift_number", name="uq_daily_record_shift_number"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    daily_record_id: Mapped[int] = mapped_column(ForeignKey("daily_records.id"), index=True)
    shift_number: Mapped[int] = mapped_column()  # 1 = morning / single, 2 = afternoon
    status: Mapped[ShiftStatus] = mapped_column(
        String(20), default=ShiftStatus.OPEN, index=True
    )

    carry_over_from_shift_id: Mapped[int | None] = mapped_column(
        ForeignKey("shifts.id"),
        nullable=True,
    )
    opening_stock: Mapped[Decimal | None] = mapped_column(
        Numeric(precision=12, scale=3), nullable=True
    )

    # Lifecycle timestamps and actors (identities come from the auth layer)
    created_at: Mapped[datetime] = mapped_column(
        default=lambda: datetime.now(UTC),
        index=True,
    )
    opened_by_id: Mapped[int | None] = mapped_column(nullable=True)
    closed_at: Mapped[datetime | None] = mapped_column(nullable=True)
    closed_by_id: Mapped[int | None] = mapped_column(nullable=True)
    locked_at: Mapped[datetime | None] = mapped_column(nullable=True)
    locked_by_id: Mapped[int | None] = mapped_column(nullable=True)
    variance_note: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Relationships
    daily_record: Mapped["DailyRecord"] = relationship(back_populates="shifts")
    meters: Mapped[list["MeterReading"]] = relationship(
        back_populates="shift",
        order_by="MeterReading.nozzle_number",
    )
    anomalies: Mapped[list["MeterAnomaly"]] = relationship(back_populates="shift")
    reconciliation: Mapped["ShiftReconciliation | None"] = relationship(back_populates="shift")
    carry_over_from: Mapped["Shift | None"] = relationship(remote_side=[id])

    def is_open(self) -> bool:
        return self.status == ShiftStatus.OPEN
