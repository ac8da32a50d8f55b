"""ShiftReconciliation database model - write-once close snapshot."""

from datetime import UTC, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from fuelops.core.database import Base
from fuelops.models.enums import VarianceStatus

if TYPE_CHECKING:
    from fuelops.models.shift import Shift

_MONEY = Numeric(precision=14, scale=2)


class ShiftReconciliation(Base):
    """Expected vs received amounts of a shift, as of its close."""

    __tablename__ = "shift_reconciliations"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    shift_id: Mapped[int] = mapped_column(ForeignKey("shifts.id"), unique=True, index=True)

    expected_fuel_amount: Mapped[Decimal] = mapped_column(_MONEY)
    expected_other_amount: Mapped[Decimal] = mapped_column(_MONEY)
    total_expected: Mapped[Decimal] = mapped_column(_MONEY)
    cash_received: Mapped[Decimal] = mapped_column(_MONEY)
    credit_received: Mapped[Decimal] = mapped_column(_MONEY)
    transfer_received: Mapped[Decimal] = mapped_column(_MONEY)
    total_received: Mapped[Decimal] = mapped_column(_MONEY)
    variance: Mapped[Decimal] = mapped_column(_MONEY)
    variance_status: Mapped[VarianceStatus] = mapped_column(String(20))

    created_at: Mapped[datetime] = mapped_column(default=lambda: datetime.now(UTC))

    # Relationships
    shift: Mapped["Shift"] = relationship(back_populates="reconciliation")
