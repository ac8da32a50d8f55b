"""Transaction database model."""

from datetime import UTC, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from fuelops.core.database import Base
from fuelops.models.enums import PaymentType

if TYPE_CHECKING:
    from fuelops.models.daily_record import DailyRecord


class Transaction(Base):
    """Payment received for fuel during a shift."""

    __tablename__ = "transactions"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    daily_record_id: Mapped[int] = mapped_column(ForeignKey("daily_records.id"), index=True)
    shift_id: Mapped[int | None] = mapped_column(ForeignKey("shifts.id"), nullable=True, index=True)

    payment_type: Mapped[PaymentType] = mapped_column(String(30), index=True)
    amount: Mapped[Decimal] = mapped_column(Numeric(precision=14, scale=2))
    liters: Mapped[Decimal | None] = mapped_column(Numeric(precision=12, scale=3), nullable=True)
    license_plate: Mapped[str | None] = mapped_column(String(30), nullable=True)

    created_at: Mapped[datetime] = mapped_column(default=lambda: datetime.now(UTC), index=True)
    recorded_by_id: Mapped[int | None] = mapped_column(nullable=True)

    # Voided and soft-deleted rows never count toward reconciliation
    is_voided: Mapped[bool] = mapped_column(default=False)
    voided_at: Mapped[datetime | None] = mapped_column(nullable=True)
    voided_by_id: Mapped[int | None] = mapped_column(nullable=True)
    deleted_at: Mapped[datetime | None] = mapped_column(nullable=True)

    # Relationships
    daily_record: Mapped["DailyRecord"] = relationship(back_populates="transactions")
