"""MeterReading database model - per-nozzle dispenser readings of a shift."""

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from fuelops.core.database import Base

if TYPE_CHECKING:
    from fuelops.models.shift import Shift


class MeterReading(Base):
    """Start/end totalizer reading of one nozzle over one shift.

    ``sold_qty`` is always ``end_reading - start_reading``; it is written only
    together with the readings it is derived from.
    """

    __tablename__ = "meter_readings"
    __table_args__ = (UniqueConstraint("shift_id", "nozzle_number", name="uq_shift_nozzle"),)

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    shift_id: Mapped[int] = mapped_column(ForeignKey("shifts.id"), index=True)
    nozzle_number: Mapped[int] = mapped_column(index=True)

    # Readings (using Decimal for precision)
    start_reading: Mapped[Decimal] = mapped_column(
        Numeric(precision=14, scale=3), default=Decimal("0")
    )
    end_reading: Mapped[Decimal | None] = mapped_column(
        Numeric(precision=14, scale=3), nullable=True
    )
    sold_qty: Mapped[Decimal | None] = mapped_column(
        Numeric(precision=14, scale=3), nullable=True
    )

    captured_at: Mapped[datetime | None] = mapped_column(nullable=True)
    captured_by_id: Mapped[int | None] = mapped_column(nullable=True)

    # Photo references are opaque to the core
    start_photo: Mapped[str | None] = mapped_column(String(500), nullable=True)
    end_photo: Mapped[str | None] = mapped_column(String(500), nullable=True)

    # Relationships
    shift: Mapped["Shift"] = relationship(back_populates="meters")
