"""DailyRecord database model."""

from datetime import UTC, date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Numeric, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from fuelops.core.database import Base

if TYPE_CHECKING:
    from fuelops.models.shift import Shift
    from fuelops.models.station import Station
    from fuelops.models.transaction import Transaction


class DailyRecord(Base):
    """One row per station and station-local calendar date."""

    __tablename__ = "daily_records"
    __table_args__ = (UniqueConstraint("station_id", "record_date", name="uq_station_date"),)

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    station_id: Mapped[int] = mapped_column(ForeignKey("stations.id"), index=True)
    record_date: Mapped[date] = mapped_column(index=True)

    # Per-day default prices
    retail_price: Mapped[Decimal | None] = mapped_column(
        Numeric(precision=10, scale=2), nullable=True
    )
    wholesale_price: Mapped[Decimal | None] = mapped_column(
        Numeric(precision=10, scale=2), nullable=True
    )
    gas_price: Mapped[Decimal | None] = mapped_column(
        Numeric(precision=10, scale=2), nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(default=lambda: datetime.now(UTC))

    # Relationships
    station: Mapped["Station"] = relationship(back_populates="daily_records")
    shifts: Mapped[list["Shift"]] = relationship(back_populates="daily_record")
    transactions: Mapped[list["Transaction"]] = relationship(back_populates="daily_record")
