"""Station database model."""

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from fuelops.core.database import Base
from fuelops.models.enums import StationType

if TYPE_CHECKING:
    from fuelops.models.daily_record import DailyRecord


class Station(Base):
    """Retail station that scopes daily records, inventory and prices."""

    __tablename__ = "stations"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(100), index=True)
    station_type: Mapped[StationType] = mapped_column(String(20), index=True)
    # Dispenser nozzles on metered stations; None falls back to settings
    nozzle_count: Mapped[int | None] = mapped_column(nullable=True)
    created_at: Mapped[datetime] = mapped_column(default=lambda: datetime.now(UTC))
    is_active: Mapped[bool] = mapped_column(default=True)

    # Relationships
    daily_records: Mapped[list["DailyRecord"]] = relationship(back_populates="station")

    def requires_meters(self) -> bool:
        """Simple stations have no dispenser meters to reconcile."""
        return self.station_type != StationType.SIMPLE
