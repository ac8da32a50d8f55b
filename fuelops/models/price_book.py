"""PriceBook database model - time-ranged price history."""

from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import ForeignKey, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from fuelops.core.database import Base
from fuelops.models.enums import ProductType


class PriceBookEntry(Base):
    """Price of a product type valid over ``[effective_from, effective_to)``.

    ``station_id`` None is the global book. ``effective_to`` None means the
    entry is still current.
    """

    __tablename__ = "price_book"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    product_type: Mapped[ProductType] = mapped_column(String(30), index=True)
    station_id: Mapped[int | None] = mapped_column(
        ForeignKey("stations.id"), nullable=True, index=True
    )
    retail_price: Mapped[Decimal] = mapped_column(Numeric(precision=10, scale=2))
    wholesale_price: Mapped[Decimal | None] = mapped_column(
        Numeric(precision=10, scale=2), nullable=True
    )
    effective_from: Mapped[datetime] = mapped_column(index=True)
    effective_to: Mapped[datetime | None] = mapped_column(nullable=True, index=True)
    created_at: Mapped[datetime] = mapped_column(default=lambda: datetime.now(UTC))
    created_by_id: Mapped[int | None] = mapped_column(nullable=True)
