"""Non-fuel product, stock and sale database models."""

from datetime import UTC, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from fuelops.core.database import Base

if TYPE_CHECKING:
    from fuelops.models.station import Station


class Product(Base):
    """Non-fuel product sold at stations (lubricants, water, ...)."""

    __tablename__ = "products"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(100), index=True)
    unit: Mapped[str] = mapped_column(String(20), default="unit")
    sale_price: Mapped[Decimal] = mapped_column(Numeric(precision=12, scale=2))
    is_active: Mapped[bool] = mapped_column(default=True)


class ProductInventory(Base):
    """Stock on hand of one product at one station.

    Quantity changes only through the inventory ledger.
    """

    __tablename__ = "product_inventory"
    __table_args__ = (
        UniqueConstraint("station_id", "product_id", name="uq_station_product"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    station_id: Mapped[int] = mapped_column(ForeignKey("stations.id"), index=True)
    product_id: Mapped[int] = mapped_column(ForeignKey("products.id"), index=True)
    quantity: Mapped[Decimal] = mapped_column(Numeric(precision=12, scale=3), default=Decimal("0"))
    alert_level: Mapped[Decimal | None] = mapped_column(
        Numeric(precision=12, scale=3), nullable=True
    )
    updated_at: Mapped[datetime] = mapped_column(
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
    )

    # Relationships
    product: Mapped["Product"] = relationship()
    station: Mapped["Station"] = relationship()


class ProductSale(Base):
    """Sale of a non-fuel product; ``sale_price`` is the line total."""

    __tablename__ = "product_sales"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    station_id: Mapped[int] = mapped_column(ForeignKey("stations.id"), index=True)
    product_id: Mapped[int] = mapped_column(ForeignKey("products.id"), index=True)
    shift_id: Mapped[int | None] = mapped_column(ForeignKey("shifts.id"), nullable=True)
    quantity: Mapped[Decimal] = mapped_column(Numeric(precision=12, scale=3))
    sale_price: Mapped[Decimal] = mapped_column(Numeric(precision=14, scale=2))
    sold_at: Mapped[datetime] = mapped_column(default=lambda: datetime.now(UTC), index=True)
    sold_by_id: Mapped[int | None] = mapped_column(nullable=True)

    # Relationships
    product: Mapped["Product"] = relationship()
