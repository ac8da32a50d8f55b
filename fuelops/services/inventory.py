"""Inventory ledger: guarded stock changes per station and product."""

from decimal import Decimal

import structlog
from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from fuelops.core.clock import Clock
from fuelops.core.config import settings
from fuelops.core.database import atomic
from fuelops.core.errors import ErrorCode
from fuelops.models.product import ProductInventory
from fuelops.schemas.inventory import InventorySummaryItem, InventoryUpdateResult, LowStockItem

logger = structlog.get_logger()


class InsufficientStockError(Exception):
    """A decrement would take stock below zero."""

    def __init__(self, current: Decimal, delta: Decimal) -> None:
        super().__init__(f"Insufficient stock (have {current}, requested {abs(delta)})")
        self.current = current
        self.delta = delta


class InventoryLedger:
    """The only sanctioned path for changing stock quantities."""

    def __init__(self, db: Session, clock: Clock | None = None) -> None:
        self.db = db
        self.clock = clock or Clock()

    def update_inventory(
        self,
        station_id: int,
        product_id: int,
        delta: Decimal,
    ) -> InventoryUpdateResult:
        """Apply ``delta`` to a station's stock of a product.

        A missing row is created with ``max(0, delta)``. A change that would
        go negative fails and writes nothing.
        """
        try:
            with atomic(self.db):
                new_quantity = self.apply_delta(station_id, product_id, delta)
        except InsufficientStockError as exc:
            logger.info(
                "inventory.insufficient_stock",
                station_id=station_id,
                product_id=product_id,
                current=str(exc.current),
                delta=str(delta),
            )
            return InventoryUpdateResult.fail(
                ErrorCode.INSUFFICIENT_STOCK,
                str(exc),
                new_quantity=exc.current,
            )
        except SQLAlchemyError:
            logger.exception(
                "inventory.update_failed", station_id=station_id, product_id=product_id
            )
            return InventoryUpdateResult.fail(
                ErrorCode.INVENTORY_UPDATE_FAILED, "Failed to update inventory"
            )

        logger.info(
            "inventory.updated",
            station_id=station_id,
            product_id=product_id,
            delta=str(delta),
            new_quantity=str(new_quantity),
        )
        return InventoryUpdateResult.ok(new_quantity=new_quantity)

    def apply_delta(
        self,
        station_id: int,
        product_id: int,
        delta: Decimal,
        create_missing: bool = True,
    ) -> Decimal:
        """Change stock inside the caller's transaction and return the new quantity.

        The decrement is a single conditional UPDATE, so two concurrent
        sales cannot both pass the non-negative check on a stale read. With
        ``create_missing`` off, a product never stocked has nothing to sell.

        Raises:
            InsufficientStockError: If the result would be negative
        """
        if self._find_row_id(station_id, product_id) is None:
            if not create_missing and delta < 0:
                raise InsufficientStockError(Decimal("0"), delta)
            return self._create_row(station_id, product_id, delta)

        result = self.db.execute(
            update(ProductInventory)
            .where(
                ProductInventory.station_id == station_id,
                ProductInventory.product_id == product_id,
                ProductInventory.quantity + delta >= 0,
            )
            .values(quantity=ProductInventory.quantity + delta, updated_at=self.clock.now())
            .execution_options(synchronize_session=False)
        )
        current = self._current_quantity(station_id, product_id)
        if result.rowcount != 1:
            raise InsufficientStockError(current, delta)
        return current

    def _find_row_id(self, station_id: int, product_id: int) -> int | None:
        return self.db.scalar(
            select(ProductInventory.id).where(
                ProductInventory.station_id == station_id,
                ProductInventory.product_id == product_id,
            )
        )

    def _create_row(self, station_id: int, product_id: int, delta: Decimal) -> Decimal:
        """Insert the first row for a product with ``max(0, delta)``.

        A concurrent insert of the same row trips the unique constraint and
        fails the unit instead of overwriting it.
        """
        quantity = max(Decimal("0"), delta)
        self.db.add(
            ProductInventory(
                station_id=station_id,
                product_id=product_id,
                quantity=quantity,
                updated_at=self.clock.now(),
            )
        )
        self.db.flush()
        return quantity

    def _current_quantity(self, station_id: int, product_id: int) -> Decimal:
        quantity = self.db.scalar(
            select(ProductInventory.quantity).where(
                ProductInventory.station_id == station_id,
                ProductInventory.product_id == product_id,
            )
        )
        return quantity if quantity is not None else Decimal("0")

    def get_quantity(self, station_id: int, product_id: int) -> Decimal:
        """Current stock, 0 when no row exists."""
        return self._current_quantity(station_id, product_id)

    def check_low_stock(self, station_id: int | None = None) -> list[LowStockItem]:
        """Products in stock but at or below their alert level, most urgent first."""
        query = (
            select(ProductInventory)
            .options(joinedload(ProductInventory.product))
            .where(ProductInventory.quantity > 0)
        )
        if station_id is not None:
            query = query.where(ProductInventory.station_id == station_id)

        items: list[LowStockItem] = []
        for inventory in self.db.scalars(query).all():
            alert_level = _alert_level(inventory)
            if inventory.quantity > alert_level:
                continue
            percent = (
                (inventory.quantity / alert_level * 100).quantize(Decimal("0.01"))
                if alert_level > 0
                else Decimal("0")
            )
            items.append(
                LowStockItem(
                    product_id=inventory.product_id,
                    product_name=inventory.product.name,
                    current_stock=inventory.quantity,
                    alert_level=alert_level,
                    percent_remaining=percent,
                )
            )
        return sorted(items, key=lambda item: item.percent_remaining)

    def get_station_inventory_summary(self, station_id: int) -> list[InventorySummaryItem]:
        """Every stock line of a station with its value at sale price."""
        inventories = self.db.scalars(
            select(ProductInventory)
            .options(joinedload(ProductInventory.product))
            .where(ProductInventory.station_id == station_id)
            .order_by(ProductInventory.product_id)
        ).all()

        summary: list[InventorySummaryItem] = []
        for inventory in inventories:
            alert_level = _alert_level(inventory)
            price = inventory.product.sale_price
            summary.append(
                InventorySummaryItem(
                    product_id=inventory.product_id,
                    product_name=inventory.product.name,
                    unit=inventory.product.unit,
                    price=price,
                    current_stock=inventory.quantity,
                    alert_level=alert_level,
                    is_low_stock=inventory.quantity <= alert_level,
                    total_value=(inventory.quantity * price).quantize(Decimal("0.01")),
                )
            )
        return summary


def _alert_level(inventory: ProductInventory) -> Decimal:
    if inventory.alert_level is None:
        return settings.DEFAULT_STOCK_ALERT_LEVEL
    return inventory.alert_level
