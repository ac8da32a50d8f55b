"""Inventory schemas."""

from decimal import Decimal

from pydantic import BaseModel

from fuelops.schemas.results import OperationResult


class InventoryUpdateResult(OperationResult):
    """Outcome of a stock change. ``new_quantity`` is the stock after it."""

    new_quantity: Decimal = Decimal("0")


class InventoryAdjustRequest(BaseModel):
    """Schema for a stock change (positive replenishes, negative sells)."""

    station_id: int
    product_id: int
    delta: Decimal


class LowStockItem(BaseModel):
    """Product at or below its alert level."""

    product_id: int
    product_name: str
    current_stock: Decimal
    alert_level: Decimal
    percent_remaining: Decimal


class InventorySummaryItem(BaseModel):
    """Stock line of a station."""

    product_id: int
    product_name: str
    unit: str
    price: Decimal
    current_stock: Decimal
    alert_level: Decimal
    is_low_stock: bool
    total_value: Decimal
