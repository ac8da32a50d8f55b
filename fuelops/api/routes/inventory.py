"""Inventory API routes."""

from fastapi import APIRouter, Depends

from fuelops.api.deps import ensure_success, get_ledger
from fuelops.schemas.inventory import (
    InventoryAdjustRequest,
    InventorySummaryItem,
    InventoryUpdateResult,
    LowStockItem,
)
from fuelops.services.inventory import InventoryLedger

router = APIRouter(prefix="/inventory", tags=["inventory"])


@router.post("/adjust", response_model=InventoryUpdateResult)
def adjust_inventory(
    request: InventoryAdjustRequest,
    ledger: InventoryLedger = Depends(get_ledger),
) -> InventoryUpdateResult:
    """Replenish (positive delta) or remove (negative delta) stock."""
    return ensure_success(
        ledger.update_inventory(request.station_id, request.product_id, request.delta)
    )


@router.get("/low-stock", response_model=list[LowStockItem])
def low_stock(
    station_id: int | None = None,
    ledger: InventoryLedger = Depends(get_ledger),
) -> list[LowStockItem]:
    """Products at or below their alert level, most urgent first."""
    return ledger.check_low_stock(station_id)


@router.get("/stations/{station_id}", response_model=list[InventorySummaryItem])
def station_summary(
    station_id: int,
    ledger: InventoryLedger = Depends(get_ledger),
) -> list[InventorySummaryItem]:
    """Every stock line of a station with its value."""
    return ledger.get_station_inventory_summary(station_id)
