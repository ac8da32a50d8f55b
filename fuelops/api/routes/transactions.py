"""Transaction and product sale API routes."""

from fastapi import APIRouter, Depends, status

from fuelops.api.deps import ensure_success, get_actor_id, get_transaction_service
from fuelops.schemas.station import (
    ProductSaleCreate,
    ProductSaleResult,
    TransactionCreate,
    TransactionResult,
)
from fuelops.services.transactions import TransactionService

router = APIRouter(tags=["transactions"])


@router.post(
    "/shifts/{shift_id}/transactions",
    response_model=TransactionResult,
    status_code=status.HTTP_201_CREATED,
)
def record_transaction(
    shift_id: int,
    transaction_data: TransactionCreate,
    service: TransactionService = Depends(get_transaction_service),
    actor_id: int | None = Depends(get_actor_id),
) -> TransactionResult:
    """Record a payment against an open shift."""
    return ensure_success(service.record_transaction(shift_id, transaction_data, actor_id))


@router.post("/transactions/{transaction_id}/void", response_model=TransactionResult)
def void_transaction(
    transaction_id: int,
    service: TransactionService = Depends(get_transaction_service),
    actor_id: int | None = Depends(get_actor_id),
) -> TransactionResult:
    """Void a payment of an open shift."""
    return ensure_success(service.void_transaction(transaction_id, actor_id))


@router.post(
    "/shifts/{shift_id}/product-sales",
    response_model=ProductSaleResult,
    status_code=status.HTTP_201_CREATED,
)
def sell_product(
    shift_id: int,
    sale_data: ProductSaleCreate,
    service: TransactionService = Depends(get_transaction_service),
    actor_id: int | None = Depends(get_actor_id),
) -> ProductSaleResult:
    """Sell a non-fuel product out of the station's stock."""
    return ensure_success(
        service.sell_product(shift_id, sale_data.product_id, sale_data.quantity, actor_id)
    )
