"""Price book API routes."""

from decimal import Decimal

from fastapi import APIRouter, Depends, HTTPException, Query, status

from fuelops.api.deps import ensure_success, get_actor_id, get_price_book
from fuelops.models.enums import ProductType
from fuelops.schemas.price import AmountResult, PriceInfo, SetPriceRequest, SetPriceResult
from fuelops.services.price_book import PriceBook

router = APIRouter(prefix="/prices", tags=["prices"])


@router.get("/current", response_model=PriceInfo)
def get_current_price(
    product_type: ProductType,
    station_id: int | None = None,
    price_book: PriceBook = Depends(get_price_book),
) -> PriceInfo:
    """Price in effect now."""
    price = price_book.get_current_price(product_type, station_id)
    if price is None:
        raise HTTPException(status_code=404, detail="No price configured")
    return price


@router.post("/", response_model=SetPriceResult, status_code=status.HTTP_201_CREATED)
def set_price(
    request: SetPriceRequest,
    price_book: PriceBook = Depends(get_price_book),
    actor_id: int | None = Depends(get_actor_id),
) -> SetPriceResult:
    """Start a new price, closing the current one at the same instant."""
    return ensure_success(
        price_book.set_price(
            request.product_type,
            request.retail_price,
            wholesale_price=request.wholesale_price,
            station_id=request.station_id,
            effective_from=request.effective_from,
            user_id=actor_id,
        )
    )


@router.get("/history", response_model=list[PriceInfo])
def get_price_history(
    product_type: ProductType,
    station_id: int | None = None,
    limit: int = Query(default=10, ge=1, le=100),
    price_book: PriceBook = Depends(get_price_book),
) -> list[PriceInfo]:
    """Most recent prices first."""
    return price_book.get_price_history(product_type, station_id, limit)


@router.get("/amount", response_model=AmountResult)
def calculate_amount(
    product_type: ProductType,
    liters: Decimal = Query(ge=0),
    station_id: int | None = None,
    is_wholesale: bool = False,
    price_book: PriceBook = Depends(get_price_book),
) -> AmountResult:
    """Amount due for a quantity at the current price."""
    return ensure_success(
        price_book.calculate_amount(product_type, liters, station_id, is_wholesale)
    )
