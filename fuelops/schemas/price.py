"""Price book schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field

from fuelops.models.enums import ProductType
from fuelops.schemas.results import OperationResult


class PriceInfo(BaseModel):
    """Effective price of a product type."""

    product_type: ProductType
    retail_price: Decimal
    wholesale_price: Decimal | None = None
    effective_from: datetime
    effective_to: datetime | None = None

    model_config = {"from_attributes": True}


class SetPriceRequest(BaseModel):
    """Schema for setting a new price."""

    product_type: ProductType
    retail_price: Decimal = Field(gt=0)
    wholesale_price: Decimal | None = Field(default=None, gt=0)
    station_id: int | None = None
    effective_from: datetime | None = None


class SetPriceResult(OperationResult):
    """Outcome of setting a price."""

    id: int | None = None


class AmountResult(OperationResult):
    """Server-side amount for a quantity of fuel."""

    amount: Decimal | None = None
    price: Decimal | None = None
    price_type: Literal["retail", "wholesale"] | None = None
