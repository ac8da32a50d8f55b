"""Station, transaction and product sale schemas."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from fuelops.models.enums import PaymentType, StationType
from fuelops.schemas.results import OperationResult


class StationCreate(BaseModel):
    """Schema for creating a station."""

    name: str = Field(min_length=1, max_length=100)
    station_type: StationType
    nozzle_count: int | None = Field(default=None, ge=1)


class StationResponse(BaseModel):
    """Schema for station response."""

    id: int
    name: str
    station_type: StationType
    nozzle_count: int | None
    created_at: datetime
    is_active: bool

    model_config = {"from_attributes": True}


class TransactionCreate(BaseModel):
    """Schema for recording a payment within a shift."""

    payment_type: PaymentType
    amount: Decimal = Field(gt=0)
    liters: Decimal | None = Field(default=None, ge=0)
    license_plate: str | None = None


class TransactionResponse(BaseModel):
    """Schema for transaction response."""

    id: int
    daily_record_id: int
    shift_id: int | None
    payment_type: PaymentType
    amount: Decimal
    liters: Decimal | None
    license_plate: str | None
    created_at: datetime
    is_voided: bool

    model_config = {"from_attributes": True}


class TransactionResult(OperationResult):
    """Outcome of recording or voiding a transaction."""

    transaction: TransactionResponse | None = None


class ProductSaleCreate(BaseModel):
    """Schema for selling a non-fuel product within a shift."""

    product_id: int
    quantity: Decimal = Field(gt=0)


class ProductSaleResult(OperationResult):
    """Outcome of a product sale."""

    sale_id: int | None = None
    amount: Decimal | None = None
    remaining_stock: Decimal | None = None
