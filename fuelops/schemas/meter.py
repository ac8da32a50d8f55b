"""Meter reading schemas."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel

from fuelops.core.errors import ErrorCode
from fuelops.models.enums import MeterReadingKind
from fuelops.schemas.results import OperationResult


class MeterValidation(BaseModel):
    """Result of a local start/end reading check."""

    valid: bool
    error: str | None = None
    error_code: ErrorCode | None = None


class MeterContinuity(BaseModel):
    """Whether a start reading continues the previous shift's end reading."""

    is_continuous: bool
    gap: Decimal | None = None


class MeterSaveData(BaseModel):
    """Column values to write for a start or end reading."""

    start_reading: Decimal | None = None
    end_reading: Decimal | None = None
    sold_qty: Decimal | None = None
    captured_by_id: int | None = None
    captured_at: datetime


class MeterReadingInput(BaseModel):
    """Schema for recording one nozzle reading."""

    kind: MeterReadingKind
    reading: Decimal
    photo_url: str | None = None


class MeterReadingResponse(BaseModel):
    """Schema for meter reading response."""

    id: int
    shift_id: int
    nozzle_number: int
    start_reading: Decimal
    end_reading: Decimal | None
    sold_qty: Decimal | None
    captured_at: datetime | None
    captured_by_id: int | None
    start_photo: str | None
    end_photo: str | None

    model_config = {"from_attributes": True}


class MeterRecordResult(OperationResult):
    """Outcome of recording a reading."""

    meter: MeterReadingResponse | None = None
