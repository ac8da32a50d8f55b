"""Shift lifecycle schemas."""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from fuelops.core.errors import ErrorCode
from fuelops.models.enums import ShiftStatus
from fuelops.schemas.anomaly import AnomalyCheckResult
from fuelops.schemas.meter import MeterReadingResponse
from fuelops.schemas.reconciliation import ReconciliationData
from fuelops.schemas.results import OperationResult


class CloseShiftValidation(BaseModel):
    """Close-readiness check; collects every error rather than stopping early."""

    valid: bool
    errors: list[str] = []
    warnings: list[str] = []
    # Primary reason when invalid
    error_code: ErrorCode | None = None


class CloseShiftResult(OperationResult):
    """Outcome of closing a shift."""

    reconciliation: ReconciliationData | None = None
    anomalies: AnomalyCheckResult | None = None


class LockShiftResult(OperationResult):
    """Outcome of locking a shift."""


class ShiftModifiable(BaseModel):
    """Guard consulted before any write to shift-scoped data."""

    can_modify: bool
    error: str | None = None
    error_code: ErrorCode | None = None


class CarryOverResult(OperationResult):
    """Outcome of creating (or back-filling) the successor shift."""

    next_shift_id: int | None = None
    created: bool = False


class OpenShiftResult(OperationResult):
    """Outcome of opening the first shift of a day."""

    shift_id: int | None = None
    warnings: list[str] = []


class OpenShiftRequest(BaseModel):
    """Schema for opening a shift."""

    station_id: int
    shift_number: int = Field(default=1, ge=1, le=2)
    on_date: date | None = None
    start_readings: dict[int, Decimal] | None = None


class CloseShiftRequest(BaseModel):
    """Schema for closing a shift."""

    variance_note: str | None = None
    anomaly_note: str | None = None


class CarryOverRequest(BaseModel):
    """Schema for creating the successor shift."""

    closing_stock: Decimal | None = None


class ShiftResponse(BaseModel):
    """Schema for shift response."""

    id: int
    daily_record_id: int
    shift_number: int
    status: ShiftStatus
    carry_over_from_shift_id: int | None
    opening_stock: Decimal | None
    created_at: datetime
    opened_by_id: int | None
    closed_at: datetime | None
    closed_by_id: int | None
    locked_at: datetime | None
    locked_by_id: int | None
    variance_note: str | None
    meters: list[MeterReadingResponse]

    model_config = {"from_attributes": True}
