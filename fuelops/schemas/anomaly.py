"""Meter anomaly schemas."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel

from fuelops.models.enums import AnomalySeverity
from fuelops.schemas.results import OperationResult


class AnomalyFinding(BaseModel):
    """A nozzle whose sold quantity crossed the warning threshold."""

    nozzle_number: int
    sold_qty: Decimal
    average_qty: Decimal
    percent_diff: Decimal
    severity: AnomalySeverity
    message: str


class AnomalyCheckResult(BaseModel):
    """All findings for a shift. ``requires_note`` iff any is CRITICAL."""

    has_anomalies: bool = False
    anomalies: list[AnomalyFinding] = []
    requires_note: bool = False


class AnomalySaveResult(OperationResult):
    """Outcome of check-and-save."""

    result: AnomalyCheckResult


class AnomalyReviewResult(OperationResult):
    """Outcome of marking an anomaly reviewed."""


class MeterAnomalyResponse(BaseModel):
    """Stored anomaly."""

    id: int
    shift_id: int
    nozzle_number: int
    sold_qty: Decimal
    average_qty: Decimal
    percent_diff: Decimal
    severity: AnomalySeverity
    note: str | None
    created_at: datetime
    reviewed_by_id: int | None
    reviewed_at: datetime | None

    model_config = {"from_attributes": True}
