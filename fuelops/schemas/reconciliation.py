"""Reconciliation schemas."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel

from fuelops.models.enums import VarianceStatus


class ReconciliationData(BaseModel):
    """Expected vs received amounts for a shift."""

    expected_fuel_amount: Decimal
    expected_other_amount: Decimal
    total_expected: Decimal
    cash_received: Decimal
    credit_received: Decimal
    transfer_received: Decimal
    total_received: Decimal
    variance: Decimal
    variance_status: VarianceStatus
    total_sold_qty: Decimal
    price_per_unit: Decimal


class ShiftReconciliationResponse(BaseModel):
    """Stored close-time snapshot."""

    id: int
    shift_id: int
    expected_fuel_amount: Decimal
    expected_other_amount: Decimal
    total_expected: Decimal
    cash_received: Decimal
    credit_received: Decimal
    transfer_received: Decimal
    total_received: Decimal
    variance: Decimal
    variance_status: VarianceStatus
    created_at: datetime

    model_config = {"from_attributes": True}
