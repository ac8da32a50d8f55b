"""Shift lifecycle API routes."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from fuelops.api.deps import (
    ensure_success,
    get_actor_id,
    get_calculator,
    get_detector,
    get_lifecycle,
)
from fuelops.core.database import get_db
from fuelops.schemas.anomaly import AnomalyCheckResult
from fuelops.schemas.reconciliation import ReconciliationData
from fuelops.schemas.shift import (
    CarryOverRequest,
    CarryOverResult,
    CloseShiftRequest,
    CloseShiftResult,
    CloseShiftValidation,
    LockShiftResult,
    OpenShiftRequest,
    OpenShiftResult,
    ShiftModifiable,
    ShiftResponse,
)
from fuelops.services.anomaly import AnomalyDetector
from fuelops.services.reconciliation import ReconciliationCalculator
from fuelops.services.shift_context import load_shift_context
from fuelops.services.shift_lifecycle import ShiftLifecycle

router = APIRouter(prefix="/shifts", tags=["shifts"])


@router.post("/", response_model=OpenShiftResult, status_code=status.HTTP_201_CREATED)
def open_shift(
    request: OpenShiftRequest,
    lifecycle: ShiftLifecycle = Depends(get_lifecycle),
    actor_id: int | None = Depends(get_actor_id),
) -> OpenShiftResult:
    """Open a shift, creating the station's daily record when needed."""
    return ensure_success(
        lifecycle.open_shift(
            request.station_id,
            actor_id=actor_id,
            shift_number=request.shift_number,
            on_date=request.on_date,
            start_readings=request.start_readings,
        )
    )


@router.get("/{shift_id}", response_model=ShiftResponse)
def get_shift(
    shift_id: int,
    db: Session = Depends(get_db),
) -> ShiftResponse:
    """Get a shift with its meter readings."""
    return ShiftResponse.model_validate(load_shift_context(db, shift_id).shift)


@router.get("/{shift_id}/validate-close", response_model=CloseShiftValidation)
def validate_close(
    shift_id: int,
    lifecycle: ShiftLifecycle = Depends(get_lifecycle),
) -> CloseShiftValidation:
    """List everything that keeps the shift from closing."""
    return lifecycle.validate_close_shift(shift_id)


@router.get("/{shift_id}/reconciliation", response_model=ReconciliationData)
def preview_reconciliation(
    shift_id: int,
    calculator: ReconciliationCalculator = Depends(get_calculator),
) -> ReconciliationData:
    """Expected vs received amounts as of now. Writes nothing."""
    return calculator.calculate_reconciliation(shift_id)


@router.get("/{shift_id}/anomalies/check", response_model=AnomalyCheckResult)
def check_anomalies(
    shift_id: int,
    detector: AnomalyDetector = Depends(get_detector),
) -> AnomalyCheckResult:
    """Screen the shift's sold quantities without saving findings."""
    return detector.check_shift_anomalies(shift_id)


@router.post("/{shift_id}/close", response_model=CloseShiftResult)
def close_shift(
    shift_id: int,
    request: CloseShiftRequest,
    lifecycle: ShiftLifecycle = Depends(get_lifecycle),
    actor_id: int | None = Depends(get_actor_id),
) -> CloseShiftResult:
    """Screen for anomalies, reconcile and close the shift.

    Critical anomalies need ``anomaly_note``; a non-green variance needs
    ``variance_note``.
    """
    return ensure_success(
        lifecycle.screen_and_close(
            shift_id,
            actor_id,
            variance_note=request.variance_note,
            anomaly_note=request.anomaly_note,
        )
    )


@router.post("/{shift_id}/lock", response_model=LockShiftResult)
def lock_shift(
    shift_id: int,
    lifecycle: ShiftLifecycle = Depends(get_lifecycle),
    actor_id: int | None = Depends(get_actor_id),
) -> LockShiftResult:
    """Lock a closed shift for good."""
    return ensure_success(lifecycle.lock_shift(shift_id, actor_id))


@router.get("/{shift_id}/modifiable", response_model=ShiftModifiable)
def check_modifiable(
    shift_id: int,
    lifecycle: ShiftLifecycle = Depends(get_lifecycle),
) -> ShiftModifiable:
    """Whether shift-scoped data may still be written."""
    return lifecycle.check_shift_modifiable(shift_id)


@router.post(
    "/{shift_id}/carry-over",
    response_model=CarryOverResult,
    status_code=status.HTTP_201_CREATED,
)
def carry_over(
    shift_id: int,
    request: CarryOverRequest,
    lifecycle: ShiftLifecycle = Depends(get_lifecycle),
    actor_id: int | None = Depends(get_actor_id),
) -> CarryOverResult:
    """Create the next shift, starting each nozzle where this one ended."""
    return ensure_success(
        lifecycle.create_next_shift_with_carry_over(
            shift_id, closing_stock=request.closing_stock, actor_id=actor_id
        )
    )
