"""Shared API dependencies: services, acting identity and failure mapping."""

from typing import TypeVar

from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session

from fuelops.core.clock import Clock
from fuelops.core.database import get_db
from fuelops.core.errors import ErrorCategory, ErrorCode, category_of
from fuelops.schemas.results import OperationResult
from fuelops.services.anomaly import AnomalyDetector
from fuelops.services.inventory import InventoryLedger
from fuelops.services.meters import MeterService
from fuelops.services.price_book import PriceBook
from fuelops.services.reconciliation import ReconciliationCalculator
from fuelops.services.shift_lifecycle import ShiftLifecycle
from fuelops.services.transactions import TransactionService

ResultT = TypeVar("ResultT", bound=OperationResult)

_STATUS_BY_CATEGORY = {
    ErrorCategory.VALIDATION: 422,
    ErrorCategory.POLICY: 422,
    ErrorCategory.PRECONDITION: 409,
    ErrorCategory.NOT_FOUND: 404,
    ErrorCategory.PERSISTENCE: 500,
}


def status_for(code: ErrorCode) -> int:
    """HTTP status for an error code, by its category."""
    return _STATUS_BY_CATEGORY[category_of(code)]


def ensure_success(result: ResultT) -> ResultT:
    """Return a successful result, or raise it as an HTTP error."""
    if not result.success:
        raise HTTPException(
            status_code=status_for(result.error_code),
            detail=result.model_dump(mode="json"),
        )
    return result


def get_actor_id(x_actor_id: int | None = Header(default=None)) -> int | None:
    """Acting user id supplied by the authentication layer in front of the API."""
    return x_actor_id


def get_clock() -> Clock:
    """Time source; overridden in tests."""
    return Clock()


def get_lifecycle(
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
) -> ShiftLifecycle:
    return ShiftLifecycle(db, clock=clock)


def get_calculator(
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
) -> ReconciliationCalculator:
    return ReconciliationCalculator(db, clock=clock)


def get_detector(
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
) -> AnomalyDetector:
    return AnomalyDetector(db, clock=clock)


def get_meter_service(
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
) -> MeterService:
    return MeterService(db, clock=clock)


def get_transaction_service(
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
) -> TransactionService:
    return TransactionService(db, clock=clock)


def get_ledger(
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
) -> InventoryLedger:
    return InventoryLedger(db, clock=clock)


def get_price_book(
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
) -> PriceBook:
    return PriceBook(db, clock=clock)
