"""Meter reading API routes."""

from fastapi import APIRouter, Depends

from fuelops.api.deps import ensure_success, get_actor_id, get_meter_service
from fuelops.schemas.meter import MeterReadingInput, MeterRecordResult
from fuelops.services.meters import MeterService

router = APIRouter(tags=["meters"])


@router.put("/shifts/{shift_id}/meters/{nozzle_number}", response_model=MeterRecordResult)
def record_reading(
    shift_id: int,
    nozzle_number: int,
    reading_data: MeterReadingInput,
    meter_service: MeterService = Depends(get_meter_service),
    actor_id: int | None = Depends(get_actor_id),
) -> MeterRecordResult:
    """Record a start or end reading for a nozzle of an open shift."""
    return ensure_success(
        meter_service.record_reading(
            shift_id,
            nozzle_number,
            reading_data.kind,
            reading_data.reading,
            actor_id=actor_id,
            photo_url=reading_data.photo_url,
        )
    )
