"""Meter reading persistence for open shifts."""

from decimal import Decimal

import structlog
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from fuelops.core.clock import Clock
from fuelops.core.database import atomic
from fuelops.core.errors import ErrorCode
from fuelops.models.enums import MeterReadingKind
from fuelops.models.meter_reading import MeterReading
from fuelops.schemas.meter import MeterReadingResponse, MeterRecordResult
from fuelops.services.meter_math import prepare_meter_save_data, validate_meter_reading
from fuelops.services.shift_lifecycle import ShiftLifecycle

logger = structlog.get_logger()


class MeterService:
    """Records start and end readings for the nozzles of a shift."""

    def __init__(
        self,
        db: Session,
        clock: Clock | None = None,
        lifecycle: ShiftLifecycle | None = None,
    ) -> None:
        self.db = db
        self.clock = clock or Clock()
        self.lifecycle = lifecycle or ShiftLifecycle(db, clock=self.clock)

    def record_reading(
        self,
        shift_id: int,
        nozzle_number: int,
        kind: MeterReadingKind,
        reading: Decimal,
        actor_id: int | None = None,
        photo_url: str | None = None,
    ) -> MeterRecordResult:
        """Save a start or end reading and recompute the sold quantity.

        A start reading creates the nozzle's row when the shift has none yet.
        An end reading needs an existing row.
        """
        guard = self.lifecycle.check_shift_modifiable(shift_id)
        if not guard.can_modify:
            return MeterRecordResult.fail(guard.error_code, guard.error)

        meter = self.db.scalars(
            select(MeterReading).where(
                MeterReading.shift_id == shift_id,
                MeterReading.nozzle_number == nozzle_number,
            )
        ).first()
        if meter is None and kind == MeterReadingKind.END:
            return MeterRecordResult.fail(
                ErrorCode.METER_NOT_FOUND,
                f"Nozzle {nozzle_number} has no start reading on this shift",
            )

        data = prepare_meter_save_data(
            kind,
            reading,
            self.clock.now(),
            existing_start_reading=meter.start_reading if meter else None,
            existing_end_reading=meter.end_reading if meter else None,
            user_id=actor_id,
        )
        validation = validate_meter_reading(
            data.start_reading,
            data.end_reading if data.end_reading is not None else data.start_reading,
        )
        if not validation.valid:
            return MeterRecordResult.fail(validation.error_code, validation.error)

        try:
            with atomic(self.db):
                if meter is None:
                    meter = MeterReading(shift_id=shift_id, nozzle_number=nozzle_number)
                    self.db.add(meter)
                meter.start_reading = data.start_reading
                meter.end_reading = data.end_reading
                meter.sold_qty = data.sold_qty
                meter.captured_at = data.captured_at
                meter.captured_by_id = data.captured_by_id
                if photo_url is not None:
                    if kind == MeterReadingKind.START:
                        meter.start_photo = photo_url
                    else:
                        meter.end_photo = photo_url
        except SQLAlchemyError:
            logger.exception("meter.record_failed", shift_id=shift_id, nozzle=nozzle_number)
            return MeterRecordResult.fail(ErrorCode.WRITE_FAILED, "Failed to save meter reading")

        logger.info(
            "meter.recorded",
            shift_id=shift_id,
            nozzle=nozzle_number,
            kind=kind.value,
            reading=str(reading),
            sold_qty=str(data.sold_qty) if data.sold_qty is not None else None,
        )
        return MeterRecordResult.ok(meter=MeterReadingResponse.model_validate(meter))
