"""Shift lifecycle: the OPEN -> CLOSED -> LOCKED state machine.

Every status change goes through this module. Close and lock are
conditional updates on the current status, so two racing requests cannot
both apply a transition, and the close writes the reconciliation snapshot
in the same unit as the status change.
"""

from datetime import date, timedelta
from decimal import Decimal

import structlog
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from fuelops.core.clock import Clock, local_date
from fuelops.core.config import Settings, settings
from fuelops.core.database import atomic
from fuelops.core.errors import ErrorCode, NotFoundError, ServiceError
from fuelops.models.daily_record import DailyRecord
from fuelops.models.enums import (
    COMPLETED_SHIFT_STATUSES,
    AuditAction,
    ShiftStatus,
    VarianceStatus,
)
from fuelops.models.meter_reading import MeterReading
from fuelops.models.shift import Shift
from fuelops.models.shift_reconciliation import ShiftReconciliation
from fuelops.models.station import Station
from fuelops.schemas.shift import (
    CarryOverResult,
    CloseShiftResult,
    CloseShiftValidation,
    LockShiftResult,
    OpenShiftResult,
    ShiftModifiable,
)
from fuelops.services.anomaly import AnomalyDetector
from fuelops.services.audit import record_audit
from fuelops.services.meter_math import calculate_sold_qty, check_meter_continuity
from fuelops.services.reconciliation import ReconciliationCalculator
from fuelops.services.shift_context import load_shift_context

logger = structlog.get_logger()


class StaleShiftError(Exception):
    """The shift left the expected status before a conditional update ran."""


class ShiftLifecycle:
    """Sanctioned transitions of a shift and the successor it hands over to."""

    def __init__(
        self,
        db: Session,
        clock: Clock | None = None,
        calculator: ReconciliationCalculator | None = None,
        detector: AnomalyDetector | None = None,
        config: Settings = settings,
    ) -> None:
        self.db = db
        self.clock = clock or Clock()
        self.calculator = calculator or ReconciliationCalculator(db, clock=self.clock)
        self.detector = detector or AnomalyDetector(db, clock=self.clock)
        self.config = config

    def open_shift(
        self,
        station_id: int,
        actor_id: int | None = None,
        shift_number: int = 1,
        on_date: date | None = None,
        start_readings: dict[int, Decimal] | None = None,
    ) -> OpenShiftResult:
        """Open a shift for a station-local day, creating the day if needed.

        Start readings default to the end readings of the station's last
        completed shift. Supplied readings that do not continue from there
        are accepted with a warning.
        """
        station = self.db.get(Station, station_id)
        if not station:
            return OpenShiftResult.fail(ErrorCode.STATION_NOT_FOUND, "Station not found")

        record_date = on_date or local_date(self.clock.now(), self.config.STATION_TIMEZONE)
        start_readings = start_readings or {}

        for nozzle_number, reading in start_readings.items():
            if reading < 0:
                return OpenShiftResult.fail(
                    ErrorCode.NEGATIVE_START,
                    f"Start reading for nozzle {nozzle_number} must not be negative",
                )

        existing_day = self._find_daily_record(station_id, record_date)
        if existing_day is not None:
            shifts = self.db.scalars(
                select(Shift).where(Shift.daily_record_id == existing_day.id)
            ).all()
            if any(s.shift_number == shift_number for s in shifts):
                return OpenShiftResult.fail(
                    ErrorCode.SHIFT_ALREADY_EXISTS,
                    f"Shift {shift_number} already exists for {record_date.isoformat()}",
                )
            if any(s.status == ShiftStatus.OPEN for s in shifts):
                return OpenShiftResult.fail(
                    ErrorCode.OPEN_SHIFT_EXISTS,
                    "Another shift is still open for this day",
                )

        previous_ends = self._last_completed_end_readings(station_id)
        warnings: list[str] = []
        starts: dict[int, Decimal] = {}
        if station.requires_meters():
            for nozzle_number in range(1, self._nozzle_count(station) + 1):
                previous_end = previous_ends.get(nozzle_number)
                if nozzle_number in start_readings:
                    start = start_readings[nozzle_number]
                    continuity = check_meter_continuity(previous_end, start)
                    if not continuity.is_continuous:
                        warnings.append(
                            f"Nozzle {nozzle_number} starts {continuity.gap} away "
                            f"from the previous end reading {previous_end}"
                        )
                else:
                    start = previous_end if previous_end is not None else Decimal("0")
                starts[nozzle_number] = start

        now = self.clock.now()
        try:
            with atomic(self.db):
                daily_record = self._get_or_create_daily_record(station_id, record_date)
                shift = Shift(
                    daily_record_id=daily_record.id,
                    shift_number=shift_number,
                    status=ShiftStatus.OPEN,
                    created_at=now,
                    opened_by_id=actor_id,
                )
                self.db.add(shift)
                self.db.flush()
                for nozzle_number, start in starts.items():
                    self.db.add(
                        MeterReading(
                            shift_id=shift.id,
                            nozzle_number=nozzle_number,
                            start_reading=start,
                        )
                    )
                record_audit(
                    self.db,
                    actor_id,
                    AuditAction.CREATE,
                    "Shift",
                    shift.id,
                    new_data={"status": ShiftStatus.OPEN.value, "shift_number": shift_number},
                    at=now,
                )
                self.db.flush()
        except IntegrityError:
            logger.info(
                "shift.open_conflict", station_id=station_id, shift_number=shift_number
            )
            return OpenShiftResult.fail(
                ErrorCode.SHIFT_ALREADY_EXISTS,
                f"Shift {shift_number} already exists for {record_date.isoformat()}",
            )
        except SQLAlchemyError:
            logger.exception("shift.open_failed", station_id=station_id)
            return OpenShiftResult.fail(ErrorCode.WRITE_FAILED, "Failed to open shift")

        logger.info(
            "shift.opened",
            shift_id=shift.id,
            station_id=station_id,
            shift_number=shift_number,
            record_date=record_date.isoformat(),
            warnings=len(warnings),
        )
        return OpenShiftResult.ok(shift_id=shift.id, warnings=warnings)

    def validate_close_shift(self, shift_id: int) -> CloseShiftValidation:
        """Collect every reason the shift cannot be closed yet."""
        try:
            context = load_shift_context(self.db, shift_id)
        except ServiceError as exc:
            return CloseShiftValidation(valid=False, errors=[exc.message], error_code=exc.code)

        shift, station = context.shift, context.station
        errors: list[str] = []
        warnings: list[str] = []
        error_code: ErrorCode | None = None

        if shift.status != ShiftStatus.OPEN:
            errors.append(f"Shift is {ShiftStatus(shift.status).value}, only open shifts close")
            error_code = ErrorCode.SHIFT_NOT_OPEN

        if station.requires_meters():
            expected = self._nozzle_count(station)
            recorded = sum(1 for m in shift.meters if m.end_reading is not None)
            if recorded < expected:
                errors.append(f"End readings recorded for {recorded} of {expected} nozzles")
        else:
            warnings.append("Station has no dispenser meters, meter checks skipped")

        for meter in shift.meters:
            if meter.sold_qty is not None and meter.sold_qty < 0:
                errors.append(f"Nozzle {meter.nozzle_number} has a negative sold quantity")

        if errors and error_code is None:
            error_code = ErrorCode.CLOSE_VALIDATION_FAILED
        return CloseShiftValidation(
            valid=not errors,
            errors=errors,
            warnings=warnings,
            error_code=error_code,
        )

    def close_shift(
        self,
        shift_id: int,
        actor_id: int | None,
        variance_note: str | None = None,
    ) -> CloseShiftResult:
        """Validate, reconcile and close the shift in one unit.

        A non-GREEN variance needs ``variance_note``. Nothing is written
        unless the status change and the snapshot both succeed.
        """
        validation = self.validate_close_shift(shift_id)
        if not validation.valid:
            return CloseShiftResult.fail(validation.error_code, "; ".join(validation.errors))

        reconciliation = self.calculator.calculate_reconciliation(shift_id)
        if reconciliation.variance_status != VarianceStatus.GREEN and not variance_note:
            return CloseShiftResult.fail(
                ErrorCode.VARIANCE_JUSTIFICATION_REQUIRED,
                f"Variance of {reconciliation.variance} is "
                f"{reconciliation.variance_status.value}, a variance note is required",
                reconciliation=reconciliation,
            )

        now = self.clock.now()
        try:
            with atomic(self.db):
                result = self.db.execute(
                    update(Shift)
                    .where(Shift.id == shift_id, Shift.status == ShiftStatus.OPEN)
                    .values(
                        status=ShiftStatus.CLOSED,
                        closed_at=now,
                        closed_by_id=actor_id,
                        variance_note=variance_note,
                    )
                )
                if result.rowcount != 1:
                    raise StaleShiftError(shift_id)
                self.db.add(
                    ShiftReconciliation(
                        shift_id=shift_id,
                        expected_fuel_amount=reconciliation.expected_fuel_amount,
                        expected_other_amount=reconciliation.expected_other_amount,
                        total_expected=reconciliation.total_expected,
                        cash_received=reconciliation.cash_received,
                        credit_received=reconciliation.credit_received,
                        transfer_received=reconciliation.transfer_received,
                        total_received=reconciliation.total_received,
                        variance=reconciliation.variance,
                        variance_status=reconciliation.variance_status,
                        created_at=now,
                    )
                )
                record_audit(
                    self.db,
                    actor_id,
                    AuditAction.CLOSE,
                    "Shift",
                    shift_id,
                    old_data={"status": ShiftStatus.OPEN.value},
                    new_data={
                        "status": ShiftStatus.CLOSED.value,
                        "variance": str(reconciliation.variance),
                        "variance_status": reconciliation.variance_status.value,
                        "variance_note": variance_note,
                    },
                    at=now,
                )
                self.db.flush()
        except StaleShiftError:
            return CloseShiftResult.fail(ErrorCode.SHIFT_NOT_OPEN, "Shift is no longer open")
        except SQLAlchemyError:
            logger.exception("shift.close_failed", shift_id=shift_id)
            return CloseShiftResult.fail(ErrorCode.CLOSE_FAILED, "Failed to close shift")

        logger.info(
            "shift.closed",
            shift_id=shift_id,
            actor_id=actor_id,
            variance=str(reconciliation.variance),
            variance_status=reconciliation.variance_status.value,
        )
        return CloseShiftResult.ok(reconciliation=reconciliation)

    def screen_and_close(
        self,
        shift_id: int,
        actor_id: int | None,
        variance_note: str | None = None,
        anomaly_note: str | None = None,
    ) -> CloseShiftResult:
        """Close a shift after screening its meters for anomalies.

        Findings are saved before the close is attempted. A retried close
        does not record the same nozzle twice.
        """
        validation = self.validate_close_shift(shift_id)
        if not validation.valid:
            return CloseShiftResult.fail(validation.error_code, "; ".join(validation.errors))

        screening = self.detector.check_and_save_anomalies(shift_id, anomaly_note)
        if not screening.success:
            return CloseShiftResult.fail(
                screening.error_code, screening.error, anomalies=screening.result
            )

        result = self.close_shift(shift_id, actor_id, variance_note)
        result.anomalies = screening.result
        return result

    def lock_shift(self, shift_id: int, actor_id: int | None) -> LockShiftResult:
        """Move a CLOSED shift to the terminal LOCKED state."""
        shift = self.db.get(Shift, shift_id)
        if not shift:
            return LockShiftResult.fail(ErrorCode.SHIFT_NOT_FOUND, "Shift not found")
        if shift.status == ShiftStatus.OPEN:
            return LockShiftResult.fail(
                ErrorCode.NOT_YET_CLOSED, "Shift must be closed before it can be locked"
            )
        if shift.status == ShiftStatus.LOCKED:
            return LockShiftResult.fail(ErrorCode.ALREADY_LOCKED, "Shift is already locked")

        now = self.clock.now()
        try:
            with atomic(self.db):
                result = self.db.execute(
                    update(Shift)
                    .where(Shift.id == shift_id, Shift.status == ShiftStatus.CLOSED)
                    .values(
                        status=ShiftStatus.LOCKED,
                        locked_at=now,
                        locked_by_id=actor_id,
                    )
                )
                if result.rowcount != 1:
                    raise StaleShiftError(shift_id)
                record_audit(
                    self.db,
                    actor_id,
                    AuditAction.LOCK,
                    "Shift",
                    shift_id,
                    old_data={"status": ShiftStatus.CLOSED.value},
                    new_data={"status": ShiftStatus.LOCKED.value},
                    at=now,
                )
        except StaleShiftError:
            return LockShiftResult.fail(ErrorCode.ALREADY_LOCKED, "Shift is already locked")
        except SQLAlchemyError:
            logger.exception("shift.lock_failed", shift_id=shift_id)
            return LockShiftResult.fail(ErrorCode.LOCK_FAILED, "Failed to lock shift")

        logger.info("shift.locked", shift_id=shift_id, actor_id=actor_id)
        return LockShiftResult.ok()

    def check_shift_modifiable(self, shift_id: int) -> ShiftModifiable:
        """Guard consulted by every write to shift-scoped data."""
        shift = self.db.get(Shift, shift_id)
        if not shift:
            return ShiftModifiable(
                can_modify=False, error="Shift not found", error_code=ErrorCode.SHIFT_NOT_FOUND
            )
        if shift.status == ShiftStatus.LOCKED:
            return ShiftModifiable(
                can_modify=False,
                error="Shift is locked and cannot be modified",
                error_code=ErrorCode.LOCKED,
            )
        if shift.status == ShiftStatus.CLOSED:
            return ShiftModifiable(
                can_modify=False,
                error="Shift is closed and cannot be modified",
                error_code=ErrorCode.CLOSED,
            )
        return ShiftModifiable(can_modify=True)

    def create_next_shift_with_carry_over(
        self,
        closed_shift_id: int,
        closing_stock: Decimal | None = None,
        actor_id: int | None = None,
    ) -> CarryOverResult:
        """Create (or back-fill) the shift that follows a closed one.

        Shift 1 hands over to shift 2 of the same day, shift 2 to shift 1 of
        the next day. Each nozzle starts where the predecessor ended.
        """
        try:
            context = load_shift_context(self.db, closed_shift_id)
        except NotFoundError:
            return CarryOverResult.fail(
                ErrorCode.PREDECESSOR_NOT_FOUND, f"Shift {closed_shift_id} not found"
            )
        except ServiceError as exc:
            return CarryOverResult.fail(exc.code, exc.message)

        predecessor = context.shift
        if predecessor.status == ShiftStatus.OPEN:
            return CarryOverResult.fail(
                ErrorCode.PREDECESSOR_NOT_CLOSED,
                "Shift must be closed before its successor is created",
            )

        if predecessor.shift_number == 1:
            next_number, next_date = 2, context.daily_record.record_date
        else:
            next_number, next_date = 1, context.daily_record.record_date + timedelta(days=1)

        carried = {
            m.nozzle_number: m.end_reading if m.end_reading is not None else m.start_reading
            for m in predecessor.meters
        }

        try:
            with atomic(self.db):
                daily_record = self._get_or_create_daily_record(
                    context.station.id, next_date, template=context.daily_record
                )
                successor = self.db.scalars(
                    select(Shift).where(
                        Shift.daily_record_id == daily_record.id,
                        Shift.shift_number == next_number,
                    )
                ).first()

                created = successor is None
                if created:
                    successor = Shift(
                        daily_record_id=daily_record.id,
                        shift_number=next_number,
                        status=ShiftStatus.OPEN,
                        carry_over_from_shift_id=predecessor.id,
                        opening_stock=closing_stock,
                        created_at=self.clock.now(),
                        opened_by_id=actor_id,
                    )
                    self.db.add(successor)
                    self.db.flush()
                    for nozzle_number, start in carried.items():
                        self.db.add(
                            MeterReading(
                                shift_id=successor.id,
                                nozzle_number=nozzle_number,
                                start_reading=start,
                            )
                        )
                else:
                    self._back_fill(successor, predecessor.id, carried, closing_stock)
                self.db.flush()
                successor_id = successor.id
        except SQLAlchemyError:
            logger.exception("shift.carry_over_failed", shift_id=closed_shift_id)
            return CarryOverResult.fail(
                ErrorCode.CARRY_OVER_FAILED, "Failed to create the next shift"
            )

        logger.info(
            "shift.carried_over",
            from_shift_id=closed_shift_id,
            to_shift_id=successor_id,
            created=created,
            record_date=next_date.isoformat(),
        )
        return CarryOverResult.ok(next_shift_id=successor_id, created=created)

    def _back_fill(
        self,
        successor: Shift,
        predecessor_id: int,
        carried: dict[int, Decimal],
        closing_stock: Decimal | None,
    ) -> None:
        """Fill an existing successor without touching readings staff entered.

        A start reading still at 0 counts as untouched.
        """
        if successor.carry_over_from_shift_id is None:
            successor.carry_over_from_shift_id = predecessor_id
        if successor.opening_stock is None:
            successor.opening_stock = closing_stock

        meters = {m.nozzle_number: m for m in successor.meters}
        for nozzle_number, start in carried.items():
            meter = meters.get(nozzle_number)
            if meter is None:
                self.db.add(
                    MeterReading(
                        shift_id=successor.id,
                        nozzle_number=nozzle_number,
                        start_reading=start,
                    )
                )
            elif meter.start_reading == 0:
                meter.start_reading = start
                meter.sold_qty = calculate_sold_qty(start, meter.end_reading)

    def _nozzle_count(self, station: Station) -> int:
        return station.nozzle_count or self.config.DEFAULT_NOZZLE_COUNT

    def _find_daily_record(self, station_id: int, record_date: date) -> DailyRecord | None:
        return self.db.scalars(
            select(DailyRecord).where(
                DailyRecord.station_id == station_id,
                DailyRecord.record_date == record_date,
            )
        ).first()

    def _get_or_create_daily_record(
        self,
        station_id: int,
        record_date: date,
        template: DailyRecord | None = None,
    ) -> DailyRecord:
        """Upsert the day, copying prices from ``template`` or the latest earlier day."""
        daily_record = self._find_daily_record(station_id, record_date)
        if daily_record is not None:
            return daily_record

        if template is None:
            template = self.db.scalars(
                select(DailyRecord)
                .where(
                    DailyRecord.station_id == station_id,
                    DailyRecord.record_date < record_date,
                )
                .order_by(DailyRecord.record_date.desc())
                .limit(1)
            ).first()

        daily_record = DailyRecord(
            station_id=station_id,
            record_date=record_date,
            retail_price=template.retail_price if template else None,
            wholesale_price=template.wholesale_price if template else None,
            gas_price=template.gas_price if template else None,
            created_at=self.clock.now(),
        )
        self.db.add(daily_record)
        self.db.flush()
        return daily_record

    def _last_completed_end_readings(self, station_id: int) -> dict[int, Decimal]:
        """End readings of the station's most recently created completed shift."""
        shift = self.db.scalars(
            select(Shift)
            .join(DailyRecord, Shift.daily_record_id == DailyRecord.id)
            .where(
                DailyRecord.station_id == station_id,
                Shift.status.in_(COMPLETED_SHIFT_STATUSES),
            )
            .order_by(Shift.created_at.desc(), Shift.id.desc())
            .limit(1)
        ).first()
        if shift is None:
            return {}
        return {m.nozzle_number: m.end_reading for m in shift.meters if m.end_reading is not None}
