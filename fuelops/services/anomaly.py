"""Meter anomaly detection against each nozzle's rolling average."""

from datetime import timedelta
from decimal import Decimal

import structlog
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from fuelops.core.clock import Clock
from fuelops.core.config import AnomalyThresholds, settings
from fuelops.core.database import atomic
from fuelops.core.errors import ErrorCode, ServiceError
from fuelops.models.daily_record import DailyRecord
from fuelops.models.enums import COMPLETED_SHIFT_STATUSES, AnomalySeverity
from fuelops.models.meter_anomaly import MeterAnomaly
from fuelops.models.meter_reading import MeterReading
from fuelops.models.shift import Shift
from fuelops.schemas.anomaly import (
    AnomalyCheckResult,
    AnomalyFinding,
    AnomalyReviewResult,
    AnomalySaveResult,
)
from fuelops.services.shift_context import load_shift_context

logger = structlog.get_logger()

_PERCENT = Decimal("0.01")


def percent_deviation(sold_qty: Decimal, average_qty: Decimal) -> Decimal | None:
    """Signed percent difference from the average, None without a baseline.

    The value is unrounded; severity is decided on it and only the stored
    ``percent_diff`` is rounded.
    """
    if average_qty == 0:
        return None
    return (sold_qty - average_qty) / average_qty * 100


def classify_deviation(
    percent_diff: Decimal,
    thresholds: AnomalyThresholds,
) -> AnomalySeverity | None:
    """Severity of a deviation, or None when it is within the warning band."""
    magnitude = abs(percent_diff)
    if magnitude <= thresholds.warning_percent:
        return None
    if magnitude >= thresholds.critical_percent:
        return AnomalySeverity.CRITICAL
    return AnomalySeverity.WARNING


class AnomalyDetector:
    """Screens a shift's sold quantities for outliers at close time."""

    def __init__(
        self,
        db: Session,
        thresholds: AnomalyThresholds | None = None,
        clock: Clock | None = None,
    ) -> None:
        self.db = db
        self.thresholds = thresholds or AnomalyThresholds.from_settings(settings)
        self.clock = clock or Clock()

    def get_average_sold_qty(
        self,
        station_id: int,
        nozzle_number: int,
        window_days: int | None = None,
    ) -> Decimal:
        """Mean sold quantity of a nozzle over completed shifts in the window.

        Returns 0 when there is no history, meaning "no baseline".
        """
        days = window_days if window_days is not None else self.thresholds.window_days
        since = self.clock.now() - timedelta(days=days)

        sold = self.db.scalars(
            select(MeterReading.sold_qty)
            .join(Shift, MeterReading.shift_id == Shift.id)
            .join(DailyRecord, Shift.daily_record_id == DailyRecord.id)
            .where(
                DailyRecord.station_id == station_id,
                MeterReading.nozzle_number == nozzle_number,
                MeterReading.sold_qty.is_not(None),
                Shift.status.in_(COMPLETED_SHIFT_STATUSES),
                Shift.created_at >= since,
            )
        ).all()

        if not sold:
            return Decimal("0")
        return sum(sold, Decimal("0")) / len(sold)

    def check_shift_anomalies(self, shift_id: int) -> AnomalyCheckResult:
        """Flag every nozzle whose sold quantity strays from its baseline.

        Nozzles with nothing sold, or with no history, are skipped.
        """
        context = load_shift_context(self.db, shift_id)

        findings: list[AnomalyFinding] = []
        for meter in context.shift.meters:
            sold_qty = meter.sold_qty if meter.sold_qty is not None else Decimal("0")
            if sold_qty <= 0:
                continue

            average_qty = self.get_average_sold_qty(context.station.id, meter.nozzle_number)
            percent_diff = percent_deviation(sold_qty, average_qty)
            if percent_diff is None:
                continue

            severity = classify_deviation(percent_diff, self.thresholds)
            if severity is None:
                continue

            direction = "above" if percent_diff > 0 else "below"
            findings.append(
                AnomalyFinding(
                    nozzle_number=meter.nozzle_number,
                    sold_qty=sold_qty,
                    average_qty=average_qty,
                    percent_diff=percent_diff.quantize(_PERCENT),
                    severity=severity,
                    message=f"Sold quantity {abs(percent_diff):.0f}% {direction} average",
                )
            )

        return AnomalyCheckResult(
            has_anomalies=bool(findings),
            anomalies=findings,
            requires_note=any(f.severity == AnomalySeverity.CRITICAL for f in findings),
        )

    def check_and_save_anomalies(self, shift_id: int, note: str | None = None) -> AnomalySaveResult:
        """Run the check and persist the findings tagged with ``note``.

        A critical finding without a note fails and writes nothing. Nozzles
        already recorded for the shift are not written again.
        """
        try:
            result = self.check_shift_anomalies(shift_id)
        except ServiceError as exc:
            return AnomalySaveResult.fail(exc.code, exc.message, result=AnomalyCheckResult())

        if result.requires_note and not note:
            return AnomalySaveResult.fail(
                ErrorCode.MISSING_JUSTIFICATION,
                "Critical meter anomaly found, a note explaining it is required",
                result=result,
            )

        if not result.has_anomalies:
            return AnomalySaveResult.ok(result=result)

        recorded = set(
            self.db.scalars(
                select(MeterAnomaly.nozzle_number).where(MeterAnomaly.shift_id == shift_id)
            ).all()
        )
        try:
            with atomic(self.db):
                for finding in result.anomalies:
                    if finding.nozzle_number in recorded:
                        continue
                    self.db.add(
                        MeterAnomaly(
                            shift_id=shift_id,
                            nozzle_number=finding.nozzle_number,
                            sold_qty=finding.sold_qty,
                            average_qty=finding.average_qty,
                            percent_diff=finding.percent_diff,
                            severity=finding.severity,
                            note=note,
                            created_at=self.clock.now(),
                        )
                    )
        except SQLAlchemyError:
            logger.exception("anomaly.save_failed", shift_id=shift_id)
            return AnomalySaveResult.fail(
                ErrorCode.WRITE_FAILED,
                "Failed to save meter anomalies",
                result=result,
            )

        logger.info(
            "anomaly.saved",
            shift_id=shift_id,
            count=len(result.anomalies),
            requires_note=result.requires_note,
        )
        return AnomalySaveResult.ok(result=result)

    def get_pending_anomalies(
        self,
        station_id: int | None = None,
        limit: int | None = None,
    ) -> list[MeterAnomaly]:
        """Unreviewed anomalies, newest first."""
        query = select(MeterAnomaly).where(MeterAnomaly.reviewed_at.is_(None))
        if station_id is not None:
            query = (
                query.join(Shift, MeterAnomaly.shift_id == Shift.id)
                .join(DailyRecord, Shift.daily_record_id == DailyRecord.id)
                .where(DailyRecord.station_id == station_id)
            )
        query = query.order_by(MeterAnomaly.created_at.desc(), MeterAnomaly.id.desc()).limit(
            limit or settings.PENDING_ANOMALY_LIMIT
        )
        return list(self.db.scalars(query).all())

    def mark_anomaly_reviewed(self, anomaly_id: int, reviewer_id: int) -> AnomalyReviewResult:
        """Record who reviewed an anomaly and when. Review happens once."""
        anomaly = self.db.get(MeterAnomaly, anomaly_id)
        if not anomaly:
            return AnomalyReviewResult.fail(ErrorCode.ANOMALY_NOT_FOUND, "Anomaly not found")
        if anomaly.reviewed_at is not None:
            return AnomalyReviewResult.fail(
                ErrorCode.ALREADY_REVIEWED, "Anomaly has already been reviewed"
            )

        try:
            with atomic(self.db):
                anomaly.reviewed_by_id = reviewer_id
                anomaly.reviewed_at = self.clock.now()
        except SQLAlchemyError:
            logger.exception("anomaly.review_failed", anomaly_id=anomaly_id)
            return AnomalyReviewResult.fail(ErrorCode.WRITE_FAILED, "Failed to review anomaly")

        logger.info("anomaly.reviewed", anomaly_id=anomaly_id, reviewer_id=reviewer_id)
        return AnomalyReviewResult.ok()
