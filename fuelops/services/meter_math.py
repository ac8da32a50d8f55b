"""Pure meter arithmetic: sold quantity, reading validation, continuity.

No I/O here. Values are ``Decimal`` end to end; callers convert at the edge.
"""

from datetime import datetime
from decimal import Decimal

from fuelops.core.errors import ErrorCode
from fuelops.models.enums import MeterReadingKind
from fuelops.schemas.meter import MeterContinuity, MeterSaveData, MeterValidation

# Rounding slack allowed between one shift's end and the next shift's start
CONTINUITY_TOLERANCE = Decimal("0.01")


def calculate_sold_qty(
    start_reading: Decimal | None,
    end_reading: Decimal | None,
) -> Decimal | None:
    """Sold quantity ``end - start``, or None until both readings exist.

    Not clamped: a negative result is left for validation to reject.
    """
    if start_reading is None or end_reading is None:
        return None
    return end_reading - start_reading


def validate_meter_reading(start_reading: Decimal, end_reading: Decimal) -> MeterValidation:
    """Check a start/end pair; the first failing rule is reported."""
    if start_reading < 0:
        return MeterValidation(
            valid=False,
            error="Start reading must not be negative",
            error_code=ErrorCode.NEGATIVE_START,
        )
    if end_reading < 0:
        return MeterValidation(
            valid=False,
            error="End reading must not be negative",
            error_code=ErrorCode.NEGATIVE_END,
        )
    if end_reading < start_reading:
        return MeterValidation(
            valid=False,
            error="End reading must be greater than or equal to start reading",
            error_code=ErrorCode.END_BEFORE_START,
        )
    return MeterValidation(valid=True)


def check_meter_continuity(
    previous_end_reading: Decimal | None,
    current_start_reading: Decimal,
) -> MeterContinuity:
    """Compare a start reading with the previous shift's end reading.

    Advisory only. With no previous reading (first shift ever) the pair is
    continuous; otherwise the signed gap is reported when it exceeds
    ``CONTINUITY_TOLERANCE``.
    """
    if previous_end_reading is None:
        return MeterContinuity(is_continuous=True)

    gap = current_start_reading - previous_end_reading
    if abs(gap) > CONTINUITY_TOLERANCE:
        return MeterContinuity(is_continuous=False, gap=gap)
    return MeterContinuity(is_continuous=True)


def prepare_meter_save_data(
    kind: MeterReadingKind,
    reading: Decimal,
    captured_at: datetime,
    existing_start_reading: Decimal | None = None,
    existing_end_reading: Decimal | None = None,
    user_id: int | None = None,
) -> MeterSaveData:
    """Build the column values for saving a start or end reading.

    ``sold_qty`` is recomputed from whichever pair of readings results, so it
    never drifts from the readings it is derived from.
    """
    if kind == MeterReadingKind.START:
        return MeterSaveData(
            start_reading=reading,
            end_reading=existing_end_reading,
            sold_qty=calculate_sold_qty(reading, existing_end_reading),
            captured_by_id=user_id,
            captured_at=captured_at,
        )

    start_reading = existing_start_reading if existing_start_reading is not None else Decimal("0")
    return MeterSaveData(
        start_reading=start_reading,
        end_reading=reading,
        sold_qty=calculate_sold_qty(start_reading, reading),
        captured_by_id=user_id,
        captured_at=captured_at,
    )
