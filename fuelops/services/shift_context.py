"""Load a shift together with the relations the core depends on."""

from dataclasses import dataclass

from sqlalchemy.orm import Session, selectinload

from fuelops.core.errors import ErrorCode, NotFoundError, ShiftContextError
from fuelops.models.daily_record import DailyRecord
from fuelops.models.shift import Shift
from fuelops.models.station import Station


@dataclass
class ShiftContext:
    """A shift with its daily record and station, all present."""

    shift: Shift
    daily_record: DailyRecord
    station: Station


def load_shift_context(db: Session, shift_id: int) -> ShiftContext:
    """Hydrate shift -> daily record -> station, failing fast on gaps.

    Raises:
        NotFoundError: If the shift does not exist
        ShiftContextError: If the daily record or station is missing
    """
    shift = (
        db.query(Shift)
        .options(
            selectinload(Shift.meters),
            selectinload(Shift.daily_record).selectinload(DailyRecord.station),
        )
        .filter(Shift.id == shift_id)
        .first()
    )
    if not shift:
        raise NotFoundError(ErrorCode.SHIFT_NOT_FOUND, f"Shift {shift_id} not found")

    daily_record = shift.daily_record
    if daily_record is None:
        raise ShiftContextError(f"Shift {shift_id} has no daily record")

    station = daily_record.station
    if station is None:
        raise ShiftContextError(f"Daily record {daily_record.id} has no station")

    return ShiftContext(shift=shift, daily_record=daily_record, station=station)
