"""Station service for business logic."""

import structlog
from sqlalchemy import select
from sqlalchemy.orm import Session

from fuelops.core.database import atomic
from fuelops.core.errors import ErrorCode, NotFoundError
from fuelops.models.station import Station
from fuelops.schemas.station import StationCreate

logger = structlog.get_logger()


def create_station(db: Session, station_data: StationCreate) -> Station:
    """
    Create a new station.

    Args:
        db: Database session
        station_data: Station creation data

    Returns:
        Created station

    """
    station = Station(
        name=station_data.name,
        station_type=station_data.station_type,
        nozzle_count=station_data.nozzle_count,
    )
    with atomic(db):
        db.add(station)
    db.refresh(station)
    logger.info("station.created", station_id=station.id, station_type=station.station_type)
    return station


def get_station(db: Session, station_id: int) -> Station:
    """
    Get a station by ID.

    Raises:
        NotFoundError: If the station does not exist

    """
    station = db.get(Station, station_id)
    if not station:
        raise NotFoundError(ErrorCode.STATION_NOT_FOUND, f"Station {station_id} not found")
    return station


def list_stations(db: Session, active_only: bool = True) -> list[Station]:
    """List stations ordered by name."""
    query = select(Station).order_by(Station.name)
    if active_only:
        query = query.where(Station.is_active.is_(True))
    return list(db.scalars(query).all())
