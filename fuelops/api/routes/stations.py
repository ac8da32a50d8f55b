"""Station API routes."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from fuelops.core.database import get_db
from fuelops.schemas.station import StationCreate, StationResponse
from fuelops.services import stations as station_service

router = APIRouter(prefix="/stations", tags=["stations"])


@router.post("/", response_model=StationResponse, status_code=status.HTTP_201_CREATED)
def create_station(
    station_data: StationCreate,
    db: Session = Depends(get_db),
) -> StationResponse:
    """Create a new station."""
    station = station_service.create_station(db, station_data)
    return StationResponse.model_validate(station)


@router.get("/", response_model=list[StationResponse])
def list_stations(
    active_only: bool = True,
    db: Session = Depends(get_db),
) -> list[StationResponse]:
    """List stations."""
    return [
        StationResponse.model_validate(s)
        for s in station_service.list_stations(db, active_only=active_only)
    ]


@router.get("/{station_id}", response_model=StationResponse)
def get_station(
    station_id: int,
    db: Session = Depends(get_db),
) -> StationResponse:
    """Get a station by ID."""
    return StationResponse.model_validate(station_service.get_station(db, station_id))
