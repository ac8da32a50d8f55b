"""Shared fixtures: in-memory database, pinned clock, stations and shifts."""

from datetime import UTC, date, datetime
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from fuelops.api.deps import get_clock
from fuelops.core.clock import FixedClock
from fuelops.core.database import Base, get_db
from fuelops.main import app
from fuelops.models.enums import MeterReadingKind, StationType
from fuelops.models.shift import Shift
from fuelops.models.station import Station
from fuelops.services.inventory import InventoryLedger
from fuelops.services.meters import MeterService
from fuelops.services.shift_lifecycle import ShiftLifecycle
from fuelops.services.transactions import TransactionService

# 10:00 in Bangkok, so the station-local date is 2025-06-10
NOW = datetime(2025, 6, 10, 3, 0, tzinfo=UTC)
SHIFT_DATE = date(2025, 6, 10)


@pytest.fixture
def test_db():
    """Create an in-memory test database."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    db = testing_session_local()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def clock():
    """Clock pinned to NOW."""
    return FixedClock(NOW)


@pytest.fixture
def client(test_db, clock):
    """Create a test client with database and clock overrides."""

    def override_get_db():
        try:
            yield test_db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_station(test_db):
    """Factory for stations."""

    def _make(
        name: str = "Highway 1",
        station_type: StationType = StationType.FULL,
        nozzle_count: int | None = 4,
    ) -> Station:
        station = Station(name=name, station_type=station_type, nozzle_count=nozzle_count)
        test_db.add(station)
        test_db.commit()
        test_db.refresh(station)
        return station

    return _make


@pytest.fixture
def station(make_station):
    """A full-service station with four nozzles."""
    return make_station()


@pytest.fixture
def lifecycle(test_db, clock):
    return ShiftLifecycle(test_db, clock=clock)


@pytest.fixture
def meter_service(test_db, clock, lifecycle):
    return MeterService(test_db, clock=clock, lifecycle=lifecycle)


@pytest.fixture
def ledger(test_db, clock):
    return InventoryLedger(test_db, clock=clock)


@pytest.fixture
def transaction_service(test_db, clock, lifecycle, ledger):
    return TransactionService(test_db, clock=clock, lifecycle=lifecycle, ledger=ledger)


@pytest.fixture
def open_shift(test_db, station, lifecycle):
    """Shift 1 of SHIFT_DATE, four meters at zero, fuel priced at 31.34."""
    result = lifecycle.open_shift(station.id, actor_id=1, on_date=SHIFT_DATE)
    assert result.success, result.error
    shift = test_db.get(Shift, result.shift_id)
    shift.daily_record.retail_price = Decimal("31.34")
    test_db.commit()
    return result.shift_id


@pytest.fixture
def record_end_readings(meter_service):
    """Record end readings for nozzles 1..n of a shift."""

    def _record(shift_id: int, ends: list) -> None:
        for nozzle_number, end in enumerate(ends, start=1):
            result = meter_service.record_reading(
                shift_id,
                nozzle_number,
                MeterReadingKind.END,
                Decimal(str(end)),
                actor_id=1,
            )
            assert result.success, result.error

    return _record
