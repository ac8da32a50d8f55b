"""Tests for shift reconciliation."""

from datetime import timedelta
from decimal import Decimal

import pytest

from fuelops.core.config import ReconciliationThresholds
from fuelops.core.errors import ErrorCode, NotFoundError
from fuelops.models.daily_record import DailyRecord
from fuelops.models.enums import PaymentType, StationType, VarianceStatus
from fuelops.models.product import Product, ProductSale
from fuelops.models.shift import Shift
from fuelops.models.transaction import Transaction
from fuelops.services.reconciliation import (
    ReconciliationCalculator,
    classify_variance,
    resolve_price_per_unit,
)

THRESHOLDS = ReconciliationThresholds(yellow=Decimal("200"), red=Decimal("500"))


@pytest.fixture
def calculator(test_db, clock):
    return ReconciliationCalculator(test_db, thresholds=THRESHOLDS, clock=clock)


def _add_transaction(db, shift_id: int, payment_type: PaymentType, amount: str, **extra):
    shift = db.get(Shift, shift_id)
    transaction = Transaction(
        daily_record_id=shift.daily_record_id,
        shift_id=shift_id,
        payment_type=payment_type,
        amount=Decimal(amount),
        **extra,
    )
    db.add(transaction)
    db.commit()
    return transaction


class TestClassifyVariance:
    """Unit tests for the three-tier variance classification."""

    def test_boundaries(self) -> None:
        """Test that both thresholds are inclusive upper bounds."""
        assert classify_variance(Decimal("0"), THRESHOLDS) == VarianceStatus.GREEN
        assert classify_variance(Decimal("200"), THRESHOLDS) == VarianceStatus.GREEN
        assert classify_variance(Decimal("200.01"), THRESHOLDS) == VarianceStatus.YELLOW
        assert classify_variance(Decimal("500"), THRESHOLDS) == VarianceStatus.YELLOW
        assert classify_variance(Decimal("500.01"), THRESHOLDS) == VarianceStatus.RED

    def test_sign_is_ignored(self) -> None:
        """Test that overpayment classifies like shortfall."""
        assert classify_variance(Decimal("-350"), THRESHOLDS) == VarianceStatus.YELLOW
        assert classify_variance(Decimal("-600"), THRESHOLDS) == VarianceStatus.RED

    def test_custom_thresholds(self) -> None:
        """Test that tiers follow the injected thresholds."""
        tight = ReconciliationThresholds(yellow=Decimal("10"), red=Decimal("20"))
        assert classify_variance(Decimal("15"), tight) == VarianceStatus.YELLOW


class TestResolvePricePerUnit:
    """Unit tests for the day price with station fallbacks."""

    def test_day_price_wins(self, make_station) -> None:
        """Test that the day's retail price is used."""
        station = make_station()
        record = DailyRecord(retail_price=Decimal("31.34"))
        assert resolve_price_per_unit(record, station) == Decimal("31.34")

    def test_fallback_for_fuel_station(self, make_station) -> None:
        """Test the retail fallback when the day has no price."""
        station = make_station()
        assert resolve_price_per_unit(DailyRecord(), station) == Decimal("30.50")

    def test_gas_station_prefers_gas_price(self, make_station) -> None:
        """Test that LPG stations use the gas price first."""
        station = make_station(station_type=StationType.GAS)
        record = DailyRecord(gas_price=Decimal("16.09"), retail_price=Decimal("31.34"))
        assert resolve_price_per_unit(record, station) == Decimal("16.09")

    def test_fallback_for_gas_station(self, make_station) -> None:
        """Test the gas fallback when the day has no price."""
        station = make_station(station_type=StationType.GAS)
        assert resolve_price_per_unit(DailyRecord(), station) == Decimal("15.50")


class TestCalculateReconciliation:
    """Tests for expected vs received amounts of a shift."""

    def test_expected_fuel_amount(self, calculator, open_shift, record_end_readings) -> None:
        """Test metered litres times the day price."""
        record_end_readings(open_shift, [50, 30, 0, 20])

        data = calculator.calculate_reconciliation(open_shift)

        assert data.total_sold_qty == Decimal("100")
        assert data.price_per_unit == Decimal("31.34")
        assert data.expected_fuel_amount == Decimal("3134.00")
        assert data.total_expected == Decimal("3134.00")

    def test_payment_buckets(self, test_db, calculator, open_shift) -> None:
        """Test that payment types land in their cash, credit and transfer buckets."""
        _add_transaction(test_db, open_shift, PaymentType.CASH, "100")
        _add_transaction(test_db, open_shift, PaymentType.CREDIT, "50")
        _add_transaction(test_db, open_shift, PaymentType.BOX_TRUCK, "20")
        _add_transaction(test_db, open_shift, PaymentType.OIL_TRUCK, "5")
        _add_transaction(test_db, open_shift, PaymentType.TRANSFER, "10")
        _add_transaction(test_db, open_shift, PaymentType.CREDIT_CARD, "5")

        data = calculator.calculate_reconciliation(open_shift)

        assert data.cash_received == Decimal("100.00")
        assert data.credit_received == Decimal("75.00")
        assert data.transfer_received == Decimal("15.00")
        assert data.total_received == Decimal("190.00")

    def test_voided_and_deleted_are_excluded(
        self, test_db, clock, calculator, open_shift
    ) -> None:
        """Test that voided and soft-deleted payments do not count."""
        _add_transaction(test_db, open_shift, PaymentType.CASH, "100")
        _add_transaction(test_db, open_shift, PaymentType.CASH, "999", is_voided=True)
        _add_transaction(test_db, open_shift, PaymentType.CASH, "500", deleted_at=clock.now())

        data = calculator.calculate_reconciliation(open_shift)

        assert data.cash_received == Decimal("100.00")

    def test_variance_and_status(
        self, test_db, calculator, open_shift, record_end_readings
    ) -> None:
        """Test variance is expected minus received."""
        record_end_readings(open_shift, [50, 30, 0, 20])
        _add_transaction(test_db, open_shift, PaymentType.CASH, "3100")

        data = calculator.calculate_reconciliation(open_shift)

        assert data.variance == Decimal("34.00")
        assert data.variance_status == VarianceStatus.GREEN

    def test_product_sales_within_shift_window(
        self, test_db, clock, calculator, station, open_shift
    ) -> None:
        """Test that only product sales since the shift opened count."""
        now = clock.now()
        product = Product(name="Engine oil 1L", sale_price=Decimal("150.00"))
        test_db.add(product)
        test_db.commit()
        for sold_at, amount in [
            (now - timedelta(hours=1), "999.00"),
            (now + timedelta(minutes=30), "150.00"),
            (now + timedelta(hours=1), "300.00"),
        ]:
            test_db.add(
                ProductSale(
                    station_id=station.id,
                    product_id=product.id,
                    quantity=Decimal("1"),
                    sale_price=Decimal(amount),
                    sold_at=sold_at,
                )
            )
        test_db.commit()
        clock.advance(hours=2)

        data = calculator.calculate_reconciliation(open_shift)

        assert data.expected_other_amount == Decimal("450.00")

    def test_open_shift_window_ends_now(
        self, test_db, clock, calculator, station, open_shift
    ) -> None:
        """Test that a sale after the current instant is not counted yet."""
        now = clock.now()
        product = Product(name="Water", sale_price=Decimal("10.00"))
        test_db.add(product)
        test_db.commit()
        test_db.add(
            ProductSale(
                station_id=station.id,
                product_id=product.id,
                quantity=Decimal("1"),
                sale_price=Decimal("10.00"),
                sold_at=now + timedelta(hours=3),
            )
        )
        test_db.commit()

        data = calculator.calculate_reconciliation(open_shift)

        assert data.expected_other_amount == Decimal("0")

    def test_missing_shift(self, calculator) -> None:
        """Test that an unknown shift raises a not-found error."""
        with pytest.raises(NotFoundError) as exc_info:
            calculator.calculate_reconciliation(9999)
        assert exc_info.value.code == ErrorCode.SHIFT_NOT_FOUND

    def test_is_read_only(self, test_db, calculator, open_shift) -> None:
        """Test that reconciling does not change the shift."""
        calculator.calculate_reconciliation(open_shift)
        test_db.expire_all()
        assert test_db.get(Shift, open_shift).status == "open"
