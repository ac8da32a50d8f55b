"""Tests for meter readings and payments recorded against a shift."""

from decimal import Decimal

from sqlalchemy import select

from fuelops.core.errors import ErrorCode
from fuelops.models.enums import MeterReadingKind, PaymentType
from fuelops.models.meter_reading import MeterReading
from fuelops.schemas.station import TransactionCreate
from fuelops.services.reconciliation import ReconciliationCalculator


def _meter(db, shift_id: int, nozzle_number: int) -> MeterReading:
    return db.scalars(
        select(MeterReading).where(
            MeterReading.shift_id == shift_id,
            MeterReading.nozzle_number == nozzle_number,
        )
    ).one()


class TestRecordReading:
    """Tests for MeterService.record_reading."""

    def test_end_reading_computes_sold(self, test_db, meter_service, open_shift) -> None:
        """Test an end reading sets the sold quantity."""
        result = meter_service.record_reading(
            open_shift, 1, MeterReadingKind.END, Decimal("1250.5"), actor_id=3
        )

        assert result.success
        assert result.meter.sold_qty == Decimal("1250.5")
        meter = _meter(test_db, open_shift, 1)
        assert meter.end_reading == Decimal("1250.5")
        assert meter.captured_by_id == 3

    def test_start_then_end(self, meter_service, open_shift) -> None:
        """Test a corrected start reading feeds the sold quantity."""
        meter_service.record_reading(open_shift, 2, MeterReadingKind.START, Decimal("1000"))

        result = meter_service.record_reading(open_shift, 2, MeterReadingKind.END, Decimal("1080"))

        assert result.meter.start_reading == Decimal("1000")
        assert result.meter.sold_qty == Decimal("80")

    def test_start_creates_missing_row(self, test_db, meter_service, open_shift) -> None:
        """Test a start reading on a new nozzle creates its row."""
        result = meter_service.record_reading(open_shift, 5, MeterReadingKind.START, Decimal("42"))

        assert result.success
        assert _meter(test_db, open_shift, 5).start_reading == Decimal("42")

    def test_end_without_row(self, meter_service, open_shift) -> None:
        """Test an end reading needs a start row."""
        result = meter_service.record_reading(open_shift, 5, MeterReadingKind.END, Decimal("42"))
        assert result.error_code == ErrorCode.METER_NOT_FOUND

    def test_end_before_start(self, test_db, meter_service, open_shift) -> None:
        """Test an end reading below the start is rejected and not saved."""
        meter_service.record_reading(open_shift, 1, MeterReadingKind.START, Decimal("100"))

        result = meter_service.record_reading(open_shift, 1, MeterReadingKind.END, Decimal("90"))

        assert result.error_code == ErrorCode.END_BEFORE_START
        assert _meter(test_db, open_shift, 1).end_reading is None

    def test_negative_start(self, meter_service, open_shift) -> None:
        """Test a negative start reading is rejected."""
        result = meter_service.record_reading(open_shift, 1, MeterReadingKind.START, Decimal("-1"))
        assert result.error_code == ErrorCode.NEGATIVE_START

    def test_photo_is_kept(self, meter_service, open_shift) -> None:
        """Test the photo lands on the side that was recorded."""
        result = meter_service.record_reading(
            open_shift,
            1,
            MeterReadingKind.END,
            Decimal("10"),
            photo_url="https://photos.example/end-1.jpg",
        )

        assert result.meter.end_photo == "https://photos.example/end-1.jpg"
        assert result.meter.start_photo is None

    def test_closed_shift_rejects_readings(
        self, lifecycle, meter_service, open_shift, record_end_readings
    ) -> None:
        """Test readings cannot change after close."""
        record_end_readings(open_shift, [10, 10, 10, 10])
        assert lifecycle.close_shift(open_shift, actor_id=1, variance_note="no cash").success

        result = meter_service.record_reading(open_shift, 1, MeterReadingKind.END, Decimal("11"))

        assert result.error_code == ErrorCode.CLOSED

    def test_unknown_shift(self, meter_service) -> None:
        """Test a reading on a missing shift."""
        result = meter_service.record_reading(404, 1, MeterReadingKind.START, Decimal("1"))
        assert result.error_code == ErrorCode.SHIFT_NOT_FOUND


class TestTransactions:
    """Tests for recording and voiding payments."""

    def test_record(self, transaction_service, open_shift) -> None:
        """Test a payment is stored on the shift and its day."""
        result = transaction_service.record_transaction(
            open_shift,
            TransactionCreate(payment_type=PaymentType.CASH, amount=Decimal("500")),
            actor_id=2,
        )

        assert result.success
        assert result.transaction.shift_id == open_shift
        assert result.transaction.amount == Decimal("500")
        assert not result.transaction.is_voided

    def test_void_excludes_from_reconciliation(
        self, test_db, clock, transaction_service, open_shift
    ) -> None:
        """Test a voided payment no longer counts as received."""
        kept = transaction_service.record_transaction(
            open_shift, TransactionCreate(payment_type=PaymentType.CASH, amount=Decimal("100"))
        )
        voided = transaction_service.record_transaction(
            open_shift, TransactionCreate(payment_type=PaymentType.CASH, amount=Decimal("900"))
        )
        assert kept.success

        result = transaction_service.void_transaction(voided.transaction.id, actor_id=2)

        assert result.success
        assert result.transaction.is_voided
        data = ReconciliationCalculator(test_db, clock=clock).calculate_reconciliation(open_shift)
        assert data.cash_received == Decimal("100.00")

    def test_void_twice(self, transaction_service, open_shift) -> None:
        """Test voiding an already voided payment is a no-op."""
        recorded = transaction_service.record_transaction(
            open_shift, TransactionCreate(payment_type=PaymentType.CREDIT, amount=Decimal("50"))
        )
        transaction_service.void_transaction(recorded.transaction.id)

        result = transaction_service.void_transaction(recorded.transaction.id)

        assert result.success
        assert result.transaction.is_voided

    def test_void_missing(self, transaction_service) -> None:
        """Test voiding an unknown payment."""
        result = transaction_service.void_transaction(404)
        assert result.error_code == ErrorCode.TRANSACTION_NOT_FOUND

    def test_locked_shift_blocks_writes(
        self, lifecycle, transaction_service, open_shift, record_end_readings
    ) -> None:
        """Test payments and voids are refused once the shift is locked."""
        recorded = transaction_service.record_transaction(
            open_shift, TransactionCreate(payment_type=PaymentType.CASH, amount=Decimal("10"))
        )
        record_end_readings(open_shift, [1, 0, 0, 0])
        assert lifecycle.close_shift(open_shift, actor_id=1, variance_note="ok").success
        assert lifecycle.lock_shift(open_shift, actor_id=9).success

        record = transaction_service.record_transaction(
            open_shift, TransactionCreate(payment_type=PaymentType.CASH, amount=Decimal("10"))
        )
        void = transaction_service.void_transaction(recorded.transaction.id)

        assert record.error_code == ErrorCode.LOCKED
        assert void.error_code == ErrorCode.LOCKED
