"""Tests for the audit trail of shift and payment writes."""

from decimal import Decimal

from sqlalchemy import select, update

from fuelops.core.errors import ErrorCode
from fuelops.models.audit_log import AuditLog
from fuelops.models.enums import AuditAction, PaymentType, ShiftStatus, VarianceStatus
from fuelops.models.shift import Shift
from fuelops.models.shift_reconciliation import ShiftReconciliation
from fuelops.models.transaction import Transaction
from fuelops.schemas.station import TransactionCreate
from fuelops.services.audit import get_audit_trail
from fuelops.services.reconciliation import ReconciliationCalculator
from fuelops.services.shift_lifecycle import ShiftLifecycle


def _pay(db, shift_id: int, amount: str) -> None:
    shift = db.get(Shift, shift_id)
    db.add(
        Transaction(
            daily_record_id=shift.daily_record_id,
            shift_id=shift_id,
            payment_type=PaymentType.CASH,
            amount=Decimal(amount),
        )
    )
    db.commit()


def _actions(db, model: str, record_id: int) -> list[AuditAction]:
    return list(
        db.scalars(
            select(AuditLog.action)
            .where(AuditLog.model == model, AuditLog.record_id == record_id)
            .order_by(AuditLog.id)
        ).all()
    )


class TestShiftAudit:
    """Tests for audit entries written by the shift lifecycle."""

    def test_open_is_recorded(self, test_db, open_shift) -> None:
        """Test opening a shift records who created it."""
        [entry] = get_audit_trail(test_db, "Shift", open_shift)

        assert entry.action == AuditAction.CREATE
        assert entry.actor_id == 1
        assert entry.old_data is None
        assert entry.new_data["status"] == "open"

    def test_close_and_lock_are_recorded(
        self, test_db, lifecycle, open_shift, record_end_readings
    ) -> None:
        """Test close and lock each leave an entry with actor and before/after state."""
        record_end_readings(open_shift, [50, 30, 0, 20])
        _pay(test_db, open_shift, "3134")

        assert lifecycle.close_shift(open_shift, actor_id=7).success
        assert lifecycle.lock_shift(open_shift, actor_id=8).success

        locked, closed, _ = get_audit_trail(test_db, "Shift", open_shift)
        assert closed.action == AuditAction.CLOSE
        assert closed.actor_id == 7
        assert closed.old_data == {"status": "open"}
        assert closed.new_data["status"] == "closed"
        assert closed.new_data["variance_status"] == "green"
        assert Decimal(closed.new_data["variance"]) == Decimal("0")
        assert locked.action == AuditAction.LOCK
        assert locked.actor_id == 8
        assert locked.old_data == {"status": "closed"}
        assert locked.new_data == {"status": "locked"}

    def test_refused_lock_writes_nothing(self, test_db, lifecycle, open_shift) -> None:
        """Test a lock refused on an open shift leaves no entry."""
        result = lifecycle.lock_shift(open_shift, actor_id=8)

        assert result.error_code == ErrorCode.NOT_YET_CLOSED
        assert _actions(test_db, "Shift", open_shift) == [AuditAction.CREATE]

    def test_concurrent_close_writes_nothing(
        self, test_db, clock, open_shift, record_end_readings
    ) -> None:
        """Test a close that loses a race leaves no entry."""

        class RacingCalculator(ReconciliationCalculator):
            def calculate_reconciliation(self, shift_id):
                data = super().calculate_reconciliation(shift_id)
                self.db.execute(
                    update(Shift)
                    .where(Shift.id == shift_id)
                    .values(status=ShiftStatus.CLOSED)
                )
                self.db.commit()
                return data

        record_end_readings(open_shift, [50, 30, 0, 20])
        _pay(test_db, open_shift, "3134")
        lifecycle = ShiftLifecycle(
            test_db, clock=clock, calculator=RacingCalculator(test_db, clock=clock)
        )

        assert lifecycle.close_shift(open_shift, actor_id=7).error_code == ErrorCode.SHIFT_NOT_OPEN
        assert _actions(test_db, "Shift", open_shift) == [AuditAction.CREATE]

    def test_failed_snapshot_rolls_back_entry(
        self, test_db, lifecycle, open_shift, record_end_readings
    ) -> None:
        """Test the close entry is undone along with the close."""
        record_end_readings(open_shift, [50, 30, 0, 20])
        _pay(test_db, open_shift, "3134")
        zero = Decimal("0")
        test_db.add(
            ShiftReconciliation(
                shift_id=open_shift,
                expected_fuel_amount=zero,
                expected_other_amount=zero,
                total_expected=zero,
                cash_received=zero,
                credit_received=zero,
                transfer_received=zero,
                total_received=zero,
                variance=zero,
                variance_status=VarianceStatus.GREEN,
            )
        )
        test_db.commit()

        assert lifecycle.close_shift(open_shift, actor_id=7).error_code == ErrorCode.CLOSE_FAILED
        assert _actions(test_db, "Shift", open_shift) == [AuditAction.CREATE]


class TestTransactionAudit:
    """Tests for audit entries written by voids."""

    def test_void_is_recorded_once(self, test_db, transaction_service, open_shift) -> None:
        """Test a void leaves one entry and a repeated void adds none."""
        recorded = transaction_service.record_transaction(
            open_shift, TransactionCreate(payment_type=PaymentType.CASH, amount=Decimal("900"))
        )
        transaction_id = recorded.transaction.id

        assert transaction_service.void_transaction(transaction_id, actor_id=2).success
        assert transaction_service.void_transaction(transaction_id, actor_id=3).success

        [entry] = get_audit_trail(test_db, "Transaction", transaction_id)
        assert entry.action == AuditAction.VOID
        assert entry.actor_id == 2
        assert entry.old_data == {"is_voided": False}
        assert entry.new_data["is_voided"] is True
        assert Decimal(entry.new_data["amount"]) == Decimal("900")

    def test_recording_is_not_audited(self, test_db, transaction_service, open_shift) -> None:
        """Test only the void, not the payment itself, is audited."""
        recorded = transaction_service.record_transaction(
            open_shift, TransactionCreate(payment_type=PaymentType.CASH, amount=Decimal("10"))
        )

        assert get_audit_trail(test_db, "Transaction", recorded.transaction.id) == []


class TestAuditApi:
    """Tests for the audit trail endpoint."""

    def test_trail_for_shift(self, client, open_shift) -> None:
        """Test a shift's entries are listed with actor and action."""
        response = client.get("/api/audit/", params={"model": "Shift", "record_id": open_shift})

        assert response.status_code == 200
        [entry] = response.json()
        assert entry["action"] == "create"
        assert entry["actor_id"] == 1

    def test_unknown_model(self, client) -> None:
        """Test only audited models can be queried."""
        response = client.get("/api/audit/", params={"model": "Station", "record_id": 1})
        assert response.status_code == 422
