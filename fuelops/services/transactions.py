"""Payments and non-fuel product sales recorded against an open shift."""

from decimal import Decimal

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from fuelops.core.clock import Clock
from fuelops.core.database import atomic
from fuelops.core.errors import ErrorCode
from fuelops.models.daily_record import DailyRecord
from fuelops.models.enums import AuditAction
from fuelops.models.product import Product, ProductSale
from fuelops.models.shift import Shift
from fuelops.models.transaction import Transaction
from fuelops.schemas.station import (
    ProductSaleResult,
    TransactionCreate,
    TransactionResponse,
    TransactionResult,
)
from fuelops.services.audit import record_audit
from fuelops.services.inventory import InsufficientStockError, InventoryLedger
from fuelops.services.shift_lifecycle import ShiftLifecycle

logger = structlog.get_logger()


class TransactionService:
    """Shift-scoped writes for payments and product sales.

    Every write checks that the shift is still open first.
    """

    def __init__(
        self,
        db: Session,
        clock: Clock | None = None,
        lifecycle: ShiftLifecycle | None = None,
        ledger: InventoryLedger | None = None,
    ) -> None:
        self.db = db
        self.clock = clock or Clock()
        self.lifecycle = lifecycle or ShiftLifecycle(db, clock=self.clock)
        self.ledger = ledger or InventoryLedger(db, clock=self.clock)

    def record_transaction(
        self,
        shift_id: int,
        data: TransactionCreate,
        actor_id: int | None = None,
    ) -> TransactionResult:
        """Record a payment on the shift's day."""
        guard = self.lifecycle.check_shift_modifiable(shift_id)
        if not guard.can_modify:
            return TransactionResult.fail(guard.error_code, guard.error)

        shift = self.db.get(Shift, shift_id)
        transaction = Transaction(
            daily_record_id=shift.daily_record_id,
            shift_id=shift_id,
            payment_type=data.payment_type,
            amount=data.amount,
            liters=data.liters,
            license_plate=data.license_plate,
            created_at=self.clock.now(),
            recorded_by_id=actor_id,
        )
        try:
            with atomic(self.db):
                self.db.add(transaction)
        except SQLAlchemyError:
            logger.exception("transaction.record_failed", shift_id=shift_id)
            return TransactionResult.fail(ErrorCode.WRITE_FAILED, "Failed to record transaction")

        logger.info(
            "transaction.recorded",
            transaction_id=transaction.id,
            shift_id=shift_id,
            payment_type=data.payment_type.value,
            amount=str(data.amount),
        )
        return TransactionResult.ok(transaction=TransactionResponse.model_validate(transaction))

    def void_transaction(
        self,
        transaction_id: int,
        actor_id: int | None = None,
    ) -> TransactionResult:
        """Void a payment so it no longer counts toward reconciliation.

        Voiding twice is a no-op.
        """
        transaction = self.db.get(Transaction, transaction_id)
        if not transaction or transaction.deleted_at is not None:
            return TransactionResult.fail(
                ErrorCode.TRANSACTION_NOT_FOUND, "Transaction not found"
            )

        if transaction.shift_id is not None:
            guard = self.lifecycle.check_shift_modifiable(transaction.shift_id)
            if not guard.can_modify:
                return TransactionResult.fail(guard.error_code, guard.error)

        if transaction.is_voided:
            return TransactionResult.ok(transaction=TransactionResponse.model_validate(transaction))

        now = self.clock.now()
        try:
            with atomic(self.db):
                transaction.is_voided = True
                transaction.voided_at = now
                transaction.voided_by_id = actor_id
                record_audit(
                    self.db,
                    actor_id,
                    AuditAction.VOID,
                    "Transaction",
                    transaction_id,
                    old_data={"is_voided": False},
                    new_data={"is_voided": True, "amount": str(transaction.amount)},
                    at=now,
                )
        except SQLAlchemyError:
            logger.exception("transaction.void_failed", transaction_id=transaction_id)
            return TransactionResult.fail(ErrorCode.WRITE_FAILED, "Failed to void transaction")

        logger.info("transaction.voided", transaction_id=transaction_id, actor_id=actor_id)
        return TransactionResult.ok(transaction=TransactionResponse.model_validate(transaction))

    def sell_product(
        self,
        shift_id: int,
        product_id: int,
        quantity: Decimal,
        actor_id: int | None = None,
    ) -> ProductSaleResult:
        """Sell a product: take it out of stock and record the sale together."""
        guard = self.lifecycle.check_shift_modifiable(shift_id)
        if not guard.can_modify:
            return ProductSaleResult.fail(guard.error_code, guard.error)

        product = self.db.get(Product, product_id)
        if not product or not product.is_active:
            return ProductSaleResult.fail(ErrorCode.PRODUCT_NOT_FOUND, "Product not found")

        shift = self.db.get(Shift, shift_id)
        station_id = self.db.get(DailyRecord, shift.daily_record_id).station_id
        amount = (quantity * product.sale_price).quantize(Decimal("0.01"))

        sale = ProductSale(
            station_id=station_id,
            product_id=product_id,
            shift_id=shift_id,
            quantity=quantity,
            sale_price=amount,
            sold_at=self.clock.now(),
            sold_by_id=actor_id,
        )
        try:
            with atomic(self.db):
                remaining = self.ledger.apply_delta(
                    station_id, product_id, -quantity, create_missing=False
                )
                self.db.add(sale)
                self.db.flush()
        except InsufficientStockError as exc:
            return ProductSaleResult.fail(
                ErrorCode.INSUFFICIENT_STOCK, str(exc), remaining_stock=exc.current
            )
        except SQLAlchemyError:
            logger.exception("product_sale.failed", shift_id=shift_id, product_id=product_id)
            return ProductSaleResult.fail(ErrorCode.WRITE_FAILED, "Failed to record sale")

        logger.info(
            "product_sale.recorded",
            sale_id=sale.id,
            shift_id=shift_id,
            product_id=product_id,
            quantity=str(quantity),
            amount=str(amount),
        )
        return ProductSaleResult.ok(sale_id=sale.id, amount=amount, remaining_stock=remaining)
