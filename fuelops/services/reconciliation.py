"""Shift reconciliation: metered revenue vs payments received."""

from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from fuelops.core.clock import Clock
from fuelops.core.config import ReconciliationThresholds, Settings, settings
from fuelops.models.daily_record import DailyRecord
from fuelops.models.enums import (
    CASH_PAYMENT_TYPES,
    CREDIT_PAYMENT_TYPES,
    TRANSFER_PAYMENT_TYPES,
    PaymentType,
    StationType,
    VarianceStatus,
)
from fuelops.models.product import ProductSale
from fuelops.models.station import Station
from fuelops.models.transaction import Transaction
from fuelops.schemas.reconciliation import ReconciliationData
from fuelops.services.shift_context import ShiftContext, load_shift_context

_CENTS = Decimal("0.01")


def classify_variance(variance: Decimal, thresholds: ReconciliationThresholds) -> VarianceStatus:
    """Three-tier classification of the absolute variance."""
    magnitude = abs(variance)
    if magnitude <= thresholds.yellow:
        return VarianceStatus.GREEN
    if magnitude <= thresholds.red:
        return VarianceStatus.YELLOW
    return VarianceStatus.RED


def resolve_price_per_unit(
    daily_record: DailyRecord,
    station: Station,
    config: Settings = settings,
) -> Decimal:
    """Day's configured fuel price, else the station-type fallback."""
    if station.station_type == StationType.GAS:
        return daily_record.gas_price or daily_record.retail_price or config.FALLBACK_GAS_PRICE
    return daily_record.retail_price or config.FALLBACK_RETAIL_PRICE


class ReconciliationCalculator:
    """Computes expected vs received amounts for a shift. Read-only."""

    def __init__(
        self,
        db: Session,
        thresholds: ReconciliationThresholds | None = None,
        clock: Clock | None = None,
    ) -> None:
        self.db = db
        self.thresholds = thresholds or ReconciliationThresholds.from_settings(settings)
        self.clock = clock or Clock()

    def calculate_reconciliation(self, shift_id: int) -> ReconciliationData:
        """Reconcile a shift as of now.

        Raises:
            NotFoundError: If the shift does not exist
            ShiftContextError: If its daily record or station is missing
        """
        context = load_shift_context(self.db, shift_id)

        total_sold_qty = sum(
            (m.sold_qty for m in context.shift.meters if m.sold_qty is not None),
            Decimal("0"),
        )
        price_per_unit = resolve_price_per_unit(context.daily_record, context.station)
        expected_fuel = (total_sold_qty * price_per_unit).quantize(_CENTS)
        expected_other = self._product_sales_total(context).quantize(_CENTS)
        total_expected = expected_fuel + expected_other

        cash, credit, transfer = self._received_by_bucket(context.daily_record.id)
        total_received = cash + credit + transfer

        variance = total_expected - total_received
        return ReconciliationData(
            expected_fuel_amount=expected_fuel,
            expected_other_amount=expected_other,
            total_expected=total_expected,
            cash_received=cash,
            credit_received=credit,
            transfer_received=transfer,
            total_received=total_received,
            variance=variance,
            variance_status=classify_variance(variance, self.thresholds),
            total_sold_qty=total_sold_qty,
            price_per_unit=price_per_unit,
        )

    def _product_sales_total(self, context: ShiftContext) -> Decimal:
        """Non-fuel sales at the station between shift open and close (or now)."""
        window_end = context.shift.closed_at or self.clock.now()
        amounts = self.db.scalars(
            select(ProductSale.sale_price).where(
                ProductSale.station_id == context.station.id,
                ProductSale.sold_at >= context.shift.created_at,
                ProductSale.sold_at <= window_end,
            )
        ).all()
        return sum(amounts, Decimal("0"))

    def _received_by_bucket(self, daily_record_id: int) -> tuple[Decimal, Decimal, Decimal]:
        """Cash-like, credit-like and transfer-like totals of the day's live transactions."""
        rows = self.db.execute(
            select(Transaction.payment_type, Transaction.amount).where(
                Transaction.daily_record_id == daily_record_id,
                Transaction.is_voided.is_(False),
                Transaction.deleted_at.is_(None),
            )
        ).all()

        cash = credit = transfer = Decimal("0")
        for raw_type, amount in rows:
            payment_type = PaymentType(raw_type)
            if payment_type in CASH_PAYMENT_TYPES:
                cash += amount
            elif payment_type in CREDIT_PAYMENT_TYPES:
                credit += amount
            elif payment_type in TRANSFER_PAYMENT_TYPES:
                transfer += amount
        return cash.quantize(_CENTS), credit.quantize(_CENTS), transfer.quantize(_CENTS)
