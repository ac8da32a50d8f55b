"""Enum definitions for stations, shifts and payments."""

from enum import Enum


class StationType(str, Enum):
    """Station classification."""

    FULL = "full"  # full-service fuel station
    SIMPLE = "simple"  # small outlet, no dispenser meters
    GAS = "gas"  # LPG station


class ShiftStatus(str, Enum):
    """Shift lifecycle states. OPEN -> CLOSED -> LOCKED."""

    OPEN = "open"
    CLOSED = "closed"
    LOCKED = "locked"


class VarianceStatus(str, Enum):
    """Reconciliation variance tier."""

    GREEN = "green"
    YELLOW = "yellow"
    RED = "red"


class AnomalySeverity(str, Enum):
    """Meter anomaly severity."""

    WARNING = "warning"
    CRITICAL = "critical"


class PaymentType(str, Enum):
    """How a transaction was paid."""

    CASH = "cash"
    CREDIT = "credit"
    BOX_TRUCK = "box_truck"  # institutional account, billed later
    OIL_TRUCK = "oil_truck"  # company tanker account, billed later
    TRANSFER = "transfer"
    CREDIT_CARD = "credit_card"


class ProductType(str, Enum):
    """Fuel product types carried in the price book."""

    GAS = "gas"
    DIESEL = "diesel"
    DIESEL_B7 = "diesel_b7"
    GASOHOL_95 = "gasohol_95"
    GASOHOL_91 = "gasohol_91"
    E20 = "e20"
    E85 = "e85"


class MeterReadingKind(str, Enum):
    """Which end of a shift a meter reading records."""

    START = "start"
    END = "end"


class AuditAction(str, Enum):
    """What an audit entry records."""

    CREATE = "create"
    CLOSE = "close"
    LOCK = "lock"
    VOID = "void"


# Payment buckets used by reconciliation
CASH_PAYMENT_TYPES = frozenset({PaymentType.CASH})
CREDIT_PAYMENT_TYPES = frozenset(
    {PaymentType.CREDIT, PaymentType.BOX_TRUCK, PaymentType.OIL_TRUCK}
)
TRANSFER_PAYMENT_TYPES = frozenset({PaymentType.TRANSFER, PaymentType.CREDIT_CARD})

COMPLETED_SHIFT_STATUSES = (ShiftStatus.CLOSED, ShiftStatus.LOCKED)
