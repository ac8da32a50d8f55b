"""Database models."""

from fuelops.models.audit_log import AuditLog
from fuelops.models.daily_record import DailyRecord
from fuelops.models.meter_anomaly import MeterAnomaly
from fuelops.models.meter_reading import MeterReading
from fuelops.models.price_book import PriceBookEntry
from fuelops.models.product import Product, ProductInventory, ProductSale
from fuelops.models.shift import Shift
from fuelops.models.shift_reconciliation import ShiftReconciliation
from fuelops.models.station import Station
from fuelops.models.transaction import Transaction

__all__ = [
    "AuditLog",
    "DailyRecord",
    "MeterAnomaly",
    "MeterReading",
    "PriceBookEntry",
    "Product",
    "ProductInventory",
    "ProductSale",
    "Shift",
    "ShiftReconciliation",
    "Station",
    "Transaction",
]
