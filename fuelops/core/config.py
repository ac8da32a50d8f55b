"""Application configuration settings."""

import os
from decimal import Decimal

from pydantic import BaseModel
from pydantic_settings import BaseSettings, SettingsConfigDict


def _get_default_database_url() -> str:
    """Get the default database URL, using Fly Volume path if available."""
    if os.path.isdir("/data"):
        return "sqlite:////data/fuelops.db"
    return "sqlite:///./fuelops.db"


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
    )

    PROJECT_NAME: str = "FuelOps"
    VERSION: str = "0.1.0"
    DEBUG: bool = True
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # Database - defaults to Fly Volume path if /data exists
    DATABASE_URL: str = _get_default_database_url()

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False

    # Station-local calendar (daily records are keyed by local date)
    STATION_TIMEZONE: str = "Asia/Bangkok"

    # Reconciliation variance tiers, in currency units
    VARIANCE_YELLOW_THRESHOLD: Decimal = Decimal("200")
    VARIANCE_RED_THRESHOLD: Decimal = Decimal("500")

    # Meter anomaly detection, in percent deviation from the rolling average
    ANOMALY_WARNING_PERCENT: Decimal = Decimal("50")
    ANOMALY_CRITICAL_PERCENT: Decimal = Decimal("100")
    ANOMALY_WINDOW_DAYS: int = 7
    PENDING_ANOMALY_LIMIT: int = 50

    # Price per unit used when a daily record carries no price
    FALLBACK_GAS_PRICE: Decimal = Decimal("15.50")
    FALLBACK_RETAIL_PRICE: Decimal = Decimal("30.50")

    # Nozzles expected on metered stations without their own count
    DEFAULT_NOZZLE_COUNT: int = 4

    DEFAULT_STOCK_ALERT_LEVEL: Decimal = Decimal("10")


class ReconciliationThresholds(BaseModel):
    """Variance tiers: |variance| <= yellow is GREEN, <= red is YELLOW, else RED."""

    yellow: Decimal
    red: Decimal

    @classmethod
    def from_settings(cls, source: Settings) -> "ReconciliationThresholds":
        return cls(
            yellow=source.VARIANCE_YELLOW_THRESHOLD,
            red=source.VARIANCE_RED_THRESHOLD,
        )


class AnomalyThresholds(BaseModel):
    """Deviation limits for sold quantity against the rolling average."""

    warning_percent: Decimal
    critical_percent: Decimal
    window_days: int

    @classmethod
    def from_settings(cls, source: Settings) -> "AnomalyThresholds":
        return cls(
            warning_percent=source.ANOMALY_WARNING_PERCENT,
            critical_percent=source.ANOMALY_CRITICAL_PERCENT,
            window_days=source.ANOMALY_WINDOW_DAYS,
        )


settings = Settings()
