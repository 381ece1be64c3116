"""
Application configuration using Pydantic settings.
"""

from decimal import Decimal
from typing import List

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    # App
    app_name: str = "Finance Tracker"
    log_level: str = "INFO"

    # Database
    database_url: str = "sqlite:///./data/finance_tracker.sqlite"

    # Recurring detection
    recurring_amount_tolerance: Decimal = Decimal("0.10")  # +/- fraction of the median
    recurring_min_months: int = 3
    recurring_lookback_months: int = 12
    recurring_grace_days: int = 3

    # Sources whose transactions are entered by hand
    manual_sources: List[str] = ["zelle", "cash", "venmo", "bofa"]

    # Reporting
    uncategorized_label: str = "Uncategorized"

    # Server
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    frontend_url: str = "http://localhost:5173"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False
    )


# Global settings instance
settings = Settings()


class AnalyticsConfig(BaseModel):
    """Thresholds and labels used by the analytics services."""

    amount_tolerance: Decimal = Field(Decimal("0.10"), ge=0)
    min_months: int = Field(3, ge=1)
    lookback_months: int = Field(12, ge=1)
    grace_days: int = Field(3, ge=0)
    manual_sources: List[str] = []
    uncategorized_label: str = "Uncategorized"

    @classmethod
    def from_settings(cls, source: Settings = None) -> "AnalyticsConfig":
        source = source or settings
        return cls(
            amount_tolerance=source.recurring_amount_tolerance,
            min_months=source.recurring_min_months,
            lookback_months=source.recurring_lookback_months,
            grace_days=source.recurring_grace_days,
            manual_sources=[s.lower() for s in source.manual_sources],
            uncategorized_label=source.uncategorized_label,
        )
