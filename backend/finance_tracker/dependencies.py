"""
FastAPI dependencies.
"""

from typing import Generator

from sqlalchemy.orm import Session

from finance_tracker.config import AnalyticsConfig
from finance_tracker.database import SessionLocal


def get_db() -> Generator[Session, None, None]:
    """
    Dependency for getting database sessions.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_analytics_config() -> AnalyticsConfig:
    """Analytics thresholds for the current request."""
    return AnalyticsConfig.from_settings()
