"""
Database engine and session factory.
"""

from pathlib import Path
from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import declarative_base, sessionmaker

from finance_tracker.config import settings


def _connect_args(database_url: str) -> dict:
    url = make_url(database_url)
    if not url.drivername.startswith("sqlite"):
        return {}
    # Make sure the directory of an on-disk SQLite file exists
    if url.database and url.database != ":memory:":
        Path(url.database).parent.mkdir(parents=True, exist_ok=True)
    return {"check_same_thread": False}


engine = create_engine(settings.database_url, connect_args=_connect_args(settings.database_url))
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def init_db() -> None:
    """Create all tables that don't exist yet."""
    # Import models so they register on Base.metadata
    import finance_tracker.models  # noqa: F401

    Base.metadata.create_all(bind=engine)
