"""Shared test fixtures."""

import os

# Keep the app's own engine off disk during tests
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient
from datetime import date
from decimal import Decimal

from finance_tracker.config import AnalyticsConfig
from finance_tracker.database import Base
from finance_tracker.dependencies import get_db
from finance_tracker.main import app
from finance_tracker.models.transaction import FinancialTransaction
from finance_tracker.models.budget import Budget, ExpenseType


def make_transaction(
    transacted_at,
    amount,
    merchant_name="Netflix",
    category="Subscriptions",
    source="chase",
    **kwargs
):
    """Build an unsaved transaction for the pure service functions."""
    kwargs.setdefault("plaid_name", merchant_name.upper() if merchant_name else None)
    kwargs.setdefault("hidden", False)
    kwargs.setdefault("reviewed", True)
    return FinancialTransaction(
        transacted_at=transacted_at,
        amount=Decimal(str(amount)),
        merchant_name=merchant_name,
        category=category,
        source=source,
        **kwargs
    )


@pytest.fixture
def analytics_config():
    """Default thresholds, independent of environment settings."""
    return AnalyticsConfig(manual_sources=["cash", "zelle", "venmo", "bofa"])


@pytest.fixture(scope="function")
def db_session():
    """Create a fresh database for each test using in-memory SQLite."""
    # Use StaticPool to ensure all connections use the same in-memory database
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    Base.metadata.create_all(bind=engine)

    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()

    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture(scope="function")
def client(db_session):
    """Create a test client with database override."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def sample_transaction(db_session):
    """Create a sample transaction."""
    txn = FinancialTransaction(
        plaid_id="plaid-123",
        transacted_at=date(2024, 1, 15),
        plaid_name="WHOLE FOODS #1234",
        merchant_name="Whole Foods",
        category="Groceries",
        source="chase",
        amount=Decimal("50.00"),
        hidden=False,
        reviewed=False,
    )
    db_session.add(txn)
    db_session.commit()
    db_session.refresh(txn)
    return txn


@pytest.fixture
def sample_budget(db_session):
    """Create a sample monthly budget."""
    budget = Budget(
        name="Groceries",
        amount=Decimal("400.00"),
        expense_type=ExpenseType.expense,
        display_order=1,
    )
    db_session.add(budget)
    db_session.commit()
    db_session.refresh(budget)
    return budget


@pytest.fixture
def netflix_history(db_session):
    """Three months of a $15.99 subscription on the 5th."""
    rows = [
        make_transaction(date(2024, month, 5), "15.99")
        for month in (1, 2, 3)
    ]
    db_session.add_all(rows)
    db_session.commit()
    return rows
