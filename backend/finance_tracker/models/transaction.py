"""
Financial transaction database model.
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, Boolean, DateTime, Date, Numeric, JSON, Index
from finance_tracker.database import Base


class FinancialTransaction(Base):
    """A single ledger entry synced from a bank or entered by hand."""

    __tablename__ = "financial_transactions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    plaid_id = Column(String(255), nullable=True, index=True)
    transacted_at = Column(Date, nullable=True, index=True)
    plaid_name = Column(String(255), nullable=True)  # Name as reported by the source
    merchant_name = Column(String(255), nullable=True)  # Cleaned-up name
    category = Column(String(100), nullable=True)
    source = Column(String(100), nullable=True)
    amount = Column(Numeric(12, 2), nullable=False)  # Positive = expense, negative = income
    hidden = Column(Boolean, default=False, nullable=False)
    reviewed = Column(Boolean, default=False, nullable=False)
    amortized_months = Column(JSON, nullable=True)  # ["2024-01", "2024-02", ...]
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    __table_args__ = (
        Index("idx_financial_transactions_category", "category"),
        Index("idx_financial_transactions_merchant_name", "merchant_name"),
    )
