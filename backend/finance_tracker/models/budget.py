"""
Budget database model.
"""

import enum
from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, Date, Numeric, Enum
from finance_tracker.database import Base


class ExpenseType(str, enum.Enum):
    """Whether a budget caps spending or sets an income target."""
    expense = "expense"
    income = "income"


class Budget(Base):
    """Monthly budget for a category."""

    __tablename__ = "budgets"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False, index=True)  # Matches transaction category
    amount = Column(Numeric(12, 2), nullable=False)
    expense_type = Column(Enum(ExpenseType), nullable=False, default=ExpenseType.expense)
    display_order = Column(Integer, default=0, nullable=False)
    valid_starting_at = Column(Date, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
