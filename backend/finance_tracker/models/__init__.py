"""
Database models package.
"""

from finance_tracker.models.transaction import FinancialTransaction
from finance_tracker.models.budget import Budget, ExpenseType

__all__ = [
    "FinancialTransaction",
    "Budget",
    "ExpenseType",
]
