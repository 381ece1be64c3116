"""
Budget Pydantic schemas for API validation.
"""

from pydantic import BaseModel, Field
from datetime import date
from decimal import Decimal
from typing import Optional

from finance_tracker.models.budget import ExpenseType


class BudgetBase(BaseModel):
    """Base budget schema."""
    name: str = Field(..., min_length=1, max_length=100)
    amount: Decimal = Field(..., ge=0)
    expense_type: ExpenseType = ExpenseType.expense
    display_order: int = 0
    valid_starting_at: Optional[date] = None


class BudgetCreate(BudgetBase):
    """Schema for creating a budget."""
    pass


class BudgetResponse(BaseModel):
    """Schema for budget response."""
    id: int
    name: str
    amount: float
    expense_type: ExpenseType
    display_order: int
    valid_starting_at: Optional[date]

    class Config:
        from_attributes = True
