"""Pydantic schemas for recurring transaction status."""

from pydantic import BaseModel
from typing import Optional, List
from datetime import date
from enum import Enum


class RecurringState(str, Enum):
    overdue = "overdue"
    due_soon = "due_soon"
    upcoming = "upcoming"


class RecurringPattern(BaseModel):
    """A merchant/source/category grouping that repeats every month."""
    merchant_key: str
    display_name: str
    plaid_name: Optional[str] = None
    merchant_name: Optional[str] = None
    typical_day: int
    typical_amount: float
    source: str
    category: str
    months_present: int
    last_occurrence: date
    is_income: bool
    manual_source: bool = False

    # Only set on missing patterns
    status: Optional[RecurringState] = None
    days_difference: Optional[int] = None


class RecurringStatusData(BaseModel):
    """Which recurring patterns have and haven't shown up in a month."""
    year: int
    month: int
    current_day: int
    missing: List[RecurringPattern]
    present: List[RecurringPattern]
