"""
Trends and reporting schemas.
"""

from pydantic import BaseModel
from typing import List, Optional
from datetime import date

from finance_tracker.models.budget import ExpenseType


class TrendsPeriod(BaseModel):
    year: int
    month: Optional[int] = None
    total_transactions: int
    total_spent: float
    total_income: float
    net_savings: float


class MonthlyTotal(BaseModel):
    month: str
    spent: float
    income: float
    net: float
    transaction_count: int


class CategoryBreakdown(BaseModel):
    category: str
    total: float
    transaction_count: int
    budget: float
    variance: Optional[float] = None
    monthly_avg: float


class MerchantBreakdown(BaseModel):
    merchant: str
    display_name: str
    total: float
    transaction_count: int
    categories: List[str]
    last_transaction: date


class BudgetComparison(BaseModel):
    """
    Actual vs budget for one budget row over the reported period.

    variance is actual minus budget. variance_percent is a percentage, not a
    ratio: variance / budget * 100, rounded to one decimal (-25.0 means 25%
    under budget). It is None when the budget is 0.
    """

    category: str
    expense_type: ExpenseType
    budget: float
    actual: float
    variance: float
    variance_percent: Optional[float] = None
    on_track: bool


class MonthlyDataPoint(BaseModel):
    month: str
    total: float
    transaction_count: int


class MonthlyCategoryData(BaseModel):
    category: str
    months: List[MonthlyDataPoint]


class MonthlyMerchantData(BaseModel):
    merchant: str
    months: List[MonthlyDataPoint]


class TrendsData(BaseModel):
    period: TrendsPeriod
    monthly_totals: List[MonthlyTotal]
    by_category: List[CategoryBreakdown]
    by_merchant: List[MerchantBreakdown]
    budget_comparison: List[BudgetComparison]
    monthly_by_category: List[MonthlyCategoryData]
    monthly_by_merchant: List[MonthlyMerchantData]


class CategoryTotal(BaseModel):
    category: str
    total: float


class UncategorizedRecord(BaseModel):
    id: Optional[int] = None
    plaid_name: Optional[str] = None
    amount: float


class MonthSnapshot(BaseModel):
    year: int
    month: int
    total: float
    all_categories: List[CategoryTotal]
    uncategorized_records: List[UncategorizedRecord]
