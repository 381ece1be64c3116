"""
Pydantic schemas package.
"""

from finance_tracker.schemas.budget import (
    BudgetBase,
    BudgetCreate,
    BudgetResponse,
)
from finance_tracker.schemas.recurring import (
    RecurringState,
    RecurringPattern,
    RecurringStatusData,
)
from finance_tracker.schemas.transaction import (
    FinancialTransactionBase,
    FinancialTransactionCreate,
    FinancialTransactionUpdate,
    FinancialTransactionResponse,
    FinancialTransactionListResponse,
)
from finance_tracker.schemas.trends import (
    TrendsPeriod,
    MonthlyTotal,
    CategoryBreakdown,
    MerchantBreakdown,
    BudgetComparison,
    MonthlyDataPoint,
    MonthlyCategoryData,
    MonthlyMerchantData,
    TrendsData,
    CategoryTotal,
    UncategorizedRecord,
    MonthSnapshot,
)

__all__ = [
    "BudgetBase",
    "BudgetCreate",
    "BudgetResponse",
    "RecurringState",
    "RecurringPattern",
    "RecurringStatusData",
    "FinancialTransactionBase",
    "FinancialTransactionCreate",
    "FinancialTransactionUpdate",
    "FinancialTransactionResponse",
    "FinancialTransactionListResponse",
    "TrendsPeriod",
    "MonthlyTotal",
    "CategoryBreakdown",
    "MerchantBreakdown",
    "BudgetComparison",
    "MonthlyDataPoint",
    "MonthlyCategoryData",
    "MonthlyMerchantData",
    "TrendsData",
    "CategoryTotal",
    "UncategorizedRecord",
    "MonthSnapshot",
]
