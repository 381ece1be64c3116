"""
Financial transaction schemas.
"""

from pydantic import BaseModel, field_validator
from typing import List, Optional
from datetime import date, datetime
from decimal import Decimal


class FinancialTransactionBase(BaseModel):
    plaid_name: Optional[str] = None
    merchant_name: Optional[str] = None
    category: Optional[str] = None
    source: Optional[str] = None
    amount: Decimal
    hidden: bool = False
    amortized_months: Optional[List[str]] = None


class FinancialTransactionCreate(FinancialTransactionBase):
    plaid_id: Optional[str] = None
    transacted_at: Optional[str] = None  # Parsed leniently, falls back to today


class FinancialTransactionUpdate(BaseModel):
    merchant_name: Optional[str] = None
    category: Optional[str] = None
    source: Optional[str] = None
    amount: Optional[Decimal] = None
    transacted_at: Optional[str] = None
    hidden: Optional[bool] = None
    amortized_months: Optional[List[str]] = None

    @field_validator('amount', 'hidden')
    @classmethod
    def reject_null(cls, v, info):
        """These columns are NOT NULL; they may be omitted but not cleared."""
        if v is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return v


class FinancialTransactionResponse(BaseModel):
    id: int
    plaid_id: Optional[str]
    transacted_at: Optional[date]
    plaid_name: Optional[str]
    merchant_name: Optional[str]
    category: Optional[str]
    source: Optional[str]
    amount: float
    hidden: bool
    reviewed: bool
    amortized_months: Optional[List[str]]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class FinancialTransactionListResponse(BaseModel):
    results: List[FinancialTransactionResponse]
