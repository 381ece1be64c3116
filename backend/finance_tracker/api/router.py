"""
Main API router.
"""

from fastapi import APIRouter
from finance_tracker.api import budgets, financial_transactions

api_router = APIRouter()

api_router.include_router(financial_transactions.router)
api_router.include_router(budgets.router)
