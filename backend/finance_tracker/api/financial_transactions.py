"""
Financial transaction API endpoints.
"""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from sqlalchemy import extract, or_
from typing import Optional
from datetime import date

from finance_tracker.config import AnalyticsConfig
from finance_tracker.dependencies import get_db, get_analytics_config
from finance_tracker.models.budget import Budget
from finance_tracker.models.transaction import FinancialTransaction
from finance_tracker.schemas.recurring import RecurringStatusData
from finance_tracker.schemas.transaction import (
    FinancialTransactionCreate,
    FinancialTransactionListResponse,
    FinancialTransactionResponse,
    FinancialTransactionUpdate,
)
from finance_tracker.schemas.trends import MonthSnapshot, TrendsData
from finance_tracker.services import prediction_service, recurring_service, trends_service
from finance_tracker.services.ledger import parse_transacted_at

router = APIRouter(prefix="/financial_transactions", tags=["financial_transactions"])


@router.get("", response_model=FinancialTransactionListResponse)
def list_transactions(
    year: Optional[int] = Query(None, ge=1, le=9999),
    month: Optional[int] = Query(None, ge=1, le=12),
    query: Optional[str] = None,
    show_hidden: bool = True,
    db: Session = Depends(get_db)
):
    """List transactions, newest first, filtered by month and search term"""
    db_query = db.query(FinancialTransaction)

    if year:
        db_query = db_query.filter(extract("year", FinancialTransaction.transacted_at) == year)
    if month:
        db_query = db_query.filter(extract("month", FinancialTransaction.transacted_at) == month)
    if not show_hidden:
        db_query = db_query.filter(FinancialTransaction.hidden == False)
    if query:
        search_term = f"%{query}%"
        db_query = db_query.filter(
            or_(
                FinancialTransaction.category.ilike(search_term),
                FinancialTransaction.merchant_name.ilike(search_term),
                FinancialTransaction.plaid_name.ilike(search_term),
            )
        )

    results = db_query.order_by(
        FinancialTransaction.transacted_at.desc(),
        FinancialTransaction.id.desc()
    ).all()

    return FinancialTransactionListResponse(
        results=[FinancialTransactionResponse.model_validate(t) for t in results]
    )


@router.post("", response_model=FinancialTransactionResponse)
def create_transaction(
    data: FinancialTransactionCreate,
    db: Session = Depends(get_db)
):
    """Record a transaction by hand. Unreadable dates fall back to today."""
    transaction = FinancialTransaction(
        plaid_id=data.plaid_id,
        plaid_name=data.plaid_name or data.merchant_name,
        merchant_name=data.merchant_name,
        category=data.category,
        source=data.source,
        amount=data.amount,
        transacted_at=parse_transacted_at(data.transacted_at) or date.today(),
        hidden=data.hidden,
        reviewed=True,
        amortized_months=data.amortized_months,
    )
    db.add(transaction)
    db.commit()
    db.refresh(transaction)

    return FinancialTransactionResponse.model_validate(transaction)


@router.get("/recurring_status", response_model=RecurringStatusData)
def get_recurring_status(
    year: Optional[int] = Query(None, ge=1, le=9999),
    month: Optional[int] = Query(None, ge=1, le=12),
    db: Session = Depends(get_db),
    config: AnalyticsConfig = Depends(get_analytics_config)
):
    """
    Which recurring bills and income have shown up this month.
    Returns: year, month, current_day, missing, present
    """
    transactions = db.query(FinancialTransaction).filter(FinancialTransaction.hidden == False).all()
    try:
        return recurring_service.get_recurring_status(transactions, year=year, month=month, config=config)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/trends", response_model=TrendsData)
def get_trends(
    year: Optional[int] = Query(None, ge=1, le=9999),
    month: Optional[int] = Query(None, ge=1, le=12),
    category: Optional[str] = None,
    db: Session = Depends(get_db),
    config: AnalyticsConfig = Depends(get_analytics_config)
):
    """
    Spending trends for a year.
    Returns: period, monthly_totals, by_category, by_merchant, budget_comparison,
    monthly_by_category, monthly_by_merchant
    """
    transactions = db.query(FinancialTransaction).filter(FinancialTransaction.hidden == False).all()
    budgets = db.query(Budget).all()
    try:
        return trends_service.get_trends(
            transactions, budgets, year=year, month=month, category=category, config=config
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/month_snapshot", response_model=MonthSnapshot)
def get_month_snapshot(
    year: Optional[int] = Query(None, ge=1, le=9999),
    month: Optional[int] = Query(None, ge=1, le=12),
    db: Session = Depends(get_db),
    config: AnalyticsConfig = Depends(get_analytics_config)
):
    """Month total, totals by category and uncategorized records"""
    today = date.today()
    transactions = db.query(FinancialTransaction).filter(FinancialTransaction.hidden == False).all()
    try:
        return trends_service.month_snapshot(
            transactions, year or today.year, month or today.month, config=config
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/predict", response_model=FinancialTransactionListResponse)
def predict_transactions(db: Session = Depends(get_db)):
    """
    Fill in merchant name and category on new, unreviewed transactions
    from the history of matching bank descriptions.
    Returns the transactions that were updated.
    """
    transactions = db.query(FinancialTransaction).all()
    updated = prediction_service.predict_transactions(transactions)
    db.commit()

    return FinancialTransactionListResponse(
        results=[FinancialTransactionResponse.model_validate(t) for t in updated]
    )


@router.patch("/{transaction_id}", response_model=FinancialTransactionResponse)
def update_transaction(
    transaction_id: int,
    update: FinancialTransactionUpdate,
    db: Session = Depends(get_db)
):
    """Update a transaction and mark it reviewed"""
    transaction = db.query(FinancialTransaction).filter(FinancialTransaction.id == transaction_id).first()
    if not transaction:
        raise HTTPException(status_code=404, detail="Transaction not found")

    update_data = update.model_dump(exclude_unset=True)
    if "transacted_at" in update_data:
        update_data["transacted_at"] = parse_transacted_at(update_data["transacted_at"]) or date.today()

    for field, value in update_data.items():
        setattr(transaction, field, value)
    transaction.reviewed = True

    db.commit()
    db.refresh(transaction)

    return FinancialTransactionResponse.model_validate(transaction)
