"""
Budget API endpoints.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List

from finance_tracker.dependencies import get_db
from finance_tracker.models.budget import Budget
from finance_tracker.schemas.budget import BudgetCreate, BudgetResponse

router = APIRouter(prefix="/budgets", tags=["budgets"])


@router.get("", response_model=List[BudgetResponse])
def list_budgets(db: Session = Depends(get_db)):
    """List budgets in display order"""
    budgets = db.query(Budget).order_by(Budget.display_order, Budget.name).all()
    return [BudgetResponse.model_validate(b) for b in budgets]


@router.post("", response_model=BudgetResponse)
def create_budget(
    data: BudgetCreate,
    db: Session = Depends(get_db)
):
    """Create a budget row"""
    budget = Budget(**data.model_dump())
    db.add(budget)
    db.commit()
    db.refresh(budget)
    return BudgetResponse.model_validate(budget)
