"""
DailyThree — API v1: Expenses
"""

from __future__ import annotations

import datetime as dt
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel, ConfigDict, Field, field_validator
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.decimal_utils import display_round
from app.core.exceptions import ResourceNotFoundError
from app.core.patch import apply_patch
from app.core.security import CurrentUser, get_current_user
from app.database import get_db
from app.models.expenses import Expense

router = APIRouter(prefix="/expenses", tags=["expenses"])


class ExpenseResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    description: str
    amount: Decimal
    category: str
    date: dt.date
    created_at: dt.datetime
    updated_at: dt.datetime


class ExpenseListResponse(BaseModel):
    expenses: List[ExpenseResponse]


class ExpenseEnvelope(BaseModel):
    expense: ExpenseResponse


class ExpenseMessageResponse(ExpenseEnvelope):
    message: str


class CategoryTotal(BaseModel):
    category: str
    total_amount: Decimal


class ExpenseSummaryResponse(BaseModel):
    summary: List[CategoryTotal]
    grand_total: Decimal


class CreateExpenseRequest(BaseModel):
    description: str = Field(..., min_length=1, max_length=255)
    amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    category: str = Field(..., min_length=1, max_length=100)
    date: dt.date


class UpdateExpenseRequest(BaseModel):
    description: Optional[str] = Field(None, min_length=1, max_length=255)
    amount: Optional[Decimal] = Field(None, gt=0, max_digits=12, decimal_places=2)
    category: Optional[str] = Field(None, min_length=1, max_length=100)
    date: Optional[dt.date] = None

    @field_validator("description", "amount", "category", "date")
    @classmethod
    def not_null(cls, v):
        if v is None:
            raise ValueError("may not be null")
        return v


def _get_owned_expense(db: Session, expense_id: str, user_id: str) -> Expense:
    expense = db.query(Expense).filter_by(id=expense_id, user_id=user_id).first()
    if not expense:
        raise ResourceNotFoundError("Expense", expense_id)
    return expense


@router.get("/", response_model=ExpenseListResponse)
def list_expenses(
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    expenses = (
        db.query(Expense)
        .filter_by(user_id=current_user.user_id)
        .order_by(Expense.date.desc(), Expense.created_at.desc())
        .all()
    )
    return {"expenses": expenses}


@router.get("/summary", response_model=ExpenseSummaryResponse)
def expense_summary(
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    """Per-category totals (largest first) and the overall total."""
    total = func.sum(Expense.amount).label("total_amount")
    rows = (
        db.query(Expense.category, total)
        .filter(Expense.user_id == current_user.user_id)
        .group_by(Expense.category)
        .order_by(total.desc())
        .all()
    )
    summary = [
        CategoryTotal(category=row.category, total_amount=display_round(row.total_amount))
        for row in rows
    ]
    grand_total = display_round(
        sum((item.total_amount for item in summary), Decimal("0"))
    )
    return ExpenseSummaryResponse(summary=summary, grand_total=grand_total)


@router.get("/{expense_id}", response_model=ExpenseEnvelope)
def get_expense(
    expense_id: str,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    return {"expense": _get_owned_expense(db, expense_id, current_user.user_id)}


@router.post(
    "/", response_model=ExpenseMessageResponse, status_code=status.HTTP_201_CREATED
)
def create_expense(
    req: CreateExpenseRequest,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    expense = Expense(
        user_id=current_user.user_id,
        description=req.description,
        amount=req.amount,
        category=req.category,
        date=req.date,
    )
    db.add(expense)
    db.commit()
    db.refresh(expense)
    return {"message": "Expense created successfully.", "expense": expense}


@router.put("/{expense_id}", response_model=ExpenseMessageResponse)
def update_expense(
    expense_id: str,
    req: UpdateExpenseRequest,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    expense = _get_owned_expense(db, expense_id, current_user.user_id)
    apply_patch(expense, req)
    db.commit()
    db.refresh(expense)
    return {"message": "Expense updated successfully.", "expense": expense}


@router.delete("/{expense_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_expense(
    expense_id: str,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    expense = _get_owned_expense(db, expense_id, current_user.user_id)
    db.delete(expense)
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
