"""
Expense API endpoints.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional
from datetime import datetime

from budgeting.api.errors import to_http_exception
from budgeting.clock import now_utc
from budgeting.dependencies import get_db
from budgeting.errors import BudgetingError
from budgeting.schemas.expense import (
    ExpenseCreate,
    ExpenseUpdate,
    ExpenseResponse,
    ExpenseList,
)
from budgeting.schemas.income import ProcessDueResponse
from budgeting.services import expense_service

router = APIRouter(prefix="/users/{user_id}/expenses", tags=["expenses"])


@router.get("", response_model=ExpenseList)
def list_expenses(
    user_id: str,
    is_recurring: Optional[bool] = None,
    db: Session = Depends(get_db)
):
    """List a user's expenses, optionally only templates or only realized ones."""
    try:
        expenses = expense_service.list_expenses(db, user_id, is_recurring)
    except BudgetingError as e:
        raise to_http_exception(e)
    return ExpenseList(
        items=[ExpenseResponse.model_validate(expense) for expense in expenses],
        total=len(expenses)
    )


@router.post("", response_model=ExpenseResponse, status_code=201)
def add_expense(
    user_id: str,
    data: ExpenseCreate,
    db: Session = Depends(get_db)
):
    """Record an expense, optionally recurring."""
    try:
        return expense_service.add_expense(
            db,
            user_id=user_id,
            source=data.source,
            amount=data.amount,
            currency=data.currency,
            notes=data.notes,
            is_recurring=data.is_recurring,
            recurrence_frequency=data.recurrence_frequency,
            next_occurrence_date=data.next_occurrence_date,
        )
    except BudgetingError as e:
        raise to_http_exception(e)


@router.post("/process-due", response_model=ProcessDueResponse)
def process_due_expenses(
    user_id: str,
    as_of: Optional[datetime] = Query(None, description="Process as of this time (defaults to now)"),
    db: Session = Depends(get_db)
):
    """Create today's occurrences of the user's recurring expenses."""
    now = as_of or now_utc()
    try:
        created = expense_service.process_due_expenses(db, user_id, now)
    except BudgetingError as e:
        raise to_http_exception(e)
    return ProcessDueResponse(created=created, processed_at=now)


@router.get("/{expense_id}", response_model=ExpenseResponse)
def get_expense(
    user_id: str,
    expense_id: str,
    db: Session = Depends(get_db)
):
    """Get a single expense."""
    try:
        return expense_service.get_expense(db, user_id, expense_id)
    except BudgetingError as e:
        raise to_http_exception(e)


@router.patch("/{expense_id}", response_model=ExpenseResponse)
def update_expense(
    user_id: str,
    expense_id: str,
    update: ExpenseUpdate,
    db: Session = Depends(get_db)
):
    """Update an expense."""
    try:
        return expense_service.update_expense(
            db, user_id, expense_id, update.model_dump(exclude_unset=True)
        )
    except BudgetingError as e:
        raise to_http_exception(e)


@router.delete("/{expense_id}", status_code=204)
def delete_expense(
    user_id: str,
    expense_id: str,
    db: Session = Depends(get_db)
):
    """Delete an expense."""
    try:
        expense_service.delete_expense(db, user_id, expense_id)
    except BudgetingError as e:
        raise to_http_exception(e)
    return None
