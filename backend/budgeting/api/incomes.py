"""
Income API endpoints.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from budgeting.api.errors import to_http_exception
from budgeting.dependencies import get_db
from budgeting.errors import BudgetingError
from budgeting.schemas.income import IncomeCreate, IncomeResponse, IncomeList
from budgeting.services import income_service

router = APIRouter(prefix="/users/{user_id}/incomes", tags=["incomes"])


@router.get("", response_model=IncomeList)
def list_incomes(
    user_id: str,
    db: Session = Depends(get_db)
):
    """List a user's incomes, newest first."""
    try:
        incomes = income_service.list_incomes(db, user_id)
    except BudgetingError as e:
        raise to_http_exception(e)
    return IncomeList(
        items=[IncomeResponse.model_validate(i) for i in incomes],
        total=len(incomes)
    )


@router.post("", response_model=IncomeResponse, status_code=201)
def add_income(
    user_id: str,
    data: IncomeCreate,
    db: Session = Depends(get_db)
):
    """Record a one-off income."""
    try:
        return income_service.add_income(
            db,
            user_id=user_id,
            source=data.source,
            amount=data.amount,
            currency=data.currency,
            notes=data.notes,
        )
    except BudgetingError as e:
        raise to_http_exception(e)


@router.get("/{income_id}", response_model=IncomeResponse)
def get_income(
    user_id: str,
    income_id: str,
    db: Session = Depends(get_db)
):
    """Get a single income."""
    try:
        return income_service.get_income(db, user_id, income_id)
    except BudgetingError as e:
        raise to_http_exception(e)


@router.delete("/{income_id}", status_code=204)
def delete_income(
    user_id: str,
    income_id: str,
    cascade: bool = Query(False, description="Also delete the income source that produced this income"),
    db: Session = Depends(get_db)
):
    """Delete an income."""
    try:
        income_service.delete_income(db, user_id, income_id, cascade=cascade)
    except BudgetingError as e:
        raise to_http_exception(e)
    return None
