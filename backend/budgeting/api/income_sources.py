"""API endpoints for recurring income sources and on-demand payout processing."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional
from datetime import datetime

from budgeting.api.errors import to_http_exception
from budgeting.clock import now_utc
from budgeting.dependencies import get_db
from budgeting.errors import BudgetingError
from budgeting.schemas.income import (
    IncomeSourceCreate,
    IncomeSourceUpdate,
    IncomeSourceResponse,
    IncomeSourceList,
    ProcessDueResponse,
)
from budgeting.services import income_service

router = APIRouter(prefix="/users/{user_id}/income-sources", tags=["income-sources"])


@router.get("", response_model=IncomeSourceList)
def list_income_sources(
    user_id: str,
    include_inactive: bool = Query(True),
    db: Session = Depends(get_db)
):
    """List a user's income sources."""
    try:
        sources = income_service.list_income_sources(db, user_id, include_inactive)
    except BudgetingError as e:
        raise to_http_exception(e)
    return IncomeSourceList(
        items=[IncomeSourceResponse.model_validate(s) for s in sources],
        total=len(sources)
    )


@router.post("", response_model=IncomeSourceResponse, status_code=201)
def add_income_source(
    user_id: str,
    data: IncomeSourceCreate,
    db: Session = Depends(get_db)
):
    """Create a recurring income source."""
    try:
        return income_service.add_income_source(
            db,
            user_id=user_id,
            source=data.source,
            amount=data.amount,
            frequency=data.frequency,
            currency=data.currency,
            next_pay_at=data.next_pay_at,
            notes=data.notes,
        )
    except BudgetingError as e:
        raise to_http_exception(e)


@router.post("/process-due", response_model=ProcessDueResponse)
def process_due_incomes(
    user_id: str,
    as_of: Optional[datetime] = Query(None, description="Process as of this time (defaults to now)"),
    db: Session = Depends(get_db)
):
    """
    Pay out the user's income sources due today, without waiting for the
    background processor.
    """
    now = as_of or now_utc()
    try:
        created = income_service.process_due_incomes(db, user_id, now)
    except BudgetingError as e:
        raise to_http_exception(e)
    return ProcessDueResponse(created=created, processed_at=now)


@router.get("/{source_id}", response_model=IncomeSourceResponse)
def get_income_source(
    user_id: str,
    source_id: str,
    db: Session = Depends(get_db)
):
    """Get a single income source."""
    try:
        return income_service.get_income_source(db, user_id, source_id)
    except BudgetingError as e:
        raise to_http_exception(e)


@router.patch("/{source_id}", response_model=IncomeSourceResponse)
def update_income_source(
    user_id: str,
    source_id: str,
    update: IncomeSourceUpdate,
    db: Session = Depends(get_db)
):
    """Update an income source. Set ``active`` to false to pause it."""
    try:
        return income_service.update_income_source(
            db, user_id, source_id, update.model_dump(exclude_unset=True)
        )
    except BudgetingError as e:
        raise to_http_exception(e)


@router.delete("/{source_id}", status_code=204)
def delete_income_source(
    user_id: str,
    source_id: str,
    db: Session = Depends(get_db)
):
    """Delete an income source (incomes it produced are kept)."""
    try:
        income_service.delete_income_source(db, user_id, source_id)
    except BudgetingError as e:
        raise to_http_exception(e)
    return None
