"""
Net worth API endpoint.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from budgeting.api.errors import to_http_exception
from budgeting.dependencies import get_db
from budgeting.errors import BudgetingError
from budgeting.schemas.net_worth import NetWorthResponse
from budgeting.services import net_worth_service

router = APIRouter(prefix="/users/{user_id}/net-worth", tags=["net-worth"])


@router.get("", response_model=NetWorthResponse)
def get_net_worth(
    user_id: str,
    db: Session = Depends(get_db)
):
    """Total income minus total expenses for a user."""
    try:
        return net_worth_service.get_net_worth(db, user_id)
    except BudgetingError as e:
        raise to_http_exception(e)
