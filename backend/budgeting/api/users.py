"""
User API endpoints.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List

from budgeting.api.errors import to_http_exception
from budgeting.dependencies import get_db
from budgeting.errors import BudgetingError
from budgeting.schemas.user import UserCreate, UserUpdate, UserResponse
from budgeting.services import user_service

router = APIRouter(prefix="/users", tags=["users"])


@router.get("", response_model=List[UserResponse])
def list_users(
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db)
):
    """List users."""
    return user_service.list_users(db, skip, limit)


@router.post("", response_model=UserResponse, status_code=201)
def create_user(
    user: UserCreate,
    db: Session = Depends(get_db)
):
    """Register a user."""
    try:
        return user_service.create_user(db, user.email, user.display_name)
    except BudgetingError as e:
        raise to_http_exception(e)


@router.get("/{user_id}", response_model=UserResponse)
def get_user(
    user_id: str,
    db: Session = Depends(get_db)
):
    """Get a single user."""
    try:
        return user_service.get_user(db, user_id)
    except BudgetingError as e:
        raise to_http_exception(e)


@router.patch("/{user_id}", response_model=UserResponse)
def update_user(
    user_id: str,
    update: UserUpdate,
    db: Session = Depends(get_db)
):
    """Update a user's email or display name."""
    try:
        return user_service.update_user(db, user_id, update.model_dump(exclude_unset=True))
    except BudgetingError as e:
        raise to_http_exception(e)


@router.delete("/{user_id}", status_code=204)
def delete_user(
    user_id: str,
    db: Session = Depends(get_db)
):
    """Delete a user and their whole ledger."""
    try:
        user_service.delete_user(db, user_id)
    except BudgetingError as e:
        raise to_http_exception(e)
    return None
