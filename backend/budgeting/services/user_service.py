"""Service for the user directory the recurring processors sweep over."""

import uuid
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from budgeting.clock import utcnow
from budgeting.database import commit_or_raise
from budgeting.errors import NotFoundError, ValidationError
from budgeting.models.user import User
from budgeting.services.validation import require_text, require_user_id

USER_FIELDS = {"email", "display_name"}


def create_user(db: Session, email: str, display_name: Optional[str] = None) -> User:
    email = require_text(email, "email").lower()
    if db.query(User).filter(User.email == email).first():
        raise ValidationError(f"email {email} is already registered")

    user = User(
        id=str(uuid.uuid4()),
        email=email,
        display_name=(display_name or "").strip() or None,
        created_at=utcnow(),
    )
    db.add(user)
    commit_or_raise(db, f"could not create user {email}")
    db.refresh(user)
    return user


def get_user(db: Session, user_id: str) -> User:
    user_id = require_user_id(user_id)
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFoundError(f"User {user_id} not found")
    return user


def list_users(db: Session, skip: int = 0, limit: int = 100) -> List[User]:
    return db.query(User).order_by(User.created_at).offset(skip).limit(limit).all()


def list_all_user_ids(db: Session) -> List[str]:
    """Every user id, for the recurring processors."""
    return [row.id for row in db.query(User.id).order_by(User.created_at).all()]


def update_user(db: Session, user_id: str, changes: Dict[str, Any]) -> User:
    """Change a user's email or display name."""
    unknown = set(changes) - USER_FIELDS
    if unknown:
        raise ValidationError(f"cannot update fields: {', '.join(sorted(unknown))}")

    user = get_user(db, user_id)

    if "email" in changes:
        email = require_text(changes["email"], "email").lower()
        taken = db.query(User).filter(User.email == email, User.id != user.id).first()
        if taken:
            raise ValidationError(f"email {email} is already registered")
        user.email = email
    if "display_name" in changes:
        user.display_name = (changes["display_name"] or "").strip() or None

    commit_or_raise(db, f"could not update user {user_id}")
    db.refresh(user)
    return user


def delete_user(db: Session, user_id: str) -> None:
    """Delete a user with all their incomes, income sources and expenses."""
    user = get_user(db, user_id)
    db.delete(user)
    commit_or_raise(db, f"could not delete user {user_id}")
