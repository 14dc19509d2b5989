"""Input checks shared by the ledger services. All raise ValidationError."""

from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Optional

from budgeting.config import settings
from budgeting.errors import ValidationError
from budgeting.services.recurring_service import to_utc_date


def require_text(value: Optional[str], field: str) -> str:
    cleaned = (value or "").strip()
    if not cleaned:
        raise ValidationError(f"{field} is required")
    return cleaned


def require_user_id(user_id: Optional[str]) -> str:
    return require_text(user_id, "user_id")


def clean_amount(amount) -> Decimal:
    """Amounts must be positive."""
    try:
        value = Decimal(str(amount))
    except (InvalidOperation, ValueError, TypeError):
        raise ValidationError(f"invalid amount: {amount!r}")
    if not value.is_finite() or value <= 0:
        raise ValidationError("amount must be greater than zero")
    return value


def clean_currency(currency: Optional[str]) -> str:
    """Blank currencies fall back to the configured default."""
    cleaned = (currency or "").strip().upper()
    return cleaned or settings.default_currency


def clean_notes(notes: Optional[str]) -> Optional[str]:
    cleaned = (notes or "").strip()
    return cleaned or None


def require_date(value, field: str) -> date:
    if isinstance(value, date):
        return to_utc_date(value)
    try:
        return date.fromisoformat(str(value))
    except ValueError:
        raise ValidationError(f"{field} must be a YYYY-MM-DD date")
