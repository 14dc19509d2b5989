"""Service for expenses and recurring-expense processing."""

import logging
import uuid
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from budgeting.clock import now_utc, utcnow
from budgeting.database import commit_or_raise
from budgeting.errors import BatchAbortedError, NotFoundError, PersistenceError, ValidationError
from budgeting.models.expense import Expense
from budgeting.services.recurring_service import (
    calculate_next_due,
    is_due,
    is_valid_recurrence_frequency,
    normalize_frequency,
    to_utc_date,
)
from budgeting.services.validation import (
    clean_amount,
    clean_currency,
    clean_notes,
    require_date,
    require_text,
    require_user_id,
)

logger = logging.getLogger(__name__)

EXPENSE_FIELDS = {
    "source", "amount", "currency", "notes",
    "is_recurring", "recurrence_frequency", "next_occurrence_date",
}
RECURRENCE_FIELDS = {"is_recurring", "recurrence_frequency", "next_occurrence_date"}


def _apply_recurrence(
    expense: Expense,
    is_recurring: bool,
    recurrence_frequency: Optional[str],
    next_occurrence_date: Optional[date],
) -> None:
    """
    Set or clear the template fields.

    A new ``next_occurrence_date`` also resets the anchor day; without one the
    current schedule is kept, and a template that has none starts today.
    """
    if not is_recurring:
        expense.is_recurring = False
        expense.recurrence_frequency = None
        expense.next_occurrence_date = None
        expense.anchor_day = None
        return

    if not is_valid_recurrence_frequency(recurrence_frequency):
        raise ValidationError(f"unsupported recurrence frequency: {recurrence_frequency!r}")
    expense.is_recurring = True
    expense.recurrence_frequency = normalize_frequency(recurrence_frequency)
    if next_occurrence_date:
        expense.next_occurrence_date = require_date(next_occurrence_date, "next_occurrence_date")
    elif expense.next_occurrence_date is None:
        expense.next_occurrence_date = to_utc_date(now_utc())
    else:
        return
    expense.anchor_day = expense.next_occurrence_date.day


def add_expense(
    db: Session,
    user_id: str,
    source: str,
    amount,
    currency: Optional[str] = None,
    notes: Optional[str] = None,
    is_recurring: bool = False,
    recurrence_frequency: Optional[str] = None,
    next_occurrence_date: Optional[date] = None,
) -> Expense:
    """Record an expense, optionally as a recurring template."""
    user_id = require_user_id(user_id)
    source = require_text(source, "source")
    amount = clean_amount(amount)

    stamp = utcnow()
    expense = Expense(
        id=str(uuid.uuid4()),
        user_id=user_id,
        source=source,
        amount=amount,
        currency=clean_currency(currency),
        notes=clean_notes(notes),
        created_at=stamp,
        updated_at=stamp,
    )
    _apply_recurrence(expense, is_recurring, recurrence_frequency, next_occurrence_date)

    db.add(expense)
    commit_or_raise(db, f"could not create expense for user {user_id}")
    db.refresh(expense)
    return expense


def list_expenses(db: Session, user_id: str, is_recurring: Optional[bool] = None) -> List[Expense]:
    user_id = require_user_id(user_id)
    query = db.query(Expense).filter(Expense.user_id == user_id)

    if is_recurring is not None:
        query = query.filter(Expense.is_recurring == is_recurring)

    return query.order_by(Expense.created_at.desc()).all()


def get_expense(db: Session, user_id: str, expense_id: str) -> Expense:
    user_id = require_user_id(user_id)
    expense_id = require_text(expense_id, "expense_id")
    expense = db.query(Expense).filter(
        Expense.id == expense_id,
        Expense.user_id == user_id
    ).first()
    if not expense:
        raise NotFoundError(f"Expense {expense_id} not found")
    return expense


def update_expense(
    db: Session,
    user_id: str,
    expense_id: str,
    changes: Dict[str, Any],
) -> Expense:
    """Apply a partial update. Turning ``is_recurring`` off stops future occurrences."""
    unknown = set(changes) - EXPENSE_FIELDS
    if unknown:
        raise ValidationError(f"cannot update fields: {', '.join(sorted(unknown))}")
    for field in sorted(RECURRENCE_FIELDS & set(changes)):
        if changes[field] is None:
            raise ValidationError(f"{field} cannot be null")

    expense = get_expense(db, user_id, expense_id)

    if "source" in changes:
        expense.source = require_text(changes["source"], "source")
    if "amount" in changes:
        expense.amount = clean_amount(changes["amount"])
    if "currency" in changes:
        expense.currency = clean_currency(changes["currency"])
    if "notes" in changes:
        expense.notes = clean_notes(changes["notes"])

    if RECURRENCE_FIELDS & set(changes):
        _apply_recurrence(
            expense,
            bool(changes.get("is_recurring", expense.is_recurring)),
            changes.get("recurrence_frequency", expense.recurrence_frequency),
            changes.get("next_occurrence_date"),
        )

    expense.updated_at = utcnow()
    commit_or_raise(db, f"could not update expense {expense_id}")
    db.refresh(expense)
    return expense


def delete_expense(db: Session, user_id: str, expense_id: str) -> None:
    """Delete an expense. Occurrences generated from a deleted template are kept."""
    expense = get_expense(db, user_id, expense_id)
    db.delete(expense)
    commit_or_raise(db, f"could not delete expense {expense_id}")


# Due processing

def list_due_recurring_expenses(db: Session, user_id: str, before: date) -> List[Expense]:
    """Recurring templates whose next occurrence is on or before ``before``."""
    try:
        return db.query(Expense).filter(
            Expense.user_id == user_id,
            Expense.is_recurring == True,
            Expense.next_occurrence_date <= before
        ).order_by(Expense.next_occurrence_date).all()
    except SQLAlchemyError as e:
        db.rollback()
        raise PersistenceError(f"could not list due recurring expenses for user {user_id}") from e


def update_next_occurrence(db: Session, user_id: str, expense_id: str, next_occurrence_date: date) -> None:
    try:
        db.query(Expense).filter(
            Expense.id == expense_id,
            Expense.user_id == user_id
        ).update(
            {Expense.next_occurrence_date: next_occurrence_date, Expense.updated_at: utcnow()},
            synchronize_session=False
        )
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise PersistenceError(f"could not update next occurrence of expense {expense_id}") from e


def claim_recurring_expense(db: Session, expense_id: str, due_on: date) -> bool:
    """Mark the occurrence due on ``due_on`` as consumed; False if it already was."""
    claimed = db.query(Expense).filter(
        Expense.id == expense_id,
        Expense.is_recurring == True,
        Expense.next_occurrence_date == due_on,
        or_(Expense.last_occurred_on.is_(None), Expense.last_occurred_on != due_on)
    ).update(
        {Expense.last_occurred_on: due_on},
        synchronize_session=False
    )
    return claimed == 1


def materialize_expense(db: Session, template: Expense, due_on: date) -> Optional[Expense]:
    """
    Create the realized Expense for one occurrence of ``template``.
    Returns None if the occurrence was already claimed.
    """
    template_id = template.id
    stamp = utcnow()
    expense = Expense(
        id=str(uuid.uuid4()),
        user_id=template.user_id,
        source=template.source,
        amount=template.amount,
        currency=template.currency,
        notes=template.notes,
        is_recurring=False,
        recurring_expense_id=template_id,
        created_at=stamp,
        updated_at=stamp,
    )

    try:
        if not claim_recurring_expense(db, template_id, due_on):
            db.rollback()
            return None
        db.add(expense)
        db.commit()
        db.refresh(expense)
    except SQLAlchemyError as e:
        db.rollback()
        raise PersistenceError(f"could not create expense from template {template_id}") from e
    return expense


def process_due_expenses(db: Session, user_id: str, now: Optional[datetime] = None) -> int:
    """
    Create this occurrence of every recurring expense of ``user_id`` due on ``now``'s UTC day.

    Same rules as income processing: exact-day match only, advance from the
    stored date, stop with BatchAbortedError on the first failed insert, and
    log (not raise) a failed due-date update.
    """
    user_id = require_user_id(user_id)
    now = now or now_utc()

    templates = list_due_recurring_expenses(db, user_id, to_utc_date(now))

    created = 0
    for template in templates:
        template_id = template.id
        frequency = template.recurrence_frequency
        anchor_day = template.anchor_day
        current = template.next_occurrence_date
        next_occurrence = current

        if is_due(now, current):
            try:
                expense = materialize_expense(db, template, current)
            except PersistenceError as e:
                raise BatchAbortedError(str(e), created=created) from e

            if expense is not None:
                created += 1
            else:
                logger.info("Recurring expense %s already occurred on %s", template_id, current)
            next_occurrence = calculate_next_due(current, frequency, anchor_day)

        try:
            update_next_occurrence(db, user_id, template_id, next_occurrence)
        except PersistenceError:
            logger.warning(
                "Failed to store next occurrence %s for recurring expense %s",
                next_occurrence, template_id, exc_info=True
            )

    return created
