"""Service for incomes, recurring income sources and due-income processing."""

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
from budgeting.models.income import Income
from budgeting.models.income_source import IncomeSource
from budgeting.services.recurring_service import (
    calculate_next_due,
    is_due,
    is_valid_pay_frequency,
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

INCOME_SOURCE_FIELDS = {"source", "amount", "currency", "frequency", "next_pay_at", "active", "notes"}


# Incomes

def add_income(
    db: Session,
    user_id: str,
    source: str,
    amount,
    currency: Optional[str] = None,
    notes: Optional[str] = None,
) -> Income:
    """Record a one-off income."""
    user_id = require_user_id(user_id)
    source = require_text(source, "source")
    amount = clean_amount(amount)

    stamp = utcnow()
    income = Income(
        id=str(uuid.uuid4()),
        user_id=user_id,
        source=source,
        amount=amount,
        currency=clean_currency(currency),
        notes=clean_notes(notes),
        created_at=stamp,
        updated_at=stamp,
    )
    db.add(income)
    commit_or_raise(db, f"could not create income for user {user_id}")
    db.refresh(income)
    return income


def list_incomes(db: Session, user_id: str) -> List[Income]:
    user_id = require_user_id(user_id)
    return db.query(Income).filter(
        Income.user_id == user_id
    ).order_by(Income.created_at.desc()).all()


def get_income(db: Session, user_id: str, income_id: str) -> Income:
    user_id = require_user_id(user_id)
    income_id = require_text(income_id, "income_id")
    income = db.query(Income).filter(
        Income.id == income_id,
        Income.user_id == user_id
    ).first()
    if not income:
        raise NotFoundError(f"Income {income_id} not found")
    return income


def delete_income(db: Session, user_id: str, income_id: str, cascade: bool = False) -> None:
    """
    Delete an income.

    With ``cascade`` the income source that generated it is deleted too. The
    source is found through ``income_source_id``, never by matching the label.
    """
    income = get_income(db, user_id, income_id)
    source_id = income.income_source_id
    db.delete(income)

    if cascade and source_id:
        income_source = db.query(IncomeSource).filter(
            IncomeSource.id == source_id,
            IncomeSource.user_id == income.user_id
        ).first()
        if income_source:
            db.delete(income_source)

    commit_or_raise(db, f"could not delete income {income_id}")


# Income sources

def add_income_source(
    db: Session,
    user_id: str,
    source: str,
    amount,
    frequency: str,
    currency: Optional[str] = None,
    next_pay_at: Optional[date] = None,
    notes: Optional[str] = None,
) -> IncomeSource:
    """Create an active income source. The first payment defaults to today (UTC)."""
    user_id = require_user_id(user_id)
    source = require_text(source, "source")
    amount = clean_amount(amount)
    if not is_valid_pay_frequency(frequency):
        raise ValidationError(f"unsupported pay frequency: {frequency!r}")
    next_pay_at = require_date(next_pay_at, "next_pay_at") if next_pay_at else to_utc_date(now_utc())

    stamp = utcnow()
    income_source = IncomeSource(
        id=str(uuid.uuid4()),
        user_id=user_id,
        source=source,
        amount=amount,
        currency=clean_currency(currency),
        frequency=normalize_frequency(frequency),
        next_pay_at=next_pay_at,
        anchor_day=next_pay_at.day,
        active=True,
        notes=clean_notes(notes),
        created_at=stamp,
        updated_at=stamp,
    )
    db.add(income_source)
    commit_or_raise(db, f"could not create income source for user {user_id}")
    db.refresh(income_source)
    return income_source


def list_income_sources(db: Session, user_id: str, include_inactive: bool = True) -> List[IncomeSource]:
    user_id = require_user_id(user_id)
    query = db.query(IncomeSource).filter(IncomeSource.user_id == user_id)

    if not include_inactive:
        query = query.filter(IncomeSource.active == True)

    return query.order_by(IncomeSource.next_pay_at, IncomeSource.source).all()


def get_income_source(db: Session, user_id: str, source_id: str) -> IncomeSource:
    user_id = require_user_id(user_id)
    source_id = require_text(source_id, "source_id")
    income_source = db.query(IncomeSource).filter(
        IncomeSource.id == source_id,
        IncomeSource.user_id == user_id
    ).first()
    if not income_source:
        raise NotFoundError(f"Income source {source_id} not found")
    return income_source


def update_income_source(
    db: Session,
    user_id: str,
    source_id: str,
    changes: Dict[str, Any],
) -> IncomeSource:
    """Apply a partial update. Setting ``active`` to False stops future payments."""
    unknown = set(changes) - INCOME_SOURCE_FIELDS
    if unknown:
        raise ValidationError(f"cannot update fields: {', '.join(sorted(unknown))}")

    income_source = get_income_source(db, user_id, source_id)

    if "source" in changes:
        income_source.source = require_text(changes["source"], "source")
    if "amount" in changes:
        income_source.amount = clean_amount(changes["amount"])
    if "currency" in changes:
        income_source.currency = clean_currency(changes["currency"])
    if "frequency" in changes:
        if not is_valid_pay_frequency(changes["frequency"]):
            raise ValidationError(f"unsupported pay frequency: {changes['frequency']!r}")
        income_source.frequency = normalize_frequency(changes["frequency"])
    if "next_pay_at" in changes:
        income_source.next_pay_at = require_date(changes["next_pay_at"], "next_pay_at")
        income_source.anchor_day = income_source.next_pay_at.day
    if "active" in changes:
        if changes["active"] is None:
            raise ValidationError("active must be true or false")
        income_source.active = bool(changes["active"])
    if "notes" in changes:
        income_source.notes = clean_notes(changes["notes"])

    income_source.updated_at = utcnow()
    commit_or_raise(db, f"could not update income source {source_id}")
    db.refresh(income_source)
    return income_source


def delete_income_source(db: Session, user_id: str, source_id: str) -> None:
    """Delete a source. Incomes it already produced are kept and unlinked."""
    income_source = get_income_source(db, user_id, source_id)
    db.delete(income_source)
    commit_or_raise(db, f"could not delete income source {source_id}")


# Due processing

def list_due_income_sources(db: Session, user_id: str, before: date) -> List[IncomeSource]:
    """Active sources whose next pay date is on or before ``before``."""
    try:
        return db.query(IncomeSource).filter(
            IncomeSource.user_id == user_id,
            IncomeSource.active == True,
            IncomeSource.next_pay_at <= before
        ).order_by(IncomeSource.next_pay_at).all()
    except SQLAlchemyError as e:
        db.rollback()
        raise PersistenceError(f"could not list due income sources for user {user_id}") from e


def update_next_pay_at(db: Session, user_id: str, source_id: str, next_pay_at: date) -> None:
    try:
        db.query(IncomeSource).filter(
            IncomeSource.id == source_id,
            IncomeSource.user_id == user_id
        ).update(
            {IncomeSource.next_pay_at: next_pay_at, IncomeSource.updated_at: utcnow()},
            synchronize_session=False
        )
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise PersistenceError(f"could not update next pay date of income source {source_id}") from e


def claim_income_source(db: Session, source_id: str, due_on: date) -> bool:
    """
    Mark the cycle due on ``due_on`` as paid, unless it already is.

    Runs in the caller's transaction. Returns False when another run has
    already claimed this cycle or moved the due date.
    """
    claimed = db.query(IncomeSource).filter(
        IncomeSource.id == source_id,
        IncomeSource.next_pay_at == due_on,
        or_(IncomeSource.last_paid_on.is_(None), IncomeSource.last_paid_on != due_on)
    ).update(
        {IncomeSource.last_paid_on: due_on},
        synchronize_session=False
    )
    return claimed == 1


def materialize_income(db: Session, income_source: IncomeSource, due_on: date) -> Optional[Income]:
    """
    Create the Income for one cycle of ``income_source``.

    The claim and the insert commit together, so a cycle yields at most one
    Income. Returns None if the cycle was already claimed.
    """
    source_id = income_source.id
    stamp = utcnow()
    income = Income(
        id=str(uuid.uuid4()),
        user_id=income_source.user_id,
        source=income_source.source,
        amount=income_source.amount,
        currency=income_source.currency,
        notes=income_source.notes,
        income_source_id=source_id,
        created_at=stamp,
        updated_at=stamp,
    )

    try:
        if not claim_income_source(db, source_id, due_on):
            db.rollback()
            return None
        db.add(income)
        db.commit()
        db.refresh(income)
    except SQLAlchemyError as e:
        db.rollback()
        raise PersistenceError(f"could not create income from source {source_id}") from e
    return income


def process_due_incomes(db: Session, user_id: str, now: Optional[datetime] = None) -> int:
    """
    Pay out every active income source of ``user_id`` that is due on ``now``'s UTC day.

    Sources whose date has already passed are left alone; nothing is caught up.
    After a payment the next pay date moves forward from the stored date by the
    source's frequency, returning to its anchor day where the month allows.
    Returns the number of incomes created.

    Raises BatchAbortedError (with the partial count) on the first income that
    cannot be created; remaining sources are not processed. Failing to store a
    next pay date is only logged.
    """
    user_id = require_user_id(user_id)
    now = now or now_utc()

    sources = list_due_income_sources(db, user_id, to_utc_date(now))

    created = 0
    for income_source in sources:
        source_id = income_source.id
        frequency = income_source.frequency
        anchor_day = income_source.anchor_day
        current = income_source.next_pay_at
        next_pay_at = current

        if is_due(now, current):
            try:
                income = materialize_income(db, income_source, current)
            except PersistenceError as e:
                raise BatchAbortedError(str(e), created=created) from e

            if income is not None:
                created += 1
            else:
                logger.info("Income source %s was already paid for %s", source_id, current)
            next_pay_at = calculate_next_due(current, frequency, anchor_day)

        try:
            update_next_pay_at(db, user_id, source_id, next_pay_at)
        except PersistenceError:
            logger.warning(
                "Failed to store next pay date %s for income source %s",
                next_pay_at, source_id, exc_info=True
            )

    return created
