"""
Expense database model.

One table holds both recurring templates (``is_recurring=True``) and the
realized expenses, including the ones generated from a template.
"""

import uuid
from sqlalchemy import Column, String, Boolean, DateTime, Date, Integer, Numeric, Text, ForeignKey, Index
from sqlalchemy.orm import relationship
import enum
from budgeting.clock import utcnow
from budgeting.database import Base


class RecurrenceFrequency(str, enum.Enum):
    """How often a recurring expense occurs."""
    weekly = "weekly"
    biweekly = "biweekly"
    monthly = "monthly"
    annually = "annually"


class Expense(Base):
    """Expense model."""

    __tablename__ = "expenses"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    source = Column(String(255), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    currency = Column(String(3), nullable=False, default="USD")
    notes = Column(Text, nullable=True)

    # Template fields
    is_recurring = Column(Boolean, default=False, nullable=False)
    recurrence_frequency = Column(String(20), nullable=True)
    next_occurrence_date = Column(Date, nullable=True)
    anchor_day = Column(Integer, nullable=True)  # Day of month monthly and annual schedules return to
    last_occurred_on = Column(Date, nullable=True)  # Due date of the last claimed cycle

    # Set on expenses generated from a template
    recurring_expense_id = Column(
        String(36), ForeignKey("expenses.id", ondelete="SET NULL"), nullable=True
    )

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    # Relationships
    user = relationship("User", back_populates="expenses")
    recurring_expense = relationship("Expense", remote_side=[id], back_populates="occurrences")
    occurrences = relationship("Expense", back_populates="recurring_expense")

    __table_args__ = (
        Index("idx_expense_due", "user_id", "is_recurring", "next_occurrence_date"),
    )
