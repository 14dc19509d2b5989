"""
Recurring income source database model.
"""

import uuid
from sqlalchemy import Column, String, Boolean, DateTime, Date, Integer, Numeric, Text, ForeignKey, Index
from sqlalchemy.orm import relationship
import enum
from budgeting.clock import utcnow
from budgeting.database import Base


class PayFrequency(str, enum.Enum):
    """How often an income source pays out."""
    weekly = "weekly"
    biweekly = "biweekly"
    monthly = "monthly"


class IncomeSource(Base):
    """Recurring income definition (salary, pension, ...) that produces Income rows."""

    __tablename__ = "income_sources"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    source = Column(String(255), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    currency = Column(String(3), nullable=False, default="USD")
    # Plain string: values written before a frequency was dropped must still load
    frequency = Column(String(20), nullable=False)
    next_pay_at = Column(Date, nullable=False)
    anchor_day = Column(Integer, nullable=True)  # Day of month monthly schedules return to
    last_paid_on = Column(Date, nullable=True)  # Due date of the last claimed cycle
    active = Column(Boolean, default=True, nullable=False)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    # Relationships
    user = relationship("User", back_populates="income_sources")
    incomes = relationship("Income", back_populates="income_source")

    __table_args__ = (
        Index("idx_income_source_due", "user_id", "active", "next_pay_at"),
    )
