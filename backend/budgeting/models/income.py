"""
Realized income database model.
"""

import uuid
from sqlalchemy import Column, String, DateTime, Numeric, Text, ForeignKey
from sqlalchemy.orm import relationship
from budgeting.clock import utcnow
from budgeting.database import Base


class Income(Base):
    """Money actually received. Append-only ledger row."""

    __tablename__ = "incomes"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    source = Column(String(255), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    currency = Column(String(3), nullable=False, default="USD")
    notes = Column(Text, nullable=True)
    income_source_id = Column(
        String(36), ForeignKey("income_sources.id", ondelete="SET NULL"), nullable=True
    )
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    # Relationships
    user = relationship("User", back_populates="incomes")
    income_source = relationship("IncomeSource", back_populates="incomes")
