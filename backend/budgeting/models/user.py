"""
User database model.
"""

import uuid
from sqlalchemy import Column, String, DateTime
from sqlalchemy.orm import relationship
from budgeting.clock import utcnow
from budgeting.database import Base


class User(Base):
    """A ledger owner. The recurring processors sweep over every user."""

    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    email = Column(String(255), unique=True, nullable=False, index=True)
    display_name = Column(String(100), nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    # Relationships
    incomes = relationship("Income", back_populates="user", cascade="all, delete-orphan")
    income_sources = relationship("IncomeSource", back_populates="user", cascade="all, delete-orphan")
    expenses = relationship("Expense", back_populates="user", cascade="all, delete-orphan")
