"""
Expense schemas.
"""

from pydantic import BaseModel, Field, model_validator
from typing import Optional, List
from datetime import date, datetime
from decimal import Decimal

from budgeting.models.expense import RecurrenceFrequency


class ExpenseCreate(BaseModel):
    source: str = Field(..., min_length=1, max_length=255)
    amount: Decimal = Field(..., gt=0)
    currency: Optional[str] = Field(None, max_length=3)
    notes: Optional[str] = None
    is_recurring: bool = False
    recurrence_frequency: Optional[RecurrenceFrequency] = None
    next_occurrence_date: Optional[date] = None  # Defaults to today for recurring expenses

    @model_validator(mode="after")
    def check_recurrence(self):
        if self.is_recurring and self.recurrence_frequency is None:
            raise ValueError("recurrence_frequency is required for recurring expenses")
        return self


class ExpenseUpdate(BaseModel):
    source: Optional[str] = Field(None, min_length=1, max_length=255)
    amount: Optional[Decimal] = Field(None, gt=0)
    currency: Optional[str] = Field(None, max_length=3)
    notes: Optional[str] = None
    is_recurring: Optional[bool] = None
    recurrence_frequency: Optional[RecurrenceFrequency] = None
    next_occurrence_date: Optional[date] = None


class ExpenseResponse(BaseModel):
    id: str
    user_id: str
    source: str
    amount: Decimal
    currency: str
    notes: Optional[str] = None
    is_recurring: bool
    recurrence_frequency: Optional[str] = None
    next_occurrence_date: Optional[date] = None
    anchor_day: Optional[int] = None
    last_occurred_on: Optional[date] = None
    recurring_expense_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ExpenseList(BaseModel):
    items: List[ExpenseResponse]
    total: int
