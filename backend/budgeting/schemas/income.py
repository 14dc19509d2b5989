"""Pydantic schemas for incomes and recurring income sources."""

from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import date, datetime
from decimal import Decimal

from budgeting.models.income_source import PayFrequency


class IncomeCreate(BaseModel):
    source: str = Field(..., min_length=1, max_length=255)
    amount: Decimal = Field(..., gt=0)
    currency: Optional[str] = Field(None, max_length=3)
    notes: Optional[str] = None


class IncomeResponse(BaseModel):
    id: str
    user_id: str
    source: str
    amount: Decimal
    currency: str
    notes: Optional[str] = None
    income_source_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class IncomeList(BaseModel):
    items: List[IncomeResponse]
    total: int


class IncomeSourceCreate(BaseModel):
    source: str = Field(..., min_length=1, max_length=255)
    amount: Decimal = Field(..., gt=0)
    currency: Optional[str] = Field(None, max_length=3)
    frequency: PayFrequency
    next_pay_at: Optional[date] = None  # Defaults to today
    notes: Optional[str] = None


class IncomeSourceUpdate(BaseModel):
    source: Optional[str] = Field(None, min_length=1, max_length=255)
    amount: Optional[Decimal] = Field(None, gt=0)
    currency: Optional[str] = Field(None, max_length=3)
    frequency: Optional[PayFrequency] = None
    next_pay_at: Optional[date] = None
    active: Optional[bool] = None
    notes: Optional[str] = None


class IncomeSourceResponse(BaseModel):
    id: str
    user_id: str
    source: str
    amount: Decimal
    currency: str
    # Stored values outside PayFrequency are still returned
    frequency: str
    next_pay_at: date
    anchor_day: Optional[int] = None
    last_paid_on: Optional[date] = None
    active: bool
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class IncomeSourceList(BaseModel):
    items: List[IncomeSourceResponse]
    total: int


class ProcessDueResponse(BaseModel):
    """Result of an on-demand due-processing run."""
    created: int
    processed_at: datetime
