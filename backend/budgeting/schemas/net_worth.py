"""
Net worth schema.
"""

from pydantic import BaseModel
from decimal import Decimal


class NetWorthResponse(BaseModel):
    total_income: Decimal
    total_expense: Decimal
    net_worth: Decimal
    currency: str

    class Config:
        from_attributes = True
