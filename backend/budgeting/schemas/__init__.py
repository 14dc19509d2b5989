"""
Pydantic schemas package.
"""

from budgeting.schemas.user import (
    UserCreate,
    UserUpdate,
    UserResponse,
)
from budgeting.schemas.income import (
    IncomeCreate,
    IncomeResponse,
    IncomeList,
    IncomeSourceCreate,
    IncomeSourceUpdate,
    IncomeSourceResponse,
    IncomeSourceList,
    ProcessDueResponse,
)
from budgeting.schemas.expense import (
    ExpenseCreate,
    ExpenseUpdate,
    ExpenseResponse,
    ExpenseList,
)
from budgeting.schemas.net_worth import NetWorthResponse

__all__ = [
    "UserCreate",
    "UserUpdate",
    "UserResponse",
    "IncomeCreate",
    "IncomeResponse",
    "IncomeList",
    "IncomeSourceCreate",
    "IncomeSourceUpdate",
    "IncomeSourceResponse",
    "IncomeSourceList",
    "ProcessDueResponse",
    "ExpenseCreate",
    "ExpenseUpdate",
    "ExpenseResponse",
    "ExpenseList",
    "NetWorthResponse",
]
