"""
Database models package.
"""

from budgeting.models.user import User
from budgeting.models.income_source import IncomeSource, PayFrequency
from budgeting.models.income import Income
from budgeting.models.expense import Expense, RecurrenceFrequency

__all__ = [
    "User",
    "IncomeSource",
    "PayFrequency",
    "Income",
    "Expense",
    "RecurrenceFrequency",
]
