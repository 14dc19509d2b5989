"""Net worth: everything received minus everything spent."""

from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy.orm import Session

from budgeting.config import settings
from budgeting.models.expense import Expense
from budgeting.models.income import Income
from budgeting.services.validation import require_user_id


@dataclass
class NetWorth:
    total_income: Decimal
    total_expense: Decimal
    net_worth: Decimal
    currency: str


def get_net_worth(db: Session, user_id: str) -> NetWorth:
    """
    Sum incomes and expenses as-is. A recurring expense template counts as a
    charge itself, like every expense generated from it.

    Amounts are not converted; the reported currency is the first income's,
    else the first expense's, else the default currency.
    """
    user_id = require_user_id(user_id)

    incomes = db.query(Income).filter(Income.user_id == user_id).order_by(Income.created_at).all()
    expenses = db.query(Expense).filter(Expense.user_id == user_id).order_by(Expense.created_at).all()

    total_income = sum((i.amount for i in incomes), Decimal("0"))
    total_expense = sum((e.amount for e in expenses), Decimal("0"))

    currency = settings.default_currency
    if incomes:
        currency = incomes[0].currency
    elif expenses:
        currency = expenses[0].currency

    return NetWorth(
        total_income=total_income,
        total_expense=total_expense,
        net_worth=total_income - total_expense,
        currency=currency,
    )
