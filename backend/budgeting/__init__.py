"""Personal budgeting ledger with a recurring income and expense scheduler."""
