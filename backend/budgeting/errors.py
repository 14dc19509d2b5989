"""
Error types raised by the ledger services.
"""


class BudgetingError(Exception):
    """Base class for ledger service errors."""


class ValidationError(BudgetingError, ValueError):
    """Input rejected before any database access. Never retried."""


class NotFoundError(BudgetingError):
    """Requested entity does not exist for this user."""


class PersistenceError(BudgetingError):
    """A database call failed."""


class BatchAbortedError(PersistenceError):
    """
    A due-processing batch stopped on a failed materialization.

    ``created`` is the number of entries successfully created before the failure.
    """

    def __init__(self, message: str, created: int = 0):
        super().__init__(message)
        self.created = created
