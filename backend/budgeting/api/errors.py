"""Translate service errors into HTTP errors."""

from fastapi import HTTPException

from budgeting.errors import BatchAbortedError, BudgetingError, NotFoundError, ValidationError


def to_http_exception(error: BudgetingError) -> HTTPException:
    if isinstance(error, ValidationError):
        return HTTPException(status_code=400, detail=str(error))
    if isinstance(error, NotFoundError):
        return HTTPException(status_code=404, detail=str(error))
    if isinstance(error, BatchAbortedError):
        return HTTPException(status_code=500, detail={"error": str(error), "created": error.created})
    return HTTPException(status_code=500, detail=str(error))
