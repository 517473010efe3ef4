"""
Translation of progression errors into HTTP errors for the routers.
"""
from fastapi import HTTPException

from application.exceptions import (
    ActivityValidationError,
    InvalidDateError,
    InvalidQuestError,
    PersistenceError,
    ProgressionError,
    StreakFreezeConflictError,
    TimerStateError,
    UserNotFoundError,
)


def to_http_exception(error: ProgressionError) -> HTTPException:
    """Map a ProgressionError to the HTTPException the client should see."""
    if isinstance(error, ActivityValidationError):
        return HTTPException(
            status_code=422,
            detail={"message": error.message, "errors": error.errors},
        )
    if isinstance(error, (InvalidDateError, InvalidQuestError, TimerStateError)):
        return HTTPException(status_code=400, detail=str(error))
    if isinstance(error, UserNotFoundError):
        return HTTPException(status_code=404, detail=str(error))
    if isinstance(error, StreakFreezeConflictError):
        return HTTPException(status_code=409, detail=str(error))
    if isinstance(error, PersistenceError):
        return HTTPException(status_code=503, detail="Progress store unavailable, try again")
    return HTTPException(status_code=500, detail=str(error))
