"""
Application-layer exceptions.

These exceptions are used across the core engine, application and
infrastructure layers. Routers translate them into HTTP responses.
"""
from typing import List, Optional


class ProgressionError(Exception):
    """Base class for all progression engine errors."""

    pass


class ActivityValidationError(ProgressionError):
    """Raised when an activity or workout payload is malformed.

    Malformed input is rejected at the boundary instead of being coerced
    into zero or NaN XP.
    """

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        super().__init__(message)
        self.message = message
        self.errors = errors or []


class InvalidDateError(ProgressionError):
    """Raised when a date string is not in YYYY-MM-DD format."""

    pass


class InvalidQuestError(ProgressionError):
    """Raised when an unknown daily quest name is used."""

    pass


class UserNotFoundError(ProgressionError):
    """Raised when the user row does not exist. No mutation is attempted."""

    def __init__(self, user_id: str):
        super().__init__(f"User not found: {user_id}")
        self.user_id = user_id


class DuplicateDailyProgressError(ProgressionError):
    """Raised when a daily progress row already exists for (user_id, date).

    Callers racing on the same day treat this as a successful no-op.
    """

    def __init__(self, user_id: str, date: str):
        super().__init__(f"Daily progress already exists for user {user_id} on {date}")
        self.user_id = user_id
        self.date = date


class StreakFreezeConflictError(ProgressionError):
    """Raised when a compare-and-set update on a user row loses a race."""

    pass


class PersistenceError(ProgressionError):
    """Wraps a data store failure. Propagated to the caller for retry or logging."""

    pass


class TimerStateError(ProgressionError):
    """Raised on an illegal workout timer transition."""

    pass
