"""
Domain layer for the Guild Progression API.

This package contains pure domain models that are independent of
infrastructure concerns (database, API, external services).
"""

from domain.models import (
    DAILY_QUESTS,
    DailyProgress,
    UserProgress,
    WorkoutSession,
)

__all__ = [
    "UserProgress",
    "DailyProgress",
    "WorkoutSession",
    "DAILY_QUESTS",
]
