"""
Domain models for the Guild Progression API.

This package contains pure domain models that are independent of
infrastructure concerns (database, API, external services).

These models represent the core progression concepts:
- UserProgress: level, experience, stats, streak and freeze counters of a user
- DailyProgress: the four daily quest flags for one user on one local date
- WorkoutSession: persisted summary of a completed workout

Usage:
    >>> from domain.models import UserProgress

    >>> user = UserProgress(id="user-1", experience=120)
    >>> user.model_dump()["experience"]
    120
"""

from domain.models.progress import (
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
