"""
Fake Repository Implementations for Testing.

This package provides in-memory fake implementations of the repository
interfaces for fast, isolated testing. No database or external dependencies
required.

Features:
- All fakes implement the same Protocol interfaces as real implementations
- Compare-and-set updates behave like the Supabase implementations
- Supports seeding with test data and reset() for test isolation

Usage:
    from tests.fakes import FakeUserProgressRepository, create_user_repo

    repo = FakeUserProgressRepository()
    repo.seed([{"id": "user1", "experience": 120}])

    repo = create_user_repo(user_id="user1", current_streak=4)
"""
from typing import Any

from tests.fakes.clock import FakeClock
from tests.fakes.daily_progress_repository import FakeDailyProgressRepository
from tests.fakes.user_progress_repository import FakeUserProgressRepository
from tests.fakes.workout_session_repository import FakeWorkoutSessionRepository


# =============================================================================
# Factory Functions
# =============================================================================


def create_user_repo(user_id: str = "test-user", **fields: Any) -> FakeUserProgressRepository:
    """Create a FakeUserProgressRepository holding one user."""
    repo = FakeUserProgressRepository()
    repo.seed([{"id": user_id, **fields}])
    return repo


__all__ = [
    "FakeClock",
    "FakeDailyProgressRepository",
    "FakeUserProgressRepository",
    "FakeWorkoutSessionRepository",
    "create_user_repo",
]
