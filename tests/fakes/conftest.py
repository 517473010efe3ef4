"""
Test Fixtures and Helpers for Fake Repositories.

This module provides pytest fixtures and helper functions for wiring the
progression services to in-memory fakes and for overriding FastAPI
dependencies.

Usage:
    # In your test file
    def test_something(app, override_deps, fake_user_repo):
        override_deps(deps.get_user_repo, fake_user_repo)

        response = client.get("/progress")
        assert response.status_code == 200
"""

from typing import Any, Callable
from datetime import datetime, timezone

import pytest
from fastapi import FastAPI

from api import deps
from application.use_cases import CompleteWorkoutUseCase
from backend.core.atrophy import AtrophyService
from backend.core.daily_reset import DailyResetService
from backend.main import create_app
from backend.settings import Settings
from tests.fakes.clock import FakeClock
from tests.fakes.daily_progress_repository import FakeDailyProgressRepository
from tests.fakes.user_progress_repository import FakeUserProgressRepository
from tests.fakes.workout_session_repository import FakeWorkoutSessionRepository


# Type for dependency getters
RepoGetter = Callable[..., Any]

TEST_USER_ID = "test-user-guild"


# =============================================================================
# Override Functions
# =============================================================================


def override_dependency(app: FastAPI, getter: RepoGetter, implementation: Any) -> None:
    """
    Override a FastAPI dependency with a fixed implementation.

    Args:
        app: Application whose dependency should be replaced
        getter: The dependency getter function (e.g., get_user_repo)
        implementation: The object to return instead
    """
    app.dependency_overrides[getter] = lambda: implementation


def reset_overrides(app: FastAPI) -> None:
    """Reset all FastAPI dependency overrides on `app`."""
    app.dependency_overrides.clear()


# =============================================================================
# Fake Fixtures
# =============================================================================


@pytest.fixture
def clock() -> FakeClock:
    """Clock fixed at 2024-01-15 12:00 UTC."""
    return FakeClock(datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def fake_user_repo() -> FakeUserProgressRepository:
    return FakeUserProgressRepository()


@pytest.fixture
def fake_daily_repo() -> FakeDailyProgressRepository:
    return FakeDailyProgressRepository()


@pytest.fixture
def fake_session_repo() -> FakeWorkoutSessionRepository:
    return FakeWorkoutSessionRepository()


@pytest.fixture
def daily_reset(fake_user_repo, fake_daily_repo, fake_session_repo, clock) -> DailyResetService:
    """DailyResetService on fakes, pinned to the fake clock and UTC."""
    return DailyResetService(
        fake_user_repo,
        fake_daily_repo,
        fake_session_repo,
        now=clock.now,
        default_timezone="UTC",
    )


@pytest.fixture
def atrophy_service(fake_user_repo, clock) -> AtrophyService:
    return AtrophyService(fake_user_repo, today=clock.today)


@pytest.fixture
def complete_workout(fake_user_repo, fake_session_repo, daily_reset) -> CompleteWorkoutUseCase:
    return CompleteWorkoutUseCase(
        users=fake_user_repo,
        sessions=fake_session_repo,
        daily_reset=daily_reset,
    )


# =============================================================================
# App Fixtures
# =============================================================================


@pytest.fixture
def app(
    fake_user_repo,
    fake_daily_repo,
    fake_session_repo,
    daily_reset,
    atrophy_service,
    complete_workout,
) -> FastAPI:
    """
    Test app with every repository and service replaced by fakes.

    The caller is authenticated as TEST_USER_ID.
    """
    test_app = create_app(settings=Settings(environment="test", _env_file=None))

    async def mock_get_current_user():
        return TEST_USER_ID

    test_app.dependency_overrides[deps.get_current_user] = mock_get_current_user
    override_dependency(test_app, deps.get_user_repo, fake_user_repo)
    override_dependency(test_app, deps.get_daily_progress_repo, fake_daily_repo)
    override_dependency(test_app, deps.get_workout_session_repo, fake_session_repo)
    override_dependency(test_app, deps.get_daily_reset_service, daily_reset)
    override_dependency(test_app, deps.get_atrophy_service, atrophy_service)
    override_dependency(test_app, deps.get_complete_workout_use_case, complete_workout)
    yield test_app
    reset_overrides(test_app)


@pytest.fixture
def override_deps(app) -> Callable[[RepoGetter, Any], None]:
    """Fixture form of override_dependency bound to the test app."""

    def _override(getter: RepoGetter, implementation: Any) -> None:
        override_dependency(app, getter, implementation)

    return _override
