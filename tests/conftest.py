"""Shared fixtures: the fake repositories and a test app wired to them."""

from tests.fakes.conftest import (  # noqa: F401
    app,
    atrophy_service,
    clock,
    complete_workout,
    daily_reset,
    fake_daily_repo,
    fake_session_repo,
    fake_user_repo,
    override_deps,
)
