"""
FastAPI Dependency Providers for the Guild Progression API.

This module provides FastAPI dependency injection functions that return
interface types (Protocols) rather than concrete implementations. This
enables clean separation of concerns and easy testing with fake implementations.

Architecture:
- Settings, Supabase client and the HP regen registry are cached per-process (lru_cache)
- Repository and service providers create new instances per-request
- Auth providers wrap backend.auth

Usage in routers:
    from api.deps import get_atrophy_service, get_current_user
    from backend.core.atrophy import AtrophyService

    @router.get("/atrophy/status")
    def atrophy_status(
        user_id: str = Depends(get_current_user),
        atrophy: AtrophyService = Depends(get_atrophy_service),
    ):
        return atrophy.get_user_atrophy_status(user_id)

Testing:
    # Override dependencies in tests
    app.dependency_overrides[get_user_repo] = lambda: FakeUserProgressRepository()
"""

from functools import lru_cache
from typing import Optional

from fastapi import Depends, Header
from supabase import Client, create_client

# Protocol types (interfaces)
from application.ports import (
    DailyProgressRepository,
    UserProgressRepository,
    WorkoutSessionRepository,
)
from application.use_cases import CompleteWorkoutUseCase

# Concrete implementations
from infrastructure import (
    SupabaseDailyProgressRepository,
    SupabaseUserProgressRepository,
    SupabaseWorkoutSessionRepository,
    JsonFileHpStateStore,
    user_state_path,
)

from backend.core.atrophy import AtrophyService
from backend.core.daily_reset import DailyResetService
from backend.core.hp_regen import HpRegenRegistry, HpRegenService
from backend.settings import Settings, get_settings as _get_settings

# Auth from existing module (wrap to maintain single source of truth)
from backend.auth import get_current_user as _get_current_user


# =============================================================================
# Settings Provider
# =============================================================================


def get_settings() -> Settings:
    """
    Get application settings.

    Returns cached Settings instance from backend.settings.
    Use this as a FastAPI dependency for settings access.

    Returns:
        Settings: Application settings instance
    """
    return _get_settings()


# =============================================================================
# Supabase Client Provider
# =============================================================================


@lru_cache
def get_supabase_client() -> Optional[Client]:
    """
    Get Supabase client instance (cached).

    Creates a Supabase client using credentials from settings.
    Returns None if credentials are not configured.

    Returns:
        Client: Supabase client instance, or None if not configured
    """
    settings = _get_settings()

    if not settings.supabase_url or not settings.supabase_key:
        return None

    return create_client(settings.supabase_url, settings.supabase_key)


def get_supabase_client_required() -> Client:
    """
    Get Supabase client instance, raising if not configured.

    Use this dependency when the endpoint requires database access.

    Raises:
        HTTPException: 503 if Supabase is not configured
    """
    from fastapi import HTTPException

    client = get_supabase_client()
    if client is None:
        raise HTTPException(
            status_code=503,
            detail="Database not available. Supabase credentials not configured.",
        )
    return client


# =============================================================================
# Repository Providers
# =============================================================================


def get_user_repo(
    client: Client = Depends(get_supabase_client_required),
) -> UserProgressRepository:
    """
    Get UserProgressRepository implementation.

    Returns a SupabaseUserProgressRepository instance with injected client.
    The return type is the Protocol to enable easy faking.
    """
    return SupabaseUserProgressRepository(client)


def get_daily_progress_repo(
    client: Client = Depends(get_supabase_client_required),
) -> DailyProgressRepository:
    """Get DailyProgressRepository implementation."""
    return SupabaseDailyProgressRepository(client)


def get_workout_session_repo(
    client: Client = Depends(get_supabase_client_required),
) -> WorkoutSessionRepository:
    """Get WorkoutSessionRepository implementation."""
    return SupabaseWorkoutSessionRepository(client)


# =============================================================================
# Service Providers
# =============================================================================


def get_daily_reset_service(
    users: UserProgressRepository = Depends(get_user_repo),
    daily_progress: DailyProgressRepository = Depends(get_daily_progress_repo),
    sessions: WorkoutSessionRepository = Depends(get_workout_session_repo),
    settings: Settings = Depends(get_settings),
) -> DailyResetService:
    """
    Get DailyResetService wired to the request's repositories.

    Args:
        users: User progress repository (injected)
        daily_progress: Daily progress repository (injected)
        sessions: Workout session repository (injected)
        settings: Application settings (injected)
    """
    return DailyResetService(
        users,
        daily_progress,
        sessions,
        default_timezone=settings.default_timezone,
        daily_quest_completion_xp=settings.daily_quest_completion_xp,
        streak_freeze_threshold=settings.daily_quest_streak_freeze_threshold,
    )


def get_atrophy_service(
    users: UserProgressRepository = Depends(get_user_repo),
    settings: Settings = Depends(get_settings),
) -> AtrophyService:
    """Get AtrophyService configured from settings."""
    return AtrophyService(
        users,
        rate=settings.atrophy_rate,
        immunity_days=settings.new_user_immunity_days,
        batch_size=settings.batch_size,
    )


@lru_cache
def get_hp_regen_registry() -> HpRegenRegistry:
    """
    Get the process-wide HpRegenRegistry (cached).

    Each user gets their own HP state file under hp_state_dir. The shared
    background tick is started and stopped by the application lifespan.
    """
    settings = _get_settings()
    return HpRegenRegistry(
        lambda user_id: JsonFileHpStateStore(user_state_path(settings.hp_state_dir, user_id)),
        exempt_routes=settings.hp_regen_exempt_routes_list,
        percent_per_minute=settings.hp_regen_percent_per_minute,
        tick_seconds=settings.hp_regen_tick_seconds,
    )


def get_complete_workout_use_case(
    users: UserProgressRepository = Depends(get_user_repo),
    sessions: WorkoutSessionRepository = Depends(get_workout_session_repo),
    daily_reset: DailyResetService = Depends(get_daily_reset_service),
    settings: Settings = Depends(get_settings),
) -> CompleteWorkoutUseCase:
    """Get CompleteWorkoutUseCase with the configured streak bonus."""
    return CompleteWorkoutUseCase(
        users=users,
        sessions=sessions,
        daily_reset=daily_reset,
        streak_bonus_threshold_days=settings.streak_bonus_threshold_days,
        streak_bonus_multiplier=settings.streak_bonus_multiplier,
    )


# =============================================================================
# Authentication Providers
# =============================================================================


async def get_current_user(
    authorization: Optional[str] = Header(None),
    x_api_key: Optional[str] = Header(None, alias="X-API-Key"),
) -> str:
    """
    Get the current authenticated user ID.

    Wraps backend.auth.get_current_user for dependency injection.

    Raises:
        HTTPException: 401 if authentication fails
    """
    return await _get_current_user(authorization=authorization, x_api_key=x_api_key)


def get_hp_regen_service(
    user_id: str = Depends(get_current_user),
    registry: HpRegenRegistry = Depends(get_hp_regen_registry),
) -> HpRegenService:
    """Get the authenticated user's HpRegenService from the registry."""
    return registry.for_user(user_id)


# =============================================================================
# Exports
# =============================================================================

__all__ = [
    # Settings
    "get_settings",
    # Database
    "get_supabase_client",
    "get_supabase_client_required",
    # Repositories
    "get_user_repo",
    "get_daily_progress_repo",
    "get_workout_session_repo",
    # Services
    "get_daily_reset_service",
    "get_atrophy_service",
    "get_complete_workout_use_case",
    "get_hp_regen_registry",
    # Authentication
    "get_current_user",
    "get_hp_regen_service",
]
