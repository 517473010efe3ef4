"""
Infrastructure Database Layer.

This package provides Supabase-backed implementations of the repository interfaces
defined in application.ports. These implementations can be injected into services
and routers for clean separation of concerns and testability.

Usage:
    from supabase import create_client
    from infrastructure.db import (
        SupabaseUserProgressRepository,
        SupabaseDailyProgressRepository,
        SupabaseWorkoutSessionRepository,
    )

    # Create Supabase client
    client = create_client(SUPABASE_URL, SUPABASE_KEY)

    # Instantiate repositories with injected client
    user_repo = SupabaseUserProgressRepository(client)
    daily_repo = SupabaseDailyProgressRepository(client)
    session_repo = SupabaseWorkoutSessionRepository(client)
"""

from infrastructure.db.user_progress_repository import SupabaseUserProgressRepository
from infrastructure.db.daily_progress_repository import SupabaseDailyProgressRepository
from infrastructure.db.workout_session_repository import SupabaseWorkoutSessionRepository

__all__ = [
    # User progression
    "SupabaseUserProgressRepository",

    # Daily quests
    "SupabaseDailyProgressRepository",

    # Workout sessions
    "SupabaseWorkoutSessionRepository",
]
