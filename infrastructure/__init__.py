"""
Infrastructure Layer for the Guild Progression API.

This package contains concrete implementations of repository interfaces:
- db/: Supabase database implementations
- hp_state_store: JSON file and in-memory HP regen state storage
"""

# Re-export database repositories for convenient access
from infrastructure.db import (
    SupabaseUserProgressRepository,
    SupabaseDailyProgressRepository,
    SupabaseWorkoutSessionRepository,
)
from infrastructure.hp_state_store import (
    InMemoryHpStateStore,
    JsonFileHpStateStore,
    user_state_path,
)

__all__ = [
    "SupabaseUserProgressRepository",
    "SupabaseDailyProgressRepository",
    "SupabaseWorkoutSessionRepository",
    "JsonFileHpStateStore",
    "InMemoryHpStateStore",
    "user_state_path",
]
