"""
Repository Interfaces (Ports) for the Guild Progression API.

This package defines abstract interfaces that decouple the progression
engine from infrastructure (database, durable state storage).
Implementations are provided in the infrastructure layer.

Architecture follows the Ports & Adapters (Hexagonal) pattern:
- Ports: Abstract interfaces defined here (what the engine needs)
- Adapters: Concrete implementations in infrastructure/ (how it's provided)

Usage:
    from application.ports import UserProgressRepository

    class AtrophyService:
        def __init__(self, users: UserProgressRepository):
            self.users = users
"""

# User progression persistence
from application.ports.user_progress_repository import UserProgressRepository

# Daily quest persistence
from application.ports.daily_progress_repository import DailyProgressRepository

# Workout session persistence
from application.ports.workout_session_repository import WorkoutSessionRepository

# HP regeneration state storage
from application.ports.hp_state_store import HpStateStore, HpRegenState

__all__ = [
    "UserProgressRepository",
    "DailyProgressRepository",
    "WorkoutSessionRepository",
    "HpStateStore",
    "HpRegenState",
]
