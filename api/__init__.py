"""
API package for the Guild Progression API.

This package contains:
- deps.py: FastAPI dependency providers for DI
- errors.py: progression error to HTTP error mapping
- routers/: API route handlers
"""

# Re-export dependency providers for convenient access
from api.deps import (
    get_settings,
    get_supabase_client,
    get_supabase_client_required,
    get_user_repo,
    get_daily_progress_repo,
    get_workout_session_repo,
    get_daily_reset_service,
    get_atrophy_service,
    get_complete_workout_use_case,
    get_current_user,
)

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
    # Authentication
    "get_current_user",
]
