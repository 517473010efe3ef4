"""
Application factory for FastAPI.

The factory pattern allows for:
- Easy testing with custom settings
- Multiple app instances with different configurations
- Clear separation of app creation from route definitions

Usage:
    from backend.main import create_app
    from backend.settings import Settings

    # Default app (uses get_settings())
    app = create_app()

    # Test app with custom settings
    test_settings = Settings(environment="test", _env_file=None)
    test_app = create_app(settings=test_settings)
"""

import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

import sentry_sdk
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from backend.settings import Settings, get_settings

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Create and configure a FastAPI application instance.

    Args:
        settings: Optional Settings instance. If not provided, uses get_settings()
                  which loads from environment variables.

    Returns:
        Configured FastAPI application instance.
    """
    if settings is None:
        settings = get_settings()

    _init_sentry(settings)

    app = FastAPI(
        title="Guild Progression API",
        description="XP, leveling, streak and daily quest engine for The Guild",
        version="1.0.0",
        lifespan=_lifespan if not settings.is_test else None,
    )

    _configure_cors(app)
    _include_routers(app)
    _log_tunables(settings)

    return app


@asynccontextmanager
async def _lifespan(app: FastAPI):
    """Run the HP regeneration tick for the lifetime of the app."""
    from api.deps import get_hp_regen_registry

    hp_regen = get_hp_regen_registry()
    hp_regen.start()
    try:
        yield
    finally:
        hp_regen.stop()


def _init_sentry(settings: Settings) -> None:
    """Initialize Sentry SDK if DSN is configured."""
    if settings.sentry_dsn:
        sentry_sdk.init(
            dsn=settings.sentry_dsn,
            environment=settings.environment,
            traces_sample_rate=0.1,
            profiles_sample_rate=0.1,
            enable_tracing=True,
        )
        logger.info("Sentry initialized for guild-progression")


def _configure_cors(app: FastAPI) -> None:
    """Configure CORS middleware for the application."""
    trusted_origins = [
        "http://localhost:3000",
        "http://localhost:5173",
    ]
    production_origins = os.environ.get("CORS_ALLOWED_ORIGINS", "").split(",")
    trusted_origins.extend([origin.strip() for origin in production_origins if origin.strip()])

    app.add_middleware(
        CORSMiddleware,
        allow_origins=trusted_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


def _include_routers(app: FastAPI) -> None:
    """Include all API routers in the application."""
    from api.routers import (
        atrophy_router,
        daily_quests_router,
        health_router,
        hp_router,
        progress_router,
    )

    # Health router (no prefix - /health at root)
    app.include_router(health_router)

    app.include_router(progress_router)
    app.include_router(daily_quests_router)
    app.include_router(atrophy_router)
    app.include_router(hp_router)


def _log_tunables(settings: Settings) -> None:
    """Log the progression tunables in effect at startup."""
    logger.info(
        "Streak bonus x%s from %s days; atrophy rate %s; daily quest bonus %s XP",
        settings.streak_bonus_multiplier,
        settings.streak_bonus_threshold_days,
        settings.atrophy_rate,
        settings.daily_quest_completion_xp,
    )
    if not settings.supabase_url:
        logger.warning("SUPABASE_URL is not set; progression endpoints will return 503")


# Default app instance for uvicorn
# This allows: uvicorn backend.main:app --reload
app = create_app()
