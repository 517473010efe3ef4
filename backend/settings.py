"""
Centralized settings configuration using Pydantic BaseSettings.

All environment variables are defined here with types, defaults, and validation.
Use get_settings() for dependency injection compatibility in FastAPI.

Usage:
    from backend.settings import get_settings, Settings

    # In FastAPI endpoints (dependency injection)
    @app.get("/")
    def read_root(settings: Settings = Depends(get_settings)):
        return {"environment": settings.environment}

    # Direct access (module-level)
    settings = get_settings()
    print(settings.atrophy_rate)
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # -------------------------------------------------------------------------
    # Core Environment
    # -------------------------------------------------------------------------
    environment: str = Field(
        default="development",
        description="Runtime environment: development, staging, production",
    )

    # -------------------------------------------------------------------------
    # Supabase Database
    # -------------------------------------------------------------------------
    supabase_url: Optional[str] = Field(
        default=None,
        description="Supabase project URL",
    )
    supabase_service_role_key: Optional[str] = Field(
        default=None,
        description="Supabase service role key (full access)",
    )
    supabase_anon_key: Optional[str] = Field(
        default=None,
        description="Supabase anonymous key (limited access)",
    )

    @property
    def supabase_key(self) -> Optional[str]:
        """Get the best available Supabase key (service role preferred)."""
        return self.supabase_service_role_key or self.supabase_anon_key

    # -------------------------------------------------------------------------
    # Authentication
    # -------------------------------------------------------------------------
    jwt_secret: str = Field(
        default="guild-jwt-secret-change-in-production",
        description="Secret key for HS256 bearer token validation",
    )
    api_keys: str = Field(
        default="",
        description="Comma-separated list of valid API keys",
    )

    @property
    def api_keys_list(self) -> list[str]:
        """Parse API keys into a list."""
        return [k.strip() for k in self.api_keys.split(",") if k.strip()]

    # -------------------------------------------------------------------------
    # Calendar
    # -------------------------------------------------------------------------
    default_timezone: str = Field(
        default="",
        description="IANA timezone used when a user has none (empty: server local)",
    )

    # -------------------------------------------------------------------------
    # Progression - Streaks and Daily Quests
    # -------------------------------------------------------------------------
    streak_bonus_threshold_days: int = Field(
        default=3,
        ge=0,
        description="Streak length at which the XP bonus starts",
    )
    streak_bonus_multiplier: float = Field(
        default=1.5,
        ge=1.0,
        description="XP multiplier applied once the streak threshold is reached",
    )
    daily_quest_completion_xp: int = Field(
        default=25,
        ge=0,
        description="Bonus XP for completing all daily quests",
    )
    daily_quest_streak_freeze_threshold: int = Field(
        default=4,
        ge=1,
        le=4,
        description="Completed daily quests needed to earn a streak freeze",
    )

    # -------------------------------------------------------------------------
    # Progression - Atrophy
    # -------------------------------------------------------------------------
    atrophy_rate: float = Field(
        default=0.01,
        ge=0.0,
        le=1.0,
        description="Fraction of stat XP lost per atrophy run",
    )
    new_user_immunity_days: int = Field(
        default=7,
        ge=0,
        description="Days of atrophy immunity granted to new users",
    )
    batch_size: int = Field(
        default=10,
        ge=1,
        description="Concurrent users per batch for bulk maintenance jobs",
    )

    # -------------------------------------------------------------------------
    # HP Regeneration
    # -------------------------------------------------------------------------
    hp_regen_tick_seconds: float = Field(
        default=5.0,
        gt=0,
        description="Seconds between HP regeneration ticks",
    )
    hp_regen_percent_per_minute: float = Field(
        default=1.0,
        ge=0,
        description="Percent of max HP regenerated per minute",
    )
    hp_regen_exempt_routes: str = Field(
        default="/pve-dungeons,/dungeon-battle",
        description="Comma-separated route fragments; no HP accrues on a route containing one",
    )
    hp_state_dir: str = Field(
        default=".guild/hp_state",
        description="Directory holding one HP regeneration state file per user",
    )

    @property
    def hp_regen_exempt_routes_list(self) -> list[str]:
        """Parse exempt routes into a list."""
        return [r.strip() for r in self.hp_regen_exempt_routes.split(",") if r.strip()]

    # -------------------------------------------------------------------------
    # Observability - Sentry
    # -------------------------------------------------------------------------
    sentry_dsn: Optional[str] = Field(
        default=None,
        description="Sentry DSN for error tracking",
    )

    # -------------------------------------------------------------------------
    # Validators
    # -------------------------------------------------------------------------
    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Ensure environment is a valid value."""
        valid_environments = {"development", "staging", "production", "test"}
        if v.lower() not in valid_environments:
            raise ValueError(
                f"Invalid environment '{v}'. Must be one of: {valid_environments}"
            )
        return v.lower()

    @field_validator("default_timezone")
    @classmethod
    def strip_timezone(cls, v: str) -> str:
        return v.strip()

    # -------------------------------------------------------------------------
    # Helper Properties
    # -------------------------------------------------------------------------
    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"

    @property
    def is_test(self) -> bool:
        """Check if running in test environment."""
        return self.environment == "test"


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    For testing, you can clear the cache with get_settings.cache_clear().

    Returns:
        Settings: Application settings instance
    """
    return Settings()
