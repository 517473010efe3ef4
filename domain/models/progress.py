"""
Character progression domain models.

UserProgress is the subset of the user record the progression engine reads
and writes. DailyProgress is one row per user per local calendar date.
WorkoutSession is the persisted summary of a completed workout.
"""

import re
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator

DAILY_QUESTS = ("hydration", "steps", "protein", "sleep")

ISO_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def _check_iso_date(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    if not ISO_DATE_PATTERN.match(value):
        raise ValueError(f"Expected YYYY-MM-DD date, got '{value}'")
    return value


class UserProgress(BaseModel):
    """
    Progression fields of a user row.

    `level` is always derived from `experience` and each stat level from its
    own cumulative stat XP. The engine recomputes them on every mutation.
    """

    id: str = Field(..., min_length=1)
    level: int = Field(default=1, ge=1)
    experience: int = Field(default=0, ge=0)

    strength: int = Field(default=1, ge=0)
    stamina: int = Field(default=1, ge=0)
    agility: int = Field(default=1, ge=0)
    strength_xp: int = Field(default=0, ge=0)
    stamina_xp: int = Field(default=0, ge=0)
    agility_xp: int = Field(default=0, ge=0)

    current_streak: int = Field(default=0, ge=0)
    last_activity_date: Optional[str] = None
    last_streak_date: Optional[str] = None
    streak_freeze_count: int = Field(default=0, ge=0)
    atrophy_immunity_until: Optional[str] = None

    timezone: Optional[str] = Field(default=None, description="IANA timezone name")
    body_weight_lbs: Optional[float] = Field(default=None, gt=0)

    @field_validator("last_activity_date", "last_streak_date", "atrophy_immunity_until")
    @classmethod
    def validate_dates(cls, v: Optional[str]) -> Optional[str]:
        return _check_iso_date(v)

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "UserProgress":
        """Build from a database row, ignoring columns the engine doesn't use."""
        data = {k: v for k, v in row.items() if k in cls.model_fields and v is not None}
        data["id"] = str(row["id"])
        return cls(**data)


class DailyProgress(BaseModel):
    """Daily quest flags and award markers for one user on one local date."""

    user_id: str
    date: str
    hydration: bool = False
    steps: bool = False
    protein: bool = False
    sleep: bool = False
    xp_awarded: bool = False
    streak_freeze_awarded: bool = False

    @field_validator("date")
    @classmethod
    def validate_date(cls, v: str) -> str:
        return _check_iso_date(v)

    @property
    def completed_quests(self) -> int:
        """Number of the four daily quests marked complete."""
        return sum(1 for quest in DAILY_QUESTS if getattr(self, quest))

    @classmethod
    def fresh(cls, user_id: str, date: str) -> "DailyProgress":
        """An all-false row for a new day."""
        return cls(user_id=user_id, date=date)


class WorkoutSession(BaseModel):
    """Summary of a completed workout session."""

    id: Optional[str] = None
    user_id: str
    date: str = Field(..., description="Local date the session was completed on")
    name: str = "Workout Session"
    duration_minutes: float = Field(default=0, ge=0)
    total_volume: float = Field(default=0, ge=0)
    xp_earned: int = Field(default=0, ge=0)
    strength_xp: int = Field(default=0, ge=0)
    stamina_xp: int = Field(default=0, ge=0)
    agility_xp: int = Field(default=0, ge=0)
    energy_code: Optional[str] = Field(default=None, description="Dominant energy system code")
    completed: bool = True

    @field_validator("date")
    @classmethod
    def validate_date(cls, v: str) -> str:
        return _check_iso_date(v)
