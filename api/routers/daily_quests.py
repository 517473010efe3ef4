"""
Daily quests router.

This router provides endpoints for:
- Today's daily quest row (runs the daily reset check first)
- Toggling a daily quest
- Spending a streak freeze manually
"""
import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Path
from pydantic import BaseModel

from api.deps import (
    get_atrophy_service,
    get_current_user,
    get_daily_reset_service,
    get_user_repo,
)
from api.errors import to_http_exception
from application.exceptions import ProgressionError
from application.ports import UserProgressRepository
from backend.core.atrophy import AtrophyService
from backend.core.daily_reset import DailyResetService
from domain.models import DAILY_QUESTS, DailyProgress, UserProgress

logger = logging.getLogger(__name__)

router = APIRouter(
    tags=["Daily Quests"],
)


# =============================================================================
# Request/Response Models
# =============================================================================


class DailyProgressResponse(BaseModel):
    date: str
    hydration: bool
    steps: bool
    protein: bool
    sleep: bool
    completed_quests: int
    xp_awarded: bool
    streak_freeze_awarded: bool
    reset_applied: bool = False
    next_reset_at: Optional[datetime] = None


class ToggleQuestRequest(BaseModel):
    completed: bool = True


class ToggleQuestResponse(BaseModel):
    progress: DailyProgressResponse
    xp_awarded: int
    streak_freeze_awarded: bool


class StreakFreezeResponse(BaseModel):
    used: bool
    streak_freeze_count: int
    current_streak: int


# =============================================================================
# Helpers
# =============================================================================


def _require_user(users: UserProgressRepository, user_id: str) -> UserProgress:
    user = users.get_user(user_id)
    if user is None:
        raise HTTPException(status_code=404, detail=f"User not found: {user_id}")
    return user


def _progress_response(progress: DailyProgress, **extra) -> DailyProgressResponse:
    return DailyProgressResponse(
        date=progress.date,
        hydration=progress.hydration,
        steps=progress.steps,
        protein=progress.protein,
        sleep=progress.sleep,
        completed_quests=progress.completed_quests,
        xp_awarded=progress.xp_awarded,
        streak_freeze_awarded=progress.streak_freeze_awarded,
        **extra,
    )


# =============================================================================
# Endpoints
# =============================================================================


@router.get("/daily-progress", response_model=DailyProgressResponse)
def get_daily_progress(
    user_id: str = Depends(get_current_user),
    users: UserProgressRepository = Depends(get_user_repo),
    daily_reset: DailyResetService = Depends(get_daily_reset_service),
) -> DailyProgressResponse:
    """
    Get today's quest flags in the caller's timezone.

    Starts a new day first when the last row is from an earlier date,
    spending a streak freeze if yesterday was missed.
    """
    try:
        user = _require_user(users, user_id)
        reset = daily_reset.check_and_reset_daily_quests(user_id, user.timezone)
        progress = daily_reset.get_daily_progress(user_id, user.timezone)
        next_reset = daily_reset.get_next_midnight_for_user(user.timezone)
    except ProgressionError as e:
        raise to_http_exception(e) from e

    return _progress_response(progress, reset_applied=reset, next_reset_at=next_reset)


@router.post("/daily-progress/quests/{quest}", response_model=ToggleQuestResponse)
def toggle_quest(
    request: ToggleQuestRequest,
    quest: str = Path(..., description=f"One of: {', '.join(DAILY_QUESTS)}"),
    user_id: str = Depends(get_current_user),
    users: UserProgressRepository = Depends(get_user_repo),
    daily_reset: DailyResetService = Depends(get_daily_reset_service),
) -> ToggleQuestResponse:
    """
    Mark a daily quest complete or incomplete for today.

    Completing all quests awards bonus XP once per day; reaching the freeze
    threshold awards one streak freeze once per day.
    """
    if quest not in DAILY_QUESTS:
        raise HTTPException(
            status_code=400,
            detail=f"Unknown quest '{quest}'. Use one of: {', '.join(DAILY_QUESTS)}",
        )
    try:
        user = _require_user(users, user_id)
        result = daily_reset.toggle_daily_quest(
            user_id, quest, request.completed, user_timezone=user.timezone
        )
    except ProgressionError as e:
        raise to_http_exception(e) from e

    return ToggleQuestResponse(
        progress=_progress_response(result.progress),
        xp_awarded=result.xp_awarded,
        streak_freeze_awarded=result.streak_freeze_awarded,
    )


@router.post("/streak-freeze/use", response_model=StreakFreezeResponse)
def use_streak_freeze(
    user_id: str = Depends(get_current_user),
    users: UserProgressRepository = Depends(get_user_repo),
    atrophy: AtrophyService = Depends(get_atrophy_service),
) -> StreakFreezeResponse:
    """
    Spend one streak freeze to count today as active.

    Returns 409 when the user has no freezes left.
    """
    try:
        used = atrophy.use_streak_freeze(user_id)
        user = _require_user(users, user_id)
    except ProgressionError as e:
        raise to_http_exception(e) from e

    if not used:
        raise HTTPException(status_code=409, detail="No streak freezes available")

    return StreakFreezeResponse(
        used=True,
        streak_freeze_count=user.streak_freeze_count,
        current_streak=user.current_streak,
    )
