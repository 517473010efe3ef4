"""
Progress router for character level, stats and workout completion.

This router provides endpoints for:
- Level, title and per-stat progress for the current user
- Completing a workout (detailed sets or a legacy summary)
"""
import logging
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from api.deps import (
    get_complete_workout_use_case,
    get_current_user,
    get_settings,
    get_user_repo,
)
from api.errors import to_http_exception
from application.exceptions import ProgressionError
from application.ports import UserProgressRepository
from application.use_cases import (
    CompleteWorkoutUseCase,
    DetailedWorkout,
    WorkoutSummary,
)
from backend.core.level_curve import CurveProgress, get_level_progress, get_stat_progress, level_title
from backend.core.streak_bonus import get_streak_xp_multiplier
from backend.core.workout_validation import ExercisePerformance, WorkoutSet
from backend.settings import Settings

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/progress",
    tags=["Progress"],
)


# =============================================================================
# Request/Response Models
# =============================================================================


class CurveProgressResponse(BaseModel):
    """Position within the current level."""
    level: int
    current_xp: int
    xp_to_next_level: int
    total_xp_for_current_level: int


class StatProgressResponse(CurveProgressResponse):
    total_xp: int


class StreakResponse(BaseModel):
    current_streak: int
    last_streak_date: Optional[str] = None
    streak_freeze_count: int
    multiplier: float
    bonus_active: bool


class ProgressResponse(BaseModel):
    """Response model for the progress endpoint."""
    user_id: str
    level: int
    title: str
    experience: int
    level_progress: CurveProgressResponse
    stats: Dict[str, StatProgressResponse]
    streak: StreakResponse
    last_activity_date: Optional[str] = None


class WorkoutSetRequest(BaseModel):
    """One logged set. Weight in lbs, duration in seconds."""
    reps: int = Field(default=0, ge=0)
    weight: Optional[float] = Field(default=None, ge=0)
    duration: Optional[float] = Field(default=None, ge=0)
    completed: bool = True


class ExerciseRequest(BaseModel):
    name: str = Field(..., min_length=1)
    category: str = Field(..., min_length=1, description="e.g. strength, cardio, hiit, yoga")
    sets: List[WorkoutSetRequest] = Field(default_factory=list)


class CompleteWorkoutRequest(BaseModel):
    """
    Request to complete a workout.

    With `exercises` the workout is scored per set by the allocation engine
    and `reported_rpe` is required; without it the summary totals are used.
    """
    name: str = Field(default="Workout Session", max_length=200)
    duration_minutes: float = Field(..., ge=0)
    reported_rpe: Optional[float] = Field(default=None, ge=1, le=10)
    bodyweight_lbs: Optional[float] = Field(default=None, gt=0)
    exercises: Optional[List[ExerciseRequest]] = None
    total_volume: float = Field(default=0, ge=0)
    exercise_count: int = Field(default=0, ge=0)


class CompleteWorkoutResponse(BaseModel):
    session_id: Optional[str] = None
    base_xp: int
    xp_earned: int
    bonus_xp: int
    streak_bonus_active: bool
    stat_xp: Dict[str, int]
    energy_code: Optional[str] = None
    level: int
    previous_level: int
    leveled_up: bool
    experience: int
    current_streak: int
    is_valid: bool = True
    validation_errors: List[str] = Field(default_factory=list)
    suspicious_reasons: List[str] = Field(default_factory=list)


# =============================================================================
# Helpers
# =============================================================================


def _curve(progress: CurveProgress) -> CurveProgressResponse:
    return CurveProgressResponse(
        level=progress.level,
        current_xp=progress.current_xp,
        xp_to_next_level=progress.xp_to_next_level,
        total_xp_for_current_level=progress.total_xp_for_current_level,
    )


def _to_workout(request: CompleteWorkoutRequest):
    if request.exercises is None:
        return WorkoutSummary(
            duration_minutes=request.duration_minutes,
            total_volume=request.total_volume,
            exercise_count=request.exercise_count,
            name=request.name,
        )

    if request.reported_rpe is None:
        raise HTTPException(
            status_code=422,
            detail="reported_rpe is required when exercises are provided",
        )
    return DetailedWorkout(
        duration_minutes=request.duration_minutes,
        reported_rpe=request.reported_rpe,
        bodyweight_lbs=request.bodyweight_lbs,
        name=request.name,
        performances=[
            ExercisePerformance(
                name=exercise.name,
                category=exercise.category.lower(),
                sets=[
                    WorkoutSet(
                        reps=s.reps,
                        weight=s.weight,
                        duration=s.duration,
                        completed=s.completed,
                    )
                    for s in exercise.sets
                ],
            )
            for exercise in request.exercises
        ],
    )


# =============================================================================
# Endpoints
# =============================================================================


@router.get("", response_model=ProgressResponse)
def get_progress(
    user_id: str = Depends(get_current_user),
    users: UserProgressRepository = Depends(get_user_repo),
    settings: Settings = Depends(get_settings),
) -> ProgressResponse:
    """
    Get the caller's level, title, stat breakdown and streak bonus status.
    """
    try:
        user = users.get_user(user_id)
    except ProgressionError as e:
        raise to_http_exception(e) from e
    if user is None:
        raise HTTPException(status_code=404, detail=f"User not found: {user_id}")

    level_progress = get_level_progress(user.experience)
    stats = {}
    for stat in ("strength", "stamina", "agility"):
        total = getattr(user, f"{stat}_xp")
        progress = get_stat_progress(total)
        stats[stat] = StatProgressResponse(total_xp=total, **_curve(progress).model_dump())

    bonus = get_streak_xp_multiplier(
        user.current_streak,
        threshold_days=settings.streak_bonus_threshold_days,
        multiplier=settings.streak_bonus_multiplier,
    )

    return ProgressResponse(
        user_id=user.id,
        level=level_progress.level,
        title=level_title(level_progress.level),
        experience=user.experience,
        level_progress=_curve(level_progress),
        stats=stats,
        streak=StreakResponse(
            current_streak=user.current_streak,
            last_streak_date=user.last_streak_date,
            streak_freeze_count=user.streak_freeze_count,
            multiplier=bonus.multiplier,
            bonus_active=bonus.bonus_active,
        ),
        last_activity_date=user.last_activity_date,
    )


@router.post("/workouts", response_model=CompleteWorkoutResponse)
def complete_workout(
    request: CompleteWorkoutRequest,
    user_id: str = Depends(get_current_user),
    use_case: CompleteWorkoutUseCase = Depends(get_complete_workout_use_case),
) -> CompleteWorkoutResponse:
    """
    Complete a workout and apply its XP, stat XP and streak.

    Invalid detailed workouts are recorded with zero XP and their validation
    errors are returned.
    """
    workout = _to_workout(request)
    try:
        result = use_case.execute(user_id, workout)
    except ProgressionError as e:
        raise to_http_exception(e) from e

    validation = result.validation
    return CompleteWorkoutResponse(
        session_id=result.session.id,
        base_xp=result.base_xp,
        xp_earned=result.xp_earned,
        bonus_xp=result.bonus_xp,
        streak_bonus_active=result.streak_bonus_active,
        stat_xp=result.stat_xp,
        energy_code=result.energy_code,
        level=result.user.level,
        previous_level=result.previous_level,
        leveled_up=result.leveled_up,
        experience=result.user.experience,
        current_streak=result.user.current_streak,
        is_valid=validation.is_valid if validation else True,
        validation_errors=validation.validation_errors if validation else [],
        suspicious_reasons=result.suspicious_reasons,
    )
