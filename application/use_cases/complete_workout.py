"""
CompleteWorkout Use Case.

Turns a finished workout into character progression:

1. Run the pending daily reset, so a missed yesterday is settled first
2. Compute base XP and stat XP with the detailed allocation engine (sets
   with RPE) or the legacy summary calculators
3. Apply the streak bonus
4. Recompute level and stat levels from the new XP totals
5. Write everything, including the streak, in one compare-and-set update
6. Record the workout session

A workout that earns no XP changes nothing on the user row. If the session
cannot be recorded the user update is rolled back and the error propagates.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Union

from application.exceptions import ActivityValidationError, PersistenceError, UserNotFoundError
from application.ports import UserProgressRepository, WorkoutSessionRepository
from backend.core.daily_reset import CAS_ATTEMPTS, DailyResetService, next_streak
from backend.core.legacy_rewards import calculate_stat_xp_gains, calculate_xp_reward
from backend.core.level_curve import level_from_xp, stat_level_from_xp
from backend.core.stat_allocation import XPAllocation, apply_daily_caps
from backend.core.streak_bonus import apply_streak_bonus
from backend.core.workout_validation import (
    ExercisePerformance,
    WorkoutValidationResult,
    WorkoutValidator,
)
from domain.models import UserProgress, WorkoutSession

logger = logging.getLogger(__name__)

STATS = ("strength", "stamina", "agility")


@dataclass
class DetailedWorkout:
    """A workout with per-set data, scored by the allocation engine."""

    duration_minutes: float
    reported_rpe: float
    performances: List[ExercisePerformance]
    name: str = "Workout Session"
    bodyweight_lbs: Optional[float] = None


@dataclass
class WorkoutSummary:
    """A workout with only totals, scored by the legacy calculators."""

    duration_minutes: float
    total_volume: float = 0
    exercise_count: int = 0
    name: str = "Workout Session"


@dataclass
class CompleteWorkoutResult:
    """Result of the CompleteWorkout use case execution."""

    user: UserProgress
    session: WorkoutSession
    base_xp: int
    xp_earned: int
    bonus_xp: int
    stat_xp: Dict[str, int]
    streak_bonus_active: bool = False
    previous_level: int = 1
    validation: Optional[WorkoutValidationResult] = None
    energy_code: Optional[str] = None
    suspicious_reasons: List[str] = field(default_factory=list)

    @property
    def leveled_up(self) -> bool:
        return self.user.level > self.previous_level


class CompleteWorkoutUseCase:
    """
    Use case for applying a completed workout to a user.

    Dependencies are injected via constructor for testability.

    Usage:
        >>> use_case = CompleteWorkoutUseCase(
        ...     users=users, sessions=sessions, daily_reset=daily_reset
        ... )
        >>> result = use_case.execute("user-123", WorkoutSummary(duration_minutes=45))
        >>> result.xp_earned
    """

    def __init__(
        self,
        users: UserProgressRepository,
        sessions: WorkoutSessionRepository,
        daily_reset: DailyResetService,
        *,
        validator: Optional[WorkoutValidator] = None,
        streak_bonus_threshold_days: int = 3,
        streak_bonus_multiplier: float = 1.5,
    ) -> None:
        self._users = users
        self._sessions = sessions
        self._daily_reset = daily_reset
        self._validator = validator or WorkoutValidator()
        self._streak_threshold = streak_bonus_threshold_days
        self._streak_multiplier = streak_bonus_multiplier

    def execute(
        self,
        user_id: str,
        workout: Union[DetailedWorkout, WorkoutSummary],
    ) -> CompleteWorkoutResult:
        """
        Apply a workout's rewards to the user.

        Raises:
            UserNotFoundError: the user does not exist (nothing is written)
            ActivityValidationError: the workout data is malformed
            PersistenceError: the update kept losing to concurrent writes
        """
        user = self._require_user(user_id)

        # A missed yesterday must be settled before today's workout extends the streak
        self._daily_reset.check_and_reset_daily_quests(user_id, user.timezone)
        user = self._require_user(user_id)

        today = self._daily_reset.get_current_date_for_user(user.timezone)
        allocation, validation, volume = self._score(user, workout, today)

        updated = user
        previous = user
        applied: Dict[str, object] = {}
        xp_earned = bonus_xp = 0
        stat_xp = {stat: 0 for stat in STATS}
        bonus_active = False

        for _ in range(CAS_ATTEMPTS):
            main = self._bonus(allocation.xp_total, user.current_streak)
            stat_xp = {
                "strength": self._bonus(allocation.xp_str, user.current_streak).final_xp,
                "stamina": self._bonus(allocation.xp_sta, user.current_streak).final_xp,
                "agility": self._bonus(allocation.xp_agi, user.current_streak).final_xp,
            }
            xp_earned, bonus_xp = main.final_xp, main.bonus_xp
            bonus_active = main.bonus_info.bonus_active

            fields = self._progress_fields(user, xp_earned, stat_xp, today)
            if not fields:
                updated = user
                break

            expected = {
                "experience": user.experience,
                "strength_xp": user.strength_xp,
                "stamina_xp": user.stamina_xp,
                "agility_xp": user.agility_xp,
                "current_streak": user.current_streak,
                "last_streak_date": user.last_streak_date,
            }
            result = self._users.update_user(user_id, fields, expected=expected)
            if result is not None:
                updated = result
                previous = user
                applied = fields
                break

            user = self._require_user(user_id)
        else:
            raise PersistenceError(f"Workout rewards for user {user_id} kept conflicting")

        try:
            session = self._sessions.create_workout_session(
                WorkoutSession(
                    user_id=user_id,
                    date=today,
                    name=workout.name,
                    duration_minutes=workout.duration_minutes,
                    total_volume=volume,
                    xp_earned=xp_earned,
                    strength_xp=stat_xp["strength"],
                    stamina_xp=stat_xp["stamina"],
                    agility_xp=stat_xp["agility"],
                    energy_code=allocation.energy_code,
                    completed=xp_earned > 0,
                )
            )
        except Exception:
            if applied:
                try:
                    self._revert(previous, updated, applied)
                except Exception:
                    logger.exception("Rollback of workout rewards failed for user %s", user_id)
            raise

        if xp_earned > 0:
            logger.info(
                "Workout rewards for user %s: +%d XP (bonus %d), level %d -> %d",
                user_id, xp_earned, bonus_xp, user.level, updated.level,
            )

        return CompleteWorkoutResult(
            user=updated,
            session=session,
            base_xp=allocation.xp_total,
            xp_earned=xp_earned,
            bonus_xp=bonus_xp,
            stat_xp=stat_xp,
            streak_bonus_active=bonus_active,
            previous_level=user.level,
            validation=validation,
            energy_code=allocation.energy_code,
            suspicious_reasons=validation.suspicious_reasons if validation else [],
        )

    def _require_user(self, user_id: str) -> UserProgress:
        user = self._users.get_user(user_id)
        if user is None:
            raise UserNotFoundError(user_id)
        return user

    def _revert(
        self,
        previous: UserProgress,
        updated: UserProgress,
        fields: Dict[str, object],
    ) -> None:
        """Put back the columns of a reward update whose session was not recorded."""
        restored = self._users.update_user(
            previous.id,
            {column: getattr(previous, column) for column in fields},
            expected={column: getattr(updated, column) for column in fields},
        )
        if restored is None:
            logger.error("Could not roll back workout rewards for user %s", previous.id)
        else:
            logger.warning("Rolled back workout rewards for user %s", previous.id)

    def _score(
        self,
        user: UserProgress,
        workout: Union[DetailedWorkout, WorkoutSummary],
        today: str,
    ):
        if isinstance(workout, DetailedWorkout):
            bodyweight = workout.bodyweight_lbs or user.body_weight_lbs
            if not bodyweight:
                raise ActivityValidationError(
                    "Body weight is required for detailed workouts",
                    ["bodyweight_lbs is missing"],
                )
            validated = self._validator.calculate_validated_xp(
                workout.performances,
                workout.duration_minutes,
                bodyweight,
                workout.reported_rpe,
            )
            allocation = XPAllocation(
                xp_total=validated.xp_total,
                xp_str=validated.xp_str,
                xp_sta=validated.xp_sta,
                xp_agi=validated.xp_agi,
                energy_code=validated.energy_code,
            )
            allocation = apply_daily_caps(self._todays_allocations(user.id, today), allocation)
            volume = sum(
                (s.reps or 0) * (s.weight or 0)
                for p in workout.performances
                for s in p.completed_sets
            )
            return allocation, validated.validation, volume

        if workout.duration_minutes < 0 or workout.total_volume < 0 or workout.exercise_count < 0:
            raise ActivityValidationError(
                "Invalid workout summary",
                ["duration, volume and exercise count must not be negative"],
            )
        stat_gains = calculate_stat_xp_gains(workout.duration_minutes, workout.total_volume)
        allocation = XPAllocation(
            xp_total=calculate_xp_reward(
                workout.duration_minutes, workout.total_volume, workout.exercise_count
            ),
            xp_str=stat_gains.strength_xp,
            xp_sta=stat_gains.stamina_xp,
            xp_agi=stat_gains.agility_xp,
        )
        return allocation, None, workout.total_volume

    def _todays_allocations(self, user_id: str, today: str) -> List[XPAllocation]:
        return [
            XPAllocation(
                xp_total=s.xp_earned,
                xp_str=s.strength_xp,
                xp_sta=s.stamina_xp,
                xp_agi=s.agility_xp,
                energy_code=s.energy_code,
            )
            for s in self._sessions.get_workout_sessions_by_user_and_date(user_id, today)
        ]

    def _bonus(self, xp: int, streak: int):
        return apply_streak_bonus(
            xp,
            streak,
            threshold_days=self._streak_threshold,
            multiplier=self._streak_multiplier,
        )

    @staticmethod
    def _progress_fields(
        user: UserProgress,
        xp_earned: int,
        stat_xp: Dict[str, int],
        today: str,
    ) -> Dict[str, object]:
        """Columns to write, or an empty dict when nothing changes."""
        fields: Dict[str, object] = {}

        for stat in STATS:
            gain = stat_xp[stat]
            if gain > 0:
                total = getattr(user, f"{stat}_xp") + gain
                fields[f"{stat}_xp"] = total
                fields[stat] = stat_level_from_xp(total)

        if xp_earned > 0:
            experience = user.experience + xp_earned
            fields["experience"] = experience
            fields["level"] = level_from_xp(experience)
            fields["current_streak"] = next_streak(
                user.current_streak, user.last_streak_date, today
            )
            fields["last_streak_date"] = today
            fields["last_activity_date"] = today

        return fields
