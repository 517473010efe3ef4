"""
Workout plausibility validation.

Layers of checks over a completed workout produce a confidence multiplier
(0.1 to 2.0) that scales the XP from the stat allocation engine:

1. Basic limits: duration and RPE range
2. Per-exercise work: minimum reps/seconds by category, heavy loads
3. Consistency: reported RPE against workout density
4. Plausibility: duration against an estimated minimum

Hard errors make the workout invalid (zero XP). Suspicious findings only
reduce confidence.
"""
from dataclasses import dataclass, field
from typing import Dict, List, Optional
import logging
import math

from backend.core.stat_allocation import (
    ActivityInput,
    allocate_session_xp,
    movement_type_for_category,
    round_half_up,
)

logger = logging.getLogger(__name__)

LBS_TO_KG = 0.453592
REST_SECONDS_PER_SET = 75

# Seconds per rep for non-resistance sets without a recorded duration
SECONDS_PER_REP = {
    "cardio": 2,
    "plyometric": 3,
    "balance": 5,
    "flexibility": 3,
}


@dataclass
class ValidationConfig:
    """Thresholds used by WorkoutValidator."""
    min_workout_duration: float = 5  # minutes
    max_workout_duration: float = 300
    min_sets_per_exercise: int = 1
    min_rpe: float = 1
    max_rpe: float = 10
    heavy_load_bodyweight_ratio: float = 3.0
    # Minimum reps (or seconds) per set by category
    min_work_per_set: Dict[str, float] = field(default_factory=lambda: {
        "strength": 1,
        "cardio": 30,
        "core": 5,
        "plyometric": 3,
        "balance": 10,
        "flexibility": 15,
    })


@dataclass
class WorkoutSet:
    """One logged set. Weight is in lbs, duration in seconds."""
    reps: int = 0
    weight: Optional[float] = None
    duration: Optional[float] = None
    completed: bool = True


@dataclass
class ExercisePerformance:
    """All sets of one exercise within a workout."""
    name: str
    category: str
    sets: List[WorkoutSet] = field(default_factory=list)

    @property
    def completed_sets(self) -> List[WorkoutSet]:
        return [s for s in self.sets if s.completed]


@dataclass
class WorkoutValidationResult:
    is_valid: bool
    validation_errors: List[str]
    xp_multiplier: float
    suspicious_reasons: List[str]


@dataclass
class ValidatedXP:
    xp_total: int
    xp_str: int
    xp_sta: int
    xp_agi: int
    validation: WorkoutValidationResult
    energy_code: Optional[str] = None


def estimate_set_duration(reps: float, weight: Optional[float] = None) -> float:
    """Seconds for one set: 2s per rep plus a small load factor."""
    weight_factor = math.log10(weight + 1) * 0.5 if weight else 0
    return reps * 2 + weight_factor


def estimate_exercise_minutes(category: str, reps: float) -> float:
    """Minutes of work for a non-resistance set without a recorded duration."""
    return SECONDS_PER_REP.get(category, 2) * reps / 60


class WorkoutValidator:
    """
    Validates completed workouts and scales their allocated XP.

    Bodyweight and set weights are in lbs; durations in minutes (workout) or
    seconds (sets).
    """

    def __init__(self, config: Optional[ValidationConfig] = None):
        self.config = config or ValidationConfig()

    def validate_workout(
        self,
        performances: List[ExercisePerformance],
        duration: float,
        bodyweight_lbs: float,
        reported_rpe: float,
    ) -> WorkoutValidationResult:
        config = self.config
        errors: List[str] = []
        suspicious: List[str] = []
        confidence = 1.0

        if duration < config.min_workout_duration:
            errors.append(
                f"Workout too short ({duration} min < {config.min_workout_duration} min minimum)"
            )
        if duration > config.max_workout_duration:
            errors.append(
                f"Workout impossibly long ({duration} min > {config.max_workout_duration} min maximum)"
            )
        if reported_rpe < config.min_rpe or reported_rpe > config.max_rpe:
            errors.append(
                f"Invalid RPE: {reported_rpe} (must be {config.min_rpe}-{config.max_rpe})"
            )
        if bodyweight_lbs <= 0:
            errors.append(f"Invalid bodyweight: {bodyweight_lbs}")

        for performance in performances:
            category = performance.category
            min_work = config.min_work_per_set.get(category, 1)
            completed = performance.completed_sets

            if len(completed) < config.min_sets_per_exercise:
                errors.append(
                    f"{performance.name}: Too few sets ({len(completed)} < {config.min_sets_per_exercise})"
                )
                continue

            for workout_set in completed:
                actual_work = workout_set.duration or workout_set.reps
                if actual_work < min_work:
                    suspicious.append(
                        f"{performance.name}: Very low work ({actual_work} < {min_work} expected)"
                    )
                    confidence *= 0.7

                heavy_limit = bodyweight_lbs * config.heavy_load_bodyweight_ratio
                if category == "strength" and workout_set.weight and workout_set.weight > heavy_limit:
                    suspicious.append(
                        f"{performance.name}: Very heavy weight "
                        f"({workout_set.weight}lbs vs {bodyweight_lbs}lbs bodyweight)"
                    )
                    confidence *= 0.8

        expected_rpe = self._estimate_rpe(self._estimate_intensity(performances, duration))
        rpe_difference = abs(reported_rpe - expected_rpe)
        if rpe_difference > 3:
            suspicious.append(f"RPE mismatch: reported {reported_rpe} vs estimated {expected_rpe:.1f}")
            confidence *= 0.85

        min_duration = self._estimate_minimum_duration(performances)
        if duration < min_duration * 0.5:
            suspicious.append(
                f"Very fast workout: {duration}min vs {min_duration:.1f}min estimated minimum"
            )
            confidence *= 0.6

        multiplier = max(0.1, min(2.0, confidence))
        if duration >= 30 and rpe_difference <= 1 and not suspicious:
            multiplier = min(2.0, multiplier * 1.2)

        if suspicious:
            logger.info("Workout flagged as suspicious: %s", "; ".join(suspicious))

        return WorkoutValidationResult(
            is_valid=not errors,
            validation_errors=errors,
            xp_multiplier=multiplier,
            suspicious_reasons=suspicious,
        )

    def to_activities(
        self,
        performances: List[ExercisePerformance],
        bodyweight_lbs: float,
        reported_rpe: float,
    ) -> List[ActivityInput]:
        """One ActivityInput per completed set."""
        bodyweight_kg = bodyweight_lbs * LBS_TO_KG
        activities = []
        for performance in performances:
            movement_type = movement_type_for_category(performance.category)
            for workout_set in performance.completed_sets:
                activity = ActivityInput(
                    movement_type=movement_type,
                    rpe=reported_rpe,
                    bodyweight_kg=bodyweight_kg,
                )
                if movement_type == "resistance":
                    activity.sets = 1
                    activity.reps = workout_set.reps
                    activity.load_kg = (
                        workout_set.weight * LBS_TO_KG if workout_set.weight else bodyweight_kg
                    )
                    activity.interval_seconds = estimate_set_duration(
                        workout_set.reps, workout_set.weight
                    )
                elif workout_set.duration:
                    activity.minutes = workout_set.duration / 60
                else:
                    activity.minutes = estimate_exercise_minutes(
                        performance.category, workout_set.reps
                    )
                activities.append(activity)
        return activities

    def calculate_validated_xp(
        self,
        performances: List[ExercisePerformance],
        duration: float,
        bodyweight_lbs: float,
        reported_rpe: float,
    ) -> ValidatedXP:
        """
        Allocate session XP and scale it by the validation multiplier.

        Invalid workouts earn nothing.
        """
        validation = self.validate_workout(performances, duration, bodyweight_lbs, reported_rpe)
        if not validation.is_valid:
            logger.info("Workout rejected: %s", "; ".join(validation.validation_errors))
            return ValidatedXP(0, 0, 0, 0, validation)

        session = allocate_session_xp(
            self.to_activities(performances, bodyweight_lbs, reported_rpe)
        )
        multiplier = validation.xp_multiplier

        return ValidatedXP(
            xp_total=round_half_up(session.xp_total * multiplier),
            xp_str=round_half_up(session.xp_str * multiplier),
            xp_sta=round_half_up(session.xp_sta * multiplier),
            xp_agi=round_half_up(session.xp_agi * multiplier),
            validation=validation,
            energy_code=session.energy_code,
        )

    @staticmethod
    def _estimate_intensity(performances: List[ExercisePerformance], duration: float) -> float:
        # Workout density on a 1-10 scale
        total_sets = sum(len(p.completed_sets) for p in performances)
        sets_per_minute = total_sets / duration if duration > 0 else 0
        return min(10, max(1, sets_per_minute * 3 + 2))

    @staticmethod
    def _estimate_rpe(intensity: float) -> float:
        return min(10, max(1, intensity * 0.8 + 1))

    @staticmethod
    def _estimate_minimum_duration(performances: List[ExercisePerformance]) -> float:
        total_seconds = 0.0
        for performance in performances:
            for workout_set in performance.completed_sets:
                total_seconds += workout_set.duration or estimate_set_duration(
                    workout_set.reps, workout_set.weight
                )
                total_seconds += REST_SECONDS_PER_SET
        return total_seconds / 60
