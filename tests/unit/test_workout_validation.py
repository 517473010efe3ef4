"""
Unit tests for workout plausibility validation.

Tests cover:
- Hard errors (duration, RPE, missing sets) that zero out XP
- Suspicious findings that reduce the confidence multiplier
- Conversion of completed sets into activities
- Validated XP scaling
"""
import pytest

from backend.core.stat_allocation import allocate_session_xp, round_half_up
from backend.core.workout_validation import (
    LBS_TO_KG,
    ExercisePerformance,
    WorkoutSet,
    WorkoutValidator,
    estimate_exercise_minutes,
    estimate_set_duration,
)

BODYWEIGHT_LBS = 180


def bench(sets=3, reps=10, weight=135, completed=True) -> ExercisePerformance:
    return ExercisePerformance(
        name="Bench Press",
        category="strength",
        sets=[WorkoutSet(reps=reps, weight=weight, completed=completed) for _ in range(sets)],
    )


@pytest.fixture
def validator() -> WorkoutValidator:
    return WorkoutValidator()


# =============================================================================
# Estimation Helpers
# =============================================================================


@pytest.mark.unit
class TestEstimates:

    def test_set_duration_without_weight(self):
        assert estimate_set_duration(10) == 20

    def test_set_duration_with_weight(self):
        assert estimate_set_duration(10, 99) == pytest.approx(21)

    def test_exercise_minutes_by_category(self):
        assert estimate_exercise_minutes("cardio", 30) == pytest.approx(1)
        assert estimate_exercise_minutes("balance", 12) == pytest.approx(1)
        assert estimate_exercise_minutes("unknown", 60) == pytest.approx(2)


# =============================================================================
# Validation Tests
# =============================================================================


@pytest.mark.unit
class TestValidateWorkout:

    def test_clean_workout_gets_bonus(self, validator):
        result = validator.validate_workout([bench()], 30, BODYWEIGHT_LBS, 3)
        assert result.is_valid is True
        assert result.suspicious_reasons == []
        assert result.xp_multiplier == pytest.approx(1.2)

    def test_short_clean_workout_has_no_bonus(self, validator):
        result = validator.validate_workout([bench(sets=1)], 20, BODYWEIGHT_LBS, 3)
        assert result.is_valid is True
        assert result.xp_multiplier == pytest.approx(1.0)

    def test_too_short(self, validator):
        result = validator.validate_workout([bench()], 3, BODYWEIGHT_LBS, 3)
        assert result.is_valid is False
        assert any("too short" in e for e in result.validation_errors)

    def test_too_long(self, validator):
        result = validator.validate_workout([bench()], 301, BODYWEIGHT_LBS, 3)
        assert result.is_valid is False
        assert any("impossibly long" in e for e in result.validation_errors)

    def test_rpe_out_of_range(self, validator):
        result = validator.validate_workout([bench()], 30, BODYWEIGHT_LBS, 0)
        assert result.is_valid is False
        assert any("Invalid RPE" in e for e in result.validation_errors)

    def test_exercise_without_completed_sets(self, validator):
        result = validator.validate_workout([bench(completed=False)], 30, BODYWEIGHT_LBS, 3)
        assert result.is_valid is False
        assert any("Too few sets" in e for e in result.validation_errors)

    def test_heavy_load_is_suspicious(self, validator):
        result = validator.validate_workout([bench(weight=600)], 30, BODYWEIGHT_LBS, 3)
        assert result.is_valid is True
        assert any("Very heavy weight" in r for r in result.suspicious_reasons)
        assert result.xp_multiplier < 1.0

    def test_low_cardio_work_is_suspicious(self, validator):
        run = ExercisePerformance(
            name="Sprint", category="cardio", sets=[WorkoutSet(reps=0, duration=10)]
        )
        result = validator.validate_workout([run], 30, BODYWEIGHT_LBS, 3)
        assert any("Very low work" in r for r in result.suspicious_reasons)

    def test_rpe_mismatch_is_suspicious(self, validator):
        result = validator.validate_workout([bench()], 30, BODYWEIGHT_LBS, 9)
        assert any("RPE mismatch" in r for r in result.suspicious_reasons)
        assert result.xp_multiplier == pytest.approx(0.85)

    def test_very_fast_workout_is_suspicious(self, validator):
        pushups = ExercisePerformance(
            name="Push-ups", category="strength", sets=[WorkoutSet(reps=10) for _ in range(20)]
        )
        result = validator.validate_workout([pushups], 10, BODYWEIGHT_LBS, 7)
        assert any("Very fast workout" in r for r in result.suspicious_reasons)

    def test_multiplier_is_clamped(self, validator):
        flaky = ExercisePerformance(
            name="Plank", category="core", sets=[WorkoutSet(reps=1) for _ in range(12)]
        )
        result = validator.validate_workout([flaky], 6, BODYWEIGHT_LBS, 10)
        assert result.xp_multiplier == pytest.approx(0.1)


# =============================================================================
# Activity Conversion Tests
# =============================================================================


@pytest.mark.unit
class TestToActivities:

    def test_resistance_sets(self, validator):
        activities = validator.to_activities([bench(sets=2)], BODYWEIGHT_LBS, 7)
        assert len(activities) == 2
        activity = activities[0]
        assert activity.movement_type == "resistance"
        assert activity.sets == 1
        assert activity.reps == 10
        assert activity.load_kg == pytest.approx(135 * LBS_TO_KG)
        assert activity.bodyweight_kg == pytest.approx(BODYWEIGHT_LBS * LBS_TO_KG)

    def test_bodyweight_resistance_uses_bodyweight_load(self, validator):
        activities = validator.to_activities([bench(weight=None)], BODYWEIGHT_LBS, 7)
        assert activities[0].load_kg == activities[0].bodyweight_kg
        assert activities[0].interval_seconds == 20

    def test_cardio_duration_becomes_minutes(self, validator):
        run = ExercisePerformance(
            name="Run", category="cardio", sets=[WorkoutSet(duration=600)]
        )
        activity = validator.to_activities([run], BODYWEIGHT_LBS, 6)[0]
        assert activity.movement_type == "cardio"
        assert activity.minutes == pytest.approx(10)

    def test_cardio_without_duration_is_estimated_in_minutes(self, validator):
        jacks = ExercisePerformance(
            name="Jumping Jacks", category="cardio", sets=[WorkoutSet(reps=30)]
        )
        activity = validator.to_activities([jacks], BODYWEIGHT_LBS, 6)[0]
        assert activity.minutes == pytest.approx(1)

    def test_skips_incomplete_sets(self, validator):
        performance = bench(sets=2)
        performance.sets.append(WorkoutSet(reps=10, weight=135, completed=False))
        assert len(validator.to_activities([performance], BODYWEIGHT_LBS, 7)) == 2


# =============================================================================
# Validated XP Tests
# =============================================================================


@pytest.mark.unit
class TestCalculateValidatedXp:

    def test_invalid_workout_earns_nothing(self, validator):
        result = validator.calculate_validated_xp([bench()], 2, BODYWEIGHT_LBS, 3)
        assert result.xp_total == 0
        assert (result.xp_str, result.xp_sta, result.xp_agi) == (0, 0, 0)
        assert result.validation.is_valid is False

    def test_scaled_by_multiplier(self, validator):
        performances = [bench()]
        result = validator.calculate_validated_xp(performances, 30, BODYWEIGHT_LBS, 3)
        session = allocate_session_xp(validator.to_activities(performances, BODYWEIGHT_LBS, 3))
        assert result.xp_total == round_half_up(session.xp_total * 1.2)
        assert result.xp_str == round_half_up(session.xp_str * 1.2)
        assert result.energy_code == session.energy_code
        assert result.xp_total > 0
