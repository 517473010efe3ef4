"""
Unit tests for CompleteWorkoutUseCase.

Tests cover:
- Summary workouts scored by the legacy calculators
- Detailed workouts scored by the allocation engine
- Streak bonus and streak bookkeeping in the same update
- Rejected workouts, missing users and write conflicts
"""
import pytest

from application.exceptions import ActivityValidationError, PersistenceError, UserNotFoundError
from application.use_cases import CompleteWorkoutUseCase, DetailedWorkout, WorkoutSummary
from backend.core.level_curve import level_from_xp, stat_level_from_xp
from backend.core.workout_validation import ExercisePerformance, WorkoutSet

USER_ID = "user-1"
TODAY = "2024-01-15"
YESTERDAY = "2024-01-14"


def bench_press(sets=3, reps=10, weight=135.0) -> ExercisePerformance:
    return ExercisePerformance(
        name="Bench Press",
        category="strength",
        sets=[WorkoutSet(reps=reps, weight=weight) for _ in range(sets)],
    )


def summary(**overrides) -> WorkoutSummary:
    values = dict(duration_minutes=45, total_volume=2500, exercise_count=5, name="Push Day")
    values.update(overrides)
    return WorkoutSummary(**values)


# =============================================================================
# Summary Workout Tests
# =============================================================================


@pytest.mark.unit
class TestSummaryWorkout:

    def test_rewards_applied(self, complete_workout, fake_user_repo, fake_session_repo):
        fake_user_repo.seed([{"id": USER_ID}])

        result = complete_workout.execute(USER_ID, summary())

        assert result.base_xp == 290
        assert result.xp_earned == 290
        assert result.bonus_xp == 0
        assert result.streak_bonus_active is False
        assert result.stat_xp == {"strength": 92, "stamina": 55, "agility": 37}

        user = fake_user_repo.get_user(USER_ID)
        assert user.experience == 290
        assert user.level == level_from_xp(290)
        assert user.strength_xp == 92
        assert user.strength == stat_level_from_xp(92)
        assert user.current_streak == 1
        assert user.last_streak_date == TODAY
        assert user.last_activity_date == TODAY
        assert result.leveled_up is True

        session = fake_session_repo.sessions[0]
        assert session.id == result.session.id
        assert session.date == TODAY
        assert session.xp_earned == 290
        assert session.total_volume == 2500
        assert session.completed is True

    def test_streak_bonus(self, complete_workout, fake_user_repo):
        fake_user_repo.seed([{"id": USER_ID, "current_streak": 3, "last_streak_date": YESTERDAY}])

        result = complete_workout.execute(USER_ID, summary())

        assert result.streak_bonus_active is True
        assert result.xp_earned == 435
        assert result.bonus_xp == 145
        assert result.stat_xp == {"strength": 138, "stamina": 82, "agility": 55}
        assert fake_user_repo.get_user(USER_ID).current_streak == 4

    def test_bonus_uses_streak_before_this_workout(self, complete_workout, fake_user_repo):
        fake_user_repo.seed([{"id": USER_ID, "current_streak": 2, "last_streak_date": YESTERDAY}])

        result = complete_workout.execute(USER_ID, summary())

        assert result.streak_bonus_active is False
        assert result.xp_earned == 290
        assert fake_user_repo.get_user(USER_ID).current_streak == 3

    def test_second_workout_same_day_keeps_streak(self, complete_workout, fake_user_repo):
        fake_user_repo.seed([{"id": USER_ID, "current_streak": 1, "last_streak_date": YESTERDAY}])

        complete_workout.execute(USER_ID, summary())
        complete_workout.execute(USER_ID, summary())

        user = fake_user_repo.get_user(USER_ID)
        assert user.current_streak == 2
        assert user.experience == 580

    def test_negative_summary_rejected(self, complete_workout, fake_user_repo, fake_session_repo):
        fake_user_repo.seed([{"id": USER_ID}])

        with pytest.raises(ActivityValidationError):
            complete_workout.execute(USER_ID, summary(total_volume=-1))
        assert fake_session_repo.sessions == []

    def test_custom_streak_bonus(self, fake_user_repo, fake_session_repo, daily_reset):
        fake_user_repo.seed([{"id": USER_ID, "current_streak": 1, "last_streak_date": YESTERDAY}])
        use_case = CompleteWorkoutUseCase(
            users=fake_user_repo,
            sessions=fake_session_repo,
            daily_reset=daily_reset,
            streak_bonus_threshold_days=1,
            streak_bonus_multiplier=2.0,
        )

        result = use_case.execute(USER_ID, summary())
        assert result.xp_earned == 580


# =============================================================================
# Detailed Workout Tests
# =============================================================================


@pytest.mark.unit
class TestDetailedWorkout:

    def test_valid_workout_earns_xp(self, complete_workout, fake_user_repo, fake_session_repo):
        fake_user_repo.seed([{"id": USER_ID}])
        workout = DetailedWorkout(
            duration_minutes=30,
            reported_rpe=3,
            bodyweight_lbs=180,
            performances=[bench_press()],
        )

        result = complete_workout.execute(USER_ID, workout)

        assert result.validation.is_valid is True
        assert result.xp_earned > 0
        assert result.energy_code is not None
        assert sum(result.stat_xp.values()) > 0

        user = fake_user_repo.get_user(USER_ID)
        assert user.experience == result.xp_earned
        assert user.strength_xp == result.stat_xp["strength"]
        assert user.current_streak == 1

        session = fake_session_repo.sessions[0]
        assert session.total_volume == 3 * 10 * 135
        assert session.energy_code == result.energy_code
        assert session.completed is True

    def test_profile_bodyweight_is_used(self, complete_workout, fake_user_repo):
        fake_user_repo.seed([{"id": USER_ID, "body_weight_lbs": 180}])
        workout = DetailedWorkout(duration_minutes=30, reported_rpe=3, performances=[bench_press()])

        assert complete_workout.execute(USER_ID, workout).xp_earned > 0

    def test_missing_bodyweight(self, complete_workout, fake_user_repo):
        fake_user_repo.seed([{"id": USER_ID}])
        workout = DetailedWorkout(duration_minutes=30, reported_rpe=3, performances=[bench_press()])

        with pytest.raises(ActivityValidationError):
            complete_workout.execute(USER_ID, workout)

    def test_invalid_workout_earns_nothing(self, complete_workout, fake_user_repo, fake_session_repo):
        fake_user_repo.seed([{"id": USER_ID, "current_streak": 4, "last_streak_date": YESTERDAY}])
        workout = DetailedWorkout(
            duration_minutes=2,
            reported_rpe=7,
            bodyweight_lbs=180,
            performances=[bench_press()],
        )

        result = complete_workout.execute(USER_ID, workout)

        assert result.validation.is_valid is False
        assert result.validation.validation_errors
        assert result.xp_earned == 0
        assert fake_user_repo.update_calls == []

        user = fake_user_repo.get_user(USER_ID)
        assert user.current_streak == 4
        assert user.last_streak_date == YESTERDAY

        session = fake_session_repo.sessions[0]
        assert session.completed is False
        assert session.xp_earned == 0


# =============================================================================
# Failure Tests
# =============================================================================


@pytest.mark.unit
class TestFailures:

    def test_unknown_user(self, complete_workout, fake_session_repo):
        with pytest.raises(UserNotFoundError):
            complete_workout.execute("ghost", summary())
        assert fake_session_repo.sessions == []

    def test_conflict_is_retried(self, complete_workout, fake_user_repo):
        fake_user_repo.seed([{"id": USER_ID}])
        fake_user_repo.conflict_next(1)

        result = complete_workout.execute(USER_ID, summary())

        assert result.user.experience == 290
        assert len(fake_user_repo.update_calls) == 2

    def test_persistent_conflict(self, complete_workout, fake_user_repo, fake_session_repo):
        fake_user_repo.seed([{"id": USER_ID}])
        fake_user_repo.conflict_next(10)

        with pytest.raises(PersistenceError):
            complete_workout.execute(USER_ID, summary())
        assert fake_user_repo.get_user(USER_ID).experience == 0
        assert fake_session_repo.sessions == []

    def test_session_failure_rolls_back_rewards(
        self, fake_user_repo, fake_session_repo, daily_reset
    ):
        fake_user_repo.seed([{"id": USER_ID, "current_streak": 2, "last_streak_date": YESTERDAY}])

        class BrokenSessionRepo(type(fake_session_repo)):
            def create_workout_session(self, session):
                raise PersistenceError("insert failed")

        use_case = CompleteWorkoutUseCase(
            users=fake_user_repo,
            sessions=BrokenSessionRepo(),
            daily_reset=daily_reset,
        )

        with pytest.raises(PersistenceError):
            use_case.execute(USER_ID, summary())

        user = fake_user_repo.get_user(USER_ID)
        assert user.experience == 0
        assert user.level == 1
        assert user.strength_xp == 0
        assert user.current_streak == 2
        assert user.last_streak_date == YESTERDAY
        assert user.last_activity_date is None

    def test_failed_rollback_keeps_original_error(
        self, fake_user_repo, fake_session_repo, daily_reset
    ):
        fake_user_repo.seed([{"id": USER_ID}])

        class BrokenSessionRepo(type(fake_session_repo)):
            def create_workout_session(self, session):
                raise PersistenceError("insert failed")

        original_update = fake_user_repo.update_user

        def update_user(user_id, fields, *, expected=None):
            # The reward update succeeds; the rollback that follows fails
            if fake_user_repo.get_user(user_id).experience > 0:
                raise RuntimeError("connection reset")
            return original_update(user_id, fields, expected=expected)

        fake_user_repo.update_user = update_user
        use_case = CompleteWorkoutUseCase(
            users=fake_user_repo,
            sessions=BrokenSessionRepo(),
            daily_reset=daily_reset,
        )

        with pytest.raises(PersistenceError, match="insert failed"):
            use_case.execute(USER_ID, summary())

    def test_retry_after_session_failure_credits_once(
        self, fake_user_repo, fake_session_repo, daily_reset
    ):
        fake_user_repo.seed([{"id": USER_ID}])

        class FlakySessionRepo(type(fake_session_repo)):
            failures = 1

            def create_workout_session(self, session):
                if self.failures:
                    self.failures -= 1
                    raise PersistenceError("insert failed")
                return super().create_workout_session(session)

        sessions = FlakySessionRepo()
        use_case = CompleteWorkoutUseCase(
            users=fake_user_repo,
            sessions=sessions,
            daily_reset=daily_reset,
        )

        with pytest.raises(PersistenceError):
            use_case.execute(USER_ID, summary())
        result = use_case.execute(USER_ID, summary())

        assert result.user.experience == 290
        assert fake_user_repo.get_user(USER_ID).experience == 290
        assert len(sessions.sessions) == 1


# =============================================================================
# Daily Reset Ordering Tests
# =============================================================================


@pytest.mark.unit
class TestNewDayBeforeWorkout:

    def seed_missed_day(self, user_repo, daily_repo):
        user_repo.seed([{
            "id": USER_ID,
            "current_streak": 5,
            "streak_freeze_count": 1,
            "last_streak_date": "2024-01-13",
        }])
        daily_repo.seed([{"user_id": USER_ID, "date": "2024-01-13", "hydration": True, "steps": True}])

    def test_freeze_spent_before_streak_extends(
        self, complete_workout, fake_user_repo, fake_daily_repo
    ):
        self.seed_missed_day(fake_user_repo, fake_daily_repo)

        result = complete_workout.execute(USER_ID, summary())

        assert result.user.current_streak == 6
        assert result.user.streak_freeze_count == 0
        assert result.user.last_streak_date == TODAY
        assert result.streak_bonus_active is True
        assert fake_daily_repo.get_daily_progress(USER_ID, TODAY) is not None

    def test_later_reset_is_a_no_op(
        self, complete_workout, daily_reset, fake_user_repo, fake_daily_repo
    ):
        self.seed_missed_day(fake_user_repo, fake_daily_repo)
        complete_workout.execute(USER_ID, summary())

        assert daily_reset.check_and_reset_daily_quests(USER_ID) is False

        user = fake_user_repo.get_user(USER_ID)
        assert user.current_streak == 6
        assert user.streak_freeze_count == 0

    def test_no_freezes_left_restarts_streak(
        self, complete_workout, fake_user_repo, fake_daily_repo
    ):
        self.seed_missed_day(fake_user_repo, fake_daily_repo)
        fake_user_repo.update_user(USER_ID, {"streak_freeze_count": 0})

        result = complete_workout.execute(USER_ID, summary())

        assert result.user.current_streak == 1
