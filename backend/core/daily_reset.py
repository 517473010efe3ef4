"""
Daily reset, streak and daily quest bookkeeping.

Day boundaries are computed in the user's IANA timezone. A missing
timezone uses the configured default; an invalid one falls back to the
server's local date with a warning rather than an error.

Ordering: when a new day starts, the automatic streak freeze is evaluated
against yesterday's data before today's daily progress row is inserted.
Every entry point that records activity for today (quest toggles and
workouts) runs the reset check first. Concurrent resets for the same user rely on the (user_id, date) unique
constraint; a duplicate insert is a no-op.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Callable, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from application.exceptions import (
    DuplicateDailyProgressError,
    InvalidDateError,
    InvalidQuestError,
    PersistenceError,
    StreakFreezeConflictError,
    UserNotFoundError,
)
from application.ports import (
    DailyProgressRepository,
    UserProgressRepository,
    WorkoutSessionRepository,
)
from backend.core.level_curve import level_from_xp
from domain.models import DAILY_QUESTS, DailyProgress, UserProgress

logger = logging.getLogger(__name__)

# Yesterday's streak requirement: this many quests, or one completed workout
STREAK_REQUIREMENT_QUESTS = 2
CAS_ATTEMPTS = 3


def parse_iso_date(value: str) -> date:
    """
    Parse a YYYY-MM-DD string.

    Raises:
        InvalidDateError: if the string is not an ISO calendar date
    """
    try:
        if len(value) != 10:
            raise ValueError(value)
        return date.fromisoformat(value)
    except (TypeError, ValueError) as e:
        raise InvalidDateError(f"Invalid date '{value}', expected YYYY-MM-DD") from e


def next_streak(current_streak: int, last_streak_date: Optional[str], activity_date: str) -> int:
    """
    Streak length after a qualifying activity on `activity_date`.

    Consecutive days extend the streak, the same day leaves it as is,
    and any gap restarts it at 1.
    """
    previous = (parse_iso_date(activity_date) - timedelta(days=1)).isoformat()
    if last_streak_date == activity_date:
        return current_streak
    if last_streak_date == previous:
        return current_streak + 1
    return 1


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class QuestToggleResult:
    """Today's row after a toggle and any bonuses it triggered."""
    progress: DailyProgress
    xp_awarded: int = 0
    streak_freeze_awarded: bool = False


class DailyResetService:
    """
    Timezone-aware daily reset and streak service.

    Args:
        users: User progress repository
        daily_progress: Daily progress repository
        sessions: Workout session repository
        now: Returns the current aware datetime (injected for tests)
        default_timezone: Used when a user has no timezone
        daily_quest_completion_xp: XP for completing all four quests in a day
        streak_freeze_threshold: Quests needed in a day to earn a streak freeze
    """

    def __init__(
        self,
        users: UserProgressRepository,
        daily_progress: DailyProgressRepository,
        sessions: WorkoutSessionRepository,
        *,
        now: Callable[[], datetime] = utc_now,
        default_timezone: Optional[str] = None,
        daily_quest_completion_xp: int = 25,
        streak_freeze_threshold: int = 4,
    ):
        self._users = users
        self._daily = daily_progress
        self._sessions = sessions
        self._now = now
        self._default_timezone = default_timezone or None
        self.daily_quest_completion_xp = daily_quest_completion_xp
        self.streak_freeze_threshold = streak_freeze_threshold

    # -------------------------------------------------------------------------
    # Dates
    # -------------------------------------------------------------------------

    def _resolve_timezone(self, user_timezone: Optional[str]) -> Optional[tzinfo]:
        name = user_timezone or self._default_timezone
        if not name:
            return None
        try:
            return ZoneInfo(name)
        except (ZoneInfoNotFoundError, ValueError):
            logger.warning("Invalid timezone: %s, falling back to server time", name)
            return None

    def _local_now(self, user_timezone: Optional[str]) -> datetime:
        tz = self._resolve_timezone(user_timezone)
        now = self._now()
        # astimezone(None) converts to the server's local zone
        return now.astimezone(tz)

    def get_current_date_for_user(self, user_timezone: Optional[str] = None) -> str:
        """Today's date (YYYY-MM-DD) in the user's timezone."""
        return self._local_now(user_timezone).date().isoformat()

    def get_yesterday_for_user(self, user_timezone: Optional[str] = None) -> str:
        """Yesterday's date (YYYY-MM-DD) in the user's timezone."""
        return (self._local_now(user_timezone).date() - timedelta(days=1)).isoformat()

    def get_next_midnight_for_user(self, user_timezone: Optional[str] = None) -> datetime:
        """The next local midnight for the user, as an aware UTC datetime."""
        local_now = self._local_now(user_timezone)
        tomorrow = local_now.date() + timedelta(days=1)
        midnight = datetime.combine(tomorrow, time.min, tzinfo=local_now.tzinfo)
        return midnight.astimezone(timezone.utc)

    # -------------------------------------------------------------------------
    # Reset
    # -------------------------------------------------------------------------

    def should_reset_for_user(self, user_id: str, user_timezone: Optional[str] = None) -> bool:
        """
        True when the user's most recent daily progress row is not today's.

        A user without any rows never triggers a reset.
        """
        latest = self._daily.get_latest_daily_progress(user_id)
        if latest is None:
            return False
        return latest.date != self.get_current_date_for_user(user_timezone)

    def check_and_reset_daily_quests(self, user_id: str, user_timezone: Optional[str] = None) -> bool:
        """
        Start a new day for the user if needed.

        Idempotent: returns False without writing when today's row already
        exists, when no reset is due, or when a concurrent request inserted
        today's row first.

        Returns:
            True if today's row was inserted by this call
        """
        today = self.get_current_date_for_user(user_timezone)

        if self._daily.get_daily_progress(user_id, today) is not None:
            return False
        if not self.should_reset_for_user(user_id, user_timezone):
            return False

        # Must run before today's row exists
        self.check_and_apply_auto_streak_freeze(user_id, user_timezone)

        try:
            self._daily.insert_daily_progress(DailyProgress.fresh(user_id, today))
        except DuplicateDailyProgressError:
            logger.warning("Daily progress for user %s on %s already created", user_id, today)
            return False

        logger.info("Daily quests reset for user %s on %s", user_id, today)
        return True

    def streak_requirement_met(self, user_id: str, day: str) -> bool:
        """At least two quests or one completed workout on `day`."""
        parse_iso_date(day)
        progress = self._daily.get_daily_progress(user_id, day)
        if progress is not None and progress.completed_quests >= STREAK_REQUIREMENT_QUESTS:
            return True
        sessions = self._sessions.get_workout_sessions_by_user_and_date(user_id, day)
        return any(session.completed for session in sessions)

    def check_and_apply_auto_streak_freeze(
        self,
        user_id: str,
        user_timezone: Optional[str] = None,
    ) -> bool:
        """
        Spend a streak freeze to cover a missed yesterday.

        Applies only when yesterday's requirement was missed, the user has a
        streak to protect and a freeze to spend, and yesterday is not already
        covered. The decrement is a compare-and-set on the freeze count, so
        racing requests spend at most one freeze.

        Returns:
            True if a freeze was consumed
        """
        user = self._require_user(user_id)
        yesterday = self.get_yesterday_for_user(user_timezone)

        if user.last_streak_date is not None and user.last_streak_date >= yesterday:
            return False
        if self.streak_requirement_met(user_id, yesterday):
            return False
        if user.current_streak <= 0 or user.streak_freeze_count <= 0:
            return False

        try:
            self._consume_streak_freeze(user, yesterday)
        except StreakFreezeConflictError:
            logger.warning("Streak freeze for user %s already applied by another request", user_id)
            return False

        logger.info(
            "Auto streak freeze used for user %s on %s (%d left)",
            user_id,
            yesterday,
            user.streak_freeze_count - 1,
        )
        return True

    def _consume_streak_freeze(self, user: UserProgress, covered_date: str) -> UserProgress:
        updated = self._users.update_user(
            user.id,
            {
                "streak_freeze_count": user.streak_freeze_count - 1,
                "last_activity_date": covered_date,
                "last_streak_date": covered_date,
            },
            expected={
                "streak_freeze_count": user.streak_freeze_count,
                "last_streak_date": user.last_streak_date,
            },
        )
        if updated is None:
            raise StreakFreezeConflictError(f"Streak freeze conflict for user {user.id}")
        return updated

    # -------------------------------------------------------------------------
    # Streak
    # -------------------------------------------------------------------------

    def record_streak(self, user_id: str, activity_date: str) -> UserProgress:
        """
        Count a qualifying activity on `activity_date` toward the streak.

        Consecutive days extend the streak, the same day leaves it as is,
        and any gap restarts it at 1.
        """
        for _ in range(CAS_ATTEMPTS):
            user = self._require_user(user_id)
            streak = next_streak(user.current_streak, user.last_streak_date, activity_date)

            updated = self._users.update_user(
                user_id,
                {
                    "current_streak": streak,
                    "last_streak_date": activity_date,
                    "last_activity_date": activity_date,
                },
                expected={
                    "current_streak": user.current_streak,
                    "last_streak_date": user.last_streak_date,
                },
            )
            if updated is not None:
                return updated

        raise StreakFreezeConflictError(f"Could not update streak for user {user_id}")

    # -------------------------------------------------------------------------
    # Daily quests
    # -------------------------------------------------------------------------

    def get_daily_progress(self, user_id: str, user_timezone: Optional[str] = None) -> DailyProgress:
        """Today's row, or an unsaved all-false row if none exists yet."""
        today = self.get_current_date_for_user(user_timezone)
        return self._daily.get_daily_progress(user_id, today) or DailyProgress.fresh(user_id, today)

    def toggle_daily_quest(
        self,
        user_id: str,
        quest: str,
        completed: bool = True,
        user_timezone: Optional[str] = None,
    ) -> QuestToggleResult:
        """
        Set one quest flag on today's row, creating the row if needed.

        The first time all four quests are done in a day the user earns the
        completion XP; the first time the freeze threshold is reached they
        earn one streak freeze. Each award is guarded by its marker so it
        happens exactly once per day.

        Two or more quests in a day count toward the streak. A pending daily
        reset runs first, so a missed yesterday is settled before today's
        row exists.
        """
        if quest not in DAILY_QUESTS:
            raise InvalidQuestError(f"Unknown daily quest: {quest}")
        self._require_user(user_id)
        self.check_and_reset_daily_quests(user_id, user_timezone)

        today = self.get_current_date_for_user(user_timezone)
        if self._daily.get_daily_progress(user_id, today) is None:
            try:
                self._daily.insert_daily_progress(DailyProgress.fresh(user_id, today))
            except DuplicateDailyProgressError:
                logger.debug("Daily progress for user %s on %s created concurrently", user_id, today)

        row = self._daily.update_daily_progress(user_id, today, {quest: completed})
        if row is None:
            raise PersistenceError(f"Daily progress row missing for {user_id} on {today}")

        result = QuestToggleResult(progress=row)

        if row.completed_quests >= STREAK_REQUIREMENT_QUESTS:
            self.record_streak(user_id, today)

        if row.completed_quests == len(DAILY_QUESTS) and not row.xp_awarded:
            claimed = self._claim_daily_award(
                user_id,
                today,
                "xp_awarded",
                lambda: self._add_experience(user_id, self.daily_quest_completion_xp),
            )
            if claimed is not None:
                result.xp_awarded = self.daily_quest_completion_xp
                result.progress = claimed

        if row.completed_quests >= self.streak_freeze_threshold and not row.streak_freeze_awarded:
            claimed = self._claim_daily_award(
                user_id,
                today,
                "streak_freeze_awarded",
                lambda: self._add_streak_freeze(user_id),
            )
            if claimed is not None:
                result.streak_freeze_awarded = True
                result.progress = claimed

        return result

    def _claim_daily_award(
        self,
        user_id: str,
        day: str,
        marker: str,
        award: Callable[[], UserProgress],
    ) -> Optional[DailyProgress]:
        """
        Set a once-per-day award marker, then grant the award.

        Returns None when another request holds the marker already. If the
        award cannot be written the marker is cleared again and the error
        propagates, so a later toggle can still claim it.
        """
        claimed = self._daily.update_daily_progress(
            user_id, day, {marker: True}, expected={marker: False}
        )
        if claimed is None:
            return None
        try:
            award()
        except Exception:
            logger.warning("Releasing %s for user %s on %s after a failed award", marker, user_id, day)
            self._daily.update_daily_progress(
                user_id, day, {marker: False}, expected={marker: True}
            )
            raise
        return claimed

    def _add_experience(self, user_id: str, amount: int) -> UserProgress:
        for _ in range(CAS_ATTEMPTS):
            user = self._require_user(user_id)
            experience = user.experience + amount
            updated = self._users.update_user(
                user_id,
                {"experience": experience, "level": level_from_xp(experience)},
                expected={"experience": user.experience},
            )
            if updated is not None:
                logger.info("Daily quest bonus: +%d XP for user %s", amount, user_id)
                return updated
        raise PersistenceError(f"Could not award daily quest XP to user {user_id}")

    def _add_streak_freeze(self, user_id: str) -> UserProgress:
        for _ in range(CAS_ATTEMPTS):
            user = self._require_user(user_id)
            updated = self._users.update_user(
                user_id,
                {"streak_freeze_count": user.streak_freeze_count + 1},
                expected={"streak_freeze_count": user.streak_freeze_count},
            )
            if updated is not None:
                logger.info("Streak freeze earned by user %s", user_id)
                return updated
        raise StreakFreezeConflictError(f"Could not award streak freeze to user {user_id}")

    def _require_user(self, user_id: str) -> UserProgress:
        user = self._users.get_user(user_id)
        if user is None:
            raise UserNotFoundError(user_id)
        return user
