"""
Atrophy: passive stat decay after inactivity.

Users whose last activity is before yesterday and whose immunity has lapsed
lose a small share of each stat's XP per run, never dropping below zero.
Stat levels are recomputed from the decayed XP. Character experience is
left untouched so it stays monotonic.

Also handles manual streak freezes (which count as activity) and the
immunity granted to new users.
"""

import logging
import math
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional

from application.exceptions import PersistenceError, UserNotFoundError
from application.ports import UserProgressRepository
from backend.core.batching import run_in_batches
from backend.core.daily_reset import CAS_ATTEMPTS, parse_iso_date
from backend.core.level_curve import stat_level_from_xp
from domain.models import UserProgress

logger = logging.getLogger(__name__)

STATS = ("strength", "stamina", "agility")


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


@dataclass
class AtrophyStatus:
    is_at_risk: bool
    days_inactive: int
    has_immunity: bool
    immunity_ends_on: Optional[str] = None


@dataclass
class AtrophyRunSummary:
    """Outcome of one batch atrophy run."""
    candidates: int = 0
    applied: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)


def calculate_atrophy(user: UserProgress, rate: float = 0.01) -> Dict[str, int]:
    """
    Decayed stat XP and stat levels for a user.

    Each stat with XP loses max(1, floor(xp * rate)), floored at zero.

    Returns:
        Update fields, empty when there is nothing to decay
    """
    fields: Dict[str, int] = {}
    for stat in STATS:
        xp = getattr(user, f"{stat}_xp")
        if xp <= 0:
            continue
        loss = max(1, math.floor(xp * rate))
        new_xp = max(0, xp - loss)
        fields[f"{stat}_xp"] = new_xp
        fields[stat] = stat_level_from_xp(new_xp)
    return fields


class AtrophyService:
    """
    Applies and reports inactivity decay.

    Args:
        users: User progress repository
        today: Returns the current date (injected for tests)
        rate: Share of each stat's XP lost per run
        immunity_days: Length of the new-user immunity window
        batch_size: Concurrent users per batch during a run
    """

    def __init__(
        self,
        users: UserProgressRepository,
        *,
        today: Callable[[], date] = utc_today,
        rate: float = 0.01,
        immunity_days: int = 7,
        batch_size: int = 10,
    ):
        self._users = users
        self._today = today
        self.rate = rate
        self.immunity_days = immunity_days
        self.batch_size = batch_size

    def process_atrophy(self) -> AtrophyRunSummary:
        """Decay every inactive, non-immune user in bounded batches."""
        today = self._today()
        yesterday = today - timedelta(days=1)
        candidates = self._users.list_inactive_users(yesterday.isoformat(), today.isoformat())
        logger.info("Processing atrophy for %d inactive users", len(candidates))

        summary = AtrophyRunSummary(candidates=len(candidates))
        outcomes = run_in_batches(
            [user.id for user in candidates],
            self.apply_atrophy,
            batch_size=self.batch_size,
        )
        for outcome in outcomes:
            if not outcome.ok:
                summary.failed.append(outcome.item)
            elif outcome.result is None:
                summary.skipped.append(outcome.item)
            else:
                summary.applied.append(outcome.item)
        return summary

    def apply_atrophy(self, user_id: str) -> Optional[UserProgress]:
        """
        Decay one user's stats.

        Returns:
            The updated user, or None when the user vanished or had nothing
            to decay
        """
        for _ in range(CAS_ATTEMPTS):
            user = self._users.get_user(user_id)
            if user is None:
                logger.warning("User %s not found during atrophy", user_id)
                return None

            fields = calculate_atrophy(user, self.rate)
            if not fields:
                return None

            expected = {f"{stat}_xp": getattr(user, f"{stat}_xp") for stat in STATS}
            updated = self._users.update_user(user_id, fields, expected=expected)
            if updated is not None:
                logger.info(
                    "Applied atrophy to user %s: STR %d->%d, STA %d->%d, AGI %d->%d XP",
                    user_id,
                    user.strength_xp, updated.strength_xp,
                    user.stamina_xp, updated.stamina_xp,
                    user.agility_xp, updated.agility_xp,
                )
                return updated

        raise PersistenceError(f"Atrophy update for user {user_id} kept conflicting")

    def record_activity(self, user_id: str, activity_date: Optional[str] = None) -> UserProgress:
        """Mark the user active on `activity_date` (default today)."""
        if activity_date is None:
            activity_date = self._today().isoformat()
        parse_iso_date(activity_date)
        updated = self._users.update_user(user_id, {"last_activity_date": activity_date})
        if updated is None:
            raise UserNotFoundError(user_id)
        return updated

    def use_streak_freeze(self, user_id: str) -> bool:
        """
        Spend a streak freeze and count today as active.

        Returns:
            False when the user has no freezes left
        """
        today = self._today().isoformat()
        for _ in range(CAS_ATTEMPTS):
            user = self._users.get_user(user_id)
            if user is None:
                raise UserNotFoundError(user_id)
            if user.streak_freeze_count <= 0:
                return False

            updated = self._users.update_user(
                user_id,
                {
                    "streak_freeze_count": user.streak_freeze_count - 1,
                    "last_activity_date": today,
                },
                expected={"streak_freeze_count": user.streak_freeze_count},
            )
            if updated is not None:
                logger.info("User %s used a streak freeze (%d left)", user_id, updated.streak_freeze_count)
                return True

        return False

    def grant_new_user_immunity(self, user_id: str) -> UserProgress:
        """Protect a new user from atrophy for the immunity window."""
        today = self._today()
        until = today + timedelta(days=self.immunity_days)
        updated = self._users.update_user(
            user_id,
            {
                "atrophy_immunity_until": until.isoformat(),
                "last_activity_date": today.isoformat(),
            },
        )
        if updated is None:
            raise UserNotFoundError(user_id)
        return updated

    def get_user_atrophy_status(self, user_id: str) -> AtrophyStatus:
        user = self._users.get_user(user_id)
        if user is None:
            raise UserNotFoundError(user_id)
        return self.status_for(user)

    def status_for(self, user: UserProgress) -> AtrophyStatus:
        today = self._today()
        immunity = user.atrophy_immunity_until
        has_immunity = bool(immunity) and immunity >= today.isoformat()

        days_inactive = 0
        if user.last_activity_date:
            days_inactive = (today - parse_iso_date(user.last_activity_date)).days

        return AtrophyStatus(
            is_at_risk=days_inactive >= 1 and not has_immunity,
            days_inactive=days_inactive,
            has_immunity=has_immunity,
            immunity_ends_on=immunity,
        )

