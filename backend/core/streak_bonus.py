"""
Streak bonus: an XP multiplier for consistent daily activity.
"""
from dataclasses import dataclass
import math

DEFAULT_THRESHOLD_DAYS = 3
DEFAULT_MULTIPLIER = 1.5


@dataclass
class StreakBonusInfo:
    multiplier: float
    bonus_active: bool
    streak_days: int


@dataclass
class StreakBonusResult:
    final_xp: int
    bonus_xp: int
    bonus_info: StreakBonusInfo


def get_streak_xp_multiplier(
    current_streak: int,
    *,
    threshold_days: int = DEFAULT_THRESHOLD_DAYS,
    multiplier: float = DEFAULT_MULTIPLIER,
) -> StreakBonusInfo:
    """Step function: `multiplier` from `threshold_days` of streak, else 1.0."""
    active = current_streak >= threshold_days
    return StreakBonusInfo(
        multiplier=multiplier if active else 1.0,
        bonus_active=active,
        streak_days=current_streak,
    )


def apply_streak_bonus(
    base_xp: int,
    current_streak: int,
    *,
    threshold_days: int = DEFAULT_THRESHOLD_DAYS,
    multiplier: float = DEFAULT_MULTIPLIER,
) -> StreakBonusResult:
    """
    Scale base XP by the streak multiplier.

    final_xp = floor(base_xp * multiplier), bonus_xp = final_xp - base_xp.
    """
    info = get_streak_xp_multiplier(
        current_streak, threshold_days=threshold_days, multiplier=multiplier
    )
    final_xp = math.floor(base_xp * info.multiplier)
    return StreakBonusResult(final_xp=final_xp, bonus_xp=final_xp - base_xp, bonus_info=info)
