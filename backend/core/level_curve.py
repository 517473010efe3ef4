"""
Level curves for character and stat progression.

Two independently tuned curves are kept distinct:
- Character curve: floor((level - 1) ** 1.8 * 16)
- Stat curve:      floor((level - 1) ** 2 * 100)

Both inverses use an exponential probe followed by a binary search. The
result matches an upward scan from level 1 (the largest level whose
threshold does not exceed the XP).
"""
from dataclasses import dataclass
from typing import Callable
import math

CHARACTER_EXPONENT = 1.8
CHARACTER_COEFFICIENT = 16
STAT_EXPONENT = 2
STAT_COEFFICIENT = 100

LEVEL_TITLES = [
    "Novice", "Apprentice", "Warrior", "Veteran", "Champion",
    "Master", "Grandmaster", "Legend", "Mythic", "Godlike",
]


def xp_required_for_level(level: int) -> int:
    """Cumulative experience needed to reach a character level."""
    if level <= 1:
        return 0
    return math.floor((level - 1) ** CHARACTER_EXPONENT * CHARACTER_COEFFICIENT)


def stat_xp_required_for_level(level: int) -> int:
    """Cumulative stat XP needed to reach a stat level."""
    if level <= 1:
        return 0
    return math.floor((level - 1) ** STAT_EXPONENT * STAT_COEFFICIENT)


def _invert(xp: int, required: Callable[[int], int]) -> int:
    # Largest level L >= 1 with required(L) <= xp.
    low = 1
    high = 2
    while required(high) <= xp:
        low = high
        high *= 2
    while high - low > 1:
        mid = (low + high) // 2
        if required(mid) <= xp:
            low = mid
        else:
            high = mid
    return low


def level_from_xp(xp: int) -> int:
    """
    Character level for a cumulative experience total.

    Negative experience clamps to level 1.
    """
    if xp < 0:
        return 1
    return _invert(xp, xp_required_for_level)


def stat_level_from_xp(xp: int) -> int:
    """
    Stat level for a stat's cumulative XP.

    Negative XP maps to level 0 ("not yet started").
    """
    if xp < 0:
        return 0
    return _invert(xp, stat_xp_required_for_level)


def level_title(level: int) -> str:
    """Display title, one per five levels, capped at the last title."""
    index = min(max(level, 0) // 5, len(LEVEL_TITLES) - 1)
    return LEVEL_TITLES[index]


@dataclass
class CurveProgress:
    """Position of an XP total within its current level."""
    level: int
    current_xp: int  # XP earned inside the current level
    xp_to_next_level: int
    total_xp_for_current_level: int  # span of the current level


def _progress(
    total_xp: int,
    level: int,
    required: Callable[[int], int],
) -> CurveProgress:
    floor_xp = required(level)
    next_xp = required(level + 1)
    return CurveProgress(
        level=level,
        current_xp=total_xp - floor_xp,
        xp_to_next_level=next_xp - total_xp,
        total_xp_for_current_level=next_xp - floor_xp,
    )


def get_stat_progress(total_xp: int) -> CurveProgress:
    """Stat level breakdown for a stat's cumulative XP."""
    return _progress(total_xp, stat_level_from_xp(total_xp), stat_xp_required_for_level)


def get_level_progress(experience: int) -> CurveProgress:
    """Character level breakdown for a cumulative experience total."""
    return _progress(experience, level_from_xp(experience), xp_required_for_level)
