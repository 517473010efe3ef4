"""
Stat Allocation Engine.

Converts completed activities (sets, cardio intervals, skill work) into XP
and splits that XP across strength, stamina and agility according to the
energy system the activity trained:

    P  ATP-PC              (<=10s bursts or >95% HRmax)
    G  anaerobic glycolytic (10-120s or 90-95% HRmax)
    M  mixed               (120-360s or 75-90% HRmax)
    O  aerobic oxidative   (>360s or <75% HRmax)
    R  recovery / skill    (RPE <= 5 and HR < 65%)

All functions here are pure. Persistence happens in the caller.
"""
from dataclasses import dataclass, replace
from typing import Dict, List, Optional
import logging
import math

from application.exceptions import ActivityValidationError

logger = logging.getLogger(__name__)


MOVEMENT_TYPES = ("resistance", "cardio", "skill")

ENERGY_SPLITS: Dict[str, Dict[str, float]] = {
    "P": {"str": 0.65, "sta": 0.15, "agi": 0.20},
    "G": {"str": 0.40, "sta": 0.40, "agi": 0.20},
    "M": {"str": 0.25, "sta": 0.55, "agi": 0.20},
    "O": {"str": 0.10, "sta": 0.80, "agi": 0.10},
    "R": {"str": 0.05, "sta": 0.25, "agi": 0.70},
}

RPE_MULTIPLIERS: Dict[int, float] = {
    1: 0.5, 2: 0.5, 3: 0.5, 4: 0.5, 5: 0.5,
    6: 1.0, 7: 1.0,
    8: 1.5, 9: 1.5,
    10: 2.0,
}

BASE_XP_MULTIPLIER = 2

# Daily cap: share of the day's XP from O-code work above which stamina gains are trimmed
O_CODE_DAILY_SHARE = 0.80
O_CODE_STAMINA_KEEP = 0.7


def round_half_up(value: float) -> int:
    """Round .5 away from zero for non-negative values (not banker's rounding)."""
    return math.floor(value + 0.5)


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_finite(value) -> bool:
    return _is_number(value) and math.isfinite(value)


def movement_type_for_category(category: str) -> str:
    """Map an exercise category to its movement type."""
    category = (category or "").lower()
    if category in ("strength", "core"):
        return "resistance"
    if category == "cardio":
        return "cardio"
    return "skill"


@dataclass
class ActivityInput:
    """One completed set or cardio/skill interval. Never persisted."""
    movement_type: str
    rpe: float
    bodyweight_kg: float
    sets: Optional[float] = None  # resistance only
    reps: Optional[float] = None  # resistance only
    load_kg: Optional[float] = None  # resistance only, defaults to bodyweight
    minutes: Optional[float] = None  # cardio / skill
    interval_seconds: Optional[float] = None
    average_hr_pct: Optional[float] = None

    def validate(self) -> None:
        """
        Reject malformed input instead of letting it turn into zero or NaN XP.

        Raises:
            ActivityValidationError: with every problem found listed in `errors`
        """
        errors: List[str] = []

        if self.movement_type not in MOVEMENT_TYPES:
            errors.append(f"movement_type must be one of {', '.join(MOVEMENT_TYPES)}")

        numeric = {
            "rpe": self.rpe,
            "bodyweight_kg": self.bodyweight_kg,
            "sets": self.sets,
            "reps": self.reps,
            "load_kg": self.load_kg,
            "minutes": self.minutes,
            "interval_seconds": self.interval_seconds,
            "average_hr_pct": self.average_hr_pct,
        }
        for name, value in numeric.items():
            if value is None:
                if name in ("rpe", "bodyweight_kg"):
                    errors.append(f"{name} is required")
                continue
            if not _is_number(value):
                errors.append(f"{name} must be a number")
            elif not math.isfinite(value):
                errors.append(f"{name} must be finite")
            elif value < 0:
                errors.append(f"{name} must not be negative")

        if _is_finite(self.rpe) and not 1 <= self.rpe <= 10:
            errors.append("rpe must be between 1 and 10")
        if _is_finite(self.bodyweight_kg) and self.bodyweight_kg == 0:
            errors.append("bodyweight_kg must be positive")

        if self.movement_type == "resistance":
            if self.sets is None or self.reps is None:
                errors.append("resistance activities require sets and reps")
        elif self.movement_type in ("cardio", "skill"):
            if self.minutes is None:
                errors.append(f"{self.movement_type} activities require minutes")

        if errors:
            raise ActivityValidationError("Invalid activity", errors)


@dataclass
class XPAllocation:
    """XP earned and its split across the three stats."""
    xp_total: int = 0
    xp_str: int = 0
    xp_sta: int = 0
    xp_agi: int = 0
    energy_code: Optional[str] = None


def calculate_work_units(activity: ActivityInput) -> float:
    """Relative-load volume for resistance work, minutes for everything else."""
    if activity.movement_type == "resistance":
        load_kg = activity.load_kg or activity.bodyweight_kg
        return (activity.sets or 0) * (activity.reps or 0) * (load_kg / activity.bodyweight_kg)
    return activity.minutes or 0


def classify_energy_system(activity: ActivityInput) -> str:
    """
    Energy system code for an activity.

    Checked in order: recovery, heart rate, interval length, total minutes,
    then a resistance default of P and a conservative O for everything else.
    Zero-valued optional readings count as absent.
    """
    hr = activity.average_hr_pct

    if activity.rpe <= 5 and hr and hr < 65:
        return "R"

    if hr:
        if hr > 95:
            return "P"
        if hr >= 90:
            return "G"
        if hr >= 75:
            return "M"
        return "O"

    interval = activity.interval_seconds
    if interval:
        if interval <= 10:
            return "P"
        if interval <= 120:
            return "G"
        if interval <= 360:
            return "M"
        return "O"

    minutes = activity.minutes
    if minutes:
        if minutes <= 0.17:
            return "P"
        if minutes <= 2:
            return "G"
        if minutes <= 6:
            return "M"
        return "O"

    if activity.movement_type == "resistance":
        return "P"
    return "O"


def allocate_xp(activity: ActivityInput) -> XPAllocation:
    """
    XP for a single activity.

    Raises:
        ActivityValidationError: if the activity is malformed
    """
    activity.validate()

    rpe_multiplier = RPE_MULTIPLIERS.get(round_half_up(activity.rpe), 1.0)
    effort = calculate_work_units(activity) * rpe_multiplier
    base_xp = round_half_up(effort * BASE_XP_MULTIPLIER)

    energy_code = classify_energy_system(activity)
    split = ENERGY_SPLITS[energy_code]

    return XPAllocation(
        xp_total=base_xp,
        xp_str=round_half_up(base_xp * split["str"]),
        xp_sta=round_half_up(base_xp * split["sta"]),
        xp_agi=round_half_up(base_xp * split["agi"]),
        energy_code=energy_code,
    )


def allocate_session_xp(activities: List[ActivityInput]) -> XPAllocation:
    """
    Sum the allocations of every activity in a session.

    The session's energy code is the most frequent per-activity code, the
    first one seen winning ties. An empty session yields all zeros.
    """
    results = [allocate_xp(activity) for activity in activities]
    if not results:
        return XPAllocation()

    counts: Dict[str, int] = {}
    for result in results:
        counts[result.energy_code] = counts.get(result.energy_code, 0) + 1
    dominant = max(counts, key=counts.get)

    return XPAllocation(
        xp_total=sum(r.xp_total for r in results),
        xp_str=sum(r.xp_str for r in results),
        xp_sta=sum(r.xp_sta for r in results),
        xp_agi=sum(r.xp_agi for r in results),
        energy_code=dominant,
    )


def apply_daily_caps(
    daily_xp: List[XPAllocation],
    current: XPAllocation,
) -> XPAllocation:
    """
    Trim stamina gains from aerobic-heavy days.

    When more than 80% of the day's XP (including `current`) came from
    O-code work and `current` is O-code too, 30% of its stamina XP moves
    to strength (30%) and agility (70%).
    """
    daily_total = sum(xp.xp_total for xp in daily_xp) + current.xp_total
    if daily_total <= 0 or current.energy_code != "O":
        return current

    o_code_total = sum(xp.xp_total for xp in daily_xp if xp.energy_code == "O")
    if o_code_total / daily_total <= O_CODE_DAILY_SHARE:
        return current

    capped_sta = round_half_up(current.xp_sta * O_CODE_STAMINA_KEEP)
    difference = current.xp_sta - capped_sta
    logger.debug("Daily O-code cap moved %d stamina XP", difference)

    return replace(
        current,
        xp_sta=capped_sta,
        xp_str=current.xp_str + round_half_up(difference * 0.3),
        xp_agi=current.xp_agi + round_half_up(difference * 0.7),
    )
