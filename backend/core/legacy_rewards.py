"""
Fallback reward calculators for workouts without detailed set data.

These are deliberately coarse, duration- and volume-bucketed formulas. They
are an alternate strategy to the stat allocation engine, selected by the
caller when only a workout summary is available; their results are not
expected to match the detailed path.
"""
from dataclasses import dataclass
from typing import Iterable, Mapping, Optional
import math

MIN_XP_REWARD = 50


@dataclass
class StatGains:
    """Coarse per-category stat gains; each category is at least 1."""
    strength: int
    stamina: int
    endurance: int
    flexibility: int


@dataclass
class StatXpGains:
    """Stat XP split for a summarised workout."""
    strength_xp: int
    stamina_xp: int
    agility_xp: int


def calculate_xp_reward(duration: float, total_volume: float, exercise_count: int) -> int:
    """
    Character XP for a summarised workout.

    10 XP per full 5 minutes, 5 XP per full 100 lbs of volume and 15 XP per
    exercise, never less than 50.
    """
    duration_xp = math.floor(duration / 5) * 10
    volume_xp = math.floor(total_volume / 100) * 5
    exercise_xp = exercise_count * 15
    return max(duration_xp + volume_xp + exercise_xp, MIN_XP_REWARD)


def calculate_stat_gains(workout_type: str, duration: float, intensity: float) -> StatGains:
    """
    Stat gains by workout type.

    Args:
        workout_type: strength, cardio, flexibility, core, anything else is mixed
        duration: Minutes
        intensity: 0-100
    """
    base = math.floor(duration / 10)
    factor = intensity / 100

    gains = {"strength": 0, "stamina": 0, "endurance": 0, "flexibility": 0}
    kind = (workout_type or "").lower()

    if kind == "strength":
        gains["strength"] = math.floor(base * 2 + factor * 3)
        gains["stamina"] = math.floor(base * 0.5)
    elif kind == "cardio":
        gains["endurance"] = math.floor(base * 2 + factor * 3)
        gains["stamina"] = math.floor(base * 1.5)
    elif kind == "flexibility":
        gains["flexibility"] = math.floor(base * 2 + factor * 2)
        gains["endurance"] = math.floor(base * 0.5)
    elif kind == "core":
        gains["strength"] = math.floor(base * 1)
        gains["endurance"] = math.floor(base * 1)
        gains["flexibility"] = math.floor(base * 0.5)
    else:
        gains["strength"] = math.floor(base * 1)
        gains["stamina"] = math.floor(base * 1)
        gains["endurance"] = math.floor(base * 1)
        gains["flexibility"] = math.floor(base * 0.5)

    return StatGains(**{key: max(value, 1) for key, value in gains.items()})


def calculate_stat_xp_gains(
    duration: Optional[float] = None,
    total_volume: Optional[float] = None,
) -> StatXpGains:
    """
    Split summary-workout XP 50/30/20 across strength, stamina and agility.

    Base XP is 3 per minute plus 2% of volume. Missing or zero values fall
    back to a 30 minute, 1000 lbs session.
    """
    duration = duration or 30
    total_volume = total_volume or 1000
    base_xp = duration * 3 + math.floor(total_volume * 0.02)

    return StatXpGains(
        strength_xp=math.floor(base_xp * 0.50),
        stamina_xp=math.floor(base_xp * 0.30),
        agility_xp=math.floor(base_xp * 0.20),
    )


def calculate_total_volume(exercises: Iterable[Mapping]) -> float:
    """
    Sum of reps x weight over every set of every exercise.

    Each exercise is a mapping with a "sets" list of {"reps", "weight"} dicts.
    Sets explicitly marked `completed: False` are skipped.
    """
    total = 0.0
    for exercise in exercises:
        for workout_set in exercise.get("sets") or []:
            if workout_set.get("completed") is False:
                continue
            total += (workout_set.get("reps") or 0) * (workout_set.get("weight") or 0)
    return total
