"""
HP State Store Interface (Port).

Durable storage for the passive HP regeneration state so it survives
restarts of the hosting process.
"""
from dataclasses import dataclass
from typing import Protocol, Optional


@dataclass
class HpRegenState:
    """Current HP, maximum HP and the wall-clock ms of the last regen step."""
    hp: float
    max_hp: float
    last_regen_ms: int


class HpStateStore(Protocol):
    """Abstract interface for HP regeneration state persistence."""

    def load(self) -> Optional[HpRegenState]:
        """Return the stored state, or None if nothing has been saved yet."""
        ...

    def save(self, state: HpRegenState) -> None:
        """Persist the state, replacing any previous value."""
        ...
