"""
HP state store implementations.

JsonFileHpStateStore persists one user's regen state to a small JSON file so it
survives restarts; InMemoryHpStateStore keeps it in process.
"""
import hashlib
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Optional, Union

from application.ports import HpRegenState

logger = logging.getLogger(__name__)


def user_state_path(directory: Union[str, Path], user_id: str) -> Path:
    """File holding one user's HP state, named by a hash of the user id."""
    digest = hashlib.sha256(user_id.encode("utf-8")).hexdigest()
    return Path(directory) / f"{digest}.json"


class JsonFileHpStateStore:
    """HpStateStore backed by a JSON file, written atomically via rename."""

    def __init__(self, path: Union[str, Path]):
        self._path = Path(path)

    def load(self) -> Optional[HpRegenState]:
        try:
            with open(self._path, "r") as f:
                data = json.load(f)
        except FileNotFoundError:
            return None
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Failed to load HP state from {self._path}: {e}")
            return None

        if not isinstance(data, dict):
            logger.warning(f"Ignoring malformed HP state in {self._path}")
            return None
        return HpRegenState(
            hp=float(data.get("hp") or 0),
            max_hp=float(data.get("max_hp") or 0),
            last_regen_ms=int(data.get("last_regen_ms") or 0),
        )

    def save(self, state: HpRegenState) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        payload = {
            "hp": state.hp,
            "max_hp": state.max_hp,
            "last_regen_ms": state.last_regen_ms,
        }
        fd, tmp_path = tempfile.mkstemp(dir=self._path.parent, prefix=".hp_state_")
        try:
            with os.fdopen(fd, "w") as f:
                json.dump(payload, f)
            os.replace(tmp_path, self._path)
        except OSError:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise


class InMemoryHpStateStore:
    """HpStateStore that keeps the last saved state in memory."""

    def __init__(self, initial: Optional[HpRegenState] = None):
        self._state = initial

    def load(self) -> Optional[HpRegenState]:
        return self._state

    def save(self, state: HpRegenState) -> None:
        self._state = state
