"""Wall-clock source injected into the timer and HP regen services."""
from typing import Callable
import time

Clock = Callable[[], int]


def system_clock_ms() -> int:
    """Milliseconds since the epoch."""
    return int(time.time() * 1000)
