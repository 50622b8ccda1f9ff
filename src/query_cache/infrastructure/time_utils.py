from __future__ import annotations

import time
from typing import Callable

Clock = Callable[[], float]

MINUTE = 60.0


def monotonic_now() -> float:
    """Return the current monotonic time in seconds (the store's default clock)."""
    return time.monotonic()


def minutes(n: float) -> float:
    """Return n minutes expressed in seconds."""
    return n * MINUTE
