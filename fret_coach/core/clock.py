"""Monotonic millisecond clock used by the real-time pipelines."""

import time
from typing import Callable

Clock = Callable[[], float]


def monotonic_ms() -> float:
    return time.monotonic() * 1000.0
