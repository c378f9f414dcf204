from collections import deque
from typing import Deque, Iterable

import numpy as np

from ..logger import get_logger
from ..note_types import SmoothedFrequency

logger = get_logger(__name__)


class StabilityGate:
    """
    Decides whether recent smoothed frequencies are steady enough to act on.
    """

    def __init__(
        self,
        size: int = 10,
        threshold_hz: float = 5.0,
        min_samples: int = 3,
    ):
        self._threshold_hz = threshold_hz
        self._min_samples = min_samples
        self._history: Deque[float] = deque(maxlen=size)

    def is_stable(self, values: Iterable[float]) -> bool:
        """Population standard deviation below the threshold, with enough samples."""
        values = list(values)
        if len(values) < self._min_samples:
            return False
        return float(np.std(values)) < self._threshold_hz

    def push(self, smoothed: SmoothedFrequency) -> SmoothedFrequency:
        """Record a smoothed frequency and flag whether it is stable."""
        self._history.append(smoothed.frequency_hz)
        stable = self.is_stable(self._history)
        if not stable:
            logger.debug(
                f"Unstable: {smoothed.frequency_hz:.2f} Hz over {len(self._history)} samples"
            )
        return SmoothedFrequency(smoothed.frequency_hz, stable)

    def __len__(self):
        return len(self._history)

    def reset(self) -> None:
        self._history.clear()
