"""Frequency smoothing over a short window of raw pitch estimates."""

from collections import deque
from typing import Deque, Optional

import numpy as np

from ..logger import get_logger
from ..note_types import PitchSample, SmoothedFrequency

logger = get_logger(__name__)


class FrequencySmoother:
    """Blend of a median and a linearly weighted moving average.

    The median rejects single-frame octave jumps and the weighted average
    follows real pitch changes quickly. The output always lies between the
    smallest and largest buffered frequency.
    """

    def __init__(
        self,
        size: int = 8,
        min_confidence: float = 0.80,
        min_frequency: float = 60.0,
        max_frequency: float = 1200.0,
    ):
        if size < 1:
            raise ValueError("Smoothing buffer size must be at least 1")
        self._min_confidence = min_confidence
        self._min_frequency = min_frequency
        self._max_frequency = max_frequency
        self._buffer: Deque[float] = deque(maxlen=size)

    def accepts(self, sample: PitchSample) -> bool:
        """Check whether a raw sample is usable at all."""
        return (
            sample.is_valid()
            and sample.confidence >= self._min_confidence
            and self._min_frequency <= sample.frequency_hz <= self._max_frequency
        )

    def push(self, sample: PitchSample) -> Optional[SmoothedFrequency]:
        """Add a sample and return the smoothed frequency.

        Returns:
            None when the sample was rejected; the buffer is left untouched
        """
        if not self.accepts(sample):
            return None

        self._buffer.append(float(sample.frequency_hz))
        return SmoothedFrequency(self.value())

    def value(self) -> float:
        """Current smoothed value, 0.0 while the buffer is empty."""
        if not self._buffer:
            return 0.0

        values = np.fromiter(self._buffer, dtype=float)
        median = float(np.median(values))
        weights = np.arange(1, len(values) + 1, dtype=float)  # Oldest weighs least
        weighted = float(np.dot(values, weights) / weights.sum())
        blended = (median + weighted) / 2.0
        return float(np.clip(blended, values.min(), values.max()))

    def __len__(self):
        return len(self._buffer)

    def reset(self) -> None:
        self._buffer.clear()
