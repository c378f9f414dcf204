from typing import Iterable, List, Optional

from .core.interfaces import IPitchSource
from .note_types import PitchSample


class ScriptedPitchSource(IPitchSource):
    """A pitch source for tests and demos that replays a fixed list of samples."""

    def __init__(self, samples: Iterable[PitchSample] = ()):
        self.samples: List[PitchSample] = list(samples)
        self.position = 0
        self.closed = False

    @classmethod
    def steady(
        cls,
        frequency_hz: float,
        count: int,
        interval_ms: float,
        start_ms: float = 0.0,
        confidence: float = 1.0,
    ) -> "ScriptedPitchSource":
        """A constant pitch, one sample every interval_ms."""
        return cls(
            PitchSample(frequency_hz, confidence, start_ms + i * interval_ms)
            for i in range(count)
        )

    def add(self, sample: PitchSample) -> None:
        self.samples.append(sample)

    def next_sample(self) -> Optional[PitchSample]:
        if self.closed or self.position >= len(self.samples):
            return None
        sample = self.samples[self.position]
        self.position += 1
        return sample

    def close(self) -> None:
        self.closed = True
