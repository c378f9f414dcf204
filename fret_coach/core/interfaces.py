"""Defines the core interfaces for the Fret Coach application."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable, Optional

import numpy as np

from ..note_types import PitchSample, ScoreSnapshot, TuningUpdate


class IAudioInput(ABC):
    """Interface for audio input handlers."""

    sample_rate: int

    @abstractmethod
    def start(self, callback: Callable[[np.ndarray, float], None]) -> bool:
        """Start capturing audio.

        The callback receives a mono float32 block and its capture time
        in milliseconds.
        """
        pass

    @abstractmethod
    def stop(self) -> None:
        """Stop capturing audio."""
        pass

    @abstractmethod
    def is_running(self) -> bool:
        """Check if audio is running."""
        pass


class IPitchSource(ABC):
    """Interface for producers of per-frame pitch estimates."""

    @abstractmethod
    def next_sample(self) -> Optional[PitchSample]:
        """Return the next frame's estimate, or None when the stream ended."""
        pass

    def close(self) -> None:
        """Release any resources held by the source."""


class IUISink(ABC):
    """Interface for the UI side that consumes pipeline output."""

    @abstractmethod
    def on_tuning_update(self, update: TuningUpdate) -> None:
        pass

    @abstractmethod
    def on_score_update(self, snapshot: ScoreSnapshot) -> None:
        pass
