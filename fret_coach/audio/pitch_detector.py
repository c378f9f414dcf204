"""Per-block pitch estimation with aubio's YIN detector."""

from __future__ import annotations

from typing import ClassVar

import aubio
import numpy as np

from ..logger import get_logger
from ..note_types import PitchSample

logger = get_logger(__name__)


class AubioPitchDetector:
    """Wraps ``aubio.pitch`` and turns audio blocks into ``PitchSample``s."""

    DEFAULT_MIN_SIGNAL: ClassVar[float] = 0.005  # Below this peak level is treated as silence

    def __init__(
        self,
        sample_rate: int = 44100,
        buffer_size: int = 2048,
        hop_size: int = 1024,
        tolerance: float = 0.8,
        min_signal: float = DEFAULT_MIN_SIGNAL,
        method: str = "yin",
    ) -> None:
        self.sample_rate = sample_rate
        self.buffer_size = buffer_size
        self.hop_size = hop_size
        self.min_signal = min_signal

        self._pitch_detector = aubio.pitch(method, buffer_size, hop_size, sample_rate)
        self._pitch_detector.set_unit("Hz")
        self._pitch_detector.set_tolerance(tolerance)
        logger.info(
            f"Pitch detector initialized: {method}, sample_rate={sample_rate}, "
            f"buffer={buffer_size}, hop={hop_size}"
        )

    def _fit_block(self, audio_data: np.ndarray) -> np.ndarray:
        if audio_data.dtype != np.float32:
            audio_data = audio_data.astype(np.float32)
        if len(audio_data) > self.hop_size:
            return audio_data[: self.hop_size]
        if len(audio_data) < self.hop_size:
            padding = np.zeros(self.hop_size - len(audio_data), dtype=np.float32)
            return np.concatenate((audio_data, padding))
        return audio_data

    def detect(self, audio_data: np.ndarray, timestamp_ms: float) -> PitchSample:
        """Estimate the pitch of one hop-sized block."""
        block = self._fit_block(audio_data)
        signal_max = float(np.max(np.abs(block))) if len(block) else 0.0

        # Keep the detector's internal window moving even for quiet blocks
        pitch = float(self._pitch_detector(block)[0])
        confidence = float(self._pitch_detector.get_confidence())

        if signal_max < self.min_signal:
            logger.debug(f"Signal too weak: {signal_max:.4f}")
            return PitchSample.silence(timestamp_ms)
        return PitchSample(pitch, confidence, timestamp_ms)
