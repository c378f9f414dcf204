"""Pitch source fed by an audio input through a bounded queue."""

import queue
from typing import Optional, Tuple

import numpy as np

from ..core.clock import monotonic_ms
from ..core.interfaces import IAudioInput, IPitchSource
from ..logger import get_logger
from ..note_types import PitchSample
from .pitch_detector import AubioPitchDetector

logger = get_logger(__name__)


class AudioPitchSource(IPitchSource):
    """Collects audio blocks on the device thread, estimates pitch on the reader's.

    The device callback only enqueues; if the reader falls behind the oldest
    blocks are dropped. ``next_sample`` returns a silence frame when nothing
    arrives within ``timeout_s`` so a frame loop can check for cancellation,
    and None once the input has stopped and the queue is drained.
    """

    def __init__(
        self,
        audio_input: IAudioInput,
        detector: AubioPitchDetector,
        max_queue: int = 32,
        timeout_s: float = 0.1,
    ):
        self.audio_input = audio_input
        self.detector = detector
        self.timeout_s = timeout_s
        self.dropped_blocks = 0
        self._queue: "queue.Queue[Tuple[np.ndarray, float]]" = queue.Queue(maxsize=max_queue)
        self._started = False

    def start(self) -> bool:
        """Open the audio input. Raises ``AudioUnavailable`` if it cannot."""
        self._started = self.audio_input.start(self._on_audio)
        return self._started

    def _on_audio(self, audio_data: np.ndarray, timestamp_ms: float) -> None:
        try:
            self._queue.put_nowait((audio_data, timestamp_ms))
        except queue.Full:
            self.dropped_blocks += 1
            try:
                self._queue.get_nowait()
                self._queue.put_nowait((audio_data, timestamp_ms))
            except (queue.Empty, queue.Full):
                pass

    def next_sample(self) -> Optional[PitchSample]:
        try:
            audio_data, timestamp_ms = self._queue.get(timeout=self.timeout_s)
        except queue.Empty:
            if self._started and not self.audio_input.is_running():
                return None
            return PitchSample.silence(monotonic_ms())
        return self.detector.detect(audio_data, timestamp_ms)

    def close(self) -> None:
        self.audio_input.stop()
        if self.dropped_blocks:
            logger.warning(f"Dropped {self.dropped_blocks} audio blocks")
