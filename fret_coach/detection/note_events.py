"""Segment a stream of pitch samples into discrete note events."""

from typing import Optional

from ..core.clock import Clock, monotonic_ms
from ..core.config import PracticeConfig
from ..logger import get_logger
from ..note_types import DetectedNoteEvent, NoteIdentity, PitchSample
from ..note_utils import cents_between, map_frequency
from .smoother import FrequencySmoother
from .stability_gate import StabilityGate

logger = get_logger(__name__)

# A raw frame this far from the smoothed value starts a new pitch
PITCH_JUMP_CENTS = 50.0


class NoteEventDetector:
    """Turns per-frame pitch samples into note onsets.

    Frames are grouped by pitch: a frame more than half a semitone away from
    the smoothed value drops the smoothing history, so the frames of a
    transition are never averaged into a note of their own. A new note is
    reported once its identity has held for ``stability_min_samples`` frames
    and the gate is stable, stamped with the first frame of that pitch.

    After ``release_frames`` consecutive frames without a stable pitch the
    current note is released, so playing the same note again produces a new
    event.
    """

    def __init__(
        self,
        config: Optional[PracticeConfig] = None,
        clock: Clock = monotonic_ms,
        reference_hz: float = 440.0,
    ):
        self.config = config or PracticeConfig()
        self._clock = clock
        self._reference_hz = reference_hz
        self._smoother = FrequencySmoother(
            size=self.config.smoothing_size,
            min_confidence=self.config.min_confidence,
            min_frequency=self.config.min_frequency,
            max_frequency=self.config.max_frequency,
        )
        self._gate = StabilityGate(
            size=self.config.stability_size,
            threshold_hz=self.config.stability_threshold_hz,
            min_samples=self.config.stability_min_samples,
        )
        self._current_note: Optional[NoteIdentity] = None
        self._candidate: Optional[NoteIdentity] = None
        self._candidate_frames = 0
        self._onset_ms = 0.0
        self._unstable_frames = 0

    @property
    def current_note(self) -> Optional[NoteIdentity]:
        return self._current_note

    def process(self, sample: PitchSample) -> Optional[DetectedNoteEvent]:
        """Feed one frame; returns an event on a new note onset."""
        timestamp_ms = (
            sample.timestamp_ms if sample.timestamp_ms is not None else self._clock()
        )

        if not self._smoother.accepts(sample):
            self._on_unstable_frame()
            return None

        if len(self._smoother) and (
            abs(cents_between(sample.frequency_hz, self._smoother.value()))
            > PITCH_JUMP_CENTS
        ):
            logger.debug(f"[{timestamp_ms:.0f}ms] Pitch jump to {sample.frequency_hz:.1f}Hz")
            self._restart()

        smoothed = self._smoother.push(sample)
        gated = self._gate.push(smoothed)

        note, cents = map_frequency(smoothed.frequency_hz, self._reference_hz)
        if note == self._candidate:
            self._candidate_frames += 1
        else:
            self._candidate = note
            self._candidate_frames = 1
            self._onset_ms = timestamp_ms

        if (
            not gated.stable
            or self._candidate_frames < self.config.stability_min_samples
        ):
            self._on_unstable_frame()
            return None

        self._unstable_frames = 0
        if note == self._current_note:
            return None

        self._current_note = note
        logger.debug(
            f"[{self._onset_ms:.0f}ms] {note} ({gated.frequency_hz:.1f}Hz, {cents:+.0f}c)"
        )
        return DetectedNoteEvent(note, self._onset_ms, gated.frequency_hz)

    def _restart(self) -> None:
        self._smoother.reset()
        self._gate.reset()
        self._candidate = None
        self._candidate_frames = 0

    def _on_unstable_frame(self) -> None:
        self._unstable_frames += 1
        if (
            self._current_note is not None
            and self._unstable_frames >= self.config.release_frames
        ):
            logger.debug(f"Released {self._current_note}")
            self._current_note = None
            self._restart()

    def reset(self) -> None:
        self._current_note = None
        self._unstable_frames = 0
        self._restart()
