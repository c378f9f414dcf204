"""Match detected notes against the expected-note timeline."""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import List, Optional, Sequence, Tuple

from ..core.config import MAX_SPEED_FACTOR, MIN_SPEED_FACTOR
from ..logger import get_logger
from ..note_matcher import MatchMode, NoteMatcher
from ..note_types import DetectedNoteEvent, ExpectedNote

logger = get_logger(__name__)


class MatchOutcome(Enum):
    HIT = auto()  # Slot consumed, note agrees
    WRONG = auto()  # Slot consumed, note disagrees
    UNMATCHED = auto()  # No expected note open at this time


@dataclass(frozen=True)
class MatchResult:
    """What happened to one detected note, plus notes that expired before it."""

    outcome: MatchOutcome
    expected: Optional[ExpectedNote] = None
    timing_error_ms: float = 0.0  # Detected minus expected, scaled time
    missed: Tuple[ExpectedNote, ...] = field(default_factory=tuple)


class TimelineMatcher:
    """Forward-only cursor over a sorted timeline.

    Each expected note can be consumed once. Expected times are divided by
    the speed factor so a half-speed run compares against stretched times.
    """

    def __init__(
        self,
        timeline: Sequence[ExpectedNote],
        window_ms: float = 100.0,
        speed_factor: float = 1.0,
        mode: MatchMode = MatchMode.PITCH_CLASS,
    ):
        times = [note.time_ms for note in timeline]
        if any(later < earlier for earlier, later in zip(times, times[1:])):
            raise ValueError("Expected timeline must be sorted by time")
        clamped = max(MIN_SPEED_FACTOR, min(MAX_SPEED_FACTOR, speed_factor))
        if clamped != speed_factor:
            logger.warning(f"speed_factor={speed_factor} out of range, clamped to {clamped}")

        self.timeline: Tuple[ExpectedNote, ...] = tuple(timeline)
        self.window_ms = window_ms
        self.speed_factor = clamped
        self.mode = mode
        self._cursor = 0

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def remaining(self) -> int:
        return len(self.timeline) - self._cursor

    def is_finished(self) -> bool:
        return self._cursor >= len(self.timeline)

    def scaled_time(self, note: ExpectedNote) -> float:
        return note.time_ms / self.speed_factor

    def _window_closed(self, note: ExpectedNote, time_ms: float) -> bool:
        return self.scaled_time(note) + self.window_ms < time_ms

    def expire(self, clock_ms: float) -> List[ExpectedNote]:
        """Pass every note whose window closed before clock_ms; they were missed."""
        missed = []
        while self._cursor < len(self.timeline):
            note = self.timeline[self._cursor]
            if not self._window_closed(note, clock_ms):
                break
            missed.append(note)
            self._cursor += 1
        if missed:
            logger.debug(f"Missed {len(missed)} note(s) before {clock_ms:.0f}ms")
        return missed

    def match(self, event: DetectedNoteEvent) -> MatchResult:
        """Match one detected note at its (already compensated) timestamp."""
        time_ms = event.timestamp_ms
        missed = tuple(self.expire(time_ms))

        if self.is_finished():
            return MatchResult(MatchOutcome.UNMATCHED, missed=missed)

        expected = self.timeline[self._cursor]
        error_ms = time_ms - self.scaled_time(expected)
        if abs(error_ms) > self.window_ms:
            # Early for the next note, or out of order behind the cursor
            logger.debug(f"Unmatched {event.note} at {time_ms:.0f}ms")
            return MatchResult(MatchOutcome.UNMATCHED, missed=missed)

        self._cursor += 1
        if NoteMatcher.match_event(expected, event, self.mode):
            outcome = MatchOutcome.HIT
        else:
            outcome = MatchOutcome.WRONG
        logger.debug(
            f"{outcome.name}: expected {expected.note_name}, played {event.note} "
            f"({error_ms:+.0f}ms)"
        )
        return MatchResult(outcome, expected, error_ms, missed)

    def reset(self) -> None:
        self._cursor = 0
