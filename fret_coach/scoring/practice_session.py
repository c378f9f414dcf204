"""A single play-along run: clock, timeline matching and live score."""

import threading
from collections import deque
from typing import Deque, Optional, Sequence

from ..core.clock import Clock, monotonic_ms
from ..core.config import PracticeConfig
from ..core.events import PracticeEvents
from ..core.snapshot import SnapshotCell
from ..logger import get_logger
from ..note_matcher import MatchMode
from ..note_types import DetectedNoteEvent, ExpectedNote, ScoreReport, ScoreSnapshot
from .score_engine import ScoreEngine
from .timeline_matcher import MatchOutcome, MatchResult, TimelineMatcher

logger = get_logger(__name__)


class PracticeSession:
    """Scores detected notes against an expected timeline in real time.

    Detected notes arrive on the audio worker while the UI may pause or stop
    the run, so matcher and engine updates happen under one short lock.
    Readers use ``snapshot()`` or the published ``cell`` instead.
    """

    def __init__(
        self,
        timeline: Sequence[ExpectedNote],
        total_duration_ms: float = 0.0,
        config: Optional[PracticeConfig] = None,
        clock: Clock = monotonic_ms,
        events: Optional[PracticeEvents] = None,
        cell: Optional[SnapshotCell] = None,
    ):
        self.config = config or PracticeConfig()
        self.events = events or PracticeEvents()
        self.cell = cell if cell is not None else SnapshotCell()
        self._clock = clock

        if not total_duration_ms and timeline:
            last = timeline[-1]
            total_duration_ms = last.time_ms + last.duration_ms
        self.total_duration_ms = total_duration_ms / self.config.speed_factor

        self.matcher = TimelineMatcher(
            timeline,
            window_ms=self.config.match_window_ms,
            speed_factor=self.config.speed_factor,
            mode=MatchMode(self.config.match_mode),
        )
        self.engine = ScoreEngine(
            total_notes=len(timeline),
            penalty_threshold_ms=self.config.timing_penalty_threshold_ms,
            penalty_per_ms=self.config.timing_penalty_per_ms,
            grade_thresholds=self.config.grade_thresholds,
            floor_grade=self.config.floor_grade,
        )

        self._lock = threading.Lock()
        self._feedback: Deque[str] = deque(maxlen=self.config.max_feedback_items)
        self._start_ms: Optional[float] = None
        self._paused_at_ms: Optional[float] = None
        self._paused_total_ms = 0.0
        self._stopped_at_ms: Optional[float] = None
        self._report: Optional[ScoreReport] = None

    @property
    def is_active(self) -> bool:
        return self._start_ms is not None and self._report is None and self._paused_at_ms is None

    @property
    def is_paused(self) -> bool:
        return self._paused_at_ms is not None and self._report is None

    @property
    def is_finished(self) -> bool:
        return self._report is not None

    def start(self) -> None:
        with self._lock:
            if self._start_ms is not None:
                logger.warning("Practice session already started")
                return
            self._start_ms = self._clock()
        logger.info(
            f"Practice started: {self.engine.total_notes} notes, "
            f"speed {self.config.speed_factor:.2f}x"
        )
        self._publish()

    def position_ms(self, clock_ms: Optional[float] = None) -> float:
        """Playback position in wall-clock ms since start, excluding pauses."""
        if self._start_ms is None:
            return 0.0
        if clock_ms is None:
            if self._stopped_at_ms is not None:
                clock_ms = self._stopped_at_ms
            elif self._paused_at_ms is not None:
                clock_ms = self._paused_at_ms
            else:
                clock_ms = self._clock()
        elif self._paused_at_ms is not None:
            # Position does not advance while paused
            clock_ms = min(clock_ms, self._paused_at_ms)
        return max(0.0, clock_ms - self._start_ms - self._paused_total_ms)

    def pause(self) -> bool:
        with self._lock:
            if not self.is_active:
                return False
            self._paused_at_ms = self._clock()
        logger.info("Practice paused")
        return True

    def resume(self) -> bool:
        with self._lock:
            if not self.is_paused:
                return False
            self._paused_total_ms += self._clock() - self._paused_at_ms
            self._paused_at_ms = None
        logger.info("Practice resumed")
        return True

    def on_detected_note(self, event: DetectedNoteEvent) -> Optional[MatchResult]:
        """Score one detected note. Ignored unless the session is running."""
        with self._lock:
            if not self.is_active:
                return None
            position = (
                self.position_ms(event.timestamp_ms) - self.config.latency_compensation_ms
            )
            compensated = DetectedNoteEvent(
                event.note, position, event.frequency_hz, event.string, event.fret
            )
            result = self.matcher.match(compensated)
            self._apply(result)

        self.events.emit_note_detected(event)
        self._publish()
        return result

    def tick(self, clock_ms: Optional[float] = None) -> ScoreSnapshot:
        """Expire notes whose windows closed and publish a fresh snapshot."""
        with self._lock:
            if self.is_active:
                for note in self.matcher.expire(self.position_ms(clock_ms)):
                    self._record_missed(note)
        return self._publish(clock_ms)

    def stop(self, clock_ms: Optional[float] = None) -> ScoreReport:
        """Finish the run and return the report. Later calls return the same report."""
        with self._lock:
            if self._report is not None:
                return self._report

            if self._start_ms is not None:
                if clock_ms is None:
                    clock_ms = self._paused_at_ms if self._paused_at_ms is not None else self._clock()
                if self._paused_at_ms is None:
                    # Only notes whose window already closed count as missed
                    for note in self.matcher.expire(self.position_ms(clock_ms)):
                        self._record_missed(note)
                self._stopped_at_ms = clock_ms

            self._report = self.engine.report(
                duration_ms=self.position_ms(), speed_factor=self.config.speed_factor
            )
            report = self._report
            remaining = self.matcher.remaining

        if remaining:
            logger.info(f"Practice stopped, {remaining} note(s) not reached")
        else:
            logger.info("Practice stopped")
        self._publish()
        self.events.emit_finished(report)
        return report

    def snapshot(self, clock_ms: Optional[float] = None) -> ScoreSnapshot:
        return self.engine.snapshot(
            position_ms=self.position_ms(clock_ms),
            total_duration_ms=self.total_duration_ms,
            recent_feedback=tuple(self._feedback),
        )

    @property
    def recent_feedback(self):
        return tuple(self._feedback)

    def _apply(self, result: MatchResult) -> None:
        # Caller holds the lock
        for note in result.missed:
            self._record_missed(note)

        expected = result.expected
        if result.outcome is MatchOutcome.HIT:
            self.engine.record_hit(result.timing_error_ms, expected.measure_index)
            self._feedback.append(f"Hit {expected.note_name} ({result.timing_error_ms:+.0f}ms)")
        elif result.outcome is MatchOutcome.WRONG:
            self.engine.record_incorrect(expected.measure_index)
            self._feedback.append(f"Wrong note, expected {expected.note_name}")

    def _record_missed(self, note: ExpectedNote) -> None:
        self.engine.record_missed(note.measure_index)
        self._feedback.append(f"Missed {note.note_name}")

    def _publish(self, clock_ms: Optional[float] = None) -> ScoreSnapshot:
        snapshot = self.snapshot(clock_ms)
        self.cell.publish(snapshot)
        self.events.emit_score_update(snapshot)
        return snapshot
