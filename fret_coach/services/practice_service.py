"""Practice lifecycle: detect notes from a pitch source and score them."""

from typing import Optional, Sequence

from ..core.context import AppContext
from ..core.events import PracticeEvents
from ..core.factory import ComponentFactory
from ..core.frame_loop import FrameLoop
from ..core.interfaces import IPitchSource
from ..core.snapshot import SnapshotCell
from ..detection.note_events import NoteEventDetector
from ..logger import get_logger
from ..note_types import ExpectedNote, PitchSample, ScoreReport, ScoreSnapshot
from ..scoring.practice_session import PracticeSession

logger = get_logger(__name__)


class PracticeService:
    """Runs note detection and scoring for one play-along at a time."""

    def __init__(
        self,
        context: Optional[AppContext] = None,
        factory: Optional[ComponentFactory] = None,
        events: Optional[PracticeEvents] = None,
    ):
        self.context = context or AppContext()
        self.factory = factory or ComponentFactory(self.context)
        self.events = events or PracticeEvents()
        self.cell: SnapshotCell[ScoreSnapshot] = SnapshotCell()
        self.session: Optional[PracticeSession] = None
        self.detector: Optional[NoteEventDetector] = None
        self._source: Optional[IPitchSource] = None
        self._loop: Optional[FrameLoop] = None
        self._last_tick_ms: Optional[float] = None

    def start(
        self,
        timeline: Sequence[ExpectedNote],
        total_duration_ms: float = 0.0,
        source: Optional[IPitchSource] = None,
        **overrides,
    ) -> PracticeSession:
        """Start a new practice run with fresh detection and score state.

        Raises:
            RuntimeError: If a run is already in progress
            AudioUnavailable: If no source was given and no input could be opened
        """
        if self.is_running():
            raise RuntimeError("Practice session already running")

        manager = self.context.config_manager
        config = manager.practice_config(**overrides)
        if source is None:
            source = self.factory.create_pitch_source(config=manager.tuner_config())

        self.cell.clear()
        self.session = PracticeSession(
            timeline,
            total_duration_ms,
            config=config,
            clock=self.context.clock,
            events=self.events,
            cell=self.cell,
        )
        self.detector = NoteEventDetector(
            config,
            clock=self.context.clock,
            reference_hz=manager.tuner_config().reference_hz,
        )
        self._source = source
        self._last_tick_ms = None

        self.session.start()
        self._loop = FrameLoop(source, self._process, name="practice")
        self._loop.start()
        return self.session

    def _process(self, sample: PitchSample) -> None:
        now_ms = sample.timestamp_ms if sample.timestamp_ms is not None else self.context.clock()
        event = self.detector.process(sample)
        if event is not None:
            self.session.on_detected_note(event)

        interval = self.session.config.snapshot_interval_ms
        if self._last_tick_ms is None or now_ms - self._last_tick_ms >= interval:
            self._last_tick_ms = now_ms
            self.session.tick(now_ms)

    def pause(self) -> bool:
        if self.session is None:
            return False
        paused = self.session.pause()
        if paused:
            self.detector.reset()
        return paused

    def resume(self) -> bool:
        return self.session.resume() if self.session else False

    def stop(self, timeout: float = 2.0) -> Optional[ScoreReport]:
        """Stop detection and return the final report (None if never started)."""
        if self._loop is not None:
            self._loop.stop(timeout)
            if self._loop.error is not None:
                self.events.emit_error(self._loop.error)
            self._loop = None
        if self._source is not None:
            self._source.close()
            self._source = None
        if self.session is None:
            return None
        return self.session.stop()

    def wait(self, timeout: Optional[float] = None) -> bool:
        return self._loop.wait(timeout) if self._loop is not None else True

    def is_running(self) -> bool:
        return self._loop is not None and self._loop.is_running()

    def latest_snapshot(self) -> Optional[ScoreSnapshot]:
        return self.cell.get()
