"""Tuner lifecycle: wire a pitch source to a fresh tuning pipeline."""

from typing import Optional

from ..core.context import AppContext
from ..core.events import TunerEvents
from ..core.factory import ComponentFactory
from ..core.frame_loop import FrameLoop
from ..core.interfaces import IPitchSource
from ..core.snapshot import SnapshotCell
from ..logger import get_logger
from ..note_types import TuningUpdate
from ..tuning.pipeline import TuningPipeline
from ..tuning.session import TuningSession

logger = get_logger(__name__)


class TunerService:
    """Runs the tuning pipeline on a background frame loop.

    The UI reads ``cell`` (or listens on ``events``) and drives string
    navigation through ``next_string``, ``previous_string`` and
    ``confirm_and_advance``.
    """

    def __init__(
        self,
        context: Optional[AppContext] = None,
        factory: Optional[ComponentFactory] = None,
        events: Optional[TunerEvents] = None,
    ):
        self.context = context or AppContext()
        self.factory = factory or ComponentFactory(self.context)
        self.events = events or TunerEvents()
        self.cell: SnapshotCell[TuningUpdate] = SnapshotCell()
        self.session: Optional[TuningSession] = None
        self.pipeline: Optional[TuningPipeline] = None
        self._source: Optional[IPitchSource] = None
        self._loop: Optional[FrameLoop] = None

    def start(
        self,
        preset_name: str = "standard",
        source: Optional[IPitchSource] = None,
        session: Optional[TuningSession] = None,
        **overrides,
    ) -> TuningSession:
        """Start tuning.

        Args:
            preset_name: Preset to tune to when no session is given
            source: Pitch source; None opens the default audio input
            session: Existing session to continue
            **overrides: Tuner config values for this run only

        Raises:
            RuntimeError: If the tuner is already running
            AudioUnavailable: If no source was given and no input could be opened
        """
        if self.is_running():
            raise RuntimeError("Tuner already running")

        config = self.context.config_manager.tuner_config(**overrides)
        if source is None:
            source = self.factory.create_pitch_source(config=config)

        self.session = session or TuningSession.from_preset(
            self.context.get_preset(preset_name)
        )
        self.cell.clear()
        self.pipeline = TuningPipeline(
            self.session,
            config=config,
            clock=self.context.clock,
            events=self.events,
            cell=self.cell,
        )
        self._source = source
        self.pipeline.initial_update()

        self._loop = FrameLoop(source, self._process, name="tuner")
        self._loop.start()
        logger.info(f"Tuner started: {self.session.name}")
        return self.session

    def _process(self, sample) -> None:
        self.pipeline.process(sample)

    def stop(self, timeout: float = 2.0) -> bool:
        """Stop the frame loop and release the source. Safe to call twice."""
        stopped = True
        if self._loop is not None:
            stopped = self._loop.stop(timeout)
            if self._loop.error is not None:
                self.events.emit_error(self._loop.error)
            self._loop = None
        if self._source is not None:
            self._source.close()
            self._source = None
        return stopped

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Wait for the source to run out, e.g. at the end of a recording."""
        return self._loop.wait(timeout) if self._loop is not None else True

    def is_running(self) -> bool:
        return self._loop is not None and self._loop.is_running()

    def next_string(self) -> bool:
        return self.session.advance() if self.session else False

    def previous_string(self) -> bool:
        return self.session.retreat() if self.session else False

    def confirm_and_advance(self) -> bool:
        return self.session.confirm_current_and_advance() if self.session else False

    def latest_update(self) -> Optional[TuningUpdate]:
        return self.cell.get()
