"""Per-frame tuning pipeline: smooth, gate, map, match and judge."""

from typing import Optional

from ..core.clock import Clock, monotonic_ms
from ..core.config import TunerConfig
from ..core.events import TunerEvents
from ..core.snapshot import SnapshotCell
from ..detection.smoother import FrequencySmoother
from ..detection.stability_gate import StabilityGate
from ..detection.string_matcher import match_string
from ..logger import get_logger
from ..note_types import PitchSample, TuningStatus, TuningUpdate
from ..note_utils import map_frequency
from .session import TuningSession
from .state_machine import TuningStateMachine

logger = get_logger(__name__)

# Lowest accepted frequency sits this far below the lowest open string
LOW_STRING_MARGIN = 0.9


class TuningPipeline:
    """Turns pitch samples into ``TuningUpdate`` snapshots.

    Every call to ``process`` publishes the update to ``cell`` and emits it
    through ``events``; neither path blocks the caller.
    """

    def __init__(
        self,
        session: TuningSession,
        config: Optional[TunerConfig] = None,
        clock: Clock = monotonic_ms,
        events: Optional[TunerEvents] = None,
        cell: Optional[SnapshotCell] = None,
    ):
        self.session = session
        self.config = config or TunerConfig()
        self.events = events or TunerEvents()
        self.cell = cell if cell is not None else SnapshotCell()
        self._clock = clock

        lowest_target = min(s.target_frequency_hz for s in session.strings)
        min_frequency = min(self.config.min_frequency, lowest_target * LOW_STRING_MARGIN)
        if min_frequency < self.config.min_frequency:
            logger.info(
                f"Lowered minimum frequency to {min_frequency:.1f} Hz for {session.name}"
            )

        self.smoother = FrequencySmoother(
            size=self.config.smoothing_size,
            min_confidence=self.config.min_confidence,
            min_frequency=min_frequency,
            max_frequency=self.config.max_frequency,
        )
        self.gate = StabilityGate(
            size=self.config.stability_size,
            threshold_hz=self.config.stability_threshold_hz,
            min_samples=self.config.stability_min_samples,
        )
        self.state_machine = TuningStateMachine(
            tolerance_cents=self.config.cents_tolerance,
            hold_duration_ms=self.config.hold_duration_ms,
            max_gap_ms=self.config.max_gap_ms,
        )
        self._generation = session.generation
        self._completion_reported = False

    def initial_update(self) -> TuningUpdate:
        """WAITING update for the current target, before any audio arrives."""
        update = self._waiting_update()
        self._publish(update)
        return update

    def process(self, sample: PitchSample) -> TuningUpdate:
        now_ms = sample.timestamp_ms if sample.timestamp_ms is not None else self._clock()

        generation = self.session.generation
        if generation != self._generation:
            # Target changed underneath us: start over for the new string
            self._generation = generation
            self.state_machine.reset()
            self.smoother.reset()
            self.gate.reset()
            self.events.emit_string_changed(self.session.current_index)

        smoothed = self.smoother.push(sample)
        gated = self.gate.push(smoothed) if smoothed is not None else None

        if gated is None or not gated.stable:
            self.state_machine.update(None, now_ms)
            update = self._waiting_update()
            self._publish(update)
            return update

        frequency_hz = gated.frequency_hz
        index = self.session.current_index
        target = self.session.strings[index]
        cents = target.cents_from_target(frequency_hz)
        status = self.state_machine.update(cents, now_ms)
        note, note_cents = map_frequency(frequency_hz, self.config.reference_hz)
        detected_index = match_string(
            frequency_hz, self.session.preset, self.config.string_tolerance_cents
        )

        if (
            status is TuningStatus.IN_TUNE
            and self.config.complete_on_last_in_tune
            and index == self.session.total_strings - 1
            and not self.session.completed
        ):
            self.session.mark_completed()

        update = TuningUpdate(
            target_string=target,
            detected_frequency_hz=frequency_hz,
            cents_deviation=cents,
            status=status,
            current_string_index=index,
            total_strings=self.session.total_strings,
            note=note,
            note_cents=note_cents,
            detected_string_index=detected_index,
            completed=self.session.completed,
        )
        logger.debug(
            f"{target.note_name}: {frequency_hz:.2f} Hz {cents:+.1f}c {status.name}"
        )
        self._publish(update)
        return update

    def _waiting_update(self) -> TuningUpdate:
        return TuningUpdate(
            target_string=self.session.current_target(),
            detected_frequency_hz=0.0,
            cents_deviation=0.0,
            status=TuningStatus.WAITING,
            current_string_index=self.session.current_index,
            total_strings=self.session.total_strings,
            completed=self.session.completed,
        )

    def _publish(self, update: TuningUpdate) -> None:
        self.cell.publish(update)
        self.events.emit_tuning_update(update)
        if update.completed and not self._completion_reported:
            self._completion_reported = True
            logger.info(f"Tuning complete: {self.session.name}")
            self.events.emit_completed()

    def reset(self) -> None:
        self.smoother.reset()
        self.gate.reset()
        self.state_machine.reset()
        self._generation = self.session.generation
        self._completion_reported = False
