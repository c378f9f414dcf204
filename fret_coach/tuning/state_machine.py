"""Hold-timer state machine that judges tuning accuracy."""

from typing import Optional

from ..logger import get_logger
from ..note_types import TuningStatus

logger = get_logger(__name__)


def classify(
    cents: Optional[float],
    tolerance: float,
    hold_elapsed_ms: float,
    hold_duration_ms: float,
) -> TuningStatus:
    """Status for a cents deviation and the time already held in tune."""
    if cents is None:
        return TuningStatus.WAITING
    if abs(cents) > tolerance:
        return TuningStatus.SHARP if cents > 0 else TuningStatus.FLAT
    if hold_elapsed_ms >= hold_duration_ms:
        return TuningStatus.IN_TUNE
    return TuningStatus.ALMOST


class TuningStateMachine:
    """Tracks how long the pitch has stayed within tolerance.

    Frames without a stable pitch report WAITING and leave the timer alone,
    so a brief dropout does not restart the hold. A dropout longer than
    ``max_gap_ms`` does restart it on the next in-tolerance frame.
    """

    def __init__(
        self,
        tolerance_cents: float = 5.0,
        hold_duration_ms: float = 500.0,
        max_gap_ms: float = 250.0,
    ):
        self.tolerance_cents = tolerance_cents
        self.hold_duration_ms = hold_duration_ms
        self.max_gap_ms = max_gap_ms
        self._hold_start_ms: Optional[float] = None
        self._last_in_tolerance_ms: Optional[float] = None
        self.status = TuningStatus.WAITING

    def update(self, cents: Optional[float], now_ms: float) -> TuningStatus:
        if cents is None:
            self.status = TuningStatus.WAITING
            return self.status

        if abs(cents) > self.tolerance_cents:
            self.reset()
        else:
            if (
                self._hold_start_ms is None
                or now_ms - self._last_in_tolerance_ms > self.max_gap_ms
            ):
                self._hold_start_ms = now_ms
            self._last_in_tolerance_ms = now_ms

        self.status = classify(
            cents,
            self.tolerance_cents,
            self.hold_elapsed_ms(now_ms),
            self.hold_duration_ms,
        )
        return self.status

    def hold_elapsed_ms(self, now_ms: float) -> float:
        if self._hold_start_ms is None:
            return 0.0
        return max(0.0, now_ms - self._hold_start_ms)

    @property
    def holding(self) -> bool:
        return self._hold_start_ms is not None

    def reset(self) -> None:
        self._hold_start_ms = None
        self._last_in_tolerance_ms = None
