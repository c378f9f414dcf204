"""Plain-text console display for tuner and practice updates."""

import sys
import threading
import time
from typing import Callable, Optional, TextIO

from ..core.interfaces import IUISink
from ..core.snapshot import SnapshotCell
from ..note_types import ScoreSnapshot, TuningStatus, TuningUpdate

METER_WIDTH = 21  # Odd so the centre cell marks 0 cents
METER_RANGE_CENTS = 50.0

STATUS_LABELS = {
    TuningStatus.WAITING: "waiting",
    TuningStatus.FLAT: "FLAT",
    TuningStatus.SHARP: "SHARP",
    TuningStatus.ALMOST: "almost",
    TuningStatus.IN_TUNE: "IN TUNE",
}


def cents_meter(cents: float, width: int = METER_WIDTH) -> str:
    """Text needle for a deviation, e.g. '[----------|---*------]'."""
    half = width // 2
    clipped = max(-METER_RANGE_CENTS, min(METER_RANGE_CENTS, cents))
    position = half + int(round(clipped / METER_RANGE_CENTS * half))
    cells = ["-"] * width
    cells[half] = "|"
    cells[position] = "*"
    return "[" + "".join(cells) + "]"


def format_tuning(update: TuningUpdate) -> str:
    target = update.target_string
    head = (
        f"{update.current_string_index + 1}/{update.total_strings} "
        f"{target.note_name:<4} {STATUS_LABELS[update.status]:<8}"
    )
    if update.status is TuningStatus.WAITING:
        return f"{head} {update.deviation_display()}"

    line = (
        f"{head} {cents_meter(update.cents_deviation)} {update.deviation_display():>10} "
        f"{update.detected_frequency_hz:7.2f} Hz"
    )
    if update.note is not None:
        line += f" ({update.note} {update.note_cents:+.0f}c)"
    return line


def format_score(snapshot: ScoreSnapshot) -> str:
    line = (
        f"{snapshot.progress_percent():5.1f}% | acc {snapshot.accuracy_percent:5.1f}% | "
        f"ok {snapshot.correct} bad {snapshot.incorrect} miss {snapshot.missed} "
        f"of {snapshot.total_notes} | streak {snapshot.current_streak} "
        f"(best {snapshot.max_streak})"
    )
    if snapshot.recent_feedback:
        line += f" | {snapshot.recent_feedback[-1]}"
    return line


class ConsoleDisplay(IUISink):
    """Writes one status line per update, overwriting the previous one."""

    def __init__(self, stream: Optional[TextIO] = None):
        self.stream = stream or sys.stdout
        self._last_line = ""

    def _write(self, line: str) -> None:
        if line == self._last_line:
            return
        padding = " " * max(0, len(self._last_line) - len(line))
        self.stream.write("\r" + line + padding)
        self.stream.flush()
        self._last_line = line

    def on_tuning_update(self, update: TuningUpdate) -> None:
        self._write(format_tuning(update))

    def on_score_update(self, snapshot: ScoreSnapshot) -> None:
        self._write(format_score(snapshot))

    def newline(self) -> None:
        self.stream.write("\n")
        self.stream.flush()
        self._last_line = ""

    def watch(
        self,
        cell: SnapshotCell,
        render: Callable,
        duration_s: Optional[float] = None,
        interval_s: float = 0.1,
        done: Optional[Callable[[], bool]] = None,
        stop_event: Optional[threading.Event] = None,
    ) -> None:
        """Poll a snapshot cell and render each new value until told to stop."""
        deadline = time.monotonic() + duration_s if duration_s else None
        seen_version = -1
        stop_event = stop_event or threading.Event()
        while not stop_event.is_set():
            if cell.version != seen_version:
                seen_version = cell.version
                value = cell.get()
                if value is not None:
                    render(value)
            if done is not None and done():
                break
            if deadline is not None and time.monotonic() >= deadline:
                break
            stop_event.wait(interval_s)
        self.newline()
