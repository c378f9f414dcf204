"""Type definitions for the Fret Coach project."""

import math
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Optional, Tuple

NOTE_NAMES: Tuple[str, ...] = (
    "C",
    "C#",
    "D",
    "D#",
    "E",
    "F",
    "F#",
    "G",
    "G#",
    "A",
    "A#",
    "B",
)


@dataclass(frozen=True)
class PitchSample:
    """One per-frame output of the pitch estimator."""

    frequency_hz: float  # <= 0 means no pitch in this frame
    confidence: float  # Estimator confidence (0-1)
    timestamp_ms: Optional[float] = None  # Monotonic frame time, if the source knows it

    def is_valid(self) -> bool:
        """True when the sample carries a usable pitch estimate."""
        return (
            math.isfinite(self.frequency_hz)
            and self.frequency_hz > 0
            and math.isfinite(self.confidence)
            and 0.0 <= self.confidence <= 1.0
        )

    @classmethod
    def silence(cls, timestamp_ms: Optional[float] = None) -> "PitchSample":
        return cls(0.0, 0.0, timestamp_ms)


@dataclass(frozen=True)
class SmoothedFrequency:
    """A smoothed frequency and whether the stability gate accepted it."""

    frequency_hz: float
    stable: bool = False


@dataclass(frozen=True)
class NoteIdentity:
    """A pitch class plus octave in Scientific Pitch Notation."""

    name: str  # One of NOTE_NAMES (sharp spelling)
    octave: int

    @property
    def midi(self) -> int:
        return (self.octave + 1) * 12 + NOTE_NAMES.index(self.name)

    @classmethod
    def from_midi(cls, midi: int) -> "NoteIdentity":
        return cls(NOTE_NAMES[midi % 12], midi // 12 - 1)

    def __str__(self):
        return f"{self.name}{self.octave}"


@dataclass(frozen=True)
class TuningString:
    """A single string of a tuning preset."""

    string_number: int  # 1 = thinnest string
    note_name: str  # e.g. 'E2'
    target_frequency_hz: float
    midi: int = 0

    def __post_init__(self):
        if not 1 <= self.string_number <= 12:
            raise ValueError("string_number must be 1-12")
        if self.target_frequency_hz <= 0:
            raise ValueError("target_frequency_hz must be positive")
        if not self.midi:
            midi = round(69 + 12 * math.log2(self.target_frequency_hz / 440.0))
            object.__setattr__(self, "midi", midi)

    def cents_from_target(self, frequency_hz: float) -> float:
        """Cents from the target pitch; positive is sharp, NaN for no pitch."""
        if frequency_hz <= 0:
            return math.nan
        return 1200.0 * math.log2(frequency_hz / self.target_frequency_hz)

    def is_in_tune(self, frequency_hz: float, tolerance_cents: float) -> bool:
        cents = self.cents_from_target(frequency_hz)
        return not math.isnan(cents) and abs(cents) <= tolerance_cents

    def __str__(self):
        return (
            f"String {self.string_number}: {self.note_name} "
            f"({self.target_frequency_hz:.2f} Hz)"
        )


@dataclass(frozen=True)
class TuningPreset:
    """A named open-string tuning, ordered from the lowest string up."""

    name: str
    strings: Tuple[TuningString, ...]

    def __post_init__(self):
        if not self.strings:
            raise ValueError(f"Tuning preset '{self.name}' has no strings")
        object.__setattr__(self, "strings", tuple(self.strings))

    def __len__(self):
        return len(self.strings)


class TuningStatus(Enum):
    """Tuner judgement for the current target string."""

    WAITING = auto()  # No stable pitch
    FLAT = auto()  # Too low
    SHARP = auto()  # Too high
    ALMOST = auto()  # Within tolerance, not yet held long enough
    IN_TUNE = auto()  # Held within tolerance for the hold duration


@dataclass(frozen=True)
class TuningUpdate:
    """Snapshot pushed to the UI after every processed tuning frame."""

    target_string: TuningString
    detected_frequency_hz: float
    cents_deviation: float
    status: TuningStatus
    current_string_index: int
    total_strings: int
    note: Optional[NoteIdentity] = None
    note_cents: float = 0.0  # Deviation from the nearest semitone
    detected_string_index: Optional[int] = None
    completed: bool = False

    def deviation_display(self) -> str:
        if self.status is TuningStatus.WAITING:
            return f"Play string {self.target_string.string_number}"
        if self.status is TuningStatus.IN_TUNE:
            return "In tune"
        sign = "+" if self.cents_deviation > 0 else ""
        return f"{sign}{self.cents_deviation:.0f} cents"


@dataclass(frozen=True)
class ExpectedNote:
    """A note the player is expected to play at a given time in the tab."""

    time_ms: float
    duration_ms: float
    midi: int
    string: int = 0
    fret: int = 0
    measure_index: int = 0
    beat_index: int = 0
    note_name: str = ""

    def __post_init__(self):
        # Pickup measures can produce negative times
        if self.time_ms < 0:
            object.__setattr__(self, "time_ms", 0.0)
        if self.duration_ms < 0:
            object.__setattr__(self, "duration_ms", 0.0)
        if not self.note_name:
            object.__setattr__(self, "note_name", midi_label(self.midi))

    @classmethod
    def of(
        cls,
        time_ms: float,
        duration_ms: float,
        midi: int,
        string: int = 0,
        fret: int = 0,
        measure_index: int = 0,
        beat_index: int = 0,
    ) -> "ExpectedNote":
        return cls(
            time_ms,
            duration_ms,
            midi,
            string,
            fret,
            measure_index,
            beat_index,
            midi_label(midi),
        )

    @property
    def frequency_hz(self) -> float:
        return 440.0 * 2.0 ** ((self.midi - 69) / 12.0)

    def is_active_at(self, time_ms: float, tolerance_ms: float) -> bool:
        return (
            self.time_ms - tolerance_ms
            <= time_ms
            <= self.time_ms + self.duration_ms + tolerance_ms
        )


def midi_label(midi: int) -> str:
    """SPN label for a MIDI number, '--' outside the MIDI range."""
    if midi < 0 or midi > 127:
        return "--"
    return str(NoteIdentity.from_midi(midi))


@dataclass(frozen=True)
class DetectedNoteEvent:
    """A note onset reported by the detection front end."""

    note: NoteIdentity
    timestamp_ms: float
    frequency_hz: float = 0.0
    string: Optional[int] = None
    fret: Optional[int] = None


@dataclass(frozen=True)
class ScoreSnapshot:
    """Read-only view of the score pushed to the UI on each update."""

    accuracy_percent: float = 0.0
    correct: int = 0
    incorrect: int = 0
    missed: int = 0
    current_streak: int = 0
    max_streak: int = 0
    total_notes: int = 0
    position_ms: float = 0.0
    total_duration_ms: float = 0.0
    recent_feedback: Tuple[str, ...] = ()

    def progress_percent(self) -> float:
        if self.total_duration_ms <= 0:
            return 0.0
        return min(100.0, self.position_ms * 100.0 / self.total_duration_ms)


@dataclass(frozen=True)
class ScoreReport:
    """Final, frozen result of a practice session."""

    total_notes: int
    correct: int
    incorrect: int
    missed: int
    accuracy_percent: float
    average_timing_error_ms: float
    timing_penalty: float
    final_score: float
    grade: str
    star_rating: int
    max_streak: int
    duration_ms: float = 0.0
    speed_factor: float = 1.0
    problem_measures: Tuple[int, ...] = field(default_factory=tuple)

    def formatted_duration(self) -> str:
        seconds = int(self.duration_ms // 1000)
        return f"{seconds // 60:02d}:{seconds % 60:02d}"

    def summary(self) -> str:
        lines = [
            f"Grade: {self.grade} ({self.star_rating} stars)",
            f"Accuracy: {self.accuracy_percent:.1f}%",
            f"Correct Notes: {self.correct}/{self.total_notes}",
            f"Incorrect: {self.incorrect}, Missed: {self.missed}",
            f"Avg Timing Error: {self.average_timing_error_ms:.0f}ms",
            f"Final Score: {self.final_score:.1f}",
            f"Longest Streak: {self.max_streak}",
            f"Duration: {self.formatted_duration()}",
        ]
        if self.problem_measures:
            measures = ", ".join(str(m + 1) for m in self.problem_measures)
            lines.append(f"Problem measures: {measures}")
        return "\n".join(lines)
