"""Progress through the strings of a tuning preset."""

import threading
from typing import List, Sequence

from ..logger import get_logger
from ..note_types import TuningPreset, TuningString
from ..note_utils import midi_to_frequency, midi_to_note_name

logger = get_logger(__name__)


class TuningSession:
    """Walks the player through a preset one string at a time.

    The current index is read by the audio worker and moved by the UI, so it
    only changes under a short lock. ``generation`` increases on every index
    change; the tuning pipeline compares it to drop a stale hold timer.
    """

    def __init__(self, preset: TuningPreset):
        self.preset = preset
        self._lock = threading.Lock()
        self._index = 0
        self._generation = 0
        self._tuned: List[bool] = [False] * len(preset.strings)
        self._completed = False

    @classmethod
    def from_preset(cls, preset: TuningPreset) -> "TuningSession":
        return cls(preset)

    @classmethod
    def from_midi_notes(cls, name: str, midi_notes: Sequence[int]) -> "TuningSession":
        """Build a session from per-string MIDI notes.

        Args:
            name: Display name of the tuning
            midi_notes: One MIDI note per string, highest string first
                (the order tablature files store them in)
        """
        if not midi_notes:
            raise ValueError("midi_notes cannot be empty")

        strings = []
        for index in range(len(midi_notes) - 1, -1, -1):
            midi = int(midi_notes[index])
            strings.append(
                TuningString(index + 1, midi_to_note_name(midi), midi_to_frequency(midi), midi)
            )
        return cls(TuningPreset(name, tuple(strings)))

    @property
    def name(self) -> str:
        return self.preset.name

    @property
    def strings(self):
        return self.preset.strings

    @property
    def total_strings(self) -> int:
        return len(self.preset.strings)

    @property
    def current_index(self) -> int:
        return self._index

    @property
    def generation(self) -> int:
        return self._generation

    def current_target(self) -> TuningString:
        return self.preset.strings[self._index]

    def _move_to(self, index: int) -> None:
        # Caller holds the lock
        self._index = index
        self._generation += 1
        logger.debug(f"Target string {index + 1}/{self.total_strings}")

    def advance(self) -> bool:
        """Move to the next string without marking the current one.

        Returns:
            False when already on the last string
        """
        with self._lock:
            if self._index >= self.total_strings - 1:
                return False
            self._move_to(self._index + 1)
            return True

    def retreat(self) -> bool:
        """Move to the previous string. Returns True if the index moved."""
        with self._lock:
            if self._index <= 0:
                return False
            self._move_to(self._index - 1)
            return True

    def confirm_current_and_advance(self) -> bool:
        """Mark the current string tuned, then advance.

        Returns:
            True if there are more strings to tune
        """
        with self._lock:
            self._tuned[self._index] = True
            if self._index >= self.total_strings - 1:
                return False
            self._move_to(self._index + 1)
            return True

    def mark_completed(self) -> None:
        with self._lock:
            self._tuned[self._index] = True
            self._completed = True

    @property
    def completed(self) -> bool:
        return self._completed or all(self._tuned)

    def strings_tuned(self) -> int:
        return sum(self._tuned)

    def is_string_tuned(self, index: int) -> bool:
        return 0 <= index < len(self._tuned) and self._tuned[index]

    def reset(self) -> None:
        with self._lock:
            self._tuned = [False] * self.total_strings
            self._completed = False
            self._move_to(0)
