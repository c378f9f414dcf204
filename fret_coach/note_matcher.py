from enum import Enum

from .logger import get_logger
from .note_types import DetectedNoteEvent, ExpectedNote
from .note_utils import parse_note_name

# Get logger for this module
logger = get_logger(__name__)


class MatchMode(Enum):
    """How a detected note is compared with the expected one."""

    PITCH_CLASS = "pitch_class"  # Same pitch class, any octave
    PITCH = "pitch"  # Same pitch class and octave
    STRING_FRET = "string_fret"  # Same string and fret


class NoteMatcher:
    """
    Encapsulates logic for comparing detected notes to target notes,
    including normalization and enharmonic equivalence.
    """

    @staticmethod
    def match(target: str, played: str, match_octave: bool = False) -> bool:
        """
        Check if the played note matches the target note.

        Args:
            target: The target note (e.g., 'A', 'A#', 'Bb2')
            played: The played note (e.g., 'A4', 'A#3', 'Bb2')
            match_octave: Also require equal octaves when both notes carry one
        Returns:
            bool: True if the notes match, False otherwise
        """
        target = str(target).strip() if target is not None else ""
        played = str(played).strip() if played is not None else ""

        if not target or not played:
            logger.warning(f"Empty note in match - Target: '{target}', Played: '{played}'")
            return False

        try:
            target_class, target_octave = parse_note_name(target)
            played_class, played_octave = parse_note_name(played)
        except ValueError as e:
            logger.debug(f"Invalid note format: {e}")
            return False

        if target_class != played_class:
            logger.debug(f"No match: '{played}' != '{target}'")
            return False

        if match_octave and target_octave is not None and played_octave is not None:
            return target_octave == played_octave
        return True

    @classmethod
    def match_event(
        cls,
        expected: ExpectedNote,
        event: DetectedNoteEvent,
        mode: MatchMode = MatchMode.PITCH_CLASS,
    ) -> bool:
        """Check whether a detected note event plays the expected note."""
        if mode is MatchMode.STRING_FRET:
            if event.string is not None and event.fret is not None:
                return event.string == expected.string and event.fret == expected.fret
            # Without a fretboard position fall back to the exact pitch
            return event.note.midi == expected.midi

        return cls.match(
            expected.note_name,
            str(event.note),
            match_octave=mode is MatchMode.PITCH,
        )
