"""Utility functions for working with musical notes and frequencies."""

import re
from typing import Dict, Optional, Tuple

import numpy as np

from .logger import get_logger
from .note_types import NOTE_NAMES, NoteIdentity

# Get logger for this module
logger = get_logger(__name__)

# Standard reference: A4 = 440Hz, MIDI 69
A4_FREQUENCY = 440.0
A4_MIDI = 69

SHARP_TO_FLAT: Dict[str, str] = {
    "C#": "Db",
    "D#": "Eb",
    "F#": "Gb",
    "G#": "Ab",
    "A#": "Bb",
}
FLAT_TO_SHARP: Dict[str, str] = {v: k for k, v in SHARP_TO_FLAT.items()}
# Spellings that land on a natural or wrap the octave
ENHARMONIC_TO_SHARP: Dict[str, str] = {
    "B#": "C",
    "E#": "F",
    "Cb": "B",
    "Fb": "E",
}

# Note letter, optional accidental, optional (possibly negative) octave
NOTE_PATTERN = re.compile(r"^([A-Ga-g])([#b]?)(-?[0-9]*)$")


def cents_between(frequency_hz: float, target_hz: float) -> float:
    """Signed distance in cents from target_hz to frequency_hz.

    Positive means frequency_hz is sharp of the target.
    """
    return float(1200.0 * np.log2(frequency_hz / target_hz))


def map_frequency(
    frequency_hz: float, reference_hz: float = A4_FREQUENCY
) -> Tuple[NoteIdentity, float]:
    """Map a frequency to the nearest note and its deviation in cents.

    Args:
        frequency_hz: Frequency in Hz, must be positive
        reference_hz: Frequency of A4

    Returns:
        (note, cents) where cents is relative to the nearest semitone,
        so it always lies in [-50, 50]

    Raises:
        ValueError: If frequency_hz is not positive
    """
    if not frequency_hz > 0:
        raise ValueError(f"Frequency must be positive, got {frequency_hz}")

    half_steps = int(round(12 * np.log2(frequency_hz / reference_hz)))
    nearest_hz = reference_hz * 2.0 ** (half_steps / 12.0)
    cents = cents_between(frequency_hz, nearest_hz)
    return NoteIdentity.from_midi(A4_MIDI + half_steps), cents


def get_note_name(freq: float, use_flats: bool = False) -> str:
    """Convert frequency to note name using Scientific Pitch Notation (SPN).

    Args:
        freq: Frequency in Hz
        use_flats: If True, use flat notes (e.g., 'Bb') instead of sharps (e.g., 'A#')

    Returns:
        Note name with octave in SPN (e.g., 'A4', 'C#4', 'Bb3'), or '---' for no pitch

    Note:
        - Middle C is C4 (261.63 Hz)
        - A4 is 440 Hz
        - Octave numbers change between B and C (e.g., B3 -> C4)
    """
    if freq <= 0:
        return "---"

    note, _ = map_frequency(freq)
    name = note.name
    if use_flats and name in SHARP_TO_FLAT:
        name = SHARP_TO_FLAT[name]
    return f"{name}{note.octave}"


def midi_to_frequency(midi: float, reference_hz: float = A4_FREQUENCY) -> float:
    return reference_hz * 2.0 ** ((midi - A4_MIDI) / 12.0)


def frequency_to_midi(frequency_hz: float, reference_hz: float = A4_FREQUENCY) -> int:
    """Nearest MIDI note number for a frequency, 0 for no pitch."""
    if frequency_hz <= 0:
        return 0
    return int(round(A4_MIDI + 12 * np.log2(frequency_hz / reference_hz)))


def midi_to_note_name(midi: int) -> str:
    return str(NoteIdentity.from_midi(midi))


def normalize_to_sharp(note: str) -> str:
    """Rewrite a pitch class like 'Bb' or 'Cb' using the sharp spelling."""
    if note in ENHARMONIC_TO_SHARP:
        return ENHARMONIC_TO_SHARP[note]
    return FLAT_TO_SHARP.get(note, note)


def parse_note_name(note_name: str) -> Tuple[str, Optional[int]]:
    """Split a note name into its sharp-spelled pitch class and octave.

    Args:
        note_name: A note such as 'A', 'Bb2' or 'F#3'

    Returns:
        (pitch_class, octave) with octave None when the name has none

    Raises:
        ValueError: If the name is not a valid note
    """
    match = NOTE_PATTERN.match(str(note_name).strip())
    if not match:
        raise ValueError(f"Invalid note name: '{note_name}'")

    letter, accidental, octave_part = match.groups()
    pitch_class = letter.upper() + accidental
    octave = int(octave_part) if octave_part not in ("", "-") else None

    # Cb4 sounds as B3 and B#3 sounds as C4
    if octave is not None:
        if pitch_class == "Cb":
            octave -= 1
        elif pitch_class == "B#":
            octave += 1

    pitch_class = normalize_to_sharp(pitch_class)
    if pitch_class not in NOTE_NAMES:
        raise ValueError(f"Invalid note name: '{note_name}'")
    return pitch_class, octave


def note_identity(note_name: str) -> NoteIdentity:
    """Parse an SPN note name that must carry an octave."""
    pitch_class, octave = parse_note_name(note_name)
    if octave is None:
        raise ValueError(f"Note name '{note_name}' has no octave")
    return NoteIdentity(pitch_class, octave)
