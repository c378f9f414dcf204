"""Built-in open-string tuning presets."""

from typing import Dict, List, Sequence

from ..note_types import TuningPreset, TuningString
from ..note_utils import midi_to_frequency, note_identity


def build_preset(name: str, notes: Sequence[str]) -> TuningPreset:
    """Build a preset from SPN note names ordered from the lowest string up.

    Strings are numbered the usual way, 1 being the highest (thinnest).
    """
    count = len(notes)
    strings = []
    for index, note_name in enumerate(notes):
        midi = note_identity(note_name).midi
        strings.append(
            TuningString(count - index, note_name, round(midi_to_frequency(midi), 2), midi)
        )
    return TuningPreset(name, tuple(strings))


STANDARD = build_preset("Standard", ["E2", "A2", "D3", "G3", "B3", "E4"])
DROP_D = build_preset("Drop D", ["D2", "A2", "D3", "G3", "B3", "E4"])
EB_STANDARD = build_preset("Eb Standard", ["Eb2", "Ab2", "Db3", "Gb3", "Bb3", "Eb4"])
DADGAD = build_preset("DADGAD", ["D2", "A2", "D3", "G3", "A3", "D4"])
OPEN_G = build_preset("Open G", ["D2", "G2", "D3", "G3", "B3", "D4"])
BASS_STANDARD = build_preset("Bass Standard", ["E1", "A1", "D2", "G2"])

PRESETS: Dict[str, TuningPreset] = {
    preset.name.lower(): preset
    for preset in (STANDARD, DROP_D, EB_STANDARD, DADGAD, OPEN_G, BASS_STANDARD)
}


def get_preset(name: str) -> TuningPreset:
    """Look up a preset by name, ignoring case.

    Raises:
        KeyError: If no preset has that name
    """
    try:
        return PRESETS[name.strip().lower()]
    except KeyError:
        raise KeyError(
            f"Unknown tuning preset '{name}'. Available: {', '.join(preset_names())}"
        ) from None


def preset_names() -> List[str]:
    return [preset.name for preset in PRESETS.values()]
