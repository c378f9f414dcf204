"""Guess which open string of a preset is being played."""

from typing import Optional

from ..note_types import TuningPreset


def match_string(
    frequency_hz: float, preset: TuningPreset, tolerance_cents: float = 8.0
) -> Optional[int]:
    """Index of the preset string closest to frequency_hz.

    Only returned when that string is within tolerance_cents; the result is
    informational and never changes the tuning target.
    """
    if not frequency_hz > 0:
        return None

    best_index = min(
        range(len(preset.strings)),
        key=lambda index: abs(preset.strings[index].cents_from_target(frequency_hz)),
    )
    if preset.strings[best_index].is_in_tune(frequency_hz, tolerance_cents):
        return best_index
    return None
