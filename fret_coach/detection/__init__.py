"""Signal conditioning stages shared by the tuner and the practice scorer."""

from .note_events import NoteEventDetector
from .smoother import FrequencySmoother
from .stability_gate import StabilityGate
from .string_matcher import match_string

__all__ = ["FrequencySmoother", "StabilityGate", "match_string", "NoteEventDetector"]
