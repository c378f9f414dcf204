"""String-by-string tuning: presets, session progress and the hold judge."""

from .pipeline import TuningPipeline
from .presets import get_preset, preset_names
from .session import TuningSession
from .state_machine import TuningStateMachine, classify

__all__ = [
    "TuningPipeline",
    "TuningSession",
    "TuningStateMachine",
    "classify",
    "get_preset",
    "preset_names",
]
