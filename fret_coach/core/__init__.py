"""Core components for the Fret Coach application."""

from .config import ConfigManager, PracticeConfig, TunerConfig
from .errors import AudioUnavailable, FretCoachError
from .interfaces import IAudioInput, IPitchSource, IUISink
from .snapshot import SnapshotCell

__all__ = [
    "ConfigManager",
    "TunerConfig",
    "PracticeConfig",
    "FretCoachError",
    "AudioUnavailable",
    "IAudioInput",
    "IPitchSource",
    "IUISink",
    "SnapshotCell",
]
