"""Application context passed explicitly to services."""

from dataclasses import dataclass, field
from typing import Dict

from ..note_types import TuningPreset
from ..tuning import presets
from .clock import Clock, monotonic_ms
from .config import ConfigManager


@dataclass
class AppContext:
    """Everything a service needs from its surroundings.

    Built once by the entry point and handed to constructors; tests build
    their own with a fake clock.
    """

    config_manager: ConfigManager = field(default_factory=ConfigManager)
    presets: Dict[str, TuningPreset] = field(default_factory=lambda: dict(presets.PRESETS))
    clock: Clock = monotonic_ms

    def get_preset(self, name: str) -> TuningPreset:
        try:
            return self.presets[name.strip().lower()]
        except KeyError:
            raise KeyError(
                f"Unknown tuning preset '{name}'. Available: "
                f"{', '.join(p.name for p in self.presets.values())}"
            ) from None

    def add_preset(self, preset: TuningPreset) -> None:
        self.presets[preset.name.lower()] = preset
