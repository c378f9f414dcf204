"""Configuration management for Fret Coach components."""

import json
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from ..logger import get_logger

logger = get_logger(__name__)

DEFAULT_GRADE_THRESHOLDS: Tuple[Tuple[float, str], ...] = (
    (95.0, "S"),
    (90.0, "A"),
    (85.0, "B+"),
    (80.0, "B"),
    (75.0, "C+"),
    (70.0, "C"),
)
DEFAULT_FLOOR_GRADE = "D"
MIN_SPEED_FACTOR = 0.25
MAX_SPEED_FACTOR = 2.0


def _clamp(name: str, value, low, high):
    """Clamp value into [low, high], warning when it had to move."""
    clamped = max(low, min(high, value))
    if clamped != value:
        logger.warning(f"{name}={value} out of range, clamped to {clamped}")
    return type(value)(clamped) if isinstance(value, int) else clamped


@dataclass
class TunerConfig:
    """Settings for the tuning pipeline.

    Out-of-range values are clamped to the documented bounds instead of
    rejected so a bad settings file never takes the tuner down.
    """

    sample_rate: int = 44100
    buffer_size: int = 2048  # Samples per analysis frame
    overlap: int = 1024
    min_confidence: float = 0.80  # 0.75 is the more permissive alternative
    min_frequency: float = 60.0  # Hz
    max_frequency: float = 1200.0  # Hz
    cents_tolerance: float = 5.0  # +/- cents judged in tune
    hold_duration_ms: float = 500.0
    max_gap_ms: float = 250.0  # Longest dropout that keeps the hold timer running
    smoothing_size: int = 8
    stability_size: int = 10
    stability_threshold_hz: float = 5.0
    stability_min_samples: int = 3
    string_tolerance_cents: float = 8.0
    reference_hz: float = 440.0
    complete_on_last_in_tune: bool = False

    def __post_init__(self):
        self.sample_rate = _clamp("sample_rate", int(self.sample_rate), 8000, 192000)
        self.buffer_size = _clamp("buffer_size", int(self.buffer_size), 256, 16384)
        self.overlap = _clamp("overlap", int(self.overlap), 0, self.buffer_size - 1)
        self.min_confidence = _clamp(
            "min_confidence", float(self.min_confidence), 0.0, 1.0
        )
        self.min_frequency = _clamp(
            "min_frequency", float(self.min_frequency), 20.0, 2000.0
        )
        self.max_frequency = _clamp(
            "max_frequency", float(self.max_frequency), self.min_frequency, 5000.0
        )
        self.cents_tolerance = _clamp(
            "cents_tolerance", float(self.cents_tolerance), 1.0, 50.0
        )
        self.hold_duration_ms = _clamp(
            "hold_duration_ms", float(self.hold_duration_ms), 0.0, 10000.0
        )
        self.max_gap_ms = _clamp("max_gap_ms", float(self.max_gap_ms), 0.0, 10000.0)
        self.smoothing_size = _clamp("smoothing_size", int(self.smoothing_size), 1, 64)
        self.stability_size = _clamp("stability_size", int(self.stability_size), 1, 64)
        self.stability_threshold_hz = _clamp(
            "stability_threshold_hz", float(self.stability_threshold_hz), 0.01, 100.0
        )
        self.stability_min_samples = _clamp(
            "stability_min_samples",
            int(self.stability_min_samples),
            1,
            self.stability_size,
        )
        self.string_tolerance_cents = _clamp(
            "string_tolerance_cents", float(self.string_tolerance_cents), 1.0, 100.0
        )
        self.reference_hz = _clamp(
            "reference_hz", float(self.reference_hz), 400.0, 480.0
        )

    @property
    def hop_size(self) -> int:
        return self.buffer_size - self.overlap


@dataclass
class PracticeConfig:
    """Settings for practice scoring and note event detection."""

    match_window_ms: float = 100.0  # +/- window around each expected note
    timing_penalty_threshold_ms: float = 50.0
    timing_penalty_per_ms: float = 0.1
    speed_factor: float = 1.0  # 0.5 = half speed playback
    latency_compensation_ms: float = 0.0
    match_mode: str = "pitch_class"
    snapshot_interval_ms: float = 100.0
    max_feedback_items: int = 5
    # Note event detection front end
    min_confidence: float = 0.75
    min_frequency: float = 60.0
    max_frequency: float = 1320.0
    smoothing_size: int = 5
    stability_size: int = 4
    stability_threshold_hz: float = 5.0
    stability_min_samples: int = 3
    release_frames: int = 6
    grade_thresholds: List[Tuple[float, str]] = field(
        default_factory=lambda: [tuple(t) for t in DEFAULT_GRADE_THRESHOLDS]
    )
    floor_grade: str = DEFAULT_FLOOR_GRADE

    def __post_init__(self):
        self.match_window_ms = _clamp(
            "match_window_ms", float(self.match_window_ms), 10.0, 1000.0
        )
        self.timing_penalty_threshold_ms = _clamp(
            "timing_penalty_threshold_ms",
            float(self.timing_penalty_threshold_ms),
            0.0,
            1000.0,
        )
        self.timing_penalty_per_ms = _clamp(
            "timing_penalty_per_ms", float(self.timing_penalty_per_ms), 0.0, 10.0
        )
        self.speed_factor = _clamp(
            "speed_factor", float(self.speed_factor), MIN_SPEED_FACTOR, MAX_SPEED_FACTOR
        )
        self.latency_compensation_ms = _clamp(
            "latency_compensation_ms", float(self.latency_compensation_ms), -1000.0, 1000.0
        )
        if self.match_mode not in ("pitch_class", "pitch", "string_fret"):
            logger.warning(
                f"Unknown match_mode '{self.match_mode}', using 'pitch_class'"
            )
            self.match_mode = "pitch_class"
        self.snapshot_interval_ms = _clamp(
            "snapshot_interval_ms", float(self.snapshot_interval_ms), 10.0, 1000.0
        )
        self.max_feedback_items = _clamp(
            "max_feedback_items", int(self.max_feedback_items), 0, 50
        )
        self.min_confidence = _clamp(
            "min_confidence", float(self.min_confidence), 0.0, 1.0
        )
        self.min_frequency = _clamp(
            "min_frequency", float(self.min_frequency), 20.0, 2000.0
        )
        self.max_frequency = _clamp(
            "max_frequency", float(self.max_frequency), self.min_frequency, 5000.0
        )
        self.smoothing_size = _clamp("smoothing_size", int(self.smoothing_size), 1, 64)
        self.stability_size = _clamp("stability_size", int(self.stability_size), 1, 64)
        self.stability_threshold_hz = _clamp(
            "stability_threshold_hz", float(self.stability_threshold_hz), 0.01, 100.0
        )
        self.stability_min_samples = _clamp(
            "stability_min_samples",
            int(self.stability_min_samples),
            1,
            self.stability_size,
        )
        self.release_frames = _clamp("release_frames", int(self.release_frames), 1, 1000)
        self.grade_thresholds = [
            (float(score), str(letter)) for score, letter in self.grade_thresholds
        ]


def _section_defaults(config_cls) -> Dict[str, Any]:
    return asdict(config_cls())


class ConfigManager:
    """Configuration manager for Fret Coach components.

    Sections are plain dictionaries so they can be merged with overrides
    before being turned into config objects.
    """

    SECTIONS = {
        "tuner": TunerConfig,
        "practice": PracticeConfig,
    }

    def __init__(self, config_dir: Optional[str] = None):
        """Initialize the configuration manager.

        Args:
            config_dir: Directory holding '<section>.json' override files, or
                None to run on built-in defaults only. Files are never written.
        """
        self.config_dir = Path(config_dir) if config_dir is not None else None

        self.default_configs = {
            name: _section_defaults(cls) for name, cls in self.SECTIONS.items()
        }

        self.configs: Dict[str, Dict[str, Any]] = {}
        for config_name, default_config in self.default_configs.items():
            self.configs[config_name] = self.load_config(config_name, default_config)

    def load_config(self, name: str, default_config: Dict[str, Any]) -> Dict[str, Any]:
        """Load configuration overrides from file on top of the defaults.

        Args:
            name: Configuration name
            default_config: Default configuration to use if file doesn't exist

        Returns:
            Configuration dictionary
        """
        config = dict(default_config)
        if self.config_dir is None:
            return config

        config_file = self.config_dir / f"{name}.json"
        if not config_file.exists():
            return config

        try:
            with open(config_file, "r") as f:
                overrides = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Error loading configuration from {config_file}: {e}")
            return config

        unknown = set(overrides) - set(default_config)
        if unknown:
            logger.warning(f"Ignoring unknown keys in {config_file}: {sorted(unknown)}")
        config.update({k: v for k, v in overrides.items() if k in default_config})
        logger.info(f"Loaded configuration from {config_file}")
        return config

    def get_config(self, name: str) -> Dict[str, Any]:
        """Get a copy of a configuration section by name."""
        return dict(self.configs.get(name, {}))

    def update_config(self, name: str, updates: Dict[str, Any]) -> bool:
        """Apply updates to a configuration section in memory.

        Returns:
            True if updated, False for an unknown section
        """
        if name not in self.configs:
            logger.error(f"Unknown configuration: {name}")
            return False

        valid = {f.name for f in fields(self.SECTIONS[name])}
        unknown = set(updates) - valid
        if unknown:
            logger.warning(f"Ignoring unknown {name} keys: {sorted(unknown)}")
        self.configs[name].update({k: v for k, v in updates.items() if k in valid})
        return True

    def reset_config(self, name: str) -> bool:
        """Reset a configuration section to its defaults."""
        if name not in self.default_configs:
            logger.error(f"Unknown configuration: {name}")
            return False

        self.configs[name] = dict(self.default_configs[name])
        return True

    def tuner_config(self, **overrides) -> TunerConfig:
        config = self.get_config("tuner")
        config.update(overrides)
        return TunerConfig(**config)

    def practice_config(self, **overrides) -> PracticeConfig:
        config = self.get_config("practice")
        config.update(overrides)
        return PracticeConfig(**config)
