"""Factory for creating Fret Coach components."""

from importlib import import_module
from typing import Dict, Optional

from ..logger import get_logger
from .config import TunerConfig
from .context import AppContext
from .interfaces import IAudioInput, IPitchSource

logger = get_logger(__name__)


def _load(path: str):
    """Import 'package.module:Class' on first use."""
    module_name, class_name = path.split(":")
    return getattr(import_module(module_name), class_name)


class ComponentFactory:
    """Builds the audio shell around the core pipelines.

    Implementations are registered by import path and loaded on demand, so
    code that never opens a device never imports the audio libraries.
    """

    def __init__(self, context: Optional[AppContext] = None):
        self.context = context or AppContext()

        self.audio_input_classes: Dict[str, str] = {
            "device": "fret_coach.audio.audio_input:SoundDeviceInput",
            "wav": "fret_coach.audio.wav_input:WavFileInput",
        }
        self.pitch_detector_classes: Dict[str, str] = {
            "aubio": "fret_coach.audio.pitch_detector:AubioPitchDetector",
        }

    def create_audio_input(
        self, implementation: str = "device", config: Optional[TunerConfig] = None, **kwargs
    ) -> IAudioInput:
        """Create an audio input.

        Args:
            implementation: 'device' for a sound card, 'wav' for a file
            config: Frame settings; defaults to the tuner section
            **kwargs: Additional parameters to pass to the constructor

        Raises:
            ValueError: If the implementation is not registered
        """
        if implementation not in self.audio_input_classes:
            raise ValueError(f"Unknown audio input implementation: {implementation}")

        config = config or self.context.config_manager.tuner_config()
        kwargs.setdefault("frames_per_buffer", config.hop_size)
        if implementation == "device":
            kwargs.setdefault("sample_rate", config.sample_rate)

        cls = _load(self.audio_input_classes[implementation])
        instance = cls(**kwargs)
        logger.info(f"Created audio input: {implementation}")
        return instance

    def create_pitch_detector(
        self,
        sample_rate: int,
        implementation: str = "aubio",
        config: Optional[TunerConfig] = None,
        **kwargs,
    ):
        if implementation not in self.pitch_detector_classes:
            raise ValueError(f"Unknown pitch detector implementation: {implementation}")

        config = config or self.context.config_manager.tuner_config()
        cls = _load(self.pitch_detector_classes[implementation])
        instance = cls(
            sample_rate=sample_rate,
            buffer_size=config.buffer_size,
            hop_size=config.hop_size,
            **kwargs,
        )
        logger.info(f"Created pitch detector: {implementation}")
        return instance

    def create_pitch_source(
        self,
        implementation: str = "device",
        config: Optional[TunerConfig] = None,
        **kwargs,
    ) -> IPitchSource:
        """Create and start an audio-backed pitch source.

        Raises:
            AudioUnavailable: If the input cannot be opened
        """
        from ..audio.pitch_source import AudioPitchSource

        config = config or self.context.config_manager.tuner_config()
        audio_input = self.create_audio_input(implementation, config, **kwargs)
        detector = self.create_pitch_detector(audio_input.sample_rate, config=config)
        source = AudioPitchSource(audio_input, detector)
        source.start()
        return source
