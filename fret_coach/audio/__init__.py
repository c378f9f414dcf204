"""Audio shell: device and file inputs plus aubio pitch estimation.

Importing this package loads sounddevice, soundfile and aubio; the core
packages never import it directly.
"""

from .audio_input import SoundDeviceInput, list_input_devices
from .pitch_detector import AubioPitchDetector
from .pitch_source import AudioPitchSource
from .wav_input import WavFileInput

__all__ = [
    "SoundDeviceInput",
    "WavFileInput",
    "AubioPitchDetector",
    "AudioPitchSource",
    "list_input_devices",
]
