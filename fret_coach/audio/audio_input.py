"""Live audio input through sounddevice."""

from __future__ import annotations

from typing import Any, Callable, ClassVar, Dict, List, Optional

import numpy as np
import sounddevice as sd

from ..core.clock import monotonic_ms
from ..core.errors import AudioUnavailable
from ..core.interfaces import IAudioInput
from ..logger import get_logger

logger = get_logger(__name__)


def list_input_devices() -> List[Dict[str, Any]]:
    """Describe every device that can record."""
    try:
        devices = sd.query_devices()
    except Exception as e:
        raise AudioUnavailable(f"Could not query audio devices: {e}") from e

    return [
        {
            "id": device_id,
            "name": device["name"],
            "channels": device["max_input_channels"],
            "default_samplerate": device["default_samplerate"],
        }
        for device_id, device in enumerate(devices)
        if device["max_input_channels"] > 0
    ]


class SoundDeviceInput(IAudioInput):
    """Audio input handler using the sounddevice library."""

    SAMPLE_RATE: ClassVar[int] = 44100
    FRAMES_PER_BUFFER: ClassVar[int] = 1024  # Must match the pitch detector hop size
    CHANNELS: ClassVar[int] = 1

    def __init__(
        self,
        device_id: Optional[int] = None,
        sample_rate: Optional[int] = None,
        frames_per_buffer: Optional[int] = None,
        channels: Optional[int] = None,
    ) -> None:
        """Initialize the audio input handler.

        Args:
            device_id: Input device ID, or None for the system default
            sample_rate: Sample rate in Hz, or None for 44100
            frames_per_buffer: Block size in frames, or None for 1024
            channels: Number of channels to open; only the first is used
        """
        self.device_id = device_id
        self.sample_rate = sample_rate or self.SAMPLE_RATE
        self.frames_per_buffer = frames_per_buffer or self.FRAMES_PER_BUFFER
        self.channels = channels or self.CHANNELS

        self._stream: Optional[sd.InputStream] = None
        self._callback: Optional[Callable[[np.ndarray, float], None]] = None
        self._running = False

    def _audio_callback(self, indata: np.ndarray, _frames: int, _time_info, status) -> None:
        # Runs on the PortAudio thread: hand off and return
        if status:
            logger.debug(f"Audio callback status: {status}")

        if self._callback:
            audio_data = indata[:, 0] if indata.ndim > 1 else indata
            self._callback(audio_data.copy(), monotonic_ms())

    def start(self, callback: Callable[[np.ndarray, float], None]) -> bool:
        """Open the input stream and start delivering blocks.

        Raises:
            AudioUnavailable: If no input stream can be opened
        """
        if self._running:
            logger.warning("Audio input already running")
            return False

        self._callback = callback
        try:
            sd.check_input_settings(
                device=self.device_id, samplerate=self.sample_rate, channels=self.channels
            )
            self._stream = sd.InputStream(
                device=self.device_id,
                samplerate=self.sample_rate,
                blocksize=self.frames_per_buffer,
                channels=self.channels,
                dtype="float32",
                callback=self._audio_callback,
            )
            self._stream.start()
        except Exception as e:
            self._close_stream()
            raise AudioUnavailable(
                f"Could not open audio input (device={self.device_id}, "
                f"rate={self.sample_rate}): {e}"
            ) from e

        self._running = True
        logger.info(f"Audio input started: device={self.device_id}, rate={self.sample_rate} Hz")
        return True

    def _close_stream(self) -> None:
        stream, self._stream = self._stream, None
        if stream is None:
            return
        try:
            stream.stop()
            stream.close()
        except Exception as e:
            logger.error(f"Error closing audio stream: {e}")

    def stop(self) -> None:
        if not self._running:
            return
        self._close_stream()
        self._running = False
        logger.info("Audio input stopped")

    def is_running(self) -> bool:
        return self._running
