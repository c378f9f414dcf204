"""Audio input that streams a recorded file, for demos and offline runs."""

import threading
import time
from typing import Callable, Optional

import numpy as np
import soundfile as sf

from ..core.clock import monotonic_ms
from ..core.errors import AudioUnavailable
from ..core.interfaces import IAudioInput
from ..logger import get_logger

logger = get_logger(__name__)


class WavFileInput(IAudioInput):
    """Provides audio blocks by reading from a sound file.

    Block timestamps are the stream start time plus the file position, so a
    file replayed faster than real time keeps the timing of the recording.
    """

    def __init__(
        self,
        file_path: str,
        frames_per_buffer: int = 1024,
        realtime: bool = True,
        loop: bool = False,
        gain: float = 1.0,
    ):
        self.file_path = file_path
        self.frames_per_buffer = frames_per_buffer
        self.realtime = realtime
        self.loop = loop
        self.gain = gain
        self._callback: Optional[Callable[[np.ndarray, float], None]] = None
        self._running = threading.Event()
        self._thread: Optional[threading.Thread] = None

        try:
            info = sf.info(file_path)
        except Exception as e:
            raise AudioUnavailable(f"Cannot read audio file {file_path}: {e}") from e
        self.sample_rate = info.samplerate
        self.channels = info.channels

    def start(self, callback: Callable[[np.ndarray, float], None]) -> bool:
        if self._running.is_set():
            return False

        self._callback = callback
        self._running.set()
        self._thread = threading.Thread(target=self._stream_data, name="wav-input", daemon=True)
        self._thread.start()
        logger.info(f"Streaming {self.file_path} ({self.sample_rate} Hz)")
        return True

    def stop(self) -> None:
        self._running.clear()
        thread, self._thread = self._thread, None
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=2.0)

    def is_running(self) -> bool:
        return self._running.is_set()

    def _stream_data(self) -> None:
        block_ms = self.frames_per_buffer * 1000.0 / self.sample_rate
        timestamp_ms = monotonic_ms()
        try:
            with sf.SoundFile(self.file_path) as f:
                while self._running.is_set():
                    data = f.read(self.frames_per_buffer, dtype="float32", always_2d=True)
                    if len(data) == 0:
                        if self.loop:
                            f.seek(0)
                            continue
                        break

                    block = data[:, 0]
                    if self.gain != 1.0:
                        block = block * self.gain
                    self._callback(block, timestamp_ms)
                    timestamp_ms += block_ms

                    if self.realtime:
                        time.sleep(block_ms / 1000.0)
        except Exception as e:
            logger.error(f"Error streaming {self.file_path}: {e}")
        finally:
            self._running.clear()
            logger.info(f"Finished streaming {self.file_path}")
