"""Cancellable background loop that pulls pitch frames from a source."""

import threading
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from typing import Callable, Optional

from ..logger import get_logger
from ..note_types import PitchSample
from .interfaces import IPitchSource

logger = get_logger(__name__)


class FrameLoop:
    """Runs ``handler`` for every sample produced by a pitch source.

    The loop lives on a single-worker executor. A ``threading.Event`` acts as
    the cancellation token and is checked once per frame, so a source must
    return periodically (a silence frame on timeout is fine) for ``stop`` to
    take effect.
    """

    def __init__(
        self,
        source: IPitchSource,
        handler: Callable[[PitchSample], None],
        name: str = "frame-loop",
        on_finished: Optional[Callable[[], None]] = None,
    ):
        self.source = source
        self.handler = handler
        self.name = name
        self.on_finished = on_finished
        self.frames_processed = 0
        self.error: Optional[BaseException] = None
        self._cancel = threading.Event()
        self._executor: Optional[ThreadPoolExecutor] = None
        self._future: Optional[Future] = None

    def start(self) -> bool:
        if self.is_running():
            logger.warning(f"{self.name} already running")
            return False

        self._cancel.clear()
        self.error = None
        self.frames_processed = 0
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix=self.name)
        self._future = self._executor.submit(self._run)
        logger.info(f"Started {self.name}")
        return True

    def _run(self) -> None:
        try:
            while not self._cancel.is_set():
                sample = self.source.next_sample()
                if sample is None:
                    logger.info(f"{self.name}: source exhausted")
                    break
                if self._cancel.is_set():
                    break
                self.handler(sample)
                self.frames_processed += 1
        except Exception as e:
            self.error = e
            logger.error(f"{self.name} stopped on error: {e}", exc_info=True)
        finally:
            if self.on_finished is not None:
                try:
                    self.on_finished()
                except Exception as e:
                    logger.error(f"{self.name} finish callback failed: {e}")

    def is_running(self) -> bool:
        return self._future is not None and not self._future.done()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the loop ends on its own. Returns True if it ended."""
        if self._future is None:
            return True
        try:
            self._future.result(timeout=timeout)
        except FutureTimeout:
            return False
        return True

    def stop(self, timeout: float = 2.0) -> bool:
        """Cancel the loop and wait for it.

        Returns:
            True if the loop ended within the timeout. A stuck loop is
            logged and left behind; its thread is not killed.
        """
        self._cancel.set()
        if self._future is None:
            return True

        stopped = self.wait(timeout)
        if not stopped:
            logger.warning(f"{self.name} did not stop within {timeout:.1f}s")
        if self._executor is not None:
            self._executor.shutdown(wait=False)
            self._executor = None
        logger.info(f"Stopped {self.name}")
        return stopped
