"""Event system for Fret Coach components."""

import queue
from enum import Enum, auto
from typing import Any, Callable, Dict, List

from ..logger import get_logger
from ..note_types import DetectedNoteEvent, ScoreReport, ScoreSnapshot, TuningUpdate
from .interfaces import IUISink

logger = get_logger(__name__)


class TunerEventType(Enum):
    """Event types raised by the tuner."""

    TUNING_UPDATE = auto()
    STRING_CHANGED = auto()
    COMPLETED = auto()
    ERROR = auto()


class PracticeEventType(Enum):
    """Event types raised by a practice session."""

    NOTE_DETECTED = auto()
    SCORE_UPDATE = auto()
    FINISHED = auto()
    ERROR = auto()


class EventEmitter:
    """Event emitter for Fret Coach components."""

    def __init__(self):
        self._listeners: Dict[Any, List[Callable]] = {}

    def on(self, event_type: Any, callback: Callable) -> None:
        """Register a callback for an event type.

        Args:
            event_type: Event type to listen for
            callback: Function to call when the event occurs
        """
        listeners = self._listeners.setdefault(event_type, [])
        if callback not in listeners:
            listeners.append(callback)
            logger.debug(f"Added listener for event {event_type}")

    def off(self, event_type: Any, callback: Callable) -> None:
        """Remove a previously registered callback, if present."""
        listeners = self._listeners.get(event_type, [])
        if callback in listeners:
            listeners.remove(callback)

    def emit(self, event_type: Any, *args, **kwargs) -> None:
        """Emit an event.

        A listener that raises is logged and skipped; the remaining listeners
        still run and the caller never sees the exception.
        """
        for callback in list(self._listeners.get(event_type, ())):
            try:
                callback(*args, **kwargs)
            except Exception as e:
                logger.error(f"Error in event listener for {event_type}: {e}")

    def listener_count(self, event_type: Any) -> int:
        return len(self._listeners.get(event_type, ()))

    def clear(self) -> None:
        """Remove all event listeners."""
        self._listeners = {}
        logger.debug("Cleared all event listeners")


class TunerEvents:
    """Event emitter specifically for tuner events."""

    def __init__(self):
        self._emitter = EventEmitter()

    def on_tuning_update(self, callback: Callable[[TuningUpdate], None]) -> None:
        self._emitter.on(TunerEventType.TUNING_UPDATE, callback)

    def on_string_changed(self, callback: Callable[[int], None]) -> None:
        self._emitter.on(TunerEventType.STRING_CHANGED, callback)

    def on_completed(self, callback: Callable[[], None]) -> None:
        self._emitter.on(TunerEventType.COMPLETED, callback)

    def on_error(self, callback: Callable[[Exception], None]) -> None:
        self._emitter.on(TunerEventType.ERROR, callback)

    def emit_tuning_update(self, update: TuningUpdate) -> None:
        self._emitter.emit(TunerEventType.TUNING_UPDATE, update)

    def emit_string_changed(self, index: int) -> None:
        self._emitter.emit(TunerEventType.STRING_CHANGED, index)

    def emit_completed(self) -> None:
        self._emitter.emit(TunerEventType.COMPLETED)

    def emit_error(self, error: Exception) -> None:
        self._emitter.emit(TunerEventType.ERROR, error)

    def attach(self, sink: IUISink) -> None:
        """Route tuning updates to a UI sink."""
        self.on_tuning_update(sink.on_tuning_update)

    def clear(self) -> None:
        self._emitter.clear()


class PracticeEvents:
    """Event emitter specifically for practice session events."""

    def __init__(self):
        self._emitter = EventEmitter()

    def on_note_detected(self, callback: Callable[[DetectedNoteEvent], None]) -> None:
        """Register a callback for detected note events.

        Args:
            callback: Function to call when a note is detected
        """
        self._emitter.on(PracticeEventType.NOTE_DETECTED, callback)

    def on_score_update(self, callback: Callable[[ScoreSnapshot], None]) -> None:
        self._emitter.on(PracticeEventType.SCORE_UPDATE, callback)

    def on_finished(self, callback: Callable[[ScoreReport], None]) -> None:
        self._emitter.on(PracticeEventType.FINISHED, callback)

    def on_error(self, callback: Callable[[Exception], None]) -> None:
        self._emitter.on(PracticeEventType.ERROR, callback)

    def emit_note_detected(self, event: DetectedNoteEvent) -> None:
        self._emitter.emit(PracticeEventType.NOTE_DETECTED, event)

    def emit_score_update(self, snapshot: ScoreSnapshot) -> None:
        self._emitter.emit(PracticeEventType.SCORE_UPDATE, snapshot)

    def emit_finished(self, report: ScoreReport) -> None:
        self._emitter.emit(PracticeEventType.FINISHED, report)

    def emit_error(self, error: Exception) -> None:
        self._emitter.emit(PracticeEventType.ERROR, error)

    def attach(self, sink: IUISink) -> None:
        """Route score snapshots to a UI sink."""
        self.on_score_update(sink.on_score_update)

    def clear(self) -> None:
        self._emitter.clear()


class QueueSink(IUISink):
    """UI sink that hands updates to a polling thread through a queue.

    Puts never block: when the queue is full the update is dropped, since
    a newer one is always on its way.
    """

    def __init__(self, maxsize: int = 64):
        self.queue: "queue.Queue[Any]" = queue.Queue(maxsize=maxsize)
        self.dropped = 0

    def _put(self, item: Any) -> None:
        try:
            self.queue.put_nowait(item)
        except queue.Full:
            self.dropped += 1

    def on_tuning_update(self, update: TuningUpdate) -> None:
        self._put(update)

    def on_score_update(self, snapshot: ScoreSnapshot) -> None:
        self._put(snapshot)

    def drain(self) -> List[Any]:
        """Return every queued update, oldest first."""
        items = []
        while True:
            try:
                items.append(self.queue.get_nowait())
            except queue.Empty:
                return items
