"""Single-writer snapshot cell shared between the audio and UI contexts."""

from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class SnapshotCell(Generic[T]):
    """Holds the latest immutable snapshot published by one writer.

    Publishing rebinds a single attribute, which is atomic under the
    interpreter lock, so readers never observe a half-written value and
    neither side ever waits on the other. Published values must be immutable.
    """

    def __init__(self, initial: Optional[T] = None):
        self._value: Optional[T] = initial
        self._version = 0

    def publish(self, value: T) -> None:
        self._value = value
        self._version += 1

    def get(self) -> Optional[T]:
        return self._value

    @property
    def version(self) -> int:
        """Incremented on every publish; pollers compare it to skip redraws."""
        return self._version

    def clear(self) -> None:
        self._value = None
        self._version += 1
