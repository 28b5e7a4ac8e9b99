import threading
from collections import deque

from .types import Entry

DEFAULT_CAPACITY = 5000


class EntryBuffer:
    """Keeps the most recent entries in arrival order, oldest evicted first."""

    __slots__ = ("_entries", "_lock")

    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        if capacity < 1:
            raise ValueError(f"Buffer capacity must be at least 1, got {capacity}")

        self._entries: deque[Entry] = deque(maxlen=capacity)
        self._lock = threading.Lock()

    @property
    def capacity(self) -> int:
        return self._entries.maxlen or 0

    def push(self, entry: Entry) -> None:
        with self._lock:
            self._entries.append(entry)

    def snapshot(self) -> tuple[Entry, ...]:
        """Current contents, oldest first."""
        with self._lock:
            return tuple(self._entries)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
