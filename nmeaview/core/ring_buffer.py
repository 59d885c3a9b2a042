import threading
from collections import deque
from typing import Any, Optional


class RingBuffer:
    """
    Thread-safe bounded FIFO between the serial reader and its consumers.

    Writers never block: when the buffer is full the oldest item is discarded, since
    the display only cares about the most recent sentences.
    """
    def __init__(self, maxsize: int = 1000):
        """
        Args:
            maxsize: Maximum number of items held before the oldest is dropped.
        """
        if maxsize <= 0:
            raise ValueError("maxsize must be positive")
        self.maxsize = maxsize
        self.buffer = deque()
        self.lock = threading.Lock()
        self.not_empty = threading.Condition(self.lock)
        self.closed = False
        self.dropped = 0

    def put(self, item: Any) -> bool:
        """
        Append an item, evicting the oldest one if the buffer is full.

        Returns:
            bool: False if the buffer has been closed, True otherwise.
        """
        with self.not_empty:
            if self.closed:
                return False
            if len(self.buffer) >= self.maxsize:
                self.buffer.popleft()
                self.dropped += 1
            self.buffer.append(item)
            self.not_empty.notify()
            return True

    def get(self, block: bool = True, timeout: Optional[float] = None) -> Optional[Any]:
        """
        Remove and return the oldest item.

        Args:
            block: Wait for an item when the buffer is empty.
            timeout: Maximum wait in seconds (None waits until an item arrives or close()).

        Returns:
            The item, or None on timeout, when empty in non-blocking mode, or when the
            buffer is closed and drained.
        """
        with self.not_empty:
            if block:
                if not self.not_empty.wait_for(lambda: self.buffer or self.closed, timeout):
                    return None
            if not self.buffer:
                return None
            return self.buffer.popleft()

    def drain(self) -> list:
        """Remove and return every buffered item."""
        with self.lock:
            items = list(self.buffer)
            self.buffer.clear()
            return items

    def qsize(self) -> int:
        with self.lock:
            return len(self.buffer)

    def empty(self) -> bool:
        with self.lock:
            return not self.buffer

    def close(self):
        with self.lock:
            self.closed = True
            self.not_empty.notify_all()

    def clear(self):
        with self.lock:
            self.buffer.clear()
