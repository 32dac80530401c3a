"""
Bounded fan-in queue. Many producers, one consumer, closed once.

Built on queue.Queue. close() enqueues an end-of-stream marker behind
whatever is already buffered, so the consumer sees every record before
the stream ends.
"""

import queue
import threading
from typing import Any, Iterator


class QueueClosed(RuntimeError):
    """Raised on put() or close() after the queue was closed."""
    pass


_END = object()


class FanInQueue:
    def __init__(self, capacity: int = 500):
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        self.capacity = capacity
        self._queue: queue.Queue = queue.Queue(maxsize=capacity)
        self._closed = False
        self._ended = False
        self._lock = threading.Lock()

    def put(self, item: Any) -> None:
        """Add one item, blocking while the queue is full."""
        if self._closed:
            raise QueueClosed("put() on a closed queue")
        self._queue.put(item)

    def close(self) -> None:
        """Mark end-of-stream. Only valid once."""
        with self._lock:
            if self._closed:
                raise QueueClosed("queue already closed")
            self._closed = True
        # May block until the consumer frees a slot.
        self._queue.put(_END)

    def get(self) -> tuple[Any, bool]:
        """
        Take the next item. Returns (item, True), or (None, False) once
        the queue is closed and drained.
        """
        if self._ended:
            return None, False
        item = self._queue.get()
        if item is _END:
            self._ended = True
            return None, False
        return item, True

    def __iter__(self) -> Iterator[Any]:
        while True:
            item, ok = self.get()
            if not ok:
                return
            yield item

    def drain(self) -> int:
        """Discard everything up to end-of-stream. Returns items dropped."""
        dropped = 0
        for _ in self:
            dropped += 1
        return dropped

    @property
    def closed(self) -> bool:
        return self._closed

    def qsize(self) -> int:
        """Approximate number of buffered items."""
        return self._queue.qsize()
