"""Thread-safe page cursor shared by all crawl workers."""

import threading


class PageCursor:
    """
    Monotonic page ticket dispenser.

    Each call to next() returns a page number no other caller has seen,
    starting at `start` (pages are 1-based upstream). The lock only
    covers the read-and-increment; fetching happens outside it.
    """

    def __init__(self, start: int = 1):
        if start < 1:
            raise ValueError(f"start page must be >= 1, got {start}")
        self._next_page = start
        self._lock = threading.Lock()

    def next(self) -> int:
        """Atomically claim the next page number."""
        with self._lock:
            page = self._next_page
            self._next_page += 1
            return page

    def peek(self) -> int:
        """Next page that would be handed out (for logging)."""
        with self._lock:
            return self._next_page
