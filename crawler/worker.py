"""
Crawl worker loop.

claim a page -> fetch it -> push its records -> repeat, until a page
comes back empty. Workers never talk to each other; an empty page only
stops the worker that saw it. The others run into empty pages on their
own, since every page past the end is empty.
"""

import logging
import threading

from crawler.cursor import PageCursor
from crawler.fanin import FanInQueue
from fetchers.base import PageFetcher
from models import ProgressCounters

log = logging.getLogger(__name__)


class Worker:
    def __init__(
        self,
        worker_id: int,
        cursor: PageCursor,
        fetcher: PageFetcher,
        out: FanInQueue,
        counters: ProgressCounters,
        abort: threading.Event | None = None,
    ):
        self.worker_id = worker_id
        self._cursor = cursor
        self._fetcher = fetcher
        self._out = out
        self._counters = counters
        self._abort = abort or threading.Event()
        self.pages_fetched = 0
        self.records_emitted = 0

    def run(self) -> None:
        """
        Loop until an empty page or an abort. Fetch errors propagate to
        the caller; nothing is retried.
        """
        while not self._abort.is_set():
            page = self._cursor.next()
            batch = self._fetcher.fetch(page)
            self.pages_fetched += 1

            if not batch:
                log.debug(f"Worker {self.worker_id}: page {page} empty, stopping")
                return

            self._counters.page_done()
            log.debug(f"Worker {self.worker_id}: page {page} -> {len(batch)} records")

            for record in batch:
                if self._abort.is_set():
                    return
                self._out.put(record)
                self.records_emitted += 1

        log.debug(f"Worker {self.worker_id}: run aborted")
