"""
Crawl supervisor. Owns one run: spawns the workers, closes the queue
when the last of them exits, and drains on the calling thread.

Threads per run:
- N workers (claim/fetch/push)
- 1 closer, waits on the WaitGroup and closes the queue once
- the caller, acting as the collector

There is no shared done flag. The queue closes once the WaitGroup
counter reaches zero, i.e. every worker has returned.
"""

import logging
import threading
from datetime import datetime, timezone

from crawler.collector import Collector
from crawler.cursor import PageCursor
from crawler.fanin import FanInQueue
from crawler.waitgroup import WaitGroup
from crawler.worker import Worker
from fetchers.base import PageFetcher
from models import CrawlResult, ProgressCounters
from storage.base import Sink

log = logging.getLogger(__name__)

DEFAULT_CONCURRENCY = 3
DEFAULT_QUEUE_SIZE = 500


class Supervisor:
    def __init__(
        self,
        fetcher: PageFetcher,
        sink: Sink,
        concurrency: int = DEFAULT_CONCURRENCY,
        queue_size: int = DEFAULT_QUEUE_SIZE,
        start_page: int = 1,
    ):
        if concurrency < 1:
            raise ValueError(f"concurrency must be >= 1, got {concurrency}")
        self._fetcher = fetcher
        self._sink = sink
        self._concurrency = concurrency
        self._queue_size = queue_size
        self._start_page = start_page

        self._failure: BaseException | None = None
        self._failure_lock = threading.Lock()
        self._abort = threading.Event()
        self.workers: list[Worker] = []

    def run(self) -> CrawlResult:
        """
        Crawl until every worker has hit an empty page.

        Returns the run totals. Re-raises the first error any worker or
        the collector hit; in that case no totals are reported.
        """
        self._failure = None
        self._abort = threading.Event()
        epoch = datetime.now(timezone.utc)
        cursor = PageCursor(self._start_page)
        out = FanInQueue(self._queue_size)
        counters = ProgressCounters()
        wg = WaitGroup()

        log.info(
            f"Crawl started with {self._concurrency} workers "
            f"(fetcher={self._fetcher.name()}, queue={self._queue_size}, start_page={self._start_page})"
        )

        self.workers = [
            Worker(i, cursor, self._fetcher, out, counters, self._abort)
            for i in range(self._concurrency)
        ]
        for worker in self.workers:
            wg.add()
            threading.Thread(
                target=self._run_worker,
                args=(worker, wg),
                name=f"crawl-worker-{worker.worker_id}",
                daemon=True,
            ).start()

        closer = threading.Thread(
            target=self._close_when_done,
            args=(wg, out),
            name="crawl-closer",
            daemon=True,
        )
        closer.start()

        collector = Collector(out, self._sink, epoch, counters, self._abort)
        try:
            collector.run()
        except Exception as e:
            self._fail(e, "collector")

        closer.join()

        if self._failure is not None:
            raise self._failure

        result = CrawlResult(
            total_records=counters.total_records,
            total_pages=counters.total_pages,
            epoch=epoch,
        )
        log.info(f"Crawl finished: {result.total_records} records, {result.total_pages} pages")
        return result

    def _run_worker(self, worker: Worker, wg: WaitGroup) -> None:
        try:
            worker.run()
        except Exception as e:
            self._fail(e, f"worker {worker.worker_id}")
        finally:
            wg.done()

    def _close_when_done(self, wg: WaitGroup, out: FanInQueue) -> None:
        wg.wait()
        log.debug("All workers done, closing queue")
        out.close()

    def _fail(self, error: BaseException, where: str) -> None:
        """Record the first fatal error and stop everyone else."""
        with self._failure_lock:
            if self._failure is None:
                self._failure = error
                log.error(f"Fatal error in {where}: {error}")
            else:
                log.debug(f"Further error in {where} after abort: {error}")
        self._abort.set()
