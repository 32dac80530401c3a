"""
Single consumer of the fan-in queue. Writes each record to the sink
and counts it.
"""

import logging
import threading
from datetime import datetime

from crawler.fanin import FanInQueue
from models import ProgressCounters
from storage.base import Sink

log = logging.getLogger(__name__)


class Collector:
    def __init__(
        self,
        source: FanInQueue,
        sink: Sink,
        epoch: datetime,
        counters: ProgressCounters,
        abort: threading.Event | None = None,
    ):
        self._source = source
        self._sink = sink
        self._epoch = epoch
        self._counters = counters
        self._abort = abort or threading.Event()
        self.dropped = 0

    def run(self) -> int:
        """
        Drain until the queue is closed and empty. Returns records written.

        Once the run is aborted, records are taken off the queue but not
        written, so producers stuck on a full queue can finish. A sink
        failure aborts the run itself, drains, and re-raises.
        """
        try:
            for record in self._source:
                if self._abort.is_set():
                    self.dropped += 1
                    continue
                self._sink.write(record, self._epoch)
                self._counters.total_records += 1
        except Exception:
            self._abort.set()
            self.dropped += self._source.drain()
            raise

        if self.dropped:
            log.warning(f"Dropped {self.dropped} records after abort")
        return self._counters.total_records
