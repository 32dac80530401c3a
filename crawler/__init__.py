from config.settings import Config
from crawler.cursor import PageCursor
from crawler.fanin import FanInQueue, QueueClosed
from crawler.supervisor import Supervisor
from crawler.waitgroup import WaitGroup
from crawler.worker import Worker
from crawler.collector import Collector
from fetchers.contacts import ContactsFetcher
from models import CrawlResult
from storage.db import Storage


def crawl_contacts(config: Config, storage: Storage) -> CrawlResult:
    """One full crawl of the contacts listing into storage."""
    fetcher = ContactsFetcher(
        base_url=config.base_url,
        timeout=config.http_timeout,
        user_agent=config.user_agent,
    )
    supervisor = Supervisor(
        fetcher,
        storage,
        concurrency=config.concurrency,
        queue_size=config.queue_size,
        start_page=config.start_page,
    )
    result = supervisor.run()
    storage.record_run(result)
    return result


__all__ = [
    "Collector",
    "FanInQueue",
    "PageCursor",
    "QueueClosed",
    "Supervisor",
    "WaitGroup",
    "Worker",
    "crawl_contacts",
]
