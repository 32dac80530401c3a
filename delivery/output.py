"""
Output delivery. Stdout only; this is a batch tool.
"""

from models import CrawlResult


def deliver_summary(result: CrawlResult):
    """The one line a successful crawl prints."""
    print(result.summary())


def deliver_stats(stats: dict, runs: list[dict]):
    """Print storage stats and recent runs."""
    print(f"Total contacts: {stats['total_contacts']}")
    print(f"Distinct nodes: {stats['distinct_nodes']}")
    print(f"Runs: {stats['runs']}")
    for run in runs:
        print(
            f"  {run['gathered_ts']}: {run['total_records']} records "
            f"in {run['total_pages']} pages"
        )
