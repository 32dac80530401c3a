"""
Configuration. All settings from env vars, with CLI flags layered on top.
"""

import os
from dataclasses import dataclass, field, replace
from pathlib import Path

# Auto-load .env file so you don't need `export $(grep ...)` every time
from dotenv import load_dotenv
load_dotenv()


def _env(name: str, default: str) -> str:
    return os.environ.get(name, default)


@dataclass
class Config:
    # Upstream listing; ?page=N is appended per request
    base_url: str = field(
        default_factory=lambda: _env("CRAWL_BASE_URL", "https://api.internxt.com/contacts/")
    )

    # Worker threads. Kept low to go easy on the upstream API.
    concurrency: int = field(default_factory=lambda: int(_env("CRAWL_CONCURRENCY", "3")))

    # Fan-in queue capacity (records)
    queue_size: int = field(default_factory=lambda: int(_env("CRAWL_QUEUE_SIZE", "500")))

    # First page to claim. The upstream API is 1-based.
    start_page: int = field(default_factory=lambda: int(_env("CRAWL_START_PAGE", "1")))

    # Storage
    db_path: Path = field(default_factory=lambda: Path(_env("CRAWL_DB_PATH", "data/contacts.db")))

    # HTTP
    http_timeout: float = field(default_factory=lambda: float(_env("CRAWL_HTTP_TIMEOUT", "30")))
    user_agent: str = field(default_factory=lambda: _env("CRAWL_USER_AGENT", "contact-crawler/0.1"))

    def __post_init__(self):
        self.db_path = Path(self.db_path)
        if self.concurrency < 1:
            raise ValueError(f"concurrency must be >= 1, got {self.concurrency}")
        if self.queue_size < 1:
            raise ValueError(f"queue_size must be >= 1, got {self.queue_size}")
        if self.start_page < 1:
            raise ValueError(f"start_page must be >= 1, got {self.start_page}")


def load_config(**overrides) -> Config:
    """Config from the environment. Overrides set to None are ignored."""
    config = Config()
    overrides = {k: v for k, v in overrides.items() if v is not None}
    if overrides:
        config = replace(config, **overrides)
    return config
