"""
Error taxonomy. Every failure here is fatal to a crawl run.
"""


class CrawlError(Exception):
    """Base class for anything that aborts a crawl."""
    pass


class TransportError(CrawlError):
    """Raised when the upstream listing can't be reached or answers non-2xx."""

    def __init__(self, message: str, page: int | None = None, status_code: int | None = None):
        super().__init__(message)
        self.page = page
        self.status_code = status_code


class DecodeError(CrawlError):
    """Raised when a page body isn't a JSON array of contact objects."""

    def __init__(self, message: str, page: int | None = None):
        super().__init__(message)
        self.page = page


class SinkError(CrawlError):
    """Raised when a record can't be persisted."""
    pass
