"""
PageFetcher interface. All fetchers must implement this.
"""

from abc import ABC, abstractmethod

from models import Contact


class PageFetcher(ABC):
    """
    A fetcher turns a page number into that page's batch of records.

    Contract:
    - fetch() never retries. One call, one request.
    - An empty list means the listing is exhausted.
    - Failures raise TransportError or DecodeError, never return [].
    - Must be safe to call from several worker threads at once.
    """

    @abstractmethod
    def fetch(self, page: int) -> list[Contact]:
        """
        Fetch and decode one page.

        Raises:
            TransportError: network failure or non-2xx response.
            DecodeError: body is not a JSON array of contact objects.
        """
        ...

    @abstractmethod
    def name(self) -> str:
        """Fetcher name, used for logging."""
        ...
