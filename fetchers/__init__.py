from fetchers.base import PageFetcher
from fetchers.contacts import ContactsFetcher, decode_page

__all__ = [
    "PageFetcher",
    "ContactsFetcher",
    "decode_page",
]
