"""
Contacts listing fetcher. Plain HTTP GET against the paginated
contacts endpoint, one JSON array per page.

Strategy:
- GET <base_url>?page=N, pages are 1-based
- An empty array is the end of the listing
- No retries. A failed page fails the run.
"""

import json
import logging
import threading

import requests

from errors import DecodeError, TransportError
from fetchers.base import PageFetcher
from models import Contact

log = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.internxt.com/contacts/"


class ContactsFetcher(PageFetcher):
    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30.0,
        user_agent: str = "contact-crawler/0.1",
        session: requests.Session | None = None,
    ):
        self._base_url = base_url
        self._timeout = timeout
        self._user_agent = user_agent
        # One session per worker thread unless the caller hands one in.
        self._shared_session = session
        self._local = threading.local()

    def name(self) -> str:
        return "contacts"

    def _session(self) -> requests.Session:
        if self._shared_session is not None:
            return self._shared_session
        session = getattr(self._local, "session", None)
        if session is None:
            session = requests.Session()
            session.headers["User-Agent"] = self._user_agent
            self._local.session = session
        return session

    def fetch(self, page: int) -> list[Contact]:
        try:
            resp = self._session().get(
                self._base_url,
                params={"page": page},
                timeout=self._timeout,
            )
        except requests.RequestException as e:
            raise TransportError(f"GET page {page} failed: {e}", page=page) from e

        if not 200 <= resp.status_code < 300:
            raise TransportError(
                f"GET page {page} returned HTTP {resp.status_code}",
                page=page,
                status_code=resp.status_code,
            )

        contacts = decode_page(resp.content, page)
        log.debug(f"Page {page}: {len(contacts)} contacts")
        return contacts


def decode_page(body: bytes | str, page: int | None = None) -> list[Contact]:
    """
    Decode one page body into contacts, preserving order.
    Raises DecodeError on anything that isn't a JSON array of objects.
    """
    try:
        data = json.loads(body)
    except (ValueError, UnicodeDecodeError) as e:
        raise DecodeError(f"page {page}: invalid JSON: {e}", page=page) from e

    # `null` decodes to an empty listing, same as `[]`.
    if data is None:
        return []
    if not isinstance(data, list):
        raise DecodeError(
            f"page {page}: expected a JSON array, got {type(data).__name__}", page=page
        )

    contacts = []
    for i, entry in enumerate(data):
        try:
            contacts.append(Contact.from_dict(entry))
        except ValueError as e:
            raise DecodeError(f"page {page}, entry {i}: {e}", page=page) from e
    return contacts
