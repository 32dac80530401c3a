"""
Core data types. Contact decoding lives here too, since the wire shape
and the stored shape are the same record.
"""

import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone


@dataclass
class Contact:
    """A single contact record from the upstream listing."""
    node_id: str = ""
    space_available: bool = False
    last_timeout: datetime | None = None
    timeout_rate: float = 0.0
    response_time: float = 0.0
    reputation: int = 0
    last_seen: datetime | None = None
    address: str = ""
    ip: str = ""
    protocol: str = ""
    user_agent: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> "Contact":
        """
        Build a Contact from one decoded JSON object.

        Missing keys and nulls fall back to the field default. Raises
        ValueError on a value of the wrong type.
        """
        if not isinstance(data, dict):
            raise ValueError(f"expected a JSON object, got {type(data).__name__}")

        return cls(
            node_id=_str(data, "nodeID"),
            space_available=_bool(data, "spaceAvailable"),
            last_timeout=_timestamp(data, "lastTimeout"),
            timeout_rate=_float(data, "timeoutRate"),
            response_time=_float(data, "responseTime"),
            reputation=_int(data, "reputation"),
            last_seen=_timestamp(data, "LastSeen"),
            address=_str(data, "address"),
            ip=_str(data, "ip"),
            protocol=_str(data, "protocol"),
            user_agent=_str(data, "userAgent"),
        )

    def to_dict(self) -> dict:
        return {
            "node_id": self.node_id,
            "space_available": self.space_available,
            "last_timeout": _iso(self.last_timeout),
            "timeout_rate": self.timeout_rate,
            "response_time": self.response_time,
            "reputation": self.reputation,
            "last_seen": _iso(self.last_seen),
            "address": self.address,
            "ip": self.ip,
            "protocol": self.protocol,
            "user_agent": self.user_agent,
        }

    def __repr__(self) -> str:
        return f"Contact({self.node_id[:16]}, {self.address}, rep={self.reputation})"


class ProgressCounters:
    """
    Run counters.

    total_pages is bumped by whichever worker fetched a non-empty page,
    so it has its own lock. total_records is only touched by the
    collector thread and needs none.
    """

    def __init__(self):
        self.total_records = 0
        self._total_pages = 0
        self._pages_lock = threading.Lock()

    def page_done(self) -> None:
        with self._pages_lock:
            self._total_pages += 1

    @property
    def total_pages(self) -> int:
        with self._pages_lock:
            return self._total_pages


@dataclass
class CrawlResult:
    """Outcome of one successful crawl run."""
    total_records: int
    total_pages: int
    epoch: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def summary(self) -> str:
        return f"Processed {self.total_records} records in {self.total_pages} pages."

    def to_dict(self) -> dict:
        return {
            "total_records": self.total_records,
            "total_pages": self.total_pages,
            "epoch": self.epoch.isoformat(),
        }


# ── field decoders ──

def _lookup(data: dict, key: str):
    """Exact key first, then the first key that matches ignoring case."""
    if key in data:
        return data[key]
    folded = key.lower()
    for k, v in data.items():
        if isinstance(k, str) and k.lower() == folded:
            return v
    return None


def _str(data: dict, key: str) -> str:
    value = _lookup(data, key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError(f"{key}: expected string, got {value!r}")
    return value


def _bool(data: dict, key: str) -> bool:
    value = _lookup(data, key)
    if value is None:
        return False
    if not isinstance(value, bool):
        raise ValueError(f"{key}: expected boolean, got {value!r}")
    return value


def _int(data: dict, key: str) -> int:
    value = _lookup(data, key)
    if value is None:
        return 0
    # bool is an int subclass. Floats are rejected even when integral.
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{key}: expected integer, got {value!r}")
    return value


def _float(data: dict, key: str) -> float:
    value = _lookup(data, key)
    if value is None:
        return 0.0
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{key}: expected number, got {value!r}")
    return float(value)


def _timestamp(data: dict, key: str) -> datetime | None:
    value = _lookup(data, key)
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise ValueError(f"{key}: expected timestamp string, got {value!r}")
    return parse_timestamp(value)


def parse_timestamp(value: str) -> datetime:
    """Parse an RFC 3339 timestamp. Trailing 'Z' means UTC."""
    text = value.strip()
    if text.endswith("Z") or text.endswith("z"):
        text = text[:-1] + "+00:00"
    # fromisoformat before 3.11 only takes 3 or 6 fractional digits
    if "." in text:
        head, _, rest = text.partition(".")
        digits = ""
        while rest and rest[0].isdigit():
            digits += rest[0]
            rest = rest[1:]
        digits = (digits + "000000")[:6]
        text = f"{head}.{digits}{rest}"
    try:
        return datetime.fromisoformat(text)
    except ValueError as e:
        raise ValueError(f"invalid timestamp {value!r}") from e


def _iso(dt: datetime | None) -> str | None:
    return dt.isoformat() if dt else None
