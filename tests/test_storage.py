"""
Tests for SQLite storage and the end-to-end crawl into it.
"""

import sqlite3
import tempfile
from datetime import datetime, timezone
from pathlib import Path

import pytest
import sys

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

import crawler
from config.settings import Config
from errors import SinkError, TransportError
from fetchers.base import PageFetcher
from models import Contact, CrawlResult
from storage.db import Storage, query_contacts


# ──────────────────────────────────────────────
# Fixtures
# ──────────────────────────────────────────────

EPOCH = datetime(2024, 3, 1, 9, 30, 0, tzinfo=timezone.utc)


def _make_contact(**overrides) -> Contact:
    base = dict(
        node_id="a1b2c3",
        space_available=True,
        last_timeout=datetime(2024, 2, 1, 0, 0, 0, tzinfo=timezone.utc),
        timeout_rate=0.1,
        response_time=250.0,
        reputation=900,
        last_seen=datetime(2024, 2, 28, 12, 0, 0, tzinfo=timezone.utc),
        address="198.51.100.4",
        ip="198.51.100.4",
        protocol="1.2.0",
        user_agent="8.7.3",
    )
    base.update(overrides)
    return Contact(**base)


@pytest.fixture
def tmp_db_path():
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir) / "nested" / "contacts.db"


@pytest.fixture
def tmp_storage(tmp_db_path):
    """Create a temporary Storage instance for testing."""
    storage = Storage(tmp_db_path)
    yield storage
    storage.close()


class FakeContactsFetcher(PageFetcher):
    """Stands in for ContactsFetcher inside crawl_contacts()."""

    pages: dict[int, int] = {}
    fail_on: int | None = None

    def __init__(self, base_url: str = "", timeout: float = 0, user_agent: str = ""):
        self.base_url = base_url

    def name(self) -> str:
        return "fake"

    def fetch(self, page: int) -> list[Contact]:
        if page == self.fail_on:
            raise TransportError("upstream down", page=page)
        return [_make_contact(node_id=f"n{page}-{i}") for i in range(self.pages.get(page, 0))]


# ──────────────────────────────────────────────
# Sink behaviour
# ──────────────────────────────────────────────

class TestStorageWrite:
    def test_creates_parent_dirs_and_tables(self, tmp_db_path, tmp_storage):
        assert tmp_db_path.exists()
        assert tmp_storage.get_stats() == {"total_contacts": 0, "distinct_nodes": 0, "runs": 0}

    def test_write_round_trip(self, tmp_storage):
        tmp_storage.write(_make_contact(), EPOCH)

        rows, total = tmp_storage.get_contacts()
        assert total == 1
        row = rows[0]
        assert row["node_id"] == "a1b2c3"
        assert row["space_available"] is True
        assert row["gathered_ts"] == EPOCH.isoformat()
        assert row["last_seen"] == "2024-02-28T12:00:00+00:00"
        assert row["reputation"] == 900
        assert row["user_agent"] == "8.7.3"

    def test_inserted_at_is_independent_of_epoch(self, tmp_storage):
        tmp_storage.write(_make_contact(), EPOCH)
        rows, _ = tmp_storage.get_contacts()
        assert rows[0]["inserted_at"]
        assert rows[0]["inserted_at"] != rows[0]["gathered_ts"]

    def test_booleans_stored_as_integers(self, tmp_db_path, tmp_storage):
        tmp_storage.write(_make_contact(space_available=False), EPOCH)
        tmp_storage.write(_make_contact(space_available=True), EPOCH)

        conn = sqlite3.connect(str(tmp_db_path))
        try:
            values = [r[0] for r in conn.execute("SELECT space_available FROM contacts ORDER BY id")]
        finally:
            conn.close()
        assert values == [0, 1]

    def test_missing_timestamps_stored_as_null(self, tmp_storage):
        tmp_storage.write(_make_contact(last_timeout=None, last_seen=None), EPOCH)
        rows, _ = tmp_storage.get_contacts()
        assert rows[0]["last_timeout"] is None
        assert rows[0]["last_seen"] is None

    def test_duplicates_are_appended(self, tmp_storage):
        tmp_storage.write(_make_contact(), EPOCH)
        tmp_storage.write(_make_contact(), EPOCH)
        stats = tmp_storage.get_stats()
        assert stats["total_contacts"] == 2
        assert stats["distinct_nodes"] == 1

    def test_write_many(self, tmp_storage):
        contacts = [_make_contact(node_id=f"n{i}") for i in range(4)]
        assert tmp_storage.write_many(contacts, EPOCH) == 4
        assert tmp_storage.count_contacts(EPOCH.isoformat()) == 4

    def test_write_after_close_is_sink_error(self, tmp_db_path):
        storage = Storage(tmp_db_path)
        storage.close()
        with pytest.raises(SinkError):
            storage.write(_make_contact(), EPOCH)


class TestStorageReads:
    def test_filter_by_run_and_node(self, tmp_storage):
        later = datetime(2024, 3, 2, tzinfo=timezone.utc)
        tmp_storage.write(_make_contact(node_id="x"), EPOCH)
        tmp_storage.write(_make_contact(node_id="y"), EPOCH)
        tmp_storage.write(_make_contact(node_id="x"), later)

        rows, total = tmp_storage.get_contacts(gathered_ts=EPOCH.isoformat())
        assert total == 2
        assert [r["node_id"] for r in rows] == ["x", "y"]

        rows, total = tmp_storage.get_contacts(node_id="x")
        assert total == 2

        rows, total = tmp_storage.get_contacts(gathered_ts=later.isoformat(), node_id="y")
        assert total == 0
        assert rows == []

    def test_pagination(self, tmp_storage):
        tmp_storage.write_many([_make_contact(node_id=f"n{i}") for i in range(10)], EPOCH)
        rows, total = tmp_storage.get_contacts(limit=3, offset=6)
        assert total == 10
        assert [r["node_id"] for r in rows] == ["n6", "n7", "n8"]

    def test_query_contacts_on_read_only_connection(self, tmp_db_path, tmp_storage):
        tmp_storage.write_many([_make_contact(node_id=f"n{i % 2}") for i in range(5)], EPOCH)

        conn = sqlite3.connect(f"file:{tmp_db_path}?mode=ro", uri=True)
        conn.row_factory = sqlite3.Row
        try:
            rows, total = query_contacts(conn, node_id="n1", limit=1)
        finally:
            conn.close()

        assert total == 2
        assert len(rows) == 1
        assert rows[0]["node_id"] == "n1"
        assert rows[0]["space_available"] is True

    def test_record_and_list_runs(self, tmp_storage):
        first = tmp_storage.record_run(CrawlResult(5, 2, epoch=EPOCH))
        second = tmp_storage.record_run(CrawlResult(0, 0))
        assert second > first

        runs = tmp_storage.get_runs()
        assert [r["id"] for r in runs] == [second, first]
        assert runs[1]["total_records"] == 5
        assert runs[1]["total_pages"] == 2
        assert runs[1]["gathered_ts"] == EPOCH.isoformat()


# ──────────────────────────────────────────────
# crawl_contacts end to end
# ──────────────────────────────────────────────

class TestCrawlContacts:
    def test_crawl_into_storage(self, monkeypatch, tmp_db_path, tmp_storage):
        monkeypatch.setattr(FakeContactsFetcher, "pages", {1: 2, 2: 3})
        monkeypatch.setattr(FakeContactsFetcher, "fail_on", None)
        monkeypatch.setattr(crawler, "ContactsFetcher", FakeContactsFetcher)

        config = Config(db_path=tmp_db_path, concurrency=2, queue_size=4)
        result = crawler.crawl_contacts(config, tmp_storage)

        assert result.summary() == "Processed 5 records in 2 pages."
        assert tmp_storage.count_contacts(result.epoch.isoformat()) == 5
        runs = tmp_storage.get_runs()
        assert len(runs) == 1
        assert runs[0]["total_records"] == 5

    def test_failed_crawl_records_no_run(self, monkeypatch, tmp_db_path, tmp_storage):
        monkeypatch.setattr(FakeContactsFetcher, "pages", {1: 2, 2: 3})
        monkeypatch.setattr(FakeContactsFetcher, "fail_on", 2)
        monkeypatch.setattr(crawler, "ContactsFetcher", FakeContactsFetcher)

        config = Config(db_path=tmp_db_path, concurrency=1)
        with pytest.raises(TransportError):
            crawler.crawl_contacts(config, tmp_storage)

        assert tmp_storage.get_runs() == []
