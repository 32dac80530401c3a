"""
SQLite storage. One file, one connection, no ORM.

Tables:
- contacts: one row per record handed over by a crawl, append-only
- crawl_runs: one row per finished crawl, with its totals

contacts.gathered_ts is the run epoch (same value for the whole run).
contacts.inserted_at is set by SQLite when the row lands.
"""

import sqlite3
from datetime import datetime, timezone
from pathlib import Path

from errors import SinkError
from models import Contact, CrawlResult
from storage.base import Sink

INSERT_CONTACT = """
    INSERT INTO contacts (
        gathered_ts,
        node_id,
        space_available,
        last_timeout,
        timeout_rate,
        response_time,
        reputation,
        last_seen,
        address,
        ip,
        protocol,
        user_agent
    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
"""


class Storage(Sink):
    def __init__(self, db_path: Path):
        db_path = Path(db_path)
        db_path.parent.mkdir(parents=True, exist_ok=True)
        # Opened on the main thread; the collector may run elsewhere.
        self._conn = sqlite3.connect(str(db_path), check_same_thread=False)
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.row_factory = sqlite3.Row
        self._migrate()

    def _migrate(self):
        """Create tables if they don't exist. No migration framework needed."""
        self._conn.executescript("""
            CREATE TABLE IF NOT EXISTS contacts (
                id INTEGER PRIMARY KEY,
                gathered_ts TEXT NOT NULL,
                inserted_at TEXT NOT NULL DEFAULT (datetime('now', 'localtime')),
                node_id TEXT,
                space_available INTEGER,
                last_timeout TEXT,
                timeout_rate REAL,
                response_time REAL,
                reputation INTEGER,
                last_seen TEXT,
                address TEXT,
                ip TEXT,
                protocol TEXT,
                user_agent TEXT
            );

            CREATE INDEX IF NOT EXISTS idx_contacts_gathered
                ON contacts(gathered_ts);
            CREATE INDEX IF NOT EXISTS idx_contacts_node
                ON contacts(node_id);

            CREATE TABLE IF NOT EXISTS crawl_runs (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                gathered_ts TEXT NOT NULL,
                total_records INTEGER NOT NULL,
                total_pages INTEGER NOT NULL,
                finished_at TEXT NOT NULL
            );
        """)
        self._conn.commit()

    # ── Sink ──

    def write(self, contact: Contact, epoch: datetime) -> None:
        """Append one contact row stamped with the run epoch."""
        try:
            self._conn.execute(INSERT_CONTACT, _contact_row(contact, epoch))
            self._conn.commit()
        except sqlite3.Error as e:
            raise SinkError(f"Failed to write contact {contact.node_id!r}: {e}") from e

    def write_many(self, contacts: list[Contact], epoch: datetime) -> int:
        """Append a batch in one transaction. Returns count written."""
        try:
            with self._conn:
                self._conn.executemany(
                    INSERT_CONTACT, [_contact_row(c, epoch) for c in contacts]
                )
        except sqlite3.Error as e:
            raise SinkError(f"Failed to write {len(contacts)} contacts: {e}") from e
        return len(contacts)

    # ── Runs ──

    def record_run(self, result: CrawlResult) -> int:
        """Save the totals of a finished crawl. Returns the run id."""
        cursor = self._conn.execute(
            "INSERT INTO crawl_runs (gathered_ts, total_records, total_pages, finished_at) "
            "VALUES (?, ?, ?, ?)",
            (
                result.epoch.isoformat(),
                result.total_records,
                result.total_pages,
                datetime.now(timezone.utc).isoformat(),
            ),
        )
        self._conn.commit()
        return cursor.lastrowid

    def get_runs(self, limit: int = 20) -> list[dict]:
        """Most recent runs first."""
        rows = self._conn.execute(
            "SELECT * FROM crawl_runs ORDER BY id DESC LIMIT ?", (limit,)
        ).fetchall()
        return [dict(r) for r in rows]

    # ── Reads ──

    def count_contacts(self, gathered_ts: str | None = None) -> int:
        _, total = query_contacts(self._conn, gathered_ts, limit=0)
        return total

    def get_contacts(
        self,
        gathered_ts: str | None = None,
        node_id: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> tuple[list[dict], int]:
        """Stored contacts in insertion order. Returns (rows, total matching)."""
        return query_contacts(self._conn, gathered_ts, node_id, limit, offset)

    def get_stats(self) -> dict:
        """Basic stats for debugging."""
        total = self._conn.execute("SELECT COUNT(*) FROM contacts").fetchone()[0]
        distinct_nodes = self._conn.execute(
            "SELECT COUNT(DISTINCT node_id) FROM contacts"
        ).fetchone()[0]
        runs = self._conn.execute("SELECT COUNT(*) FROM crawl_runs").fetchone()[0]
        return {
            "total_contacts": total,
            "distinct_nodes": distinct_nodes,
            "runs": runs,
        }

    def close(self):
        self._conn.close()


def _contact_row(c: Contact, epoch: datetime) -> tuple:
    return (
        epoch.isoformat(),
        c.node_id,
        1 if c.space_available else 0,
        _iso(c.last_timeout),
        c.timeout_rate,
        c.response_time,
        c.reputation,
        _iso(c.last_seen),
        c.address,
        c.ip,
        c.protocol,
        c.user_agent,
    )


def _iso(dt: datetime | None) -> str | None:
    return dt.isoformat() if dt else None


def row_to_dict(row: sqlite3.Row) -> dict:
    """contacts row -> API shape."""
    return {
        "id": row["id"],
        "gathered_ts": row["gathered_ts"],
        "inserted_at": row["inserted_at"],
        "node_id": row["node_id"],
        "space_available": bool(row["space_available"]),
        "last_timeout": row["last_timeout"],
        "timeout_rate": row["timeout_rate"],
        "response_time": row["response_time"],
        "reputation": row["reputation"],
        "last_seen": row["last_seen"],
        "address": row["address"],
        "ip": row["ip"],
        "protocol": row["protocol"],
        "user_agent": row["user_agent"],
    }


def query_contacts(
    conn: sqlite3.Connection,
    gathered_ts: str | None = None,
    node_id: str | None = None,
    limit: int = 100,
    offset: int = 0,
) -> tuple[list[dict], int]:
    """
    Stored contacts in insertion order, filtered by run and/or node.
    Returns (rows, total matching). conn must use sqlite3.Row.
    """
    where_clauses: list[str] = []
    params: list = []

    if gathered_ts:
        where_clauses.append("gathered_ts = ?")
        params.append(gathered_ts)
    if node_id:
        where_clauses.append("node_id = ?")
        params.append(node_id)

    where = " AND ".join(where_clauses) if where_clauses else "1=1"

    total = conn.execute(
        f"SELECT COUNT(*) FROM contacts WHERE {where}", params
    ).fetchone()[0]

    rows = conn.execute(
        f"SELECT * FROM contacts WHERE {where} ORDER BY id ASC LIMIT ? OFFSET ?",
        params + [limit, offset],
    ).fetchall()

    return [row_to_dict(r) for r in rows], total
