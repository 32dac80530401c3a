"""
Read-only API over the crawl database.
Opens its own read-only SQLite connections. Never writes.

Run: python main.py serve
"""

import sqlite3
from pathlib import Path

from flask import Flask, jsonify, request

from storage.db import query_contacts

MAX_LIMIT = 500


def _parse_int(value: str | None, default: int, name: str) -> tuple[int, str | None]:
    """Parse an integer query param. Returns (value, error_message)."""
    if value is None:
        return default, None
    try:
        return int(value), None
    except (ValueError, TypeError):
        return default, f"Invalid value for '{name}': expected integer, got '{value}'"


def create_app(db_path: Path):
    app = Flask(__name__)

    def get_db():
        """Open a read-only connection."""
        conn = sqlite3.connect(f"file:{db_path}?mode=ro", uri=True)
        conn.row_factory = sqlite3.Row
        return conn

    @app.route("/api/stats")
    def get_stats():
        conn = get_db()
        try:
            total = conn.execute("SELECT COUNT(*) AS cnt FROM contacts").fetchone()["cnt"]
            distinct_nodes = conn.execute(
                "SELECT COUNT(DISTINCT node_id) AS cnt FROM contacts"
            ).fetchone()["cnt"]
            runs = conn.execute("SELECT COUNT(*) AS cnt FROM crawl_runs").fetchone()["cnt"]
            latest = conn.execute(
                "SELECT MAX(gathered_ts) AS latest FROM crawl_runs"
            ).fetchone()["latest"]

            return jsonify({
                "total_contacts": total,
                "distinct_nodes": distinct_nodes,
                "runs": runs,
                "latest_run": latest,
            })
        finally:
            conn.close()

    @app.route("/api/runs")
    def list_runs():
        limit, err = _parse_int(request.args.get("limit"), 20, "limit")
        if err:
            return jsonify({"error": err}), 400
        limit = max(1, min(limit, MAX_LIMIT))

        conn = get_db()
        try:
            rows = conn.execute(
                "SELECT id, gathered_ts, total_records, total_pages, finished_at "
                "FROM crawl_runs ORDER BY id DESC LIMIT ?",
                (limit,),
            ).fetchall()
            return jsonify({"runs": [dict(r) for r in rows]})
        finally:
            conn.close()

    @app.route("/api/contacts")
    def list_contacts():
        limit, err = _parse_int(request.args.get("limit"), 100, "limit")
        if err:
            return jsonify({"error": err}), 400
        limit = max(1, min(limit, MAX_LIMIT))

        offset, err = _parse_int(request.args.get("offset"), 0, "offset")
        if err:
            return jsonify({"error": err}), 400
        if offset < 0:
            return jsonify({"error": "offset must be >= 0"}), 400

        gathered_ts = request.args.get("gathered_ts")
        node_id = request.args.get("node_id")

        conn = get_db()
        try:
            contacts, total = query_contacts(conn, gathered_ts, node_id, limit, offset)
            return jsonify({
                "contacts": contacts,
                "total": total,
                "limit": limit,
                "offset": offset,
            })
        finally:
            conn.close()

    return app
