#!/usr/bin/env python3
"""
contact-crawler: harvest the paginated contacts listing into SQLite.

Usage:
    python main.py crawl                # Crawl every page into the database
    python main.py stats                # Show stored totals and recent runs
    python main.py serve                # Start the read-only API
"""

import argparse
import logging
import sys

from config import load_config
from crawler import crawl_contacts
from delivery import deliver_stats, deliver_summary
from errors import CrawlError
from storage import Storage

log = logging.getLogger("contact-crawler")


def setup_logging(verbose: bool = False):
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def cmd_crawl(config, storage) -> int:
    """Run one crawl. Any fetch or storage failure ends the run."""
    try:
        result = crawl_contacts(config, storage)
    except CrawlError as e:
        log.error(f"Crawl failed: {e}")
        return 1

    deliver_summary(result)
    return 0


def cmd_stats(config, storage) -> int:
    """Print stored totals."""
    deliver_stats(storage.get_stats(), storage.get_runs(limit=10))
    return 0


def cmd_serve(config, args) -> int:
    """Start the read-only API server."""
    from api.server import create_app

    if not config.db_path.exists():
        print(f"No database at {config.db_path}. Run 'crawl' first.", file=sys.stderr)
        return 1

    app = create_app(db_path=config.db_path)
    print(f"Starting server at http://{args.host}:{args.port}")
    app.run(host=args.host, port=args.port, debug=args.verbose)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="contact-crawler",
        description="Harvest the paginated contacts listing into SQLite",
    )

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("-v", "--verbose", action="store_true", help="Verbose logging")
    common.add_argument("--db", type=str, default=None, help="SQLite path (default from CRAWL_DB_PATH)")

    sub = parser.add_subparsers(dest="command", help="Command to run")

    crawl_parser = sub.add_parser("crawl", parents=[common], help="Crawl every page into the database")
    crawl_parser.add_argument("--concurrency", type=int, default=None, help="Worker threads (default 3)")
    crawl_parser.add_argument("--queue-size", type=int, default=None, help="Fan-in queue capacity (default 500)")
    crawl_parser.add_argument("--base-url", type=str, default=None, help="Upstream listing URL")
    crawl_parser.add_argument("--start-page", type=int, default=None, help="First page to claim (default 1)")

    sub.add_parser("stats", parents=[common], help="Show stored totals and recent runs")

    serve_parser = sub.add_parser("serve", parents=[common], help="Start the read-only API")
    serve_parser.add_argument("--port", type=int, default=5003, help="Port (default 5003)")
    serve_parser.add_argument("--host", type=str, default="127.0.0.1", help="Host (default 127.0.0.1)")

    return parser


def cli(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    setup_logging(args.verbose)

    try:
        config = load_config(
            db_path=args.db,
            concurrency=getattr(args, "concurrency", None),
            queue_size=getattr(args, "queue_size", None),
            base_url=getattr(args, "base_url", None),
            start_page=getattr(args, "start_page", None),
        )
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    # serve opens its own read-only connections
    if args.command == "serve":
        return cmd_serve(config, args)

    storage = Storage(config.db_path)

    try:
        match args.command:
            case "crawl":
                return cmd_crawl(config, storage)
            case "stats":
                return cmd_stats(config, storage)
            case _:
                parser.print_help()
                return 1
    finally:
        storage.close()


if __name__ == "__main__":
    sys.exit(cli())
