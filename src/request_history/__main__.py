"""CLI interface for browsing request history."""

import argparse
import asyncio
import logging
import sys
import uuid
from dataclasses import replace
from pathlib import Path
from typing import Iterable, Optional

from . import __version__
from .config import RequestHistoryConfig
from .exceptions import RequestHistoryError
from .persistence import HistoryRecord, RequestHistoryDatabase
from .service.record_source import DatabaseRecordSource
from .ui.history_list import HistoryListController
from .ui.time_logic import now_ms


def format_records(records: Iterable[HistoryRecord]) -> list[str]:
    """Render records as text lines with a line per day header."""
    lines: list[str] = []
    for record in records:
        if record.has_header:
            if lines:
                lines.append("")
            lines.append(f"== {record.header} ==")
        lines.append(f"  {record.time_label}  {record.method:<7} {record.url}  [{record.id}]")
    return lines


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="request-history",
        description="Browse request history grouped by day",
    )
    parser.add_argument("--db", type=Path, help="Path to history database")
    parser.add_argument("--page-size", type=int, help="Records per page")
    parser.add_argument(
        "--verbose", action="store_true", help="Show detailed progress"
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    commands = parser.add_subparsers(dest="command", required=True)

    list_cmd = commands.add_parser("list", help="Show history newest first")
    list_cmd.add_argument("--pages", type=int, default=1, help="Pages to load (default: 1)")

    search_cmd = commands.add_parser("search", help="Search history")
    search_cmd.add_argument("text", help="Search text")

    add_cmd = commands.add_parser("add", help="Record a request")
    add_cmd.add_argument("url", help="Request URL")
    add_cmd.add_argument("--method", default="GET", help="HTTP method (default: GET)")

    delete_cmd = commands.add_parser("delete", help="Delete a history record")
    delete_cmd.add_argument("id", help="Record ID")

    return parser


async def _show_pages(controller: HistoryListController, pages: int) -> None:
    await controller.attach()
    if not controller.has_records:
        await controller.load_next()
    for _ in range(max(0, pages - 1)):
        before = len(controller.records)
        await controller.load_next()
        if len(controller.records) == before:
            break


def main(argv: Optional[list[str]] = None) -> int:
    """Main CLI entry point."""
    args = _build_parser().parse_args(argv)

    if args.verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format='%(levelname)s: %(message)s',
            stream=sys.stderr,
        )
    else:
        logging.basicConfig(level=logging.WARNING)

    try:
        config = RequestHistoryConfig.load()
        if args.db:
            config.store.db_path = args.db
        if args.page_size is not None:
            config.history_list = replace(config.history_list, page_size=args.page_size)
            config.validate()

        database = RequestHistoryDatabase(config.store.db_path)

        if args.command == "add":
            record = HistoryRecord(id=uuid.uuid4().hex, method=args.method.upper(), url=args.url)
            record.ensure_timestamps(now_ms())
            print(database.upsert(record))
            return 0

        if args.command == "delete":
            if not database.delete(args.id):
                print(f"Error: No history record {args.id}", file=sys.stderr)
                return 1
            return 0

        source = DatabaseRecordSource(database, search_limit=config.history_list.search_limit)
        controller = HistoryListController(source, config.history_list)
        if args.command == "search":
            asyncio.run(controller.query(args.text))
            empty_message = "No matching requests"
        else:
            asyncio.run(_show_pages(controller, args.pages))
            empty_message = "No history yet"

        lines = format_records(controller.records)
        print("\n".join(lines) if lines else empty_message)
        return 0

    except RequestHistoryError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        return 130


if __name__ == "__main__":
    sys.exit(main())
