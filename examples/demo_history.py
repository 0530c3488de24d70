#!/usr/bin/env python3
"""
Demo of the paginated history list on top of the SQLite store.
"""

import asyncio
import sys
from pathlib import Path

# Add src to path if running from repo root
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from request_history.config import HistoryListConfig
from request_history.persistence import HistoryRecord, RequestHistoryDatabase
from request_history.service.record_source import DatabaseRecordSource
from request_history.ui.history_list import HistoryListController
from request_history.ui.time_logic import now_ms

DAY = 24 * 3600 * 1000


def print_list(controller):
    for record in controller.records:
        if record.has_header:
            print(f"   -- {record.header} --")
        print(f"   {record.time_label}  {record.method:<6} {record.url}")


async def run_demo(db_path: Path):
    db = RequestHistoryDatabase(db_path)

    # 1. Seed the store across a few days
    print("\n1. Adding sample requests...")
    now = now_ms()
    samples = [
        ("GET", "https://api.example.com/users", 0),
        ("POST", "https://api.example.com/users", 60_000),
        ("GET", "https://api.example.com/orders", DAY),
        ("DELETE", "https://api.example.com/orders/7", DAY + 60_000),
        ("GET", "https://api.example.com/status", 3 * DAY),
    ]
    for i, (method, url, age) in enumerate(samples):
        db.upsert(HistoryRecord(
            id=f"req-{i}", method=method, url=url,
            created_at=now - age, updated_at=now - age,
        ))
    print(f"   Stored {db.count()} requests")

    controller = HistoryListController(
        DatabaseRecordSource(db), HistoryListConfig(page_size=3)
    )
    controller.subscribe(
        lambda event: print(f"   [observer] {len(event.records)} records, "
                            f"{len(event.changes)} changes")
    )

    # 2. Page through the history
    print("\n2. Loading pages of 3...")
    await controller.attach()
    await controller.load_next()
    print_list(controller)

    # 3. A request is replayed: it moves to the top under Today
    print("\n3. Replaying the oldest request...")
    replayed = HistoryRecord.from_dict(db.get("req-4"))
    replayed.updated_at = now_ms()
    db.upsert(replayed)
    controller.apply_upsert(replayed)
    print_list(controller)

    # 4. Search mode
    print("\n4. Searching for 'orders'...")
    await controller.query("orders")
    print_list(controller)

    print("\n5. Clearing the search...")
    await controller.query("")
    print_list(controller)


def main():
    print("Request History Demo")
    print("====================")

    db_path = Path("/tmp/request_history_demo.db")
    if db_path.exists():
        db_path.unlink()
    print(f"Using temporary database: {db_path}")

    asyncio.run(run_demo(db_path))

    if db_path.exists():
        db_path.unlink()
        print("\nCleaned up temporary database.")

    print("\nDemo complete!")


if __name__ == "__main__":
    main()
