"""Shared pytest fixtures for request_history tests."""

import asyncio
import tempfile
from datetime import datetime, timedelta
from pathlib import Path

import pytest

from request_history.persistence.database import RequestHistoryDatabase
from request_history.persistence.models import HistoryRecord

# Noon, so +/- a few hours never crosses midnight
NOW = datetime(2026, 2, 20, 12, 0, 0)


def ms(moment: datetime) -> int:
    """Local datetime to epoch milliseconds."""
    return int(moment.timestamp() * 1000)


NOW_MS = ms(NOW)
YESTERDAY_MS = ms(NOW - timedelta(days=1))
OLDER_MS = ms(datetime(2026, 2, 10, 9, 30, 0))


class FakeRecordSource:
    """In-memory RecordSource with store-like paging semantics.

    Set ``gate`` to an asyncio.Event to hold responses until it is set.
    """

    def __init__(self, docs=None):
        self.docs = list(docs or [])
        self.search_results = []
        self.page_error = None
        self.search_error = None
        self.gate = None
        self.page_calls = []
        self.search_calls = []

    def _sorted(self):
        return sorted(self.docs, key=lambda d: (d["updated"], d["_id"]), reverse=True)

    async def list_page(self, params):
        self.page_calls.append(dict(params))
        if self.gate is not None:
            await self.gate.wait()
        if self.page_error is not None:
            raise self.page_error
        docs = self._sorted()
        if "start_key" in params:
            docs = [d for d in docs if d["updated"] <= params["start_key"]]
        docs = docs[params.get("skip", 0):][:params["limit"]]
        return {"rows": [{"key": d["updated"], "id": d["_id"], "doc": dict(d)} for d in docs]}

    async def search(self, query):
        self.search_calls.append(query)
        if self.gate is not None:
            await self.gate.wait()
        if self.search_error is not None:
            raise self.search_error
        return [dict(d) for d in self.search_results]


def check_invariants(records):
    """Assert sort order, header placement and id uniqueness."""
    for current, following in zip(records, records[1:]):
        assert current.updated_at >= following.updated_at
    previous_day = object()
    for record in records:
        starts_run = record.day_key != previous_day
        assert record.has_header is starts_run, (record.id, record.day_key)
        assert (record.header is not None) is starts_run
        previous_day = record.day_key
    ids = [record.id for record in records]
    assert len(ids) == len(set(ids))


@pytest.fixture
def now_ms():
    """Fixed wall-clock time in ms."""
    return NOW_MS


@pytest.fixture
def yesterday_ms():
    """Same time of day as now_ms, one calendar day earlier."""
    return YESTERDAY_MS


@pytest.fixture
def older_ms():
    """A timestamp ten days before now_ms."""
    return OLDER_MS


@pytest.fixture
def invariants():
    """Invariant checker for ordered record lists."""
    return check_invariants


@pytest.fixture
def source_factory():
    """Factory for in-memory record sources."""
    return FakeRecordSource


@pytest.fixture
def clock():
    """Clock callable returning the fixed time."""
    return lambda: NOW_MS


@pytest.fixture
def make_record():
    """Factory for HistoryRecord instances."""
    def _make(record_id, updated, created=None, **kwargs):
        return HistoryRecord(
            id=str(record_id),
            created_at=created if created is not None else updated,
            updated_at=updated,
            url=kwargs.pop("url", f"https://api.example.com/{record_id}"),
            **kwargs,
        )
    return _make


@pytest.fixture
def make_doc():
    """Factory for store documents."""
    def _make(record_id, updated, **kwargs):
        doc = {
            "_id": str(record_id),
            "type": "history",
            "method": "GET",
            "url": f"https://api.example.com/{record_id}",
            "created": updated,
            "updated": updated,
        }
        doc.update(kwargs)
        return doc
    return _make


@pytest.fixture
def fake_source():
    """Empty in-memory record source."""
    return FakeRecordSource()


@pytest.fixture
def run():
    """Run a coroutine to completion on a fresh event loop."""
    return asyncio.run


@pytest.fixture
def temp_db_path():
    """Temporary database path."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir) / "test.db"


@pytest.fixture
def db(temp_db_path):
    """Initialized test database."""
    yield RequestHistoryDatabase(temp_db_path)
