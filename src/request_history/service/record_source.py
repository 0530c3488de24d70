"""Record source collaborators consumed by the history list controller."""

import asyncio
import logging
from typing import Any, Mapping, Protocol

from ..config import DEFAULT_PAGE_SIZE
from ..persistence.database import RequestHistoryDatabase

logger = logging.getLogger(__name__)


class RecordSource(Protocol):
    """Asynchronous store the history list pages and searches through.

    ``list_page`` receives ``{"limit", "descending", "start_key"?, "skip"?}`` and
    resolves to ``{"rows": [{"key", "id", "doc"}, ...]}``. Records sharing a
    key must come back in a stable order across calls.
    """

    async def list_page(self, params: Mapping[str, Any]) -> Mapping[str, Any]:
        ...

    async def search(self, query: str) -> list:
        ...


class DatabaseRecordSource:
    """RecordSource backed by the SQLite store.

    Queries run on a worker thread so the event loop is never blocked.
    """

    def __init__(
        self,
        database: RequestHistoryDatabase,
        search_limit: int = DEFAULT_PAGE_SIZE,
    ):
        self.database = database
        self.search_limit = search_limit

    async def list_page(self, params: Mapping[str, Any]) -> dict[str, Any]:
        """Return one page of rows for the given query parameters."""
        rows = await asyncio.to_thread(
            self.database.list_page,
            limit=int(params.get("limit", DEFAULT_PAGE_SIZE)),
            descending=bool(params.get("descending", True)),
            start_key=params.get("start_key"),
            skip=int(params.get("skip") or 0),
        )
        logger.debug(f"Listed {len(rows)} history rows with {dict(params)}")
        return {"rows": rows}

    async def search(self, query: str) -> list[dict]:
        """Return documents matching a search query."""
        return await asyncio.to_thread(
            self.database.search, (query or "").strip(), self.search_limit
        )
