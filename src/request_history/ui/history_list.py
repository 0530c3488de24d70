"""Controller for the paginated, searchable request history list."""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Iterable, Mapping, Optional, Union

from ..config import HistoryListConfig
from ..exceptions import MalformedRecordError, QueryFailedError, SourceUnavailableError
from ..persistence.models import HISTORY_KINDS, HistoryRecord
from ..service.record_source import RecordSource
from .grouping_logic import decode_records
from .ordered_list import ListChange, OrderedHistoryList
from .pagination_logic import PaginationCursor
from .time_logic import now_ms

logger = logging.getLogger(__name__)


class HistoryListState(Enum):
    """Derived state of the history list."""

    IDLE = "idle"              # Records shown, nothing in flight
    LOADING = "loading"        # Page query in flight
    SEARCHING = "searching"    # Search mode, pagination suspended
    EMPTY = "empty"            # Nothing loaded and nothing in flight


@dataclass(frozen=True)
class HistoryListEvent:
    """Notification sent to observers after every list mutation."""
    records: list[HistoryRecord]
    changes: list[ListChange]


Observer = Callable[[HistoryListEvent], None]


class HistoryListController:
    """
    Drives the history list: paging, search mode and live record updates.

    All methods must be called from the event loop that owns the controller.
    Only one page query runs at a time; ``load_next()`` calls made while one
    is in flight return immediately.

    ``reset()``, ``refresh()`` and ``query()`` start a new generation. A page or
    search response dispatched in an earlier generation is discarded when it
    arrives, whether it succeeded or failed.
    """

    def __init__(
        self,
        source: Optional[RecordSource],
        config: Optional[HistoryListConfig] = None,
        clock: Optional[Callable[[], int]] = None,
    ):
        """
        Initialize the controller.

        Args:
            source: Record source to query, or None if none is registered
            config: List configuration (page size, auto load)
            clock: Callable returning wall-clock milliseconds
        """
        self.source = source
        self.config = config or HistoryListConfig()
        self.config.validate()
        self._clock = clock or now_ms
        self._cursor = PaginationCursor(self.config.page_size)
        self._list = OrderedHistoryList()
        self._observers: list[Observer] = []
        self._generation = 0

    # ─── Derived state ───────────────────────────────────────────────────

    @property
    def records(self) -> list[HistoryRecord]:
        return self._list.records

    @property
    def cursor(self) -> PaginationCursor:
        return self._cursor

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def querying(self) -> bool:
        """True while a page or search query is in flight."""
        return self._cursor.loading

    @property
    def is_search(self) -> bool:
        return self._cursor.search_mode

    @property
    def has_records(self) -> bool:
        return len(self._list) > 0

    @property
    def data_unavailable(self) -> bool:
        """True when browsing finished loading and there is nothing to show."""
        return not self.is_search and not self.querying and not self.has_records

    @property
    def search_list_empty(self) -> bool:
        """True when a search finished and matched nothing."""
        return self.is_search and not self.querying and not self.has_records

    @property
    def state(self) -> HistoryListState:
        if self.is_search:
            return HistoryListState.SEARCHING
        if self.querying:
            return HistoryListState.LOADING
        if not self.has_records:
            return HistoryListState.EMPTY
        return HistoryListState.IDLE

    # ─── Observers ───────────────────────────────────────────────────────

    def subscribe(self, callback: Observer) -> Callable[[], None]:
        """Register an observer; returns a function that unregisters it."""
        self._observers.append(callback)

        def unsubscribe() -> None:
            if callback in self._observers:
                self._observers.remove(callback)

        return unsubscribe

    def notify(self, changes: list[ListChange]) -> None:
        """Send the current records and ``changes`` to every observer."""
        event = HistoryListEvent(records=self._list.records, changes=list(changes))
        for callback in list(self._observers):
            callback(event)

    # ─── Lifecycle ───────────────────────────────────────────────────────

    async def attach(self) -> None:
        """Called by the host when the list is shown."""
        if self.config.auto_load_on_attach and not self.querying and not self.has_records:
            await self.load_next()

    def detach(self) -> None:
        """Called by the host when the list is hidden for good."""
        self._observers.clear()

    # ─── Paging ──────────────────────────────────────────────────────────

    async def load_next(self) -> None:
        """
        Load the next page and append it to the list.

        Does nothing while searching or while another page is loading.

        Raises:
            SourceUnavailableError: If no record source is registered
            QueryFailedError: If the source rejects the query
        """
        if self._cursor.search_mode or self._cursor.loading:
            return
        source = self._require_source()

        params = self._cursor.next_query_params()
        generation = self._generation
        self._cursor.loading = True
        try:
            response = await source.list_page(params)
            rows = list(response.get("rows") or [])
        except Exception as e:
            if self._is_stale(generation, "page"):
                return
            self._cursor.loading = False
            logger.error(f"[History list error] Page query failed: {e}")
            raise QueryFailedError(f"History page query failed: {e}") from e

        if self._is_stale(generation, "page"):
            return
        self._cursor.loading = False
        if not rows:
            logger.debug("History page query returned no rows")
            return

        records = decode_records(row.get("doc") for row in rows)
        changes = self._list.bulk_append(records, self._clock())

        # Only a merged page moves the cursor
        last_key = rows[-1].get("key")
        if last_key is None:
            logger.warning("Last history row has no key; pagination will not advance")
        else:
            self._cursor.advance(last_key)
        logger.debug(f"Loaded {len(rows)} history rows, {len(changes)} appended")
        if changes:
            self.notify(changes)

    def reset(self) -> None:
        """Drop all records and pagination state."""
        self._generation += 1
        self._cursor.reset()
        if self.has_records:
            self.notify(self._list.clear())

    async def refresh(self) -> None:
        """Reset the list and load the first page again."""
        self.reset()
        await self.load_next()

    # ─── Search ──────────────────────────────────────────────────────────

    async def query(self, text: Optional[str]) -> None:
        """
        Replace the list with search results.

        An empty query leaves search mode (refreshing the list) or does nothing.

        Raises:
            SourceUnavailableError: If no record source is registered
            QueryFailedError: If the source rejects the search
        """
        text = (text or "").strip()
        if not text:
            if self.is_search:
                await self.refresh()
            return
        source = self._require_source()

        self._generation += 1
        generation = self._generation
        self._cursor.search_mode = True
        self._cursor.loading = True
        if self.has_records:
            self.notify(self._list.clear())

        try:
            results = await source.search(text)
        except Exception as e:
            if self._is_stale(generation, "search"):
                return
            self._cursor.loading = False
            logger.error(f"[History list error] Search for {text!r} failed: {e}")
            raise QueryFailedError(f"History search failed: {e}") from e

        if self._is_stale(generation, "search"):
            return
        self._cursor.loading = False
        changes = self._list.replace(decode_records(results), self._clock())
        logger.debug(f"Search for {text!r} matched {len(self._list)} records")
        self.notify(changes)

    # ─── External events ─────────────────────────────────────────────────

    def apply_upsert(
        self,
        record: Union[HistoryRecord, Mapping[str, Any]],
        kind: Optional[str] = None,
    ) -> bool:
        """
        Insert or update one record after it changed in the store.

        Args:
            record: Changed record or its document
            kind: Record kind tag; defaults to the record's own type

        Returns:
            True if the list changed
        """
        if not isinstance(record, HistoryRecord):
            try:
                record = HistoryRecord.from_dict(record)
            except MalformedRecordError as e:
                logger.warning(f"Ignoring changed history record: {e}")
                return False

        if kind is not None and kind not in HISTORY_KINDS:
            return False
        if kind is None and not record.is_history_kind:
            return False
        if self.is_search:
            logger.debug(f"Ignoring change of {record.id} while searching")
            return False

        self.notify(self._list.upsert(record, self._clock()))
        return True

    def apply_removal(self, record_id: str, kind: str = "history") -> bool:
        """Remove one record after it was deleted from the store."""
        if kind not in HISTORY_KINDS or self.is_search:
            return False
        changes = self._list.remove(record_id)
        if not changes:
            return False
        self.notify(changes)
        return True

    async def handle_store_destroyed(self, stores: Union[str, Iterable[str], None]) -> bool:
        """Refresh if the destroyed stores include history (or are "all")."""
        if not stores:
            return False
        if isinstance(stores, str):
            stores = [stores]
        stores = list(stores)
        if not stores:
            return False
        if not set(stores) & set(HISTORY_KINDS) and stores[0] != "all":
            return False
        logger.info(f"History store destroyed ({', '.join(stores)}), refreshing")
        await self.refresh()
        return True

    async def handle_data_imported(self) -> None:
        """Refresh after records were imported into the store."""
        await self.refresh()

    # ─── Internals ───────────────────────────────────────────────────────

    def _require_source(self) -> RecordSource:
        if self.source is None:
            msg = "Record source not found."
            logger.warning(msg)
            raise SourceUnavailableError(msg)
        return self.source

    def _is_stale(self, generation: int, what: str) -> bool:
        if generation == self._generation:
            return False
        logger.debug(
            f"Discarding stale {what} response "
            f"(generation {generation}, current {self._generation})"
        )
        return True
