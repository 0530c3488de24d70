"""Ordered, day-grouped sequence of history records."""

import bisect
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, Optional

from ..persistence.models import HistoryRecord
from .grouping_logic import annotate, apply_day_info, ensure_timestamps, sort_records
from .time_logic import classify, now_ms, today_key, yesterday_key

logger = logging.getLogger(__name__)


class ChangeKind(Enum):
    """Kinds of structural changes reported to list observers."""

    RESET = "reset"      # Whole sequence cleared
    APPEND = "append"    # Record appended at the tail by a page load
    INSERT = "insert"    # Record inserted at index
    REMOVE = "remove"    # Record removed from index
    UPDATE = "update"    # Header fields of the record at index changed


@dataclass(frozen=True)
class ListChange:
    """One step of a list mutation; indexes refer to the list after the step."""
    kind: ChangeKind
    index: int
    record: Optional[HistoryRecord] = None


class OrderedHistoryList:
    """
    History records sorted newest first, with one header per day run.

    Every mutation keeps two invariants:

    - ``updated_at`` never increases from one record to the next.
    - In each run of records sharing ``day_key``, only the first one has
      ``has_header`` set.

    Page loads annotate the incoming batch in one pass. Single record inserts
    and removals repair only the neighbours of the mutated position.
    """

    def __init__(self):
        self._records: list[HistoryRecord] = []
        self._by_id: dict[str, HistoryRecord] = {}

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[HistoryRecord]:
        return iter(self._records)

    def __getitem__(self, index: int) -> HistoryRecord:
        return self._records[index]

    @property
    def records(self) -> list[HistoryRecord]:
        """Copy of the current sequence."""
        return list(self._records)

    def get(self, record_id: str) -> Optional[HistoryRecord]:
        return self._by_id.get(record_id)

    def index_of(self, record_id: str) -> int:
        """Return the position of a record, or -1 if it is not in the list."""
        record = self._by_id.get(record_id)
        if record is None:
            return -1
        for index, candidate in enumerate(self._records):
            if candidate is record:
                return index
        return -1

    def clear(self) -> list[ListChange]:
        """Remove every record."""
        self._records.clear()
        self._by_id.clear()
        return [ListChange(ChangeKind.RESET, 0)]

    def bulk_append(
        self,
        records: list[HistoryRecord],
        current_ms: Optional[int] = None,
    ) -> list[ListChange]:
        """
        Append a page of records that is older than the current tail.

        The batch is normalized, sorted and annotated on its own. Records whose
        id is already listed (a page seam duplicate) are dropped. If the batch
        starts on the same day as the current tail, its first header is cleared.
        Records newer than the current tail go through ``upsert()`` instead.

        Args:
            records: Raw page records, in any order
            current_ms: Wall-clock time used for defaults and Today/Yesterday

        Returns:
            APPEND changes for appended records, then the changes of any
            records inserted at their sorted position
        """
        if not records:
            return []
        stamp = now_ms() if current_ms is None else current_ms
        ensure_timestamps(records, stamp)
        sort_records(records)

        batch: list[HistoryRecord] = []
        seen: set[str] = set()
        for record in records:
            if record.id in self._by_id or record.id in seen:
                logger.debug(f"Dropping duplicate history record {record.id}")
                continue
            seen.add(record.id)
            batch.append(record)
        if not batch:
            return []

        # Records inserted while the page was in flight can be older than
        # part of the page; those page records are inserted one by one.
        newer: list[HistoryRecord] = []
        if self._records:
            tail_updated = self._records[-1].updated_at
            split = next(
                (i for i, record in enumerate(batch) if record.updated_at <= tail_updated),
                len(batch),
            )
            newer, batch = batch[:split], batch[split:]
            if newer:
                logger.debug(f"Inserting {len(newer)} page records newer than the tail")

        changes: list[ListChange] = []
        if batch:
            today = today_key(stamp)
            annotate(batch, today, yesterday_key(today))

            if self._records and self._records[-1].day_key == batch[0].day_key:
                batch[0].clear_header()

            start = len(self._records)
            self._records.extend(batch)
            for record in batch:
                self._by_id[record.id] = record
            changes.extend(
                ListChange(ChangeKind.APPEND, start + offset, record)
                for offset, record in enumerate(batch)
            )

        for record in newer:
            changes.extend(self.upsert(record, stamp))
        return changes

    def replace(
        self,
        records: list[HistoryRecord],
        current_ms: Optional[int] = None,
    ) -> list[ListChange]:
        """Replace the whole sequence with a new batch."""
        return self.clear() + self.bulk_append(records, current_ms)

    def upsert(
        self,
        record: HistoryRecord,
        current_ms: Optional[int] = None,
    ) -> list[ListChange]:
        """
        Insert a record at its sorted position, replacing any record with its id.

        Args:
            record: Record to insert
            current_ms: Wall-clock time used for defaults and Today/Yesterday

        Returns:
            Changes in the order they were applied
        """
        stamp = now_ms() if current_ms is None else current_ms
        record.ensure_timestamps(stamp)
        info = classify(record.updated_at)

        changes: list[ListChange] = []
        if record.id in self._by_id:
            changes.extend(self.remove(record.id))

        # First position whose record is strictly older than the new one
        index = bisect.bisect_right(
            self._records,
            -record.updated_at,
            key=lambda item: -item.updated_at,
        )

        follower = self._records[index] if index < len(self._records) else None
        absorbed_header = (
            follower is not None
            and follower.has_header
            and follower.day_key == info.day_key
        )
        if absorbed_header:
            follower.clear_header()

        previous = self._records[index - 1] if index > 0 else None
        today = today_key(stamp)
        apply_day_info(
            record,
            info,
            add_header=previous is None or previous.day_key != info.day_key,
            today=today,
            yesterday=yesterday_key(today),
        )

        self._records.insert(index, record)
        self._by_id[record.id] = record
        changes.append(ListChange(ChangeKind.INSERT, index, record))
        if absorbed_header:
            changes.append(ListChange(ChangeKind.UPDATE, index + 1, follower))
        return changes

    def remove(self, record_id: str) -> list[ListChange]:
        """
        Remove a record by id, passing its header on to the next record.

        Returns:
            Changes applied, or an empty list if the id is not listed
        """
        index = self.index_of(record_id)
        if index == -1:
            return []

        old = self._records[index]
        changes = [ListChange(ChangeKind.REMOVE, index, old)]
        following = self._records[index + 1] if index + 1 < len(self._records) else None
        if old.has_header and following is not None and not following.has_header:
            following.set_header(old.header, today=old.today)
            changes.append(ListChange(ChangeKind.UPDATE, index, following))

        del self._records[index]
        del self._by_id[record_id]
        return changes
