"""Pure logic helpers for grouping history records into day sections."""

import logging
from typing import Any, Iterable, Optional

from ..exceptions import MalformedRecordError
from ..persistence.models import HistoryRecord
from .time_logic import DayInfo, classify, header_label, now_ms, today_key, yesterday_key

logger = logging.getLogger(__name__)


def decode_records(docs: Iterable[Any]) -> list[HistoryRecord]:
    """Decode source documents into records, skipping malformed ones."""
    decoded: list[HistoryRecord] = []
    for doc in docs or []:
        if isinstance(doc, HistoryRecord):
            decoded.append(doc)
            continue
        try:
            decoded.append(HistoryRecord.from_dict(doc))
        except MalformedRecordError as e:
            logger.warning(f"Skipping history document: {e}")
    return decoded


def ensure_timestamps(
    records: list[HistoryRecord],
    current_ms: Optional[int] = None,
) -> list[HistoryRecord]:
    """Make sure every record has ``created_at`` and ``updated_at``."""
    stamp = now_ms() if current_ms is None else current_ms
    for record in records:
        record.ensure_timestamps(stamp)
    return records


def sort_records(records: list[HistoryRecord]) -> list[HistoryRecord]:
    """Sort records newest first by ``updated_at``; ties keep arrival order."""
    records.sort(key=lambda record: record.updated_at, reverse=True)
    return records


def apply_day_info(
    record: HistoryRecord,
    info: DayInfo,
    add_header: bool,
    today: int,
    yesterday: int,
) -> None:
    """Copy day metadata onto a record and set or clear its header."""
    record.day_key = info.day_key
    record.time_label = info.time_label
    if add_header:
        label, is_today = header_label(info.day_key, info.date_label, today, yesterday)
        record.set_header(label, today=is_today)
    else:
        record.clear_header()


def annotate(
    records: list[HistoryRecord],
    today: int,
    yesterday: int,
) -> list[HistoryRecord]:
    """
    Assign day headers to an already sorted list of records.

    The first record of every run of records sharing a day gets the header;
    every other record has its header cleared. The input is not re-sorted.

    Args:
        records: Records sorted newest first
        today: Local midnight of today, in ms
        yesterday: Local midnight of yesterday, in ms

    Returns:
        The same list, annotated in place
    """
    last_day: Optional[int] = None
    for index, record in enumerate(records):
        info = classify(record.updated_at)
        apply_day_info(
            record,
            info,
            add_header=index == 0 or info.day_key != last_day,
            today=today,
            yesterday=yesterday,
        )
        last_day = info.day_key
    return records


def process_history_results(
    records: list[HistoryRecord],
    current_ms: Optional[int] = None,
) -> list[HistoryRecord]:
    """Normalize, sort and annotate a batch of records from a query."""
    if not records:
        return []
    stamp = now_ms() if current_ms is None else current_ms
    ensure_timestamps(records, stamp)
    sort_records(records)
    today = today_key(stamp)
    return annotate(records, today, yesterday_key(today))
