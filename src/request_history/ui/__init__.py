"""History list logic: day grouping, ordering, pagination and control."""

from .time_logic import DayInfo, classify, header_label, today_key, yesterday_key
from .grouping_logic import annotate, decode_records, ensure_timestamps, process_history_results, sort_records
from .ordered_list import ChangeKind, ListChange, OrderedHistoryList
from .pagination_logic import PaginationCursor
from .history_list import HistoryListController, HistoryListEvent, HistoryListState

__all__ = [
    "DayInfo",
    "classify",
    "header_label",
    "today_key",
    "yesterday_key",
    "annotate",
    "decode_records",
    "ensure_timestamps",
    "process_history_results",
    "sort_records",
    "ChangeKind",
    "ListChange",
    "OrderedHistoryList",
    "PaginationCursor",
    "HistoryListController",
    "HistoryListEvent",
    "HistoryListState",
]
