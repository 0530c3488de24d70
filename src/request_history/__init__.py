"""request_history - Paginated, day-grouped request history list."""

__version__ = "0.1.0"

from .config import (
    RequestHistoryConfig,
    HistoryListConfig,
    StoreConfig,
)
from .exceptions import (
    RequestHistoryError,
    SourceUnavailableError,
    QueryFailedError,
    MalformedRecordError,
    ConfigurationError,
)
from .persistence import HistoryRecord, RequestHistoryDatabase
from .ui import (
    HistoryListController,
    HistoryListEvent,
    HistoryListState,
    OrderedHistoryList,
    PaginationCursor,
)

__all__ = [
    # Configuration
    "RequestHistoryConfig",
    "HistoryListConfig",
    "StoreConfig",
    # Exceptions
    "RequestHistoryError",
    "SourceUnavailableError",
    "QueryFailedError",
    "MalformedRecordError",
    "ConfigurationError",
    # Persistence
    "HistoryRecord",
    "RequestHistoryDatabase",
    # History list
    "HistoryListController",
    "HistoryListEvent",
    "HistoryListState",
    "OrderedHistoryList",
    "PaginationCursor",
]
