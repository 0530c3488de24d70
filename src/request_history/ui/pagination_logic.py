"""Pagination state for the history list."""

import logging
from typing import Any, Optional

from ..config import DEFAULT_PAGE_SIZE, validate_positive_int

logger = logging.getLogger(__name__)


class PaginationCursor:
    """
    Start key / skip pagination over a store sorted by ``updated`` descending.

    The store must order records sharing a sort key in a stable way. With that
    guarantee, at most one record (the last one of the previous page) shows up
    again at the start of the next page. Skipping one record steps over it, and
    the list drops any remaining duplicate by id when the page is merged.
    """

    def __init__(self, page_size: int = DEFAULT_PAGE_SIZE):
        validate_positive_int("page size", page_size)
        self.page_size = page_size
        self.start_key: Optional[int] = None
        self.skip: Optional[int] = None
        self.loading = False
        self.search_mode = False

    def next_query_params(self) -> dict[str, Any]:
        """Return the parameters for the next page query."""
        params: dict[str, Any] = {
            "limit": self.page_size,
            "descending": True,
        }
        if self.start_key is not None:
            params["start_key"] = self.start_key
        if self.skip:
            params["skip"] = self.skip
        return params

    def advance(self, last_updated: int) -> None:
        """Move the cursor past a page whose last record has ``last_updated``."""
        self.start_key = last_updated
        if not self.skip:
            self.skip = 1
        logger.debug(f"Pagination advanced to start_key={self.start_key} skip={self.skip}")

    def reset(self) -> None:
        """Clear position and mode flags."""
        self.start_key = None
        self.skip = None
        self.search_mode = False
        self.loading = False
