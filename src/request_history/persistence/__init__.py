"""Persistence layer for request history."""

from .models import HISTORY_KINDS, HistoryRecord
from .database import RequestHistoryDatabase

__all__ = [
    "HISTORY_KINDS",
    "HistoryRecord",
    "RequestHistoryDatabase",
]
