"""Utility modules for request_history."""

from .validation_helpers import coerce_timestamp, is_valid_timestamp

__all__ = ['coerce_timestamp', 'is_valid_timestamp']
