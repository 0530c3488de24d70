"""Custom exceptions for request_history."""


class RequestHistoryError(Exception):
    """Base exception for all request_history errors."""
    pass


class SourceUnavailableError(RequestHistoryError):
    """Raised when no record source is available to answer a query."""
    pass


class QueryFailedError(RequestHistoryError):
    """Raised when the record source rejects a page or search query."""
    pass


class MalformedRecordError(RequestHistoryError):
    """Raised when a source document cannot be decoded into a record."""
    pass


class ConfigurationError(RequestHistoryError):
    """Raised when configuration is invalid."""
    pass
