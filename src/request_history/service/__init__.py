"""Record source collaborators and notification bridges."""

from importlib import import_module

__all__ = [
    "RecordSource",
    "DatabaseRecordSource",
    "HistoryBusListener",
]

_LAZY_EXPORTS = {
    "RecordSource": ("record_source", "RecordSource"),
    "DatabaseRecordSource": ("record_source", "DatabaseRecordSource"),
    "HistoryBusListener": ("bus_listener", "HistoryBusListener"),
}


def __getattr__(name):
    """Lazily import service modules so D-Bus is only loaded when needed."""
    if name in _LAZY_EXPORTS:
        module_name, attr_name = _LAZY_EXPORTS[name]
        module = import_module(f".{module_name}", __name__)
        value = getattr(module, attr_name)
        globals()[name] = value
        return value
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
