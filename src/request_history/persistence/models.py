"""Data models for persistence layer."""

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from ..exceptions import MalformedRecordError
from ..utils.validation_helpers import coerce_timestamp

HISTORY_KINDS = ("history", "history-requests")

# Keys consumed by from_dict; anything else lands in payload.
_KNOWN_KEYS = frozenset({
    "_id", "id", "type", "method", "url",
    "created", "created_at", "updated", "updated_at",
    # View fields never read back from a document
    "day_key", "dayTime", "time_label", "timeLabel",
    "has_header", "hasHeader", "header", "today",
})


@dataclass(eq=False)
class HistoryRecord:
    """Single request history record plus its list view metadata."""

    # Stored data
    id: str
    created_at: Optional[int] = None
    updated_at: Optional[int] = None
    type: str = "history"
    method: str = "GET"
    url: str = ""
    payload: dict = field(default_factory=dict)

    # View metadata, derived from position in the ordered list
    day_key: Optional[int] = None
    time_label: Optional[str] = None
    has_header: bool = False
    header: Optional[str] = None
    today: bool = False

    @classmethod
    def from_dict(cls, doc: Mapping[str, Any]) -> 'HistoryRecord':
        """
        Create HistoryRecord from a source document.

        Timestamps are coerced but never defaulted here; see ensure_timestamps().

        Args:
            doc: Mapping with ``_id``/``id`` and optional ``created``/``updated``

        Returns:
            New HistoryRecord instance

        Raises:
            MalformedRecordError: If the document has no usable id
        """
        if not isinstance(doc, Mapping):
            raise MalformedRecordError(f"Expected a mapping, got {type(doc).__name__}")

        record_id = doc.get("_id", doc.get("id"))
        if record_id is None or str(record_id) == "":
            raise MalformedRecordError("History document has no id")

        created = doc.get("created", doc.get("created_at"))
        updated = doc.get("updated", doc.get("updated_at"))
        return cls(
            id=str(record_id),
            created_at=coerce_timestamp(created),
            updated_at=coerce_timestamp(updated),
            type=str(doc.get("type") or "history"),
            method=str(doc.get("method") or "GET"),
            url=str(doc.get("url") or ""),
            payload={k: v for k, v in doc.items() if k not in _KNOWN_KEYS},
        )

    def to_dict(self) -> dict:
        """
        Serialize to the stored document form.

        View metadata (headers, labels, day keys) is left out, so the result
        can be written back to a record store.

        Returns:
            Dictionary representation of the stored fields
        """
        doc = dict(self.payload)
        doc.update({
            "_id": self.id,
            "type": self.type,
            "method": self.method,
            "url": self.url,
            "created": self.created_at,
            "updated": self.updated_at,
        })
        return doc

    @property
    def is_history_kind(self) -> bool:
        """Whether this record belongs to the history list."""
        return self.type in HISTORY_KINDS

    def ensure_timestamps(self, now_ms: int) -> 'HistoryRecord':
        """Fill missing ``created_at``/``updated_at``; valid values are kept."""
        if coerce_timestamp(self.created_at) is None:
            self.created_at = int(now_ms)
        if coerce_timestamp(self.updated_at) is None:
            self.updated_at = self.created_at
        return self

    def set_header(self, label: str, today: bool = False) -> None:
        self.has_header = True
        self.header = label
        self.today = today

    def clear_header(self) -> None:
        self.has_header = False
        self.header = None
        self.today = False
