"""Pure logic helpers for classifying history timestamps into days."""

import time
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

TODAY_LABEL = "Today"
YESTERDAY_LABEL = "Yesterday"


@dataclass(frozen=True)
class DayInfo:
    """Day bucket and labels for a single timestamp."""
    day_key: int      # Local midnight, in ms
    time_label: str   # e.g. "14:05:09"
    date_label: str   # e.g. "Friday, February 20, 2026"


def now_ms() -> int:
    """Return current wall-clock time in milliseconds."""
    return int(time.time() * 1000)


def _midnight_ms(moment: datetime) -> int:
    midnight = moment.replace(hour=0, minute=0, second=0, microsecond=0)
    return int(midnight.timestamp() * 1000)


def classify(timestamp_ms: int) -> DayInfo:
    """Compute the local day key and display labels for a timestamp."""
    moment = datetime.fromtimestamp(timestamp_ms / 1000)
    return DayInfo(
        day_key=_midnight_ms(moment),
        time_label=moment.strftime("%H:%M:%S"),
        date_label=f"{moment:%A}, {moment:%B} {moment.day}, {moment.year}",
    )


def today_key(current_ms: Optional[int] = None) -> int:
    """Return local midnight of the current day, in ms."""
    if current_ms is None:
        current_ms = now_ms()
    return _midnight_ms(datetime.fromtimestamp(current_ms / 1000))


def yesterday_key(today: int) -> int:
    """Return local midnight of the calendar day before ``today``.

    Computed by date rather than by subtracting 24h so DST days are handled.
    """
    previous_day = datetime.fromtimestamp(today / 1000).date() - timedelta(days=1)
    return _midnight_ms(datetime.combine(previous_day, datetime.min.time()))


def header_label(
    day_key: int,
    date_label: str,
    today: int,
    yesterday: int,
) -> tuple[str, bool]:
    """Resolve a day header to (label, is_today)."""
    if day_key == today:
        return TODAY_LABEL, True
    if day_key == yesterday:
        return YESTERDAY_LABEL, False
    return date_label, False
