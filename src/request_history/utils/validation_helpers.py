"""Validation helper functions for record sanitization."""

import math
from typing import Any, Optional

# Instants local time conversion can represent (years 1 to 9999), with a
# day of slack on each side for the UTC offset.
MIN_TIMESTAMP_MS = -62135510400000
MAX_TIMESTAMP_MS = 253402214400000


def is_valid_timestamp(value: Any) -> bool:
    """Return True when value is a usable, non-zero millisecond timestamp.

    Booleans, NaN, zero, values outside the supported calendar range and
    anything that is not a number are rejected.
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    if isinstance(value, float) and (math.isnan(value) or math.isinf(value)):
        return False
    if not MIN_TIMESTAMP_MS <= value <= MAX_TIMESTAMP_MS:
        return False
    return value != 0


def coerce_timestamp(value: Any) -> Optional[int]:
    """Convert a raw timestamp value to integer milliseconds.

    Args:
        value: Raw value from a source document (int, float or numeric string)

    Returns:
        Integer milliseconds, or None if the value is missing or invalid
    """
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return None
    if not is_valid_timestamp(value):
        return None
    return int(value)
