"""
RFC 3339 timestamp helpers.
"""

import re
from datetime import datetime, timezone

RFC3339_FRACTIONAL = "%Y-%m-%dT%H:%M:%S.%f%z"
RFC3339 = "%Y-%m-%dT%H:%M:%S%z"

# Full RFC 3339 date-time: two-digit fields, "Z" or a colon offset
_RFC3339_SHAPE = re.compile(
    r"[0-9]{4}-[0-9]{2}-[0-9]{2}T[0-9]{2}:[0-9]{2}:[0-9]{2}(\.[0-9]+)?(Z|[+-][0-9]{2}:[0-9]{2})"
)

# strptime's %f accepts at most six digits
_EXTRA_FRACTION_DIGITS = re.compile(r"(\.\d{6})\d+")


def parse_rfc3339(value: str) -> datetime:
    """Parse an RFC 3339 timestamp, with or without fractional seconds.

    Args:
        value: Timestamp such as "2026-02-19T10:00:05.123Z"

    Returns:
        Timezone-aware datetime

    Raises:
        ValueError: If the value matches neither format
    """
    if not _RFC3339_SHAPE.fullmatch(value):
        raise ValueError(f"Invalid RFC 3339 timestamp: {value!r}")
    normalized = _EXTRA_FRACTION_DIGITS.sub(r"\1", value)
    for fmt in (RFC3339_FRACTIONAL, RFC3339):
        try:
            return datetime.strptime(normalized, fmt)
        except ValueError:
            continue
    raise ValueError(f"Invalid RFC 3339 timestamp: {value!r}")


def format_rfc3339(value: datetime) -> str:
    """Format as RFC 3339 in UTC without fractional seconds."""
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
