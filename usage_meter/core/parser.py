"""
Session journal parsing.

Turns the newline-delimited JSON records Claude Code appends to its
session journals into UsageEntry values. Only assistant turns carry
token usage; every other record is ignored.
"""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, BinaryIO, Dict, Iterator, List, Optional, Union

from .models import UsageEntry
from .timestamps import parse_rfc3339

logger = logging.getLogger(__name__)

MAX_RECORD_BYTES = 10 * 1024 * 1024
ASSISTANT_ENTRY_TYPE = "assistant"
DEFAULT_MODEL = "unknown"

# Journal usage key -> UsageEntry field
USAGE_FIELDS = {
    "input_tokens": "input_tokens",
    "output_tokens": "output_tokens",
    "cache_read_input_tokens": "cache_read_tokens",
    "cache_creation_input_tokens": "cache_create_tokens",
}


def _optional_field(container: Dict[str, Any], key: str, expected: type) -> Any:
    """Read an optional field, treating null as absent."""
    value = container.get(key)
    if value is None:
        return None
    if not isinstance(value, expected):
        raise ValueError(f"'{key}' must be of type {expected.__name__}")
    return value


def _token_counter(usage: Dict[str, Any], key: str) -> int:
    """Read a token counter; a missing counter counts as zero."""
    value = usage.get(key)
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValueError(f"'{key}' must be a non-negative integer")
    return value


def parse_record(line: Union[str, bytes], since: datetime) -> Optional[UsageEntry]:
    """Parse a single journal record.

    Args:
        line: One JSON record
        since: Timezone-aware floor; older turns are dropped

    Returns:
        UsageEntry for an assistant turn with usage at or after the floor,
        None for any other well-formed record

    Raises:
        ValueError: If the record is malformed or its timestamp is not RFC 3339
    """
    record = json.loads(line)
    if not isinstance(record, dict):
        raise ValueError("record must be a JSON object")

    entry_type = _optional_field(record, "type", str)
    timestamp = _optional_field(record, "timestamp", str)
    message = _optional_field(record, "message", dict)

    model = None
    usage = None
    if message is not None:
        model = _optional_field(message, "model", str)
        usage = _optional_field(message, "usage", dict)

    counters = {}
    if usage is not None:
        counters = {field: _token_counter(usage, key) for key, field in USAGE_FIELDS.items()}

    if entry_type != ASSISTANT_ENTRY_TYPE:
        return None
    if timestamp is None or usage is None:
        return None

    parsed_ts = parse_rfc3339(timestamp)
    if parsed_ts < since:
        return None

    return UsageEntry(
        model=model if model is not None else DEFAULT_MODEL,
        timestamp=parsed_ts,
        **counters,
    )


def read_bounded_lines(stream: BinaryIO, limit: int) -> Iterator[Optional[bytes]]:
    """Yield the lines of a binary stream, reading at most limit + 1 bytes at a time.

    A line longer than limit bytes is consumed in bounded chunks and
    yielded as None, so it still counts as one line.
    """
    while True:
        raw = stream.readline(limit + 1)
        if not raw:
            return
        if len(raw) > limit and not raw.endswith(b"\n"):
            while raw and not raw.endswith(b"\n"):
                raw = stream.readline(limit + 1)
            yield None
            continue
        yield raw


def parse_journal_file(path: Union[str, Path], since: datetime) -> List[UsageEntry]:
    """Parse every usable assistant turn in a journal file.

    Malformed records, records over MAX_RECORD_BYTES and records with bad
    timestamps are skipped individually. A file that cannot be read yields
    whatever was parsed before the failure, usually nothing.

    Args:
        path: Journal file
        since: Timezone-aware floor; older turns are dropped

    Returns:
        Parsed entries in file order
    """
    entries: List[UsageEntry] = []
    try:
        with open(path, "rb") as f:
            for line_number, raw in enumerate(read_bounded_lines(f, MAX_RECORD_BYTES), start=1):
                if raw is None:
                    logger.debug("Skipping oversized record %s:%d", path, line_number)
                    continue
                line = raw.strip()
                if not line:
                    continue
                try:
                    entry = parse_record(line, since)
                except (ValueError, RecursionError) as e:
                    logger.debug("Skipping record %s:%d: %s", path, line_number, e)
                    continue
                if entry is not None:
                    entries.append(entry)
    except OSError as e:
        logger.debug("Cannot read journal %s: %s", path, e)
    return entries
