"""Timestamp normalization.

Log sources write time in many shapes. Every candidate timestamp field is
parsed against a fixed list of formats, then a lenient parser, and re-rendered
as ISO-8601 in the target zone. Parsing failures leave the value untouched.
"""

import re
from datetime import datetime, timezone, tzinfo
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dateutil import parser as date_parser

from ..errors import InvalidTimeZoneError

TIMESTAMP_FIELDS = ["timestamp", "time", "date", "@timestamp"]

# Order matters: the first format that parses wins.
TIMESTAMP_FORMATS = [
    "%Y-%m-%dT%H:%M:%S.%fZ",
    "%Y-%m-%dT%H:%M:%S.%f%z",
    "%Y-%m-%dT%H:%M:%S%z",
    "%Y-%m-%dT%H:%M:%SZ",
    "%Y-%m-%d %H:%M:%S.%f",
    "%Y-%m-%d %H:%M:%S",
]

_OFFSET_SUFFIX_RE = re.compile(r"[+-]\d{2}:?\d{2}$")


def resolve_timezone(name: str) -> tzinfo:
    """Resolve a zone name such as ``UTC`` or ``Europe/Berlin``."""
    if name.upper() == "UTC":
        return timezone.utc
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise InvalidTimeZoneError(name) from e


def _format_applies(fmt: str, value: str) -> bool:
    # strptime accepts partial matches we don't want, e.g. %z eating "Z"
    if fmt.endswith("Z"):
        return value.endswith("Z")
    if fmt.endswith("%z"):
        return bool(_OFFSET_SUFFIX_RE.search(value))
    return True


def parse_timestamp(value: Any) -> datetime | None:
    """Parse a raw timestamp into an aware datetime.

    Naive values are assumed to be UTC. Returns None when nothing parses or
    when the offset or the UTC instant falls outside the datetime range.
    """
    if not isinstance(value, str) or not value.strip():
        return None
    value = value.strip()

    dt = None
    for fmt in TIMESTAMP_FORMATS:
        if not _format_applies(fmt, value):
            continue
        try:
            dt = datetime.strptime(value, fmt)
            break
        except ValueError:
            continue

    if dt is None:
        try:
            dt = date_parser.parse(value)
        except (ValueError, OverflowError, TypeError):
            return None

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    try:
        dt.astimezone(timezone.utc)
    except (ValueError, OverflowError):
        return None
    return dt


def normalize_timestamp(value: Any, tz: tzinfo = timezone.utc) -> Any:
    """Render ``value`` as ISO-8601 in ``tz``, or return it unchanged."""
    dt = parse_timestamp(value)
    if dt is None:
        return value
    try:
        return dt.astimezone(tz).isoformat()
    except (ValueError, OverflowError):
        return value


def normalize_record_timestamps(records: list[dict], tz: tzinfo) -> list[dict]:
    """Normalize every candidate timestamp field of every record in place."""
    for record in records:
        for field in TIMESTAMP_FIELDS:
            if record.get(field):
                record[field] = normalize_timestamp(record[field], tz)
    return records


def record_timestamp(record: dict) -> Any:
    """Return the first present timestamp candidate of a record."""
    for field in TIMESTAMP_FIELDS:
        if record.get(field):
            return record[field]
    return None
