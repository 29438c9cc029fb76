"""Tests for timestamp normalization."""

from datetime import timezone
from zoneinfo import ZoneInfo

import pytest
from logtrace_mcp.errors import InvalidTimeZoneError
from logtrace_mcp.parsing.timestamps import (
    normalize_record_timestamps,
    normalize_timestamp,
    parse_timestamp,
    record_timestamp,
    resolve_timezone,
)


class TestNormalizeTimestamp:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("2024-01-01T10:00:00.123456Z", "2024-01-01T10:00:00.123456+00:00"),
            ("2024-01-01T12:00:00.5+02:00", "2024-01-01T10:00:00.500000+00:00"),
            ("2024-01-01T12:00:00+0200", "2024-01-01T10:00:00+00:00"),
            ("2024-01-01T10:00:00Z", "2024-01-01T10:00:00+00:00"),
            ("2024-01-01 10:00:00.250", "2024-01-01T10:00:00.250000+00:00"),
            ("2024-01-01 10:00:00", "2024-01-01T10:00:00+00:00"),
        ],
    )
    def test_supported_formats(self, raw, expected):
        """Each fixed format normalizes to ISO-8601 in UTC."""
        assert normalize_timestamp(raw, timezone.utc) == expected

    def test_target_zone(self):
        """Result is expressed in the requested zone."""
        tz = ZoneInfo("America/New_York")
        assert (
            normalize_timestamp("2024-01-01T15:00:00Z", tz)
            == "2024-01-01T10:00:00-05:00"
        )

    def test_lenient_fallback(self):
        """Formats outside the fixed list go through the lenient parser."""
        assert (
            normalize_timestamp("Jan 5 2024 08:30:00", timezone.utc)
            == "2024-01-05T08:30:00+00:00"
        )

    def test_unparseable_returned_unchanged(self):
        """Garbage comes back untouched."""
        assert normalize_timestamp("not a time", timezone.utc) == "not a time"

    def test_non_string_returned_unchanged(self):
        assert normalize_timestamp(1704103200, timezone.utc) == 1704103200

    @pytest.mark.parametrize(
        "raw",
        [
            "0001-01-01T00:00:00+01:00",
            "9999-12-31T23:59:59-01:00",
            "2024-01-01T10:00:00 +25:00",
        ],
    )
    def test_out_of_range_returned_unchanged(self, raw):
        """Instants or offsets outside the datetime range are left as-is."""
        assert normalize_timestamp(raw, timezone.utc) == raw
        assert parse_timestamp(raw) is None

    def test_idempotent(self):
        """Normalizing an already-normalized value changes nothing."""
        once = normalize_timestamp("2024-01-01 10:00:00", timezone.utc)
        assert normalize_timestamp(once, timezone.utc) == once


class TestParseTimestamp:
    def test_naive_assumed_utc(self):
        dt = parse_timestamp("2024-01-01 10:00:00")
        assert dt.tzinfo is not None
        assert dt.utcoffset().total_seconds() == 0

    def test_empty_is_none(self):
        assert parse_timestamp("") is None
        assert parse_timestamp(None) is None


class TestRecordTimestamps:
    def test_all_candidate_fields_normalized(self):
        records = [
            {"timestamp": "2024-01-01 10:00:00", "@timestamp": "2024-01-01T10:00:00Z"},
            {"time": "bogus"},
        ]
        normalize_record_timestamps(records, timezone.utc)
        assert records[0]["timestamp"] == "2024-01-01T10:00:00+00:00"
        assert records[0]["@timestamp"] == "2024-01-01T10:00:00+00:00"
        assert records[1]["time"] == "bogus"

    def test_first_candidate_used(self):
        record = {"date": "2024-01-02", "time": "2024-01-01 10:00:00"}
        assert record_timestamp(record) == "2024-01-01 10:00:00"

    def test_no_candidate(self):
        assert record_timestamp({"message": "hi"}) is None


class TestResolveTimezone:
    def test_utc(self):
        assert resolve_timezone("UTC") is timezone.utc

    def test_named_zone(self):
        assert resolve_timezone("Europe/Berlin") == ZoneInfo("Europe/Berlin")

    def test_unknown_zone(self):
        with pytest.raises(InvalidTimeZoneError):
            resolve_timezone("Mars/Olympus_Mons")
