"""Per-format record extractors.

Each extractor turns raw file content into a list of flat ``dict`` records:

- JSON-Lines: one object per line, undecodable lines skipped
- XML: ``<log>``/``<event>`` entries flattened to ``{child tag: child text}``
- Text: a line-oriented regex cascade with multi-line continuation
"""

from __future__ import annotations

import json
import re
import xml.etree.ElementTree as ET
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Any

import structlog

logger = structlog.get_logger(__name__)

LogRecord = dict[str, Any]


# =============================================================================
# JSON-Lines
# =============================================================================


def extract_json_records(content: str) -> list[LogRecord]:
    """Decode each line as a JSON object."""
    records = []
    for line_no, line in enumerate(content.splitlines(), start=1):
        line = line.strip()
        if not line:
            continue
        try:
            entry = json.loads(line)
        except json.JSONDecodeError:
            logger.debug("json_line_skipped", line_no=line_no)
            continue
        if isinstance(entry, dict):
            records.append(entry)
    return records


# =============================================================================
# XML
# =============================================================================

_XML_DECL_RE = re.compile(r"(?=<\?xml)")
_XML_ENTRY_RE = re.compile(r"<(log|event)\b[^>]*>.*?</\1\s*>", re.DOTALL)


def _flatten(entry: ET.Element) -> LogRecord:
    return {child.tag: child.text for child in entry}


def _entries(root: ET.Element) -> list[ET.Element]:
    for tag in ("log", "event"):
        found = list(root.iter(tag))
        if found:
            return found
    # No known entry tag: every element whose children are all leaves
    return [
        el
        for el in root.iter()
        if len(el) and all(len(child) == 0 for child in el)
    ]


def _records_from_root(root: ET.Element) -> list[LogRecord]:
    return [_flatten(entry) for entry in _entries(root)]


def extract_xml_records(content: str) -> list[LogRecord]:
    """Flatten XML log entries, tolerating concatenated documents."""
    try:
        return _records_from_root(ET.fromstring(content))
    except ET.ParseError:
        pass

    records: list[LogRecord] = []
    for piece in _XML_DECL_RE.split(content):
        if not piece.strip():
            continue
        try:
            records.extend(_records_from_root(ET.fromstring(piece.strip())))
            continue
        except ET.ParseError:
            pass

        for match in _XML_ENTRY_RE.finditer(piece):
            try:
                records.append(_flatten(ET.fromstring(match.group(0))))
            except ET.ParseError:
                logger.debug("xml_fragment_skipped", offset=match.start())
    return records


# =============================================================================
# Freeform text
# =============================================================================

LEVEL_NAMES = (
    "TRACE|DEBUG|INFO|NOTICE|WARN|WARNING|ERROR|SEVERE|FATAL|CRITICAL"
)
_ISO_TS = r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(?:\.\d+)?(?:[+-]\d{2}:?\d{2}|Z)?"
_SIMPLE_TS = r"\d{4}-\d{2}-\d{2}\s+\d{2}:\d{2}:\d{2}(?:\.\d+)?"

_TRACE_ID_RE = re.compile(r"traceId[=:]\s*([a-zA-Z0-9-]+)")
_SPAN_ID_RE = re.compile(r"spanId[=:]\s*([a-zA-Z0-9-]+)")
_PARENT_SPAN_ID_RE = re.compile(r"parentSpanId[=:]\s*([a-zA-Z0-9-]+)")
_LEVEL_RE = re.compile(r"\b(ERROR|WARN|INFO|DEBUG|TRACE)\b")


@dataclass(frozen=True)
class LinePattern:
    """A line regex and the function that turns its match into a record.

    The extractor returns the record fields and the first message line.
    """

    name: str
    regex: re.Pattern[str]
    extract: Callable[[re.Match[str], str], tuple[LogRecord, str]]


def _named_groups(match: re.Match[str], line: str) -> tuple[LogRecord, str]:
    fields = {k: v for k, v in match.groupdict().items() if v is not None}
    message = fields.pop("message", "")
    return fields, message


def _trace_line(match: re.Match[str], line: str) -> tuple[LogRecord, str]:
    fields: LogRecord = {}
    if match.group("timestamp"):
        fields["timestamp"] = match.group("timestamp")
    for key, regex in (
        ("traceId", _TRACE_ID_RE),
        ("spanId", _SPAN_ID_RE),
        ("parentSpanId", _PARENT_SPAN_ID_RE),
    ):
        found = regex.search(line)
        if found:
            fields[key] = found.group(1)
    level = _LEVEL_RE.search(line)
    if level:
        fields["level"] = level.group(1)
    # The whole line is kept as the message
    return fields, line


TEXT_PATTERNS: list[LinePattern] = [
    LinePattern(
        "trace_ids",
        re.compile(
            rf"^(?:(?P<timestamp>{_ISO_TS}|{_SIMPLE_TS})\s+)?"
            r".*traceId[=:]\s*[a-zA-Z0-9-]+.*spanId[=:]\s*[a-zA-Z0-9-]+.*"
        ),
        _trace_line,
    ),
    LinePattern(
        "thread_logger",
        re.compile(
            rf"^(?P<timestamp>{_SIMPLE_TS})\s+\[(?P<thread>[^\]]+)\]\s+"
            r"\[(?P<logger>[^\]]+)\]\s+(?P<level>\w+)\s+(?P<service>\S+)\s+"
            r"(?P<message>.*)$"
        ),
        _named_groups,
    ),
    LinePattern(
        "iso",
        re.compile(
            rf"^(?P<timestamp>{_ISO_TS})\s+(?:\[(?P<service>[^\]]+)\]\s*)?"
            rf"(?:\[?(?P<level>{LEVEL_NAMES})\]?\s+)?(?P<message>.*)$"
        ),
        _named_groups,
    ),
    LinePattern(
        "simple",
        re.compile(
            rf"^(?P<timestamp>{_SIMPLE_TS})\s+(?:(?P<level>{LEVEL_NAMES})\s+)?"
            r"(?:\[(?P<service>[^\]]+)\]\s*)?(?P<message>.*)$"
        ),
        _named_groups,
    ),
]


class ParserState(Enum):
    AWAITING_RECORD = "awaiting_record"
    ACCUMULATING = "accumulating"


class TextLogParser:
    """Line-at-a-time parser for freeform text logs.

    A line matching one of ``patterns`` opens a new record; any other line is
    a continuation of the open record's message (stack traces, wrapped
    output). Continuation lines with no open record are dropped.
    """

    def __init__(self, patterns: list[LinePattern] | None = None):
        self.patterns = patterns if patterns is not None else TEXT_PATTERNS
        self.state = ParserState.AWAITING_RECORD
        self.records: list[LogRecord] = []
        self._current: LogRecord = {}
        self._message_lines: list[str] = []

    def _match(self, line: str) -> tuple[LogRecord, str] | None:
        for pattern in self.patterns:
            match = pattern.regex.match(line)
            if match:
                return pattern.extract(match, line)
        return None

    def _flush(self) -> None:
        if self.state is ParserState.ACCUMULATING:
            self._current["message"] = "\n".join(self._message_lines)
            self.records.append(self._current)
        self._current = {}
        self._message_lines = []
        self.state = ParserState.AWAITING_RECORD

    def feed(self, line: str) -> None:
        line = line.rstrip("\r\n")
        if not line.strip():
            return

        matched = self._match(line)
        if matched is not None:
            self._flush()
            self._current, first_line = matched
            self._message_lines = [first_line]
            self.state = ParserState.ACCUMULATING
        elif self.state is ParserState.ACCUMULATING:
            self._message_lines.append(line)

    def finish(self) -> list[LogRecord]:
        """Flush the pending record and return everything parsed."""
        self._flush()
        return self.records


def extract_text_records(lines: Iterable[str]) -> list[LogRecord]:
    """Parse freeform text log lines into records."""
    parser = TextLogParser()
    for line in lines:
        parser.feed(line)
    return parser.finish()
