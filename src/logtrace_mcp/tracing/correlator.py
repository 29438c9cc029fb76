"""Trace and span id discovery.

Ids are looked up in two passes, both driven by rule lists so new aliases
can be added without touching control flow:

1. field rules match record keys against alias sets
2. message rules search the ``message`` text, filling only empty slots

Records without a trace id are left uncorrelated.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any

import structlog

logger = structlog.get_logger(__name__)

TRACE_ID_KEY = "traceId"
SPAN_ID_KEY = "spanId"
PARENT_SPAN_ID_KEY = "parentSpanId"
STRUCTURE_KEY = "_trace_structure"


@dataclass(frozen=True)
class FieldRule:
    """Maps record keys (case-insensitive) to an id slot."""

    slot: str
    aliases: frozenset[str]
    # Key must contain all of these substrings (after lowercasing)
    contains: tuple[str, ...] = ()
    excludes: tuple[str, ...] = ()

    def matches(self, key: str) -> bool:
        key = key.lower()
        if key in self.aliases:
            return True
        if not self.contains:
            return False
        return all(s in key for s in self.contains) and not any(
            s in key for s in self.excludes
        )


@dataclass(frozen=True)
class MessageRule:
    """Regex searched in the message body for an id slot."""

    slot: str
    regex: re.Pattern[str]


# Parent rule first so "parent_span_id" never lands in the span slot.
FIELD_RULES: list[FieldRule] = [
    FieldRule(
        PARENT_SPAN_ID_KEY,
        frozenset(
            {"parentspanid", "parent_span_id", "parent-span-id", "parent_id", "parentid"}
        ),
    ),
    FieldRule(
        TRACE_ID_KEY,
        frozenset({"traceid", "trace_id", "trace-id"}),
        contains=("trace", "id"),
    ),
    FieldRule(
        SPAN_ID_KEY,
        frozenset({"spanid", "span_id", "span-id"}),
        contains=("span", "id"),
        excludes=("parent",),
    ),
]

_VALUE = r"""\s*[=:,]\s*["']?([a-zA-Z0-9-]+)["']?"""

MESSAGE_RULES: list[MessageRule] = [
    MessageRule(
        TRACE_ID_KEY,
        re.compile(r"\b(?:trace[-_]?id|traceid)" + _VALUE, re.IGNORECASE),
    ),
    MessageRule(
        SPAN_ID_KEY,
        re.compile(r"\b(?:span[-_]?id|spanid)" + _VALUE, re.IGNORECASE),
    ),
    MessageRule(
        PARENT_SPAN_ID_KEY,
        re.compile(
            r"\b(?:parent[-_]?span[-_]?id|parentspanid)" + _VALUE, re.IGNORECASE
        ),
    ),
]


@dataclass
class TraceStructure:
    """Span hierarchy of one trace as seen by the correlator."""

    trace_id: str
    span_parents: dict[str, str | None] = field(default_factory=dict)
    record_indices: list[int] = field(default_factory=list)

    def add_span(self, span_id: str, parent_span_id: str | None) -> None:
        # First parent seen for a span wins
        if span_id not in self.span_parents or self.span_parents[span_id] is None:
            self.span_parents[span_id] = parent_span_id

    @property
    def root_spans(self) -> list[str]:
        return [
            span_id
            for span_id, parent in self.span_parents.items()
            if not parent or parent not in self.span_parents
        ]

    @property
    def span_hierarchy(self) -> dict[str, list[str]]:
        hierarchy: dict[str, list[str]] = {}
        for span_id, parent in self.span_parents.items():
            if parent and parent in self.span_parents:
                hierarchy.setdefault(parent, []).append(span_id)
        return hierarchy

    def to_dict(self) -> dict[str, Any]:
        return {
            "trace_id": self.trace_id,
            "root_spans": self.root_spans,
            "span_hierarchy": self.span_hierarchy,
            "total_spans": len(self.span_parents),
            "total_logs": len(self.record_indices),
        }


def find_ids(record: dict[str, Any]) -> dict[str, str]:
    """Discover trace/span/parent ids of one record without mutating it."""
    found: dict[str, str] = {}

    for key, value in record.items():
        if not isinstance(value, str) or not value or key.startswith("_"):
            continue
        for rule in FIELD_RULES:
            if rule.matches(key):
                found.setdefault(rule.slot, value)
                break

    message = record.get("message")
    if isinstance(message, str):
        for rule in MESSAGE_RULES:
            if rule.slot in found:
                continue
            match = rule.regex.search(message)
            if match:
                found[rule.slot] = match.group(1)

    return found


def correlate(records: list[dict[str, Any]]) -> dict[str, TraceStructure]:
    """Annotate records with ids and attach per-trace structure summaries.

    Records are mutated in place. Returns the structures keyed by trace id,
    in first-seen order.
    """
    traces: dict[str, TraceStructure] = {}

    for index, record in enumerate(records):
        ids = find_ids(record)
        record.update(ids)

        trace_id = ids.get(TRACE_ID_KEY)
        if not trace_id:
            continue
        structure = traces.setdefault(trace_id, TraceStructure(trace_id))
        structure.record_indices.append(index)
        span_id = ids.get(SPAN_ID_KEY)
        if span_id:
            structure.add_span(span_id, ids.get(PARENT_SPAN_ID_KEY))

    for structure in traces.values():
        summary = structure.to_dict()
        for index in structure.record_indices:
            records[index][STRUCTURE_KEY] = summary

    logger.debug(
        "records_correlated",
        records=len(records),
        traces=len(traces),
    )
    return traces
