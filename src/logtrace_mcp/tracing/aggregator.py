"""Trace aggregation.

Groups correlated records by trace id, folds them into spans, and derives
per-trace timing, status and the cross-service interaction graph. Service
edges follow span parent/child links; clock skew between services is not
corrected.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from typing import Any

import networkx as nx
import structlog

from ..errors import TraceNotFoundError
from ..parsing.timestamps import parse_timestamp, record_timestamp
from .correlator import PARENT_SPAN_ID_KEY, SPAN_ID_KEY, TRACE_ID_KEY
from .models import Span, SpanStatus, Trace

logger = structlog.get_logger(__name__)

ERROR_LEVELS = {"ERROR", "SEVERE", "FATAL", "CRITICAL"}
ERROR_MESSAGE_RE = re.compile(r"exception|error|fail|timeout", re.IGNORECASE)
SUCCESS_MESSAGE_RE = re.compile(r"success|successful|completed", re.IGNORECASE)


def classify_record(record: dict[str, Any]) -> SpanStatus:
    """Status contributed by a single record."""
    level = record.get("level")
    if isinstance(level, str) and level.upper() in ERROR_LEVELS:
        return SpanStatus.ERROR
    message = record.get("message")
    if not isinstance(message, str):
        return SpanStatus.UNKNOWN
    if ERROR_MESSAGE_RE.search(message):
        return SpanStatus.ERROR
    if SUCCESS_MESSAGE_RE.search(message):
        return SpanStatus.SUCCESS
    return SpanStatus.UNKNOWN


def _id_value(value: Any) -> str | None:
    # ids from raw JSON may be numbers; lists, dicts and bools are not ids
    if isinstance(value, bool) or not isinstance(value, (str, int)):
        return None
    return str(value) or None


def _add_edge(graph: nx.DiGraph, source: str, target: str, weight: int = 1) -> None:
    if graph.has_edge(source, target):
        graph[source][target]["weight"] += weight
    else:
        graph.add_edge(source, target, weight=weight)


def build_service_graph(trace: Trace) -> nx.DiGraph:
    """Directed service graph of one trace from parent/child span pairs."""
    graph = nx.DiGraph()
    graph.add_nodes_from(trace.services)
    for span in trace.spans.values():
        parent = trace.spans.get(span.parent_span_id) if span.parent_span_id else None
        if parent is None:
            continue
        if parent.service and span.service and parent.service != span.service:
            _add_edge(graph, parent.service, span.service)
    return graph


def merge_service_graphs(graphs: Iterable[nx.DiGraph]) -> nx.DiGraph:
    """Sum edge weights of several service graphs."""
    merged = nx.DiGraph()
    for graph in graphs:
        merged.add_nodes_from(graph.nodes)
        for u, v, data in graph.edges(data=True):
            _add_edge(merged, u, v, data.get("weight", 1))
    return merged


def build_trace(trace_id: str, records: list[dict[str, Any]]) -> Trace:
    """Fold the records of one trace into spans and finalize the trace."""
    trace = Trace(trace_id=trace_id, records=records)

    for record in records:
        span_id = _id_value(record.get(SPAN_ID_KEY))
        if span_id is None:
            continue
        span = trace.spans.get(span_id)
        if span is None:
            span = Span(span_id=span_id)
            trace.spans[span_id] = span
        span.records.append(record)

        if not span.parent_span_id:
            span.parent_span_id = _id_value(record.get(PARENT_SPAN_ID_KEY))
        if not span.service and record.get("service"):
            span.service = str(record["service"])

        ts = parse_timestamp(record_timestamp(record))
        if ts is not None:
            span.observe_time(ts)

        span.mark(classify_record(record))

    trace.root_spans = [
        span_id
        for span_id, span in trace.spans.items()
        if not span.parent_span_id or span.parent_span_id not in trace.spans
    ]
    trace.service_graph = build_service_graph(trace)
    return trace


class TraceAggregator:
    """Builds Trace entities from correlated records.

    Args:
        min_trace_records: Traces with fewer records are dropped
        cumulative: Accumulate service graphs of every aggregated trace
            into ``service_graph``
    """

    def __init__(self, min_trace_records: int = 2, cumulative: bool = False):
        self.min_trace_records = min_trace_records
        self.cumulative = cumulative
        self.service_graph = nx.DiGraph()

    def aggregate(self, records: Iterable[dict[str, Any]]) -> list[Trace]:
        groups: dict[str, list[dict[str, Any]]] = {}
        for record in records:
            trace_id = _id_value(record.get(TRACE_ID_KEY))
            if trace_id is not None:
                groups.setdefault(trace_id, []).append(record)

        traces = []
        for trace_id, trace_records in groups.items():
            if len(trace_records) < self.min_trace_records:
                continue
            trace = build_trace(trace_id, trace_records)
            traces.append(trace)
            if self.cumulative:
                self.service_graph = merge_service_graphs(
                    [self.service_graph, trace.service_graph]
                )

        logger.debug(
            "traces_aggregated",
            trace_ids=len(groups),
            traces=len(traces),
            dropped=len(groups) - len(traces),
        )
        return traces


def select_traces(
    traces: list[Trace],
    trace_id: str | None = None,
    max_traces: int | None = None,
) -> list[Trace]:
    """Filter to one trace id, or keep the ``max_traces`` largest traces."""
    if trace_id is not None:
        selected = [t for t in traces if t.trace_id == trace_id]
        if not selected:
            raise TraceNotFoundError(trace_id)
        return selected
    if max_traces is not None and len(traces) > max_traces:
        return sorted(traces, key=lambda t: len(t.records), reverse=True)[:max_traces]
    return traces
