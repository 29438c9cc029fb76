"""Span and Trace entities built by the aggregator."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

import networkx as nx


class SpanStatus(str, Enum):
    UNKNOWN = "unknown"
    ERROR = "error"
    SUCCESS = "success"


def _duration_ms(start: datetime | None, end: datetime | None) -> float | None:
    if start is None or end is None:
        return None
    return (end - start).total_seconds() * 1000


@dataclass
class Span:
    """One unit of work within a trace."""

    span_id: str
    parent_span_id: str | None = None
    service: str | None = None
    records: list[dict[str, Any]] = field(default_factory=list)
    start_time: datetime | None = None
    end_time: datetime | None = None
    timestamp_count: int = 0
    status: SpanStatus = SpanStatus.UNKNOWN

    def observe_time(self, ts: datetime) -> None:
        self.timestamp_count += 1
        if self.start_time is None or ts < self.start_time:
            self.start_time = ts
        if self.end_time is None or ts > self.end_time:
            self.end_time = ts

    def mark(self, status: SpanStatus) -> None:
        """Accumulate a record's status; error is never downgraded."""
        if status is SpanStatus.ERROR:
            self.status = SpanStatus.ERROR
        elif status is SpanStatus.SUCCESS and self.status is SpanStatus.UNKNOWN:
            self.status = SpanStatus.SUCCESS

    @property
    def duration_ms(self) -> float | None:
        if self.timestamp_count < 2:
            return None
        return _duration_ms(self.start_time, self.end_time)

    def to_dict(self, sample_logs: int = 3, preview_chars: int = 200) -> dict[str, Any]:
        samples = []
        for record in self.records[:sample_logs]:
            message = str(record.get("message") or "")
            if len(message) > preview_chars:
                message = message[:preview_chars] + "..."
            samples.append(
                {
                    "timestamp": record.get("timestamp"),
                    "level": record.get("level"),
                    "message": message,
                }
            )
        return {
            "service": self.service,
            "parent_span": self.parent_span_id,
            "status": self.status.value,
            "start_time": self.start_time.isoformat() if self.start_time else None,
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "duration_ms": self.duration_ms,
            "log_count": len(self.records),
            "sample_logs": samples,
        }


@dataclass
class Trace:
    """All spans and records sharing one trace id."""

    trace_id: str
    spans: dict[str, Span] = field(default_factory=dict)
    records: list[dict[str, Any]] = field(default_factory=list)
    root_spans: list[str] = field(default_factory=list)
    service_graph: nx.DiGraph = field(default_factory=nx.DiGraph)

    @property
    def services(self) -> list[str]:
        seen: dict[str, None] = {}
        for span in self.spans.values():
            if span.service:
                seen.setdefault(span.service, None)
        return list(seen)

    @property
    def start_time(self) -> datetime | None:
        starts = [s.start_time for s in self.spans.values() if s.start_time]
        return min(starts, default=None)

    @property
    def end_time(self) -> datetime | None:
        ends = [s.end_time for s in self.spans.values() if s.end_time]
        return max(ends, default=None)

    @property
    def duration_ms(self) -> float | None:
        return _duration_ms(self.start_time, self.end_time)

    @property
    def error_spans(self) -> list[str]:
        return [
            span_id
            for span_id, span in self.spans.items()
            if span.status is SpanStatus.ERROR
        ]

    @property
    def has_errors(self) -> bool:
        return bool(self.error_spans)

    def edges(self) -> list[dict[str, Any]]:
        return [
            {"source": u, "target": v, "weight": data["weight"]}
            for u, v, data in self.service_graph.edges(data=True)
        ]

    def summary(self) -> dict[str, Any]:
        services = self.services
        return {
            "trace_id": self.trace_id,
            "span_count": len(self.spans),
            "log_count": len(self.records),
            "service_count": len(services),
            "services": services,
            "has_errors": self.has_errors,
            "trace_duration_ms": self.duration_ms,
        }

    def to_dict(self, sample_logs: int = 3, preview_chars: int = 200) -> dict[str, Any]:
        result = self.summary()
        result.update(
            {
                "root_spans": self.root_spans,
                "error_spans": self.error_spans,
                "service_interactions": self.edges(),
                "spans": {
                    span_id: span.to_dict(sample_logs, preview_chars)
                    for span_id, span in self.spans.items()
                },
            }
        )
        return result
