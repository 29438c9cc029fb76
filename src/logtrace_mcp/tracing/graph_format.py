"""Service dependency graph across traces, rendered as JSON, Mermaid or DOT."""

from __future__ import annotations

import json
from collections.abc import Iterable

import networkx as nx

from ..errors import UnsupportedFormatError
from .aggregator import merge_service_graphs
from .models import SpanStatus, Trace

GRAPH_FORMATS = ["json", "mermaid", "dot"]


def build_dependency_graph(traces: Iterable[Trace]) -> nx.DiGraph:
    """Merge per-trace service graphs and attach span/error counts to nodes."""
    traces = list(traces)
    graph = merge_service_graphs(t.service_graph for t in traces)

    for trace in traces:
        for span in trace.spans.values():
            if not span.service:
                continue
            if span.service not in graph:
                graph.add_node(span.service)
            node = graph.nodes[span.service]
            node["span_count"] = node.get("span_count", 0) + 1
            if span.status is SpanStatus.ERROR:
                node["error_count"] = node.get("error_count", 0) + 1

    for _, data in graph.nodes(data=True):
        data.setdefault("span_count", 0)
        data.setdefault("error_count", 0)
    return graph


def _error_rate(data: dict) -> str:
    if not data["span_count"]:
        return "0%"
    return f"{data['error_count'] / data['span_count'] * 100:.1f}%"


def _mermaid_ids(services: Iterable[str]) -> dict[str, str]:
    """Map services to node ids that are alphanumeric and unique."""
    ids: dict[str, str] = {}
    taken: set[str] = set()
    for service in services:
        base = "".join(c if c.isalnum() else "_" for c in service) or "_"
        node_id = base
        suffix = 2
        while node_id in taken:
            node_id = f"{base}_{suffix}"
            suffix += 1
        taken.add(node_id)
        ids[service] = node_id
    return ids


def _mermaid_label(service: str) -> str:
    return service.replace('"', "#quot;")


def _dot_quote(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"')


def to_json(graph: nx.DiGraph) -> str:
    return json.dumps(
        {
            "nodes": [
                {
                    "id": service,
                    "metrics": {
                        "span_count": data["span_count"],
                        "error_count": data["error_count"],
                    },
                }
                for service, data in graph.nodes(data=True)
            ],
            "edges": [
                {"source": u, "target": v, "weight": data["weight"]}
                for u, v, data in graph.edges(data=True)
            ],
        },
        indent=2,
    )


def to_mermaid(graph: nx.DiGraph) -> str:
    lines = ["graph TD"]
    ids = _mermaid_ids(graph.nodes)
    for service, data in graph.nodes(data=True):
        lines.append(
            f'  {ids[service]}["{_mermaid_label(service)}'
            f'<br/>Spans: {data["span_count"]}'
            f'<br/>Errors: {_error_rate(data)}"]'
        )
    for u, v, data in graph.edges(data=True):
        lines.append(f"  {ids[u]} -->|{data['weight']}| {ids[v]}")
    return "\n".join(lines) + "\n"


def to_dot(graph: nx.DiGraph) -> str:
    lines = [
        "digraph ServiceDependencies {",
        "  rankdir=LR;",
        "  node [shape=box, style=filled, fillcolor=lightblue];",
        "",
    ]
    for service, data in graph.nodes(data=True):
        name = _dot_quote(service)
        lines.append(
            f'  "{name}" [label="{name}\\nSpans: {data["span_count"]}'
            f'\\nErrors: {_error_rate(data)}"]'
        )
    lines.append("")
    for u, v, data in graph.edges(data=True):
        lines.append(
            f'  "{_dot_quote(u)}" -> "{_dot_quote(v)}" [label="{data["weight"]}"]'
        )
    lines.append("}")
    return "\n".join(lines) + "\n"


_RENDERERS = {"json": to_json, "mermaid": to_mermaid, "dot": to_dot}


def render_graph(graph: nx.DiGraph, fmt: str = "json") -> str:
    renderer = _RENDERERS.get(fmt)
    if renderer is None:
        raise UnsupportedFormatError(fmt, GRAPH_FORMATS)
    return renderer(graph)
