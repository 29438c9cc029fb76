"""Tests for dependency graph rendering."""

import json

import networkx as nx
import pytest
from logtrace_mcp.errors import UnsupportedFormatError
from logtrace_mcp.tracing.aggregator import TraceAggregator
from logtrace_mcp.tracing.graph_format import build_dependency_graph, render_graph


@pytest.fixture
def graph():
    records = []
    for trace_id in ("t1", "t2"):
        records += [
            {"traceId": trace_id, "spanId": "a", "service": "api-gateway"},
            {
                "traceId": trace_id,
                "spanId": "b",
                "parentSpanId": "a",
                "service": "orders",
                "level": "ERROR" if trace_id == "t2" else "INFO",
            },
        ]
    return build_dependency_graph(TraceAggregator().aggregate(records))


class TestBuildDependencyGraph:
    def test_node_metrics(self, graph):
        assert graph.nodes["api-gateway"]["span_count"] == 2
        assert graph.nodes["orders"]["span_count"] == 2
        assert graph.nodes["orders"]["error_count"] == 1
        assert graph.nodes["api-gateway"]["error_count"] == 0

    def test_edge_weights_summed(self, graph):
        assert graph["api-gateway"]["orders"]["weight"] == 2


class TestRenderGraph:
    def test_json(self, graph):
        data = json.loads(render_graph(graph, "json"))
        assert data["edges"] == [
            {"source": "api-gateway", "target": "orders", "weight": 2}
        ]
        orders = next(n for n in data["nodes"] if n["id"] == "orders")
        assert orders["metrics"] == {"span_count": 2, "error_count": 1}

    def test_mermaid(self, graph):
        text = render_graph(graph, "mermaid")
        assert text.startswith("graph TD\n")
        assert 'orders["orders<br/>Spans: 2<br/>Errors: 50.0%"]' in text
        assert "api_gateway -->|2| orders" in text

    def test_dot(self, graph):
        text = render_graph(graph, "dot")
        assert text.startswith("digraph ServiceDependencies {")
        assert '"api-gateway" -> "orders" [label="2"]' in text
        assert text.rstrip().endswith("}")

    def test_mermaid_ids_unique(self):
        graph = nx.DiGraph()
        graph.add_node("a-b", span_count=1, error_count=0)
        graph.add_node("a_b", span_count=1, error_count=0)
        graph.add_edge("a-b", "a_b", weight=3)
        text = render_graph(graph, "mermaid")
        assert 'a_b["a-b<br/>' in text
        assert 'a_b_2["a_b<br/>' in text
        assert "a_b -->|3| a_b_2" in text

    def test_quotes_escaped(self):
        graph = nx.DiGraph()
        graph.add_node('say "hi"', span_count=1, error_count=0)
        graph.add_node("orders", span_count=1, error_count=0)
        graph.add_edge('say "hi"', "orders", weight=1)

        mermaid = render_graph(graph, "mermaid")
        assert 'say__hi_["say #quot;hi#quot;<br/>' in mermaid

        dot = render_graph(graph, "dot")
        assert '"say \\"hi\\"" -> "orders" [label="1"]' in dot

    def test_unsupported(self, graph):
        with pytest.raises(UnsupportedFormatError):
            render_graph(graph, "svg")
