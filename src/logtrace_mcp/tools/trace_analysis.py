"""Distributed trace analysis tools.

Work on the normalized JSON array written by parse_log_data:
- analyze_distributed_trace: Span hierarchy, timing and error status per trace
- generate_service_dependency_graph: Cross-service call graph (json/mermaid/dot)
"""

import json
from pathlib import Path

import structlog
from mcp.server.fastmcp import FastMCP

from ..config import get_settings
from ..errors import LogTraceError, OutputWriteError
from ..parsing.ingest import load_records
from ..tracing.aggregator import TraceAggregator, select_traces
from ..tracing.graph_format import build_dependency_graph, render_graph
from ..tracing.models import Trace

logger = structlog.get_logger(__name__)


def format_trace_summaries(
    traces: list[Trace], output_path: str | None = None
) -> str:
    """Render per-trace summaries as text for the caller."""
    lines = ["Distributed Trace Analysis:", ""]
    lines.append(f"- Traces analyzed: {len(traces)}")
    if output_path:
        lines.append(f"- Full analysis saved to: {output_path}")
    lines.append("")
    lines.append("Trace Summaries:")

    for trace in traces:
        summary = trace.summary()
        lines.append("")
        lines.append(f"Trace ID: {summary['trace_id']}")
        lines.append(
            f"- Services involved: {summary['service_count']} "
            f"({', '.join(summary['services'])})"
        )
        lines.append(f"- Spans: {summary['span_count']}")
        lines.append(f"- Logs: {summary['log_count']}")
        if summary["trace_duration_ms"] is not None:
            lines.append(f"- Duration: {round(summary['trace_duration_ms'])}ms")
        if summary["has_errors"]:
            lines.append("- Status: Contains errors")
        else:
            lines.append("- Status: No errors detected")

    return "\n".join(lines) + "\n"


def _write_analysis(analysis: dict, output_path: str) -> None:
    path = Path(output_path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(analysis, f, indent=2, default=str)
    except OSError as e:
        raise OutputWriteError(output_path, e) from e


def register_tools(mcp: FastMCP):
    """Register trace analysis tools with the MCP server."""

    @mcp.tool()
    def analyze_distributed_trace(
        processed_log_path: str,
        trace_id: str | None = None,
        output_path: str | None = None,
        max_traces: int | None = None,
    ) -> str:
        """Analyze distributed traces by following trace and span IDs across services.

        Rebuilds span hierarchies, span/trace durations, error status and
        service interactions from logs processed by parse_log_data.

        Args:
            processed_log_path: Path to the processed log data JSON file
            trace_id: Specific trace ID to analyze (default: all traces)
            output_path: Where to save the full analysis JSON (optional)
            max_traces: Maximum number of traces to analyze, largest first (default: 10)

        Returns:
            Text summary of each analyzed trace.
        """
        pipeline = get_settings().pipeline
        try:
            records = load_records(processed_log_path)
            aggregator = TraceAggregator(min_trace_records=pipeline.min_trace_records)
            traces = select_traces(
                aggregator.aggregate(records),
                trace_id=trace_id,
                max_traces=max_traces or pipeline.max_traces,
            )

            if output_path:
                _write_analysis(
                    {
                        "traces_analyzed": len(traces),
                        "trace_analyses": [
                            t.to_dict(
                                pipeline.sample_logs_per_span,
                                pipeline.message_preview_chars,
                            )
                            for t in traces
                        ],
                    },
                    output_path,
                )
        except LogTraceError as e:
            logger.warning("analyze_distributed_trace_failed", error=str(e))
            return json.dumps({"error": str(e)})
        except Exception as e:
            logger.exception("analyze_distributed_trace_error")
            return json.dumps({"error": str(e)})

        return format_trace_summaries(traces, output_path)

    @mcp.tool()
    def generate_service_dependency_graph(
        processed_log_path: str,
        trace_ids: list[str] | None = None,
        format: str = "json",
    ) -> str:
        """Generate a service dependency graph from parent/child span links.

        Edge weights count parent-span to child-span calls crossing a service
        boundary, summed over all selected traces.

        Args:
            processed_log_path: Path to the processed log data JSON file
            trace_ids: Only use these trace IDs (default: all traces)
            format: Output format: json, mermaid or dot (default: json)

        Returns:
            The rendered dependency graph.
        """
        pipeline = get_settings().pipeline
        try:
            records = load_records(processed_log_path)
            traces = TraceAggregator(
                min_trace_records=pipeline.min_trace_records
            ).aggregate(records)
            if trace_ids:
                wanted = set(trace_ids)
                traces = [t for t in traces if t.trace_id in wanted]
            if not traces:
                return json.dumps({"error": "No traces found in the processed logs"})
            return render_graph(build_dependency_graph(traces), format)
        except LogTraceError as e:
            logger.warning("generate_service_dependency_graph_failed", error=str(e))
            return json.dumps({"error": str(e)})
        except Exception as e:
            logger.exception("generate_service_dependency_graph_error")
            return json.dumps({"error": str(e)})
