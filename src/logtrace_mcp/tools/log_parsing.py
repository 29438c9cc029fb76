"""Log ingestion tools.

- parse_log_data: Normalize JSON/XML/text logs into one JSON array
- detect_log_format: Report the detected format of a single file
"""

import json

import structlog
from mcp.server.fastmcp import FastMCP

from ..config import get_settings
from ..errors import LogTraceError
from ..parsing.detect import detect_format
from ..parsing.ingest import IngestStats, ingest, write_records

logger = structlog.get_logger(__name__)

TOP_SERVICES = 10


def format_ingest_summary(
    stats: IngestStats, output_path: str, extract_tracing: bool
) -> str:
    """Render ingestion statistics as text for the caller."""
    lines = ["Successfully processed log data:", ""]
    lines.append(f"- Total logs processed: {stats.total_logs}")
    lines.append(f"- Files processed: {stats.processed_files}")
    if stats.failed_files > 0:
        lines.append(f"- Files failed: {stats.failed_files}")
    lines.append(f"- Output saved to: {output_path}")
    lines.append("")

    if stats.level_counts:
        lines.append("Log Levels:")
        for level, count in stats.level_counts.items():
            lines.append(f"- {level}: {count}")
        lines.append("")

    if stats.service_counts:
        lines.append("Services:")
        ranked = sorted(stats.service_counts.items(), key=lambda kv: kv[1], reverse=True)
        for service, count in ranked[:TOP_SERVICES]:
            lines.append(f"- {service}: {count}")
        if len(ranked) > TOP_SERVICES:
            lines.append(f"- ... and {len(ranked) - TOP_SERVICES} more")
        lines.append("")

    if extract_tracing and stats.unique_traces:
        lines.append("Tracing Information:")
        lines.append(f"- Unique traces: {stats.unique_traces}")
        lines.append(f"- Logs with trace info: {stats.logs_with_trace_info}")
        if stats.avg_logs_per_trace:
            lines.append(f"- Average logs per trace: {stats.avg_logs_per_trace:.2f}")

    return "\n".join(lines).rstrip() + "\n"


def register_tools(mcp: FastMCP):
    """Register log ingestion tools with the MCP server."""

    @mcp.tool()
    def parse_log_data(
        log_files: list[str],
        output_path: str,
        log_format: str | None = None,
        extract_tracing: bool | None = None,
        time_zone: str | None = None,
    ) -> str:
        """Parse and normalize log data into a consistent format for analysis.

        Handles JSON-Lines, XML and freeform text logs (auto-detected per file).
        Timestamps are normalized to one time zone, and trace/span IDs are
        extracted from fields or message text to rebuild span hierarchies.

        Args:
            log_files: Paths to log files or directories containing logs
            output_path: Where to save the normalized JSON array
            log_format: json, xml, text or auto (default: auto)
            extract_tracing: Extract and correlate trace and span IDs (default: true)
            time_zone: Time zone to normalize timestamps to (default: UTC)

        Returns:
            Text summary of the processed logs.
        """
        pipeline = get_settings().pipeline
        log_format = log_format or pipeline.default_log_format
        time_zone = time_zone or pipeline.default_time_zone
        if extract_tracing is None:
            extract_tracing = pipeline.extract_tracing

        try:
            result = ingest(
                log_files,
                log_format=log_format,
                time_zone=time_zone,
                extract_tracing=extract_tracing,
            )
            write_records(result.records, output_path)
        except LogTraceError as e:
            logger.warning("parse_log_data_failed", error=str(e))
            return json.dumps({"error": str(e)})
        except Exception as e:
            logger.exception("parse_log_data_error")
            return json.dumps({"error": str(e)})

        return format_ingest_summary(result.stats, output_path, extract_tracing)

    @mcp.tool()
    def detect_log_format(path: str) -> str:
        """Detect whether a log file is JSON-Lines, XML or freeform text.

        Only the first non-blank line is inspected.

        Args:
            path: Path to the log file

        Returns:
            JSON with the detected format.
        """
        try:
            return json.dumps({"path": path, "format": detect_format(path)})
        except OSError as e:
            return json.dumps({"error": f"Cannot read {path}: {e}"})
        except Exception as e:
            logger.exception("detect_log_format_error", path=path)
            return json.dumps({"error": str(e)})
