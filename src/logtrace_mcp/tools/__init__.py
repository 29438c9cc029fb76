"""Tool modules for the logtrace MCP server."""

from . import log_parsing, trace_analysis

__all__ = [
    "log_parsing",
    "trace_analysis",
]
