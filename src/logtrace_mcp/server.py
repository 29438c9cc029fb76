"""logtrace MCP Server.

Log ingestion and distributed trace analysis for LLM-driven agents.

Tool Categories:
- Log Parsing (2): Normalize JSON/XML/text logs, detect formats
- Trace Analysis (2): Span hierarchies and timing, service dependency graph
"""

from mcp.server.fastmcp import FastMCP

from .config import get_settings
from .logging import setup_logging
from .tools import log_parsing, trace_analysis

# Initialize FastMCP server
mcp = FastMCP("logtrace")

# Register all tool modules
log_parsing.register_tools(mcp)
trace_analysis.register_tools(mcp)


def main():
    """Entry point for the MCP server."""
    setup_logging(get_settings().logging)
    mcp.run()


if __name__ == "__main__":
    main()
