"""logtrace MCP server: log ingestion and distributed trace analysis."""

__version__ = "0.1.0"
