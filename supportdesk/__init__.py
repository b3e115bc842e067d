"""Customer-support MCP tool server (SSE sessions + direct /tool calls)."""

__version__ = "1.0.0"
