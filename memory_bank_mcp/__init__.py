"""Memory bank MCP server: exposes a six-document memory bank over MCP/SSE."""

__version__ = "2.0.0"
