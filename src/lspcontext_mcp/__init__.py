"""MCP server bridging symbol queries to a language server."""

__version__ = "0.1.0"
