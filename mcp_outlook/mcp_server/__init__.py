"""Outlook MCP 서버 (STDIO)"""

from .server_stdio import StdioMCPServer, handle_stdio

__all__ = ["StdioMCPServer", "handle_stdio"]
