"""MCP server and path-based request dispatch."""

from .dispatcher import McpRequestDispatcher, ToolExecutor, UnconfiguredExecutor
from .server import ODataMcpServer

__all__ = ['McpRequestDispatcher', 'ToolExecutor', 'UnconfiguredExecutor', 'ODataMcpServer']
