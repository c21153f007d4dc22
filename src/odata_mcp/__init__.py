"""OData MCP router: exposes OData services as MCP tools."""

__version__ = "0.1.0"
