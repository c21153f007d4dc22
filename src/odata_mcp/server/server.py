"""MCP server implementation using the official mcp SDK."""

import logging
from typing import Any

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import Tool, TextContent

from ..core.errors import ValidationError, ToolNotFoundError, UpstreamError
from ..core.models import ToolDefinition
from ..core.logging import log_with_metadata
from .dispatcher import McpRequestDispatcher

logger = logging.getLogger(__name__)


class ODataMcpServer:
    """
    MCP server exposing the generated tools of one OData namespace.

    Tool lists come from the namespace manager's cached batch; tool calls
    are validated against the tool's input contract and handed to the
    dispatcher's executor.
    """

    def __init__(self, dispatcher: McpRequestDispatcher, namespace: str):
        """
        Initialize the server.

        Args:
            dispatcher: Dispatcher holding the namespace manager and executor
            namespace: Registered namespace whose tools are served
        """
        self.dispatcher = dispatcher
        self.namespace = namespace

        self.server = Server("odata-mcp")

        self._register_handlers()

    def _register_handlers(self) -> None:
        """Register MCP protocol handlers."""

        @self.server.list_tools()
        async def list_tools() -> list[Tool]:
            return await self.handle_list_tools()

        @self.server.call_tool()
        async def call_tool(name: str, arguments: dict[str, Any]) -> list[TextContent]:
            return await self.handle_call_tool(name, arguments)

    async def handle_list_tools(self) -> list[Tool]:
        """Handle tools/list: every tool generated for the namespace."""
        logger.info("Handling tools/list request")

        result = await self.dispatcher.manager.get_tools(self.namespace)

        log_with_metadata(
            logger,
            logging.INFO,
            "Returning namespace tools",
            metadata={
                'namespace': self.namespace,
                'tool_count': len(result.tools),
                'truncated': result.truncated
            }
        )

        return [self._tool_definition_to_mcp_tool(tool) for tool in result.tools]

    async def handle_call_tool(self, name: str, arguments: dict[str, Any]) -> list[TextContent]:
        """
        Handle tools/call.

        Returns:
            Text content of the executor's result

        Raises:
            ValidationError: If arguments are invalid
            ToolNotFoundError: If the tool is not in the namespace
            UpstreamError: If execution fails
        """
        logger.info(f"Handling tools/call for {name}", extra={
            "tool_name": name,
            "namespace": self.namespace
        })

        try:
            result = await self.dispatcher.execute(self.namespace, name, arguments)
        except (ValidationError, ToolNotFoundError, UpstreamError):
            raise
        except Exception as e:
            logger.error(f"Unexpected error in call_tool: {e}", exc_info=True)
            raise UpstreamError(
                f"Tool call failed: {str(e)}",
                data={"tool_name": name, "error": str(e)}
            )

        return [
            TextContent(type="text", text=item.text if item.text is not None else (item.uri or ""))
            for item in result.content
        ]

    def _tool_definition_to_mcp_tool(self, tool: ToolDefinition) -> Tool:
        return Tool(
            name=tool.name,
            description=tool.description,
            inputSchema=tool.input_contract.to_json_schema(),
        )

    async def run(self) -> None:
        """Run the MCP server with stdio transport."""
        logger.info(f"Starting OData MCP server for namespace '{self.namespace}'")

        async with stdio_server() as (read_stream, write_stream):
            await self.server.run(
                read_stream,
                write_stream,
                self.server.create_initialization_options(),
            )
