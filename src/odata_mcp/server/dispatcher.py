"""
Path-based request dispatch for MCP endpoints.

Hosts that serve several OData services under one HTTP surface hand each
request path (and, for execution, its body) to the dispatcher, which
resolves the namespace through the route table and answers from that
namespace's tool batch.
"""
import json
import logging
from typing import Any, Optional, Protocol, Union

from ..core.errors import (
    RouterError,
    ToolNotFoundError,
    UpstreamError,
    ValidationError,
    format_error_response,
)
from ..core.logging import log_with_metadata
from ..core.models import ToolCallResult, ToolDefinition
from ..core.validation import validate_tool_arguments
from ..discovery.manager import NamespaceManager
from ..routing.matcher import RouteMatch
from ..routing.parser import RouteCommand

logger = logging.getLogger(__name__)


class ToolExecutor(Protocol):
    """Runs a validated tool call against the OData service behind a namespace."""

    async def execute(
        self,
        namespace: str,
        tool: ToolDefinition,
        arguments: dict[str, Any],
    ) -> ToolCallResult:
        ...


class UnconfiguredExecutor:
    """Executor used when the host wires no OData backend.

    Every call raises UpstreamError naming the namespace and tool.
    """

    async def execute(
        self,
        namespace: str,
        tool: ToolDefinition,
        arguments: dict[str, Any],
    ) -> ToolCallResult:
        raise UpstreamError(
            f"No OData backend is configured for namespace '{namespace}'; cannot execute '{tool.name}'",
            data={'namespace': namespace, 'tool_name': tool.name}
        )


class McpRequestDispatcher:
    """
    Answers MCP endpoint requests for every registered namespace.

    Responses are plain dictionaries: the namespace info document, a tool
    list, a tool description, a tool call result, or a JSON-RPC error
    response.
    """

    def __init__(self, manager: NamespaceManager, executor: Optional[ToolExecutor] = None):
        self.manager = manager
        self.executor: ToolExecutor = executor or UnconfiguredExecutor()

    async def dispatch(
        self,
        path: str,
        body: Union[str, bytes, dict[str, Any], None] = None,
    ) -> dict[str, Any]:
        """
        Handle one request.

        Args:
            path: Request path such as '/odata/mcp/tools/Products_get'
            body: Request body for tools/execute, as JSON text or a decoded object

        Returns:
            Response dictionary
        """
        match = self.manager.match(path)
        if match is None:
            return format_error_response(
                ToolNotFoundError(f"No MCP route for path '{path}'", data={'path': path})
            )

        try:
            return await self._handle(match, body)
        except RouterError as e:
            log_with_metadata(
                logger, logging.WARNING, f"Request failed: {e.message}",
                {'path': path, 'namespace': match.entry.name, 'code': e.code}
            )
            return format_error_response(e)

    async def _handle(self, match: RouteMatch, body: Any) -> dict[str, Any]:
        name = match.entry.name

        if match.command is RouteCommand.INFO:
            return self.manager.get_namespace_info(name)

        if match.command is RouteCommand.TOOLS:
            result = await self.manager.get_tools(name)
            response: dict[str, Any] = {'tools': [tool.to_dict() for tool in result.tools]}
            if result.truncated:
                response['truncated'] = True
            return response

        if match.command is RouteCommand.TOOL_INFO:
            tool = await self._require_tool(name, match.tool_name)
            return tool.describe()

        if match.command is RouteCommand.TOOLS_EXECUTE:
            tool_name, arguments = _parse_execute_body(body)
            result = await self.execute(name, tool_name, arguments)
            return result.to_dict()

        raise ToolNotFoundError(
            f"Unknown MCP command for namespace '{name}'",
            data={'namespace': name}
        )

    async def _require_tool(self, namespace: str, tool_name: Optional[str]) -> ToolDefinition:
        tool = await self.manager.get_tool(namespace, tool_name) if tool_name else None
        if tool is None:
            raise ToolNotFoundError(
                f"Tool not found: {tool_name}",
                data={'namespace': namespace, 'tool_name': tool_name}
            )
        return tool

    async def execute(
        self,
        namespace: str,
        tool_name: str,
        arguments: Optional[dict[str, Any]],
    ) -> ToolCallResult:
        """
        Validate and run one tool call.

        Raises:
            ToolNotFoundError: If the tool is not in the namespace's batch
            ValidationError: If the arguments do not satisfy the tool's contract
            UpstreamError: If the executor fails
        """
        tool = await self._require_tool(namespace, tool_name)
        arguments = arguments or {}
        validate_tool_arguments(arguments, tool.input_contract)

        try:
            result = await self.executor.execute(namespace, tool, arguments)
        except RouterError:
            raise
        except Exception as e:
            logger.error(f"Executor failed for {tool_name}: {e}", exc_info=True)
            raise UpstreamError(
                f"Tool call failed: {e}",
                data={'namespace': namespace, 'tool_name': tool_name, 'type': type(e).__name__}
            )

        log_with_metadata(
            logger,
            logging.ERROR if result.is_error else logging.INFO,
            f"Tool call {'failed' if result.is_error else 'succeeded'}: {tool_name}",
            {
                'namespace': namespace,
                'tool_name': tool_name,
                'status': 'failure' if result.is_error else 'success',
            }
        )
        return result


def _parse_execute_body(body: Any) -> tuple[str, Optional[dict[str, Any]]]:
    if isinstance(body, (str, bytes)):
        try:
            body = json.loads(body)
        except json.JSONDecodeError as e:
            raise ValidationError(f"Request body is not valid JSON: {e}")

    if not isinstance(body, dict):
        raise ValidationError("Request body must be an object with 'name' and 'arguments'")

    tool_name = body.get('name')
    if not isinstance(tool_name, str) or not tool_name:
        raise ValidationError("Request body must name the tool to execute", data={'field': 'name'})

    arguments = body.get('arguments')
    if arguments is not None and not isinstance(arguments, dict):
        raise ValidationError(
            "'arguments' must be an object",
            data={'actual_type': type(arguments).__name__}
        )
    return tool_name, arguments
