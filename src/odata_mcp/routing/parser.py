"""
Request path parsing for MCP routes.

Paths have the shape '/<prefix>/mcp/<command>'. Parsing never copies
substrings: segments are located with str.find and compared with compiled
patterns over index ranges, and the results are PathSlice index pairs into
the original string. Text is materialized only when a caller asks for it.
"""
import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional


SEPARATOR = '/'

_MCP = re.compile(r'mcp', re.IGNORECASE)
_INFO = re.compile(r'info', re.IGNORECASE)
_TOOLS = re.compile(r'tools', re.IGNORECASE)
_TOOLS_EXECUTE = re.compile(r'tools/execute(?:/.*)?', re.IGNORECASE | re.DOTALL)
_TOOL_INFO = re.compile(r'tools/([^/]+)', re.IGNORECASE)


class RouteCommand(str, Enum):
    """Command addressed by the part of the path after the mcp segment."""

    INFO = "info"
    TOOLS = "tools"
    TOOL_INFO = "tool_info"
    TOOLS_EXECUTE = "tools_execute"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class PathSlice:
    """A [start, stop) range of a source string."""
    source: str
    start: int
    stop: int

    def __len__(self) -> int:
        return self.stop - self.start

    @property
    def is_empty(self) -> bool:
        return self.stop <= self.start

    def text(self) -> str:
        """Materialize the slice."""
        return self.source[self.start:self.stop]

    def __str__(self) -> str:
        return self.text()


@dataclass(frozen=True)
class RouteParts:
    """Result of parsing an MCP request path.

    Attributes:
        source: The original path
        namespace: Route prefix before the mcp segment (empty for the root)
        command: Command after the mcp segment (empty when absent)
    """
    source: str
    namespace: PathSlice
    command: PathSlice


def trim_separators(source: str, start: int, stop: int) -> tuple[int, int]:
    """Shrink a range so it neither starts nor ends with a separator."""
    while start < stop and source[start] == SEPARATOR:
        start += 1
    while stop > start and source[stop - 1] == SEPARATOR:
        stop -= 1
    return start, stop


def find_mcp_segment(path: str, start: int = 0, end: Optional[int] = None) -> int:
    """
    Find the first whole path segment equal to 'mcp' (case-insensitive).

    Returns:
        Index of the segment's first character, or -1 if there is none
    """
    end = len(path) if end is None else end
    pos = start
    while pos < end:
        slash = path.find(SEPARATOR, pos, end)
        segment_end = end if slash < 0 else slash
        if _MCP.fullmatch(path, pos, segment_end):
            return pos
        if slash < 0:
            break
        pos = slash + 1
    return -1


def parse_route(path: Optional[str]) -> Optional[RouteParts]:
    """
    Split an MCP request path into namespace and command slices.

    Args:
        path: Request path, e.g. '/odata/mcp/tools'

    Returns:
        RouteParts, or None if the path has no complete 'mcp' segment

    Examples:
        >>> parts = parse_route('/odata/mcp/tools')
        >>> parts.namespace.text(), parts.command.text()
        ('odata', 'tools')
        >>> parse_route('/odata/mcpx') is None
        True
    """
    if not path:
        return None

    end = len(path)
    start = 1 if path[0] == SEPARATOR else 0

    mcp_at = find_mcp_segment(path, start, end)
    if mcp_at < 0:
        return None

    namespace_start, namespace_stop = trim_separators(path, start, mcp_at)
    command_start, command_stop = trim_separators(path, min(mcp_at + len('mcp'), end), end)

    return RouteParts(
        source=path,
        namespace=PathSlice(path, namespace_start, namespace_stop),
        command=PathSlice(path, command_start, command_stop),
    )


def classify_command(command: PathSlice) -> RouteCommand:
    """
    Classify the command slice of a parsed route.

    An empty command and 'info' address the namespace info, 'tools' the tool
    list, 'tools/execute' the executor and 'tools/<name>' a single tool.
    Matching is case-insensitive.
    """
    if command.is_empty:
        return RouteCommand.INFO

    source, start, stop = command.source, command.start, command.stop
    if _INFO.fullmatch(source, start, stop):
        return RouteCommand.INFO
    if _TOOLS.fullmatch(source, start, stop):
        return RouteCommand.TOOLS
    if _TOOLS_EXECUTE.fullmatch(source, start, stop):
        return RouteCommand.TOOLS_EXECUTE
    if _TOOL_INFO.fullmatch(source, start, stop):
        return RouteCommand.TOOL_INFO
    return RouteCommand.UNKNOWN


def tool_name(command: PathSlice) -> Optional[PathSlice]:
    """Return the <name> slice of a 'tools/<name>' command, else None."""
    if command.is_empty or _TOOLS_EXECUTE.fullmatch(command.source, command.start, command.stop):
        return None
    match = _TOOL_INFO.fullmatch(command.source, command.start, command.stop)
    if match is None:
        return None
    name_start, name_stop = match.span(1)
    return PathSlice(command.source, name_start, name_stop)
