"""
Route matching against a snapshot of registered namespaces.

A RouteMatcher is built once from a set of entries and never changes. The
RouteTable holds the current matcher and replaces it whole on publish, so
request handlers read a consistent snapshot without locking.
"""
import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterable, Mapping, Optional

from odata_mcp.core.errors import RouteConflict
from odata_mcp.core.logging import log_with_metadata
from odata_mcp.routing.entry import RouteEntry, default_mount_path, normalize_route_path
from odata_mcp.routing.parser import (
    PathSlice,
    RouteCommand,
    classify_command,
    parse_route,
    tool_name,
    trim_separators,
)


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RouteMatch:
    """A request path resolved to a namespace and command.

    Attributes:
        entry: The matched namespace registration
        command: Command addressed by the path
        tool_name: Tool name for TOOL_INFO commands, else None
    """
    entry: RouteEntry
    command: RouteCommand
    tool_name: Optional[str] = None


class RouteMatcher:
    """Immutable, case-insensitive lookup tables over route entries."""

    def __init__(self, entries: Iterable[RouteEntry]):
        self._entries: tuple[RouteEntry, ...] = tuple(entries)
        self._root: Optional[RouteEntry] = None

        by_prefix: dict[str, RouteEntry] = {}
        by_mount_path: dict[str, RouteEntry] = {}

        for entry in self._entries:
            prefix = entry.source_prefix.lower()
            if not prefix:
                if self._root is not None:
                    raise RouteConflict(
                        f"Namespaces '{self._root.name}' and '{entry.name}' both claim the root prefix",
                        data={'names': [self._root.name, entry.name]}
                    )
                self._root = entry
            elif prefix in by_prefix:
                raise RouteConflict(
                    f"Namespaces '{by_prefix[prefix].name}' and '{entry.name}' share prefix '{entry.source_prefix}'",
                    data={'names': [by_prefix[prefix].name, entry.name], 'prefix': entry.source_prefix}
                )
            else:
                by_prefix[prefix] = entry
            mount_path = normalize_route_path(entry.mount_path).lower()
            if mount_path in by_mount_path:
                raise RouteConflict(
                    f"Namespaces '{by_mount_path[mount_path].name}' and '{entry.name}' share mount path '{entry.mount_path}'",
                    data={'names': [by_mount_path[mount_path].name, entry.name], 'mount_path': entry.mount_path}
                )
            by_mount_path[mount_path] = entry

        self._by_prefix: Mapping[str, RouteEntry] = MappingProxyType(by_prefix)
        self._by_mount_path: Mapping[str, RouteEntry] = MappingProxyType(by_mount_path)

        # Entries mounted away from '/<prefix>/mcp' also answer on their mount path
        self._by_custom_mount: Mapping[str, RouteEntry] = MappingProxyType({
            mount_path: entry for mount_path, entry in by_mount_path.items()
            if mount_path != normalize_route_path(default_mount_path(entry.source_prefix)).lower()
        })

    def try_match(self, path: Optional[str]) -> Optional[RouteMatch]:
        """
        Resolve a request path.

        Args:
            path: Request path such as '/odata/mcp/tools'

        Returns:
            RouteMatch, or None if the path is not an MCP route or its
            prefix is not registered
        """
        if not path:
            return None

        resolved = self._match_prefix(path) or self._match_mount_path(path)
        if resolved is None:
            return None
        entry, command_slice = resolved

        command = classify_command(command_slice)
        name = None
        if command is RouteCommand.TOOL_INFO:
            name_slice = tool_name(command_slice)
            name = name_slice.text() if name_slice is not None else None
        return RouteMatch(entry=entry, command=command, tool_name=name)

    def _match_prefix(self, path: str) -> Optional[tuple[RouteEntry, PathSlice]]:
        parts = parse_route(path)
        if parts is None:
            return None

        namespace = parts.namespace
        if namespace.is_empty:
            entry = self._root
        else:
            # The namespace slice is materialized once, as the lookup key
            entry = self._by_prefix.get(namespace.text().lower())

        return (entry, parts.command) if entry is not None else None

    def _match_mount_path(self, path: str) -> Optional[tuple[RouteEntry, PathSlice]]:
        if not self._by_custom_mount:
            return None

        start, stop = trim_separators(path, 0, len(path))
        # Candidate mount paths end on segment boundaries; longest first so nested mounts win
        end = stop
        while end > start:
            entry = self._by_custom_mount.get(path[start:end].lower())
            if entry is not None:
                command_start, command_stop = trim_separators(path, end, stop)
                return entry, PathSlice(path, command_start, command_stop)
            end = path.rfind('/', start, end)
        return None

    def get_by_prefix(self, prefix: Optional[str]) -> Optional[RouteEntry]:
        normalized = normalize_route_path(prefix)
        if not normalized:
            return self._root
        return self._by_prefix.get(normalized.lower())

    def get_by_mount_path(self, mount_path: Optional[str]) -> Optional[RouteEntry]:
        return self._by_mount_path.get(normalize_route_path(mount_path).lower())

    def entries(self) -> tuple[RouteEntry, ...]:
        """All entries in registration order."""
        return self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def build_url(
        self,
        prefix: Optional[str],
        command: Optional[RouteCommand] = None,
        tool: Optional[str] = None,
    ) -> Optional[str]:
        """
        Build the MCP URL for a registered prefix.

        Args:
            prefix: Route prefix of the namespace
            command: Command to address (None for the info endpoint)
            tool: Tool name for TOOL_INFO

        Returns:
            The URL path, or None if the prefix is not registered

        Examples:
            >>> matcher = RouteMatcher([RouteEntry('catalog', 'odata')])
            >>> matcher.build_url('odata', RouteCommand.TOOLS)
            '/odata/mcp/tools'
            >>> matcher.build_url('missing') is None
            True
        """
        entry = self.get_by_prefix(prefix)
        if entry is None:
            return None

        base = entry.mount_path.rstrip('/')
        if command is RouteCommand.TOOLS:
            return f"{base}/tools"
        if command is RouteCommand.TOOLS_EXECUTE:
            return f"{base}/tools/execute"
        if command is RouteCommand.TOOL_INFO and tool:
            return f"{base}/tools/{tool}"
        return base


class RouteTable:
    """Holds the current RouteMatcher snapshot.

    Readers call matcher (or try_match) without locking; publish builds a
    complete new matcher before replacing the reference in one assignment.
    """

    def __init__(self, entries: Iterable[RouteEntry] = ()):
        self._matcher = RouteMatcher(entries)

    @property
    def matcher(self) -> RouteMatcher:
        return self._matcher

    def publish(self, entries: Iterable[RouteEntry]) -> RouteMatcher:
        """
        Replace the snapshot with one built from the given entries.

        Raises:
            RouteConflict: If the entries conflict; the previous snapshot stays active
        """
        matcher = RouteMatcher(entries)
        self._matcher = matcher
        log_with_metadata(
            logger, logging.INFO, "Published route table",
            {'routes': [entry.name for entry in matcher.entries()]}
        )
        return matcher

    def try_match(self, path: Optional[str]) -> Optional[RouteMatch]:
        return self._matcher.try_match(path)
