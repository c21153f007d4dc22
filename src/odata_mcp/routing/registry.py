"""
Route entry registry.

Namespaces are registered during startup, explicitly from configuration or
automatically from the host's route list. The registry rejects conflicting
registrations and builds matcher snapshots from what it holds.
"""
import logging
from typing import Any, Iterable, Mapping, Optional, Union

from odata_mcp.core.errors import RouteConflict
from odata_mcp.core.logging import log_with_metadata
from odata_mcp.routing.entry import RouteEntry
from odata_mcp.routing.matcher import RouteMatcher
from odata_mcp.routing.parser import RouteCommand


logger = logging.getLogger(__name__)


HostRoute = Union[str, Mapping[str, Any]]


class RouteRegistry:
    """Accumulates route entries in registration order.

    Names and prefixes are unique, compared case-insensitively. An explicit
    registration replaces an automatic one it collides with; an automatic
    registration never displaces an explicit one.
    """

    def __init__(self) -> None:
        self._entries: dict[str, RouteEntry] = {}

    def register(
        self,
        name: str,
        source_prefix: str = '',
        mount_path: Optional[str] = None,
        metadata: Optional[Mapping[str, Any]] = None,
        is_explicit: bool = True,
    ) -> RouteEntry:
        """
        Register a namespace.

        Args:
            name: Unique namespace name
            source_prefix: Route prefix ('' for the root)
            mount_path: Explicit MCP mount path (defaults to '/<prefix>/mcp')
            metadata: Free-form data kept on the entry
            is_explicit: False for host-discovered routes

        Returns:
            The registered entry (the existing explicit one if an automatic
            registration yielded to it)

        Raises:
            RouteConflict: If the name or normalized prefix is already taken
        """
        entry = RouteEntry(
            name=name,
            source_prefix=source_prefix,
            mount_path=mount_path or '',
            metadata=metadata or {},
            is_explicit=is_explicit,
        )
        return self.add(entry)

    def add(self, entry: RouteEntry) -> RouteEntry:
        """Add a pre-built entry; same conflict rules as register."""
        conflicts = [
            existing for existing in self._entries.values()
            if existing.name.lower() == entry.name.lower()
            or existing.source_prefix.lower() == entry.source_prefix.lower()
        ]

        for existing in conflicts:
            if entry.is_explicit and not existing.is_explicit:
                continue
            if not entry.is_explicit and existing.is_explicit:
                log_with_metadata(
                    logger, logging.DEBUG, "Automatic route yields to explicit registration",
                    {'route': entry.name, 'existing': existing.name}
                )
                return existing
            reason = "name" if existing.name.lower() == entry.name.lower() else "prefix"
            raise RouteConflict(
                f"Route '{entry.name}' conflicts with '{existing.name}' on {reason} "
                f"(prefix '{entry.source_prefix}')",
                data={'name': entry.name, 'existing': existing.name, 'prefix': entry.source_prefix}
            )

        for existing in conflicts:
            del self._entries[existing.name.lower()]

        self._entries[entry.name.lower()] = entry
        log_with_metadata(
            logger, logging.INFO, f"Registered route '{entry.name}'",
            {
                'route': entry.name,
                'prefix': entry.source_prefix,
                'mount_path': entry.mount_path,
                'explicit': entry.is_explicit,
            }
        )
        return entry

    def entries(self) -> tuple[RouteEntry, ...]:
        return tuple(self._entries.values())

    def get(self, name: str) -> Optional[RouteEntry]:
        return self._entries.get(name.lower()) if name else None

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._entries

    def build_matcher(self) -> RouteMatcher:
        """Build a matcher snapshot of the current entries."""
        return RouteMatcher(self.entries())

    def get_mcp_url(self, name: str, command: Optional[RouteCommand] = None) -> Optional[str]:
        """MCP URL of a registered namespace, or None if the name is unknown."""
        entry = self.get(name)
        if entry is None:
            return None
        return RouteMatcher([entry]).build_url(entry.source_prefix, command)


def register_host_routes(registry: RouteRegistry, host_routes: Iterable[HostRoute]) -> list[RouteEntry]:
    """
    Register routes discovered from the hosting application.

    Each host route is either a prefix string or a mapping with 'prefix' and
    optional 'name', 'mountPath' and 'metadata' keys. Entries are registered
    as automatic, so explicit registrations take precedence.

    Args:
        registry: Registry to add to
        host_routes: Routes reported by the host

    Returns:
        Entries now in the registry for each host route
    """
    registered = []
    for route in host_routes:
        if isinstance(route, str):
            prefix = route
            name = route.strip('/') or 'default'
            mount_path = None
            metadata: Mapping[str, Any] = {}
        else:
            prefix = route.get('prefix', '')
            name = route.get('name') or prefix.strip('/') or 'default'
            mount_path = route.get('mountPath')
            metadata = route.get('metadata') or {}
        registered.append(registry.register(
            name=name,
            source_prefix=prefix,
            mount_path=mount_path,
            metadata=metadata,
            is_explicit=False,
        ))
    return registered
