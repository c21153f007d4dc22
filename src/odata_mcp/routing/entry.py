"""
Route entries.

A RouteEntry binds a namespace name to the route prefix its OData service is
served under and the mount path of its MCP endpoint.
"""
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, Optional


MCP_SEGMENT = 'mcp'


def normalize_route_path(path: Optional[str]) -> str:
    """
    Normalize a route path for comparison.

    Surrounding whitespace and slashes are removed; blank paths normalize to ''.

    Examples:
        >>> normalize_route_path('/api/v1/')
        'api/v1'
        >>> normalize_route_path(None)
        ''
    """
    if path is None or not path.strip():
        return ''
    return path.strip().strip('/')


def default_mount_path(source_prefix: str) -> str:
    """
    Default MCP mount path for a route prefix.

    Examples:
        >>> default_mount_path('odata')
        '/odata/mcp'
        >>> default_mount_path('')
        '/mcp'
    """
    normalized = normalize_route_path(source_prefix)
    if not normalized:
        return f'/{MCP_SEGMENT}'
    return f'/{normalized}/{MCP_SEGMENT}'


@dataclass(frozen=True)
class RouteEntry:
    """An immutable namespace registration.

    Attributes:
        name: Unique namespace name
        source_prefix: Normalized route prefix ('' for the root)
        mount_path: Path the MCP endpoint is mounted at
        metadata: Read-only free-form data (description, metadata location, ...)
        is_explicit: False for entries discovered from host routes
    """
    name: str
    source_prefix: str = ''
    mount_path: str = ''
    metadata: Mapping[str, Any] = field(default_factory=dict, compare=False, hash=False)
    is_explicit: bool = True

    def __post_init__(self) -> None:
        """Normalize the prefix, default the mount path and freeze metadata."""
        if not self.name or not self.name.strip():
            raise ValueError("Route name cannot be empty")
        object.__setattr__(self, 'source_prefix', normalize_route_path(self.source_prefix))
        if not normalize_route_path(self.mount_path):
            object.__setattr__(self, 'mount_path', default_mount_path(self.source_prefix))
        else:
            object.__setattr__(self, 'mount_path', '/' + normalize_route_path(self.mount_path))
        object.__setattr__(self, 'metadata', MappingProxyType(dict(self.metadata or {})))

    @property
    def is_root(self) -> bool:
        return self.source_prefix == ''

    def to_dict(self) -> dict[str, Any]:
        return {
            'name': self.name,
            'prefix': self.source_prefix,
            'mountPath': self.mount_path,
            'isExplicit': self.is_explicit,
            'metadata': dict(self.metadata),
        }
