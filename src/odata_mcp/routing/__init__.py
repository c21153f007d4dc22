"""Route registration, parsing and matching for MCP endpoints."""

from .entry import RouteEntry, default_mount_path, normalize_route_path
from .matcher import RouteMatch, RouteMatcher, RouteTable
from .parser import PathSlice, RouteCommand, RouteParts, classify_command, parse_route, tool_name
from .registry import RouteRegistry, register_host_routes

__all__ = [
    'RouteEntry',
    'default_mount_path',
    'normalize_route_path',
    'RouteMatch',
    'RouteMatcher',
    'RouteTable',
    'PathSlice',
    'RouteCommand',
    'RouteParts',
    'classify_command',
    'parse_route',
    'tool_name',
    'RouteRegistry',
    'register_host_routes',
]
