"""
Namespace manager for the OData MCP router.

This module ties configured namespaces to the route table and to their tool
batches: it registers every namespace at startup, publishes the route
snapshot, and loads, parses and generates each namespace's tools on first
use through the tool cache.
"""
import asyncio
import logging
from typing import Any, Iterable, Optional

from odata_mcp.core.config import ServerConfig
from odata_mcp.core.errors import RouterError, ToolNotFoundError
from odata_mcp.core.logging import log_with_metadata
from odata_mcp.core.models import GenerationResult, ToolDefinition
from odata_mcp.discovery.loader import MetadataLoader
from odata_mcp.routing.matcher import RouteMatch, RouteMatcher, RouteTable
from odata_mcp.routing.parser import RouteCommand
from odata_mcp.routing.registry import HostRoute, RouteRegistry, register_host_routes
from odata_mcp.schema.model import SchemaModel
from odata_mcp.schema.parser import MetadataParser
from odata_mcp.tools.cache import ToolCache
from odata_mcp.tools.generator import ToolGenerator


logger = logging.getLogger(__name__)


class NamespaceManager:
    """
    Manages the namespaces served by the router.

    Owns the route registry and route table, and the tool cache whose
    batches are generated from each namespace's metadata document.
    """

    def __init__(
        self,
        config: ServerConfig,
        loader: Optional[MetadataLoader] = None,
        parser: Optional[MetadataParser] = None,
        generator: Optional[ToolGenerator] = None,
    ) -> None:
        """Initialize the namespace manager with configuration.

        Args:
            config: Server configuration containing namespace definitions
            loader: Metadata loader (default: files and inline text only)
            parser: Metadata parser
            generator: Tool generator
        """
        self._config: ServerConfig = config
        self.loader = loader or MetadataLoader()
        self.parser = parser or MetadataParser()
        self.generator = generator or ToolGenerator()
        self.registry = RouteRegistry()
        self.route_table = RouteTable()
        self.cache = ToolCache(self._generate)
        self._models: dict[str, SchemaModel] = {}

    def initialize(self, host_routes: Iterable[HostRoute] = ()) -> RouteMatcher:
        """
        Register every configured namespace and publish the route table.

        Host routes are registered as automatic entries; a configured
        namespace with the same name or prefix takes precedence.

        Returns:
            The published matcher

        Raises:
            RouteConflict: If two configured namespaces collide
        """
        for name, namespace in self._config.namespaces.items():
            metadata: dict[str, Any] = {}
            if namespace.description:
                metadata['description'] = namespace.description
            self.registry.register(
                name=name,
                source_prefix=namespace.prefix,
                mount_path=namespace.mount_path,
                metadata=metadata,
            )

        register_host_routes(self.registry, host_routes)

        matcher = self.route_table.publish(self.registry.entries())
        logger.info(f"Initialization complete: {len(matcher)} namespaces registered")
        return matcher

    def match(self, path: str) -> Optional[RouteMatch]:
        return self.route_table.try_match(path)

    async def _generate(self, name: str) -> GenerationResult:
        namespace = self._config.namespaces.get(name)
        if namespace is None:
            raise ToolNotFoundError(
                f"Namespace '{name}' has no metadata configured",
                data={'namespace': name}
            )

        document = await self.loader.load(namespace)
        model = self.parser.parse(document)
        self._models[name] = model
        return self.generator.generate(model, self._config.generation)

    async def get_tools(self, name: str) -> GenerationResult:
        """
        Get the tool batch for a namespace, generating it on first use.

        Raises:
            ToolNotFoundError: If the namespace is not registered
            RouterError: If loading, parsing or generation fails
        """
        if name not in self.registry:
            raise ToolNotFoundError(f"Unknown namespace '{name}'", data={'namespace': name})
        entry = self.registry.get(name)
        return await self.cache.get(entry.name)

    async def get_tool(self, name: str, tool_name: str) -> Optional[ToolDefinition]:
        """Find one tool in a namespace's batch, or None."""
        result = await self.get_tools(name)
        return result.get_tool(tool_name)

    async def load_namespace(self, name: str) -> dict:
        """
        Load a namespace's tools eagerly.

        Returns:
            Dictionary with:
            - success: bool - Whether load succeeded
            - namespace: str - Namespace name
            - tool_count: int - Number of tools generated (if successful)
            - skipped: int - Number of tools skipped (if successful)
            - truncated: bool - Whether max_tool_count was reached (if successful)
            - error: str - Error message (if failed)
        """
        try:
            result = await self.get_tools(name)
        except RouterError as e:
            logger.error(f"Failed to load namespace '{name}': {e.message}")
            return {"success": False, "namespace": name, "error": e.message}

        return {
            "success": True,
            "namespace": name,
            "tool_count": len(result.tools),
            "skipped": len(result.skipped),
            "truncated": result.truncated,
        }

    async def load_namespaces(self, names: Optional[list[str]] = None) -> dict:
        """
        Load several namespaces concurrently.

        Args:
            names: Namespaces to load (default: every configured namespace)

        Returns:
            Dictionary with:
            - loaded: List[str] - Successfully loaded namespace names
            - failed: List[dict] - Failed loads as {"name": str, "error": str}
        """
        names = list(self._config.namespaces) if names is None else names
        logger.info(f"Loading {len(names)} namespaces: {names}")

        results = await asyncio.gather(*(self.load_namespace(name) for name in names))

        loaded = []
        failed = []
        for name, result in zip(names, results):
            if result.get("success"):
                loaded.append(name)
            else:
                failed.append({"name": name, "error": result.get("error", "Unknown error")})

        logger.info(f"Batch load complete: {len(loaded)} succeeded, {len(failed)} failed")
        return {"loaded": loaded, "failed": failed}

    def _registered_name(self, name: str) -> str:
        # Registry lookups ignore case; cache and model keys use the registered spelling
        entry = self.registry.get(name)
        return entry.name if entry is not None else name

    def invalidate(self, name: str) -> bool:
        """Drop a namespace's cached tools so the next request regenerates them."""
        key = self._registered_name(name)
        self._models.pop(key, None)
        return self.cache.invalidate(key)

    def get_model(self, name: str) -> Optional[SchemaModel]:
        """Parsed schema model of a loaded namespace."""
        return self._models.get(self._registered_name(name))

    def is_loaded(self, name: str) -> bool:
        return self.cache.is_cached(self._registered_name(name))

    def get_loaded_namespaces(self) -> list[str]:
        return self.cache.keys()

    def get_available_namespaces(self) -> list[str]:
        return [entry.name for entry in self.registry.entries()]

    def get_namespace_info(self, name: str) -> dict[str, Any]:
        """
        Describe a registered namespace.

        Raises:
            ToolNotFoundError: If the namespace is not registered
        """
        entry = self.registry.get(name)
        if entry is None:
            raise ToolNotFoundError(f"Unknown namespace '{name}'", data={'namespace': name})

        matcher = self.route_table.matcher
        info: dict[str, Any] = {
            'name': entry.name,
            'prefix': entry.source_prefix,
            'mountPath': entry.mount_path,
            'endpoints': {
                'info': matcher.build_url(entry.source_prefix, RouteCommand.INFO),
                'tools': matcher.build_url(entry.source_prefix, RouteCommand.TOOLS),
                'execute': matcher.build_url(entry.source_prefix, RouteCommand.TOOLS_EXECUTE),
            },
            'loaded': self.is_loaded(entry.name),
        }
        if 'description' in entry.metadata:
            info['description'] = entry.metadata['description']

        cached = self.cache.peek(entry.name)
        if cached is not None:
            info['toolCount'] = len(cached.tools)
            info['truncated'] = cached.truncated
        model = self._models.get(entry.name)
        if model is not None:
            info['schemaNamespaces'] = list(model.namespaces)
            info['warnings'] = [str(w) for w in model.warnings]

        log_with_metadata(logger, logging.DEBUG, "Namespace info requested", {'namespace': entry.name})
        return info
