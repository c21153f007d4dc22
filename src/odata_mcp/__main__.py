"""
Main entry point for the OData MCP router.

This module provides the startup sequence:
1. Load configuration from config.json
2. Register namespaces and publish the route table
3. Generate tools for the served namespace
4. Start MCP server with stdio transport
"""

import asyncio
import sys
import logging
from pathlib import Path
from typing import Optional

from odata_mcp.core.config_parser import load_config, ConfigurationError
from odata_mcp.core.logging import setup_logging, log_with_metadata
from odata_mcp.discovery.manager import NamespaceManager
from odata_mcp.server.dispatcher import McpRequestDispatcher
from odata_mcp.server.server import ODataMcpServer


logger = logging.getLogger(__name__)


async def startup_sequence(config_path: str = "config.json", namespace: Optional[str] = None) -> None:
    """
    Execute the startup sequence for the OData MCP router.

    Args:
        config_path: Path to the configuration file (default: config.json)
        namespace: Namespace to serve over stdio (default: the first configured)

    Raises:
        ConfigurationError: If configuration is invalid
        RuntimeError: If startup fails
    """
    try:
        logger.info("Loading configuration from %s", config_path)
        config = load_config(config_path)
        log_with_metadata(
            logger,
            logging.INFO,
            "Configuration loaded successfully",
            {"namespace_count": len(config.namespaces)}
        )

        manager = NamespaceManager(config)
        manager.initialize()

        if namespace is None:
            namespace = next(iter(config.namespaces))
        elif namespace not in config.namespaces:
            raise ConfigurationError(
                f"Namespace '{namespace}' is not configured",
                data={"available": list(config.namespaces)}
            )

        # Generate eagerly so schema errors surface before the client connects
        result = await manager.get_tools(namespace)
        log_with_metadata(
            logger,
            logging.INFO,
            "Tool generation completed",
            {
                "namespace": namespace,
                "total_tools": len(result.tools),
                "skipped": len(result.skipped),
                "truncated": result.truncated
            }
        )

        server = ODataMcpServer(McpRequestDispatcher(manager), namespace)

        log_with_metadata(
            logger,
            logging.INFO,
            "MCP server started",
            {"transport": "stdio", "namespace": namespace, "tools_available": len(result.tools)}
        )

        await server.run()

    except ConfigurationError as e:
        log_with_metadata(
            logger,
            logging.ERROR,
            "Configuration error during startup",
            {"error": str(e)}
        )
        raise
    except Exception as e:
        log_with_metadata(
            logger,
            logging.ERROR,
            "Unexpected error during startup",
            {"error": str(e), "error_type": type(e).__name__}
        )
        raise RuntimeError(f"Startup failed: {e}") from e


def main() -> None:
    """
    Main entry point for the OData MCP router.

    Usage:
        python -m odata_mcp [config_path] [namespace]
    """
    setup_logging()

    config_path = sys.argv[1] if len(sys.argv) > 1 else "config.json"
    namespace = sys.argv[2] if len(sys.argv) > 2 else None

    if not Path(config_path).exists():
        logger.error("Configuration file not found: %s", config_path)
        sys.exit(1)

    try:
        asyncio.run(startup_sequence(config_path, namespace))
    except KeyboardInterrupt:
        logger.info("Received keyboard interrupt, shutting down")
        sys.exit(0)
    except Exception as e:
        logger.error("Fatal error: %s", e)
        sys.exit(1)


if __name__ == "__main__":
    main()
