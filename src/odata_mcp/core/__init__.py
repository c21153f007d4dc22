"""Core data models, configuration and errors for the OData MCP router."""

from .config import GenerationOptions, NamespaceConfig, ServerConfig
from .config_parser import load_config, parse_config
from .errors import (
    RouterError,
    SchemaError,
    ValidationError,
    NamingConflict,
    RouteConflict,
    ConfigurationError,
    ToolNotFoundError,
    UpstreamError,
    UnresolvedReferenceWarning,
    format_error_response,
)
from .models import (
    ContractField,
    InputContract,
    OperationKind,
    ToolExample,
    ToolDefinition,
    SkippedTool,
    GenerationResult,
    ContentItem,
    ToolCallResult,
)
from .logging import (
    LogEntry,
    JSONFormatter,
    setup_logging,
    log_with_metadata,
)

__all__ = [
    'GenerationOptions',
    'NamespaceConfig',
    'ServerConfig',
    'load_config',
    'parse_config',
    'RouterError',
    'SchemaError',
    'ValidationError',
    'NamingConflict',
    'RouteConflict',
    'ConfigurationError',
    'ToolNotFoundError',
    'UpstreamError',
    'UnresolvedReferenceWarning',
    'format_error_response',
    'ContractField',
    'InputContract',
    'OperationKind',
    'ToolExample',
    'ToolDefinition',
    'SkippedTool',
    'GenerationResult',
    'ContentItem',
    'ToolCallResult',
    'LogEntry',
    'JSONFormatter',
    'setup_logging',
    'log_with_metadata',
]
