"""
Configuration schemas for the OData MCP router.

This module defines the configuration dataclasses for tool generation, the
namespaces served by the router, and the router itself.
"""
from dataclasses import dataclass, field
from string import Formatter
from typing import List, Literal, Optional


NamingConvention = Literal['as_is', 'snake', 'camel', 'pascal', 'kebab']

NAMING_CONVENTIONS: tuple[str, ...] = ('as_is', 'snake', 'camel', 'pascal', 'kebab')

NAMING_PLACEHOLDERS: frozenset[str] = frozenset(
    {'namespace', 'entity_set', 'entity', 'operation', 'target'}
)


@dataclass
class GenerationOptions:
    """Options controlling which tools are generated and how they are named.

    Attributes:
        generate_crud_tools: Emit get/create/update/delete tools per entity set
        generate_query_tools: Emit one query tool per entity set
        generate_navigation_tools: Emit one tool per navigation property
        generate_operation_tools: Emit tools for action/function imports and bound operations
        include_examples: Attach example payloads to each tool
        max_tool_count: Upper bound on tools in a batch (None for unlimited)
        naming_pattern: Template for tool names; placeholders are
            {namespace}, {entity_set}, {entity}, {operation} and {target}
        naming_convention: Case convention applied to the rendered name
        tool_name_prefix: Prepended to every tool name
        tool_name_suffix: Appended to every tool name
        include_entity_types: If non-empty, only these entity types get tools
        exclude_entity_types: Entity types that never get tools
        exclude_binary_fields: Give read tools a default $select without Edm.Binary/Edm.Stream properties
        tool_version: Version string stamped on every tool
    """
    generate_crud_tools: bool = True
    generate_query_tools: bool = True
    generate_navigation_tools: bool = True
    generate_operation_tools: bool = True
    include_examples: bool = True
    max_tool_count: Optional[int] = None
    naming_pattern: str = "{entity_set}_{operation}"
    naming_convention: NamingConvention = 'as_is'
    tool_name_prefix: str = ""
    tool_name_suffix: str = ""
    include_entity_types: List[str] = field(default_factory=list)
    exclude_entity_types: List[str] = field(default_factory=list)
    exclude_binary_fields: bool = True
    tool_version: str = "1.0.0"

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if self.max_tool_count is not None:
            if isinstance(self.max_tool_count, bool) or not isinstance(self.max_tool_count, int):
                raise ValueError("max_tool_count must be an integer or None")
            if self.max_tool_count <= 0:
                raise ValueError("max_tool_count must be positive")
        if not isinstance(self.naming_pattern, str) or not self.naming_pattern.strip():
            raise ValueError("naming_pattern cannot be empty")
        try:
            fields = [name for _, name, _, _ in Formatter().parse(self.naming_pattern) if name is not None]
        except ValueError as e:
            raise ValueError(f"naming_pattern is malformed: {e}")
        for name in fields:
            if name not in NAMING_PLACEHOLDERS:
                raise ValueError(
                    f"Unknown placeholder '{{{name}}}' in naming_pattern. "
                    f"Allowed: {', '.join(sorted(NAMING_PLACEHOLDERS))}"
                )
        if '{operation}' not in self.naming_pattern:
            raise ValueError("naming_pattern must contain the {operation} placeholder")
        if self.naming_convention not in NAMING_CONVENTIONS:
            raise ValueError(
                f"Invalid naming_convention '{self.naming_convention}'. "
                f"Must be one of: {', '.join(NAMING_CONVENTIONS)}"
            )
        if not isinstance(self.include_entity_types, list):
            raise ValueError("include_entity_types must be a list")
        if not isinstance(self.exclude_entity_types, list):
            raise ValueError("exclude_entity_types must be a list")
        if not self.tool_version:
            raise ValueError("tool_version cannot be empty")


@dataclass
class NamespaceConfig:
    """Configuration for one OData service exposed by the router.

    Exactly one metadata source is required: a path to a $metadata document
    or the document text inline.

    Attributes:
        prefix: Route prefix the namespace is served under ('' for the root)
        metadata: Path to the metadata document
        metadata_text: Inline metadata document
        mount_path: Explicit mount path (defaults to '/<prefix>/mcp')
        description: Optional human-readable description shown by the info command
    """
    prefix: str
    metadata: Optional[str] = None
    metadata_text: Optional[str] = None
    mount_path: Optional[str] = None
    description: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if not isinstance(self.prefix, str):
            raise ValueError("prefix must be a string")
        for name in ('metadata', 'metadata_text', 'mount_path', 'description'):
            if not isinstance(getattr(self, name), (str, type(None))):
                raise ValueError(f"{name} must be a string")
        if bool(self.metadata) == bool(self.metadata_text):
            raise ValueError("exactly one of metadata or metadata_text is required")
        if self.mount_path is not None and not self.mount_path.strip('/'):
            raise ValueError("mount_path cannot be empty")


@dataclass
class ServerConfig:
    """Router configuration with the namespaces it serves.

    Attributes:
        namespaces: Dictionary mapping namespace names to their configurations
        generation: Tool generation options shared by all namespaces
    """
    namespaces: dict[str, NamespaceConfig] = field(default_factory=dict)
    generation: GenerationOptions = field(default_factory=GenerationOptions)

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if not self.namespaces:
            raise ValueError("At least one namespace must be configured")
