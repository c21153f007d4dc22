"""
Tool definition and input contract models for the OData MCP router.

This module defines the data models for tools generated from an OData
schema, the typed input contracts describing their arguments, and the
result shapes exchanged with tool executors.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class OperationKind(str, Enum):
    """The kind of operation a generated tool performs."""

    QUERY = "query"
    GET = "get"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    NAVIGATION = "navigate"
    ACTION = "action"
    FUNCTION = "function"

    @property
    def is_crud(self) -> bool:
        return self in (OperationKind.GET, OperationKind.CREATE, OperationKind.UPDATE, OperationKind.DELETE)


# Emission order of entity-set tools within one entity set
ENTITY_SET_OPERATIONS: tuple[OperationKind, ...] = (
    OperationKind.QUERY,
    OperationKind.GET,
    OperationKind.CREATE,
    OperationKind.UPDATE,
    OperationKind.DELETE,
)


@dataclass(frozen=True)
class ContractField:
    """One typed field of a tool input contract.

    Attributes:
        name: Field name as the caller sends it
        type: JSON type ('string', 'integer', 'number', 'boolean', 'array', 'object')
        required: Whether the caller must supply the field
        description: Human-readable description
        nullable: Whether null is accepted
        format: Optional JSON Schema format hint
        enum: Allowed values, for enumeration types
        items: Element field for type='array'
        children: Member fields for type='object'
        max_length: Optional maxLength for strings
        minimum: Optional lower bound for numbers
        default: Optional default value
    """
    name: str
    type: str
    required: bool = False
    description: Optional[str] = None
    nullable: bool = False
    format: Optional[str] = None
    enum: Optional[tuple[str, ...]] = None
    items: Optional['ContractField'] = None
    children: tuple['ContractField', ...] = ()
    max_length: Optional[int] = None
    minimum: Optional[int] = None
    default: Optional[Any] = None

    def to_json_schema(self) -> dict[str, Any]:
        """Render this field as a JSON Schema property."""
        result: dict[str, Any] = {'type': [self.type, 'null'] if self.nullable else self.type}

        if self.description is not None:
            result['description'] = self.description

        if self.format is not None:
            result['format'] = self.format

        if self.enum is not None:
            result['enum'] = list(self.enum)

        if self.max_length is not None:
            result['maxLength'] = self.max_length

        if self.minimum is not None:
            result['minimum'] = self.minimum

        if self.default is not None:
            result['default'] = self.default

        if self.items is not None:
            result['items'] = self.items.to_json_schema()

        if self.type == 'object' and self.children:
            result['properties'] = {child.name: child.to_json_schema() for child in self.children}
            required = [child.name for child in self.children if child.required]
            if required:
                result['required'] = required

        return result


@dataclass(frozen=True)
class InputContract:
    """Typed description of the arguments a tool accepts.

    Attributes:
        fields: Top-level fields in declaration order
        description: Optional description of the argument object
    """
    fields: tuple[ContractField, ...] = ()
    description: Optional[str] = None

    def __post_init__(self) -> None:
        names = [f.name for f in self.fields]
        if len(names) != len(set(names)):
            raise ValueError(f"Duplicate field names in input contract: {names}")

    def required_names(self) -> tuple[str, ...]:
        return tuple(f.name for f in self.fields if f.required)

    def field_names(self) -> tuple[str, ...]:
        return tuple(f.name for f in self.fields)

    def get_field(self, name: str) -> Optional[ContractField]:
        for contract_field in self.fields:
            if contract_field.name == name:
                return contract_field
        return None

    def to_json_schema(self) -> dict[str, Any]:
        """Convert the contract to a JSON Schema object definition."""
        result: dict[str, Any] = {
            'type': 'object',
            'properties': {f.name: f.to_json_schema() for f in self.fields},
            'additionalProperties': False,
        }
        required = list(self.required_names())
        if required:
            result['required'] = required
        if self.description is not None:
            result['description'] = self.description
        return result


@dataclass(frozen=True)
class ToolExample:
    """An example invocation of a tool.

    Attributes:
        title: Short title of the example
        payload: Example argument object
        description: Optional longer explanation
    """
    title: str
    payload: dict[str, Any]
    description: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {'title': self.title, 'input': self.payload}
        if self.description is not None:
            result['description'] = self.description
        return result


@dataclass(frozen=True)
class ToolDefinition:
    """A generated, callable tool.

    Attributes:
        name: Tool name, unique within its batch
        description: Tool description shown to clients
        input_contract: Typed description of accepted arguments
        operation_kind: What the tool does
        target_entity_set: Entity set the tool operates on, if any
        target_entity_type: Qualified entity type the tool operates on, if any
        examples: Example invocations
        category: Grouping label ('Query', 'CRUD', 'Navigation', 'Operation')
        version: Tool version string
        metadata: Extra details for executors (navigation property, operation name, ...)
    """
    name: str
    description: str
    input_contract: InputContract
    operation_kind: OperationKind
    target_entity_set: Optional[str] = None
    target_entity_type: Optional[str] = None
    examples: tuple[ToolExample, ...] = ()
    category: str = "General"
    version: str = "1.0.0"
    metadata: dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    def to_dict(self) -> dict[str, Any]:
        """Convert the tool to its protocol representation."""
        return {
            'name': self.name,
            'description': self.description,
            'inputSchema': self.input_contract.to_json_schema()
        }

    def describe(self) -> dict[str, Any]:
        """Detailed representation including examples and targeting."""
        result = self.to_dict()
        result['operation'] = self.operation_kind.value
        result['category'] = self.category
        result['version'] = self.version
        if self.target_entity_set is not None:
            result['entitySet'] = self.target_entity_set
        if self.target_entity_type is not None:
            result['entityType'] = self.target_entity_type
        if self.examples:
            result['examples'] = [example.to_dict() for example in self.examples]
        return result

    def get_parameter_names(self) -> list[str]:
        return list(self.input_contract.field_names())


@dataclass(frozen=True)
class SkippedTool:
    """A tool the generator declined to emit.

    Attributes:
        name: Tool name, when one was derived before skipping
        entity: Qualified entity type or operation the skip relates to
        reason: Why the tool was skipped
        kind: Operation kind that was skipped
    """
    name: Optional[str]
    entity: str
    reason: str
    kind: OperationKind


@dataclass(frozen=True)
class GenerationResult:
    """Output of one tool generation run.

    Attributes:
        tools: Generated tools in deterministic order
        skipped: Tools that were not generated, with reasons
        truncated: True if generation stopped at max_tool_count
    """
    tools: tuple[ToolDefinition, ...] = ()
    skipped: tuple[SkippedTool, ...] = ()
    truncated: bool = False

    def __len__(self) -> int:
        return len(self.tools)

    def names(self) -> list[str]:
        return [tool.name for tool in self.tools]

    def get_tool(self, name: str) -> Optional[ToolDefinition]:
        for tool in self.tools:
            if tool.name == name:
                return tool
        return None


@dataclass
class ContentItem:
    """Content item in tool call result.

    Attributes:
        type: Content type ('text' or 'resource')
        text: Text content (for type='text')
        uri: Resource URI (for type='resource')
        mime_type: Optional MIME type
    """
    type: str
    text: Optional[str] = None
    uri: Optional[str] = None
    mime_type: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {'type': self.type}

        if self.text is not None:
            result['text'] = self.text
        if self.uri is not None:
            result['uri'] = self.uri
        if self.mime_type is not None:
            result['mimeType'] = self.mime_type

        return result


@dataclass
class ToolCallResult:
    """Result from tool execution.

    Attributes:
        content: List of content items in the result
        is_error: Whether the result represents an error
    """
    content: list[ContentItem]
    is_error: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            'content': [item.to_dict() for item in self.content],
            'isError': self.is_error
        }
