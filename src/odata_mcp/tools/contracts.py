"""
Input contract construction for generated tools.

Each builder maps part of the schema model (key properties, structural
properties, operation parameters) onto ContractField trees. Builders are
pure functions of the model and options.
"""
from typing import Iterable, Optional, Union

from odata_mcp.core.config import GenerationOptions
from odata_mcp.core.models import ContractField, InputContract
from odata_mcp.schema.model import (
    EntityType,
    NavigationProperty,
    Operation,
    Parameter,
    Property,
    SchemaModel,
    TypeKind,
)
from odata_mcp.schema.primitives import is_binary, lookup_primitive


# Complex types nest at most this deep; deeper levels become untyped objects
MAX_COMPLEX_DEPTH = 3

QUERY_FIELD_NAMES: tuple[str, ...] = ('filter', 'orderby', 'select', 'expand', 'top', 'skip', 'count')


def _typed_field(
    model: SchemaModel,
    name: str,
    type_name: str,
    kind: TypeKind,
    required: bool,
    nullable: bool,
    description: Optional[str],
    max_length: Optional[int] = None,
    depth: int = 0,
) -> ContractField:
    """Build a field for a single (non-collection) value of the given type."""
    if kind is TypeKind.PRIMITIVE:
        primitive = lookup_primitive(type_name)
        return ContractField(
            name=name,
            type=primitive.json_type if primitive else 'string',
            required=required,
            description=description,
            nullable=nullable,
            format=primitive.json_format if primitive else None,
            max_length=max_length if primitive and primitive.json_type == 'string' else None,
        )

    if kind is TypeKind.ENUM:
        enum_type = model.enum_types.get(type_name)
        return ContractField(
            name=name,
            type='string',
            required=required,
            description=description,
            nullable=nullable,
            enum=enum_type.members if enum_type and enum_type.members and not enum_type.is_flags else None,
        )

    if kind in (TypeKind.COMPLEX, TypeKind.ENTITY):
        structured = model.resolve_type(type_name)
        children: tuple[ContractField, ...] = ()
        if structured is not None and depth < MAX_COMPLEX_DEPTH and hasattr(structured, 'properties'):
            children = tuple(
                property_field(model, prop, required=not prop.nullable, depth=depth + 1)
                for prop in model.all_properties(structured)
            )
        return ContractField(
            name=name,
            type='object',
            required=required,
            description=description,
            nullable=nullable,
            children=children,
        )

    # Unresolved references accept their textual form
    return ContractField(
        name=name,
        type='string',
        required=required,
        description=description,
        nullable=nullable,
    )


def property_field(
    model: SchemaModel,
    prop: Property,
    required: bool,
    nullable: Optional[bool] = None,
    depth: int = 0,
) -> ContractField:
    """
    Build the contract field for a structural property.

    Args:
        model: Schema model used to resolve complex and enum types
        prop: Property to describe
        required: Whether the caller must supply the value
        nullable: Override the property's own nullability
        depth: Current complex-type nesting depth
    """
    nullable = prop.nullable if nullable is None else nullable
    description = f"{prop.name} ({prop.type_name})"
    if prop.is_collection:
        element = _typed_field(model, 'item', prop.type_name, prop.kind, False, False, None,
                               prop.max_length, depth)
        return ContractField(
            name=prop.name,
            type='array',
            required=required,
            description=f"{prop.name} (Collection({prop.type_name}))",
            nullable=nullable,
            items=element,
        )
    return _typed_field(model, prop.name, prop.type_name, prop.kind, required, nullable,
                        description, prop.max_length, depth)


def parameter_field(model: SchemaModel, param: Parameter) -> ContractField:
    """Build the contract field for an action or function parameter."""
    as_property = Property(
        name=param.name,
        type_name=param.type_name,
        nullable=param.nullable,
        is_collection=param.is_collection,
        kind=param.kind,
    )
    return property_field(model, as_property, required=not param.nullable)


def query_fields(include_expand: bool, exclude: Iterable[str] = ()) -> list[ContractField]:
    """Standard optional OData query option fields."""
    fields = [
        ContractField('filter', 'string', description="OData $filter expression (e.g., \"Price gt 10\")"),
        ContractField('orderby', 'string', description="OData $orderby clause (e.g., \"Name desc\")"),
        ContractField('select', 'string', description="Comma-separated properties to return"),
    ]
    if include_expand:
        fields.append(ContractField('expand', 'string', description="Comma-separated navigation properties to expand"))
    fields.extend([
        ContractField('top', 'integer', description="Maximum number of results to return", minimum=0),
        ContractField('skip', 'integer', description="Number of results to skip", minimum=0),
        ContractField('count', 'boolean', description="Include the total count of matching results"),
    ])
    excluded = set(exclude)
    return [f for f in fields if f.name not in excluded]


def key_fields(model: SchemaModel, entity_type: EntityType) -> list[ContractField]:
    """Required fields for the resolvable key of an entity type (empty if none)."""
    return [
        property_field(model, prop, required=True, nullable=False)
        for prop in model.key_properties(entity_type)
    ]


def _non_key_properties(model: SchemaModel, entity_type: EntityType) -> list[Property]:
    key = set(model.key_of(entity_type))
    return [prop for prop in model.all_properties(entity_type) if prop.name not in key]


def default_select(model: SchemaModel, entity_type: EntityType, options: GenerationOptions) -> Optional[str]:
    """
    Default $select for read tools that leaves binary and stream properties out.

    Returns None when exclusion is disabled or the entity has no binary
    properties, so reads fall back to the service default.
    """
    if not options.exclude_binary_fields:
        return None
    properties = model.all_properties(entity_type)
    if not any(is_binary(prop.type_name) for prop in properties):
        return None
    return ",".join(prop.name for prop in properties if not is_binary(prop.type_name))


def query_contract(model: SchemaModel, entity_type: EntityType) -> InputContract:
    has_navigation = bool(model.all_navigation_properties(entity_type))
    return InputContract(
        fields=tuple(query_fields(include_expand=has_navigation)),
        description=f"Query options for {entity_type.name}",
    )


def key_contract(model: SchemaModel, entity_type: EntityType) -> InputContract:
    """Contract for get and delete: exactly the key properties, all required."""
    return InputContract(
        fields=tuple(key_fields(model, entity_type)),
        description=f"Key of the {entity_type.name} to address",
    )


def create_contract(model: SchemaModel, entity_type: EntityType) -> InputContract:
    """
    Contract for create: every non-key property.

    A property is required when it is not nullable and has no default value.
    """
    return InputContract(
        fields=tuple(
            property_field(model, prop, required=not prop.nullable and prop.default_value is None)
            for prop in _non_key_properties(model, entity_type)
        ),
        description=f"Properties of the new {entity_type.name}",
    )


def update_contract(model: SchemaModel, entity_type: EntityType) -> InputContract:
    """Contract for update: required key plus every non-key property as optional."""
    fields = key_fields(model, entity_type)
    fields.extend(
        property_field(model, prop, required=False)
        for prop in _non_key_properties(model, entity_type)
    )
    return InputContract(
        fields=tuple(fields),
        description=f"Key of the {entity_type.name} and the properties to change",
    )


def navigation_contract(
    model: SchemaModel,
    entity_type: EntityType,
    navigation: NavigationProperty,
) -> InputContract:
    """Contract for following a navigation property from one source entity."""
    fields = key_fields(model, entity_type)
    if navigation.is_collection:
        target = model.get_entity_type(navigation.target_type)
        include_expand = target is not None and bool(model.all_navigation_properties(target))
        fields.extend(query_fields(include_expand, exclude={f.name for f in fields}))
    return InputContract(
        fields=tuple(fields),
        description=f"Key of the {entity_type.name} whose {navigation.name} to read",
    )


def operation_contract(
    model: SchemaModel,
    operation: Operation,
    bound_entity: Union[EntityType, None] = None,
) -> InputContract:
    """
    Contract for an action or function.

    The binding parameter of a bound operation is replaced by the key of the
    bound entity (or dropped when the operation binds to a collection).
    """
    fields: list[ContractField] = []
    if bound_entity is not None and not operation.binding_is_collection:
        fields.extend(key_fields(model, bound_entity))
    taken = {f.name for f in fields}
    fields.extend(
        parameter_field(model, param)
        for param in operation.unbound_parameters
        if param.name not in taken
    )
    return InputContract(
        fields=tuple(fields),
        description=f"Parameters of {operation.qualified_name}",
    )
