"""
Schema model for parsed OData metadata.

These are passive, immutable structures produced by the metadata parser.
Cross-references between types (base types, navigation targets, entity set
types, operation bindings) are stored by qualified name only and resolved on
demand through SchemaModel lookups, so cyclic navigation graphs never become
object reference cycles.
"""
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Iterator, Mapping, Optional, Union

from odata_mcp.core.errors import UnresolvedReferenceWarning


class TypeKind(str, Enum):
    """What a referenced type name resolved to."""

    PRIMITIVE = "primitive"
    COMPLEX = "complex"
    ENUM = "enum"
    ENTITY = "entity"
    UNKNOWN = "unknown"


def _frozen_mapping(items: Optional[Mapping] = None) -> Mapping:
    return MappingProxyType(dict(items or {}))


@dataclass(frozen=True)
class Property:
    """A structural property of an entity or complex type.

    Attributes:
        name: Property name
        type_name: Qualified element type name ('Edm.Int32', 'NS.Address');
            for collections this is the element type, not 'Collection(...)'
        nullable: Whether null is an allowed value
        is_collection: Whether the property holds a collection of type_name
        kind: What type_name resolved to (UNKNOWN if it did not resolve)
        max_length: Optional MaxLength facet
        precision: Optional Precision facet
        scale: Optional Scale facet
        default_value: Optional DefaultValue facet
    """
    name: str
    type_name: str
    nullable: bool = True
    is_collection: bool = False
    kind: TypeKind = TypeKind.PRIMITIVE
    max_length: Optional[int] = None
    precision: Optional[int] = None
    scale: Optional[int] = None
    default_value: Optional[str] = None

    @property
    def is_resolved(self) -> bool:
        return self.kind is not TypeKind.UNKNOWN


@dataclass(frozen=True)
class NavigationProperty:
    """A typed relationship to another entity type (or a collection of them).

    Attributes:
        name: Navigation property name
        target_type: Qualified name of the target entity type
        is_collection: True for many-valued relationships
        nullable: Whether a single-valued relationship may be absent
        partner: Name of the inverse navigation property on the target, if any
        contains_target: Whether the target is contained in the source
        kind: ENTITY when the target resolved, UNKNOWN otherwise
    """
    name: str
    target_type: str
    is_collection: bool = False
    nullable: bool = True
    partner: Optional[str] = None
    contains_target: bool = False
    kind: TypeKind = TypeKind.ENTITY

    @property
    def is_resolved(self) -> bool:
        return self.kind is not TypeKind.UNKNOWN


@dataclass(frozen=True)
class EntityType:
    """An entity type declaration.

    Attributes:
        name: Simple name
        namespace: Declaring schema namespace
        key: Ordered key property names as declared (may be inherited if empty)
        properties: Declared structural properties (declaration order)
        navigation_properties: Declared navigation properties (declaration order)
        base_type: Qualified name of the base entity type, if any
        abstract: Whether the type is abstract
        open_type: Whether the type allows dynamic properties
        has_stream: Whether the entity is a media entity
    """
    name: str
    namespace: str
    key: tuple[str, ...] = ()
    properties: tuple[Property, ...] = ()
    navigation_properties: tuple[NavigationProperty, ...] = ()
    base_type: Optional[str] = None
    abstract: bool = False
    open_type: bool = False
    has_stream: bool = False

    @property
    def qualified_name(self) -> str:
        return f"{self.namespace}.{self.name}"

    def get_property(self, name: str) -> Optional[Property]:
        for prop in self.properties:
            if prop.name == name:
                return prop
        return None

    def get_navigation_property(self, name: str) -> Optional[NavigationProperty]:
        for nav in self.navigation_properties:
            if nav.name == name:
                return nav
        return None


@dataclass(frozen=True)
class ComplexType:
    """A structured type without a key."""
    name: str
    namespace: str
    properties: tuple[Property, ...] = ()
    navigation_properties: tuple[NavigationProperty, ...] = ()
    base_type: Optional[str] = None
    abstract: bool = False
    open_type: bool = False

    @property
    def qualified_name(self) -> str:
        return f"{self.namespace}.{self.name}"

    def get_property(self, name: str) -> Optional[Property]:
        for prop in self.properties:
            if prop.name == name:
                return prop
        return None


@dataclass(frozen=True)
class EnumType:
    """An enumeration type; members keep declaration order."""
    name: str
    namespace: str
    members: tuple[str, ...] = ()
    is_flags: bool = False

    @property
    def qualified_name(self) -> str:
        return f"{self.namespace}.{self.name}"


@dataclass(frozen=True)
class EntitySet:
    """A named, queryable collection of one entity type.

    Attributes:
        name: Entity set name
        entity_type: Qualified name of the entity type it instantiates
        navigation_bindings: (path, target) pairs from NavigationPropertyBinding
    """
    name: str
    entity_type: str
    navigation_bindings: tuple[tuple[str, str], ...] = ()

    def binding_target(self, path: str) -> Optional[str]:
        for binding_path, target in self.navigation_bindings:
            if binding_path == path:
                return target
        return None


@dataclass(frozen=True)
class Singleton:
    """A single addressable entity in a container."""
    name: str
    type: str


@dataclass(frozen=True)
class Parameter:
    """A parameter of an action or function."""
    name: str
    type_name: str
    nullable: bool = True
    is_collection: bool = False
    kind: TypeKind = TypeKind.PRIMITIVE


@dataclass(frozen=True)
class Operation:
    """An action or function declaration.

    For bound operations the first parameter is the binding parameter and
    its type is the bound entity type.
    """
    kind: str  # 'action' or 'function'
    name: str
    namespace: str
    parameters: tuple[Parameter, ...] = ()
    return_type: Optional[str] = None
    return_is_collection: bool = False
    is_bound: bool = False
    is_composable: bool = False

    @property
    def qualified_name(self) -> str:
        return f"{self.namespace}.{self.name}"

    @property
    def bound_type(self) -> Optional[str]:
        if self.is_bound and self.parameters:
            return self.parameters[0].type_name
        return None

    @property
    def binding_is_collection(self) -> bool:
        return bool(self.is_bound and self.parameters and self.parameters[0].is_collection)

    @property
    def unbound_parameters(self) -> tuple[Parameter, ...]:
        """Parameters excluding the binding parameter."""
        return self.parameters[1:] if self.is_bound else self.parameters


@dataclass(frozen=True)
class OperationImport:
    """An ActionImport or FunctionImport exposing an unbound operation."""
    kind: str
    name: str
    operation: str
    entity_set: Optional[str] = None


@dataclass(frozen=True)
class EntityContainer:
    """A container owning entity sets, singletons and operation imports."""
    name: str
    namespace: str
    entity_sets: tuple[EntitySet, ...] = ()
    singletons: tuple[Singleton, ...] = ()
    operation_imports: tuple[OperationImport, ...] = ()

    @property
    def qualified_name(self) -> str:
        return f"{self.namespace}.{self.name}"

    def get_entity_set(self, name: str) -> Optional[EntitySet]:
        for entity_set in self.entity_sets:
            if entity_set.name == name:
                return entity_set
        return None


StructuredType = Union[EntityType, ComplexType]


@dataclass(frozen=True)
class SchemaModel:
    """Root of a parsed metadata document.

    All type tables are flat, keyed by qualified name and ordered by that
    name, so two structurally equivalent documents compare equal regardless
    of declaration order.
    """
    version: str = "4.0"
    namespaces: tuple[str, ...] = ()
    aliases: Mapping[str, str] = field(default_factory=_frozen_mapping)
    entity_types: Mapping[str, EntityType] = field(default_factory=_frozen_mapping)
    complex_types: Mapping[str, ComplexType] = field(default_factory=_frozen_mapping)
    enum_types: Mapping[str, EnumType] = field(default_factory=_frozen_mapping)
    containers: Mapping[str, EntityContainer] = field(default_factory=_frozen_mapping)
    operations: tuple[Operation, ...] = ()
    warnings: tuple[UnresolvedReferenceWarning, ...] = ()

    def qualify(self, type_name: str) -> str:
        """Rewrite an alias-qualified name to its namespace-qualified form."""
        namespace, dot, name = type_name.rpartition('.')
        if dot and namespace in self.aliases:
            return f"{self.aliases[namespace]}.{name}"
        return type_name

    def get_entity_type(self, type_name: str) -> Optional[EntityType]:
        return self.entity_types.get(self.qualify(type_name))

    def get_complex_type(self, type_name: str) -> Optional[ComplexType]:
        return self.complex_types.get(self.qualify(type_name))

    def resolve_type(self, type_name: str) -> Optional[Union[EntityType, ComplexType, EnumType]]:
        """Resolve a declared type by qualified, alias-qualified or unique simple name."""
        qualified = self.qualify(type_name)
        for table in (self.entity_types, self.complex_types, self.enum_types):
            if qualified in table:
                return table[qualified]
        if '.' not in type_name:
            matches = [
                t for table in (self.entity_types, self.complex_types, self.enum_types)
                for t in table.values() if t.name == type_name
            ]
            if len(matches) == 1:
                return matches[0]
        return None

    def iter_entity_sets(self) -> Iterator[tuple[EntityContainer, EntitySet]]:
        """Yield (container, entity set) pairs in namespace, container, set order."""
        for container in self.containers.values():
            for entity_set in container.entity_sets:
                yield container, entity_set

    def find_entity_set(self, name: str) -> Optional[EntitySet]:
        for _, entity_set in self.iter_entity_sets():
            if entity_set.name == name:
                return entity_set
        return None

    def entity_set_for_type(self, type_name: str) -> Optional[EntitySet]:
        """First entity set instantiating the given entity type."""
        qualified = self.qualify(type_name)
        for _, entity_set in self.iter_entity_sets():
            if entity_set.entity_type == qualified:
                return entity_set
        return None

    def base_chain(self, entity_type: StructuredType) -> list[StructuredType]:
        """Return the type followed by its ancestors, stopping on cycles or unknown bases."""
        chain: list[StructuredType] = [entity_type]
        seen = {entity_type.qualified_name}
        current = entity_type
        while current.base_type:
            if isinstance(current, EntityType):
                parent = self.get_entity_type(current.base_type)
            else:
                parent = self.get_complex_type(current.base_type)
            if parent is None or parent.qualified_name in seen:
                break
            chain.append(parent)
            seen.add(parent.qualified_name)
            current = parent
        return chain

    def all_properties(self, entity_type: StructuredType) -> list[Property]:
        """Structural properties including inherited ones, base type first."""
        properties: list[Property] = []
        for declaring in reversed(self.base_chain(entity_type)):
            properties.extend(declaring.properties)
        return properties

    def all_navigation_properties(self, entity_type: StructuredType) -> list[NavigationProperty]:
        navigation: list[NavigationProperty] = []
        for declaring in reversed(self.base_chain(entity_type)):
            navigation.extend(declaring.navigation_properties)
        return navigation

    def key_of(self, entity_type: EntityType) -> tuple[str, ...]:
        """Declared key of the type or of its nearest keyed ancestor."""
        for declaring in self.base_chain(entity_type):
            if isinstance(declaring, EntityType) and declaring.key:
                return declaring.key
        return ()

    def key_properties(self, entity_type: EntityType) -> list[Property]:
        """
        Resolve the effective key to its properties.

        Returns an empty list when the key is missing, names an undeclared
        property, or a key property has an unresolved type.
        """
        key = self.key_of(entity_type)
        if not key:
            return []
        by_name = {p.name: p for p in self.all_properties(entity_type)}
        resolved = []
        for name in key:
            prop = by_name.get(name)
            if prop is None or not prop.is_resolved:
                return []
            resolved.append(prop)
        return resolved

    def bound_operations(self, type_name: str) -> list[Operation]:
        qualified = self.qualify(type_name)
        return [op for op in self.operations if op.is_bound and op.bound_type == qualified]

    def find_operation(self, qualified_name: str, unbound_only: bool = True) -> Optional[Operation]:
        qualified = self.qualify(qualified_name)
        for op in self.operations:
            if op.qualified_name == qualified and (not unbound_only or not op.is_bound):
                return op
        return None
