"""
OData CSDL metadata parser.

Turns an EDMX document into an immutable SchemaModel in two passes:

1. Index every declared EntityType, ComplexType and EnumType name (and every
   schema Alias) across all Schema blocks, rejecting duplicates.
2. Materialize properties, keys, navigation properties, operations and
   containers, resolving type references against the index.

References that cannot be resolved do not fail the parse. The referencing
member is degraded to TypeKind.UNKNOWN and an UnresolvedReferenceWarning is
recorded on the model. Both CSDL v4 and the legacy v2/v3 EDM namespaces are
understood; elements outside the modeled subset (annotations, terms,
vocabulary references) are skipped.
"""
import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field, replace
from pathlib import Path
from types import MappingProxyType
from typing import Optional, Union

from odata_mcp.core.errors import SchemaError, UnresolvedReferenceWarning, ValidationError
from odata_mcp.core.logging import log_with_metadata
from odata_mcp.schema.model import (
    ComplexType,
    EntityContainer,
    EntitySet,
    EntityType,
    EnumType,
    NavigationProperty,
    Operation,
    OperationImport,
    Parameter,
    Property,
    SchemaModel,
    Singleton,
    TypeKind,
)
from odata_mcp.schema.primitives import is_edm_qualified, lookup_primitive


logger = logging.getLogger(__name__)


EDMX_NAMESPACES = frozenset({
    'http://docs.oasis-open.org/odata/ns/edmx',
    'http://schemas.microsoft.com/ado/2007/06/edmx',
})

EDM_NAMESPACES = frozenset({
    'http://docs.oasis-open.org/odata/ns/edm',
    'http://schemas.microsoft.com/ado/2006/04/edm',
    'http://schemas.microsoft.com/ado/2007/05/edm',
    'http://schemas.microsoft.com/ado/2008/01/edm',
    'http://schemas.microsoft.com/ado/2008/09/edm',
    'http://schemas.microsoft.com/ado/2009/11/edm',
})

_DECLARED_KINDS = {
    'EntityType': TypeKind.ENTITY,
    'ComplexType': TypeKind.COMPLEX,
    'EnumType': TypeKind.ENUM,
}


def _split_tag(tag: str) -> tuple[str, str]:
    """Split '{namespace}Local' into ('namespace', 'Local')."""
    if tag.startswith('{'):
        namespace, _, local = tag[1:].partition('}')
        return namespace, local
    return '', tag


def _local(element: ET.Element) -> str:
    return _split_tag(element.tag)[1]


def _children(element: ET.Element, local_name: str) -> list[ET.Element]:
    return [child for child in element if _local(child) == local_name]


def _bool_attr(element: ET.Element, name: str, default: bool) -> bool:
    value = element.get(name)
    if value is None:
        return default
    return value.strip().lower() == 'true'


def _int_attr(element: ET.Element, name: str) -> Optional[int]:
    value = element.get(name)
    if value is None or not value.strip().isdigit():
        return None
    return int(value)


def _unwrap_collection(type_ref: str) -> tuple[str, bool]:
    """Return (element type, is_collection) for 'Collection(NS.T)' or 'NS.T'."""
    type_ref = type_ref.strip()
    if type_ref.startswith('Collection(') and type_ref.endswith(')'):
        return type_ref[len('Collection('):-1].strip(), True
    return type_ref, False


@dataclass
class _ParseContext:
    """Mutable state for a single parse call."""
    declared: dict[str, TypeKind] = field(default_factory=dict)
    aliases: dict[str, str] = field(default_factory=dict)
    associations: dict[str, ET.Element] = field(default_factory=dict)
    warnings: list[UnresolvedReferenceWarning] = field(default_factory=list)

    def qualify(self, name: str) -> str:
        namespace, dot, simple = name.rpartition('.')
        if dot and namespace in self.aliases:
            return f"{self.aliases[namespace]}.{simple}"
        return name

    def warn(self, owner: str, member: str, type_name: str, reason: Optional[str] = None) -> None:
        warning = UnresolvedReferenceWarning(owner, member, type_name, reason)
        self.warnings.append(warning)
        log_with_metadata(
            logger, logging.WARNING, f"Unresolved reference: {warning}",
            {'owner': owner, 'member': member, 'type': type_name}
        )

    def resolve(self, type_ref: str, owner: str, member: str) -> tuple[str, bool, TypeKind]:
        """
        Resolve a type reference.

        Returns:
            (qualified element type name, is_collection, kind); kind is
            UNKNOWN (and a warning recorded) if the reference did not resolve
        """
        element_type, is_collection = _unwrap_collection(type_ref)

        if is_edm_qualified(element_type):
            primitive = lookup_primitive(element_type)
            if primitive is not None:
                return primitive.name, is_collection, TypeKind.PRIMITIVE
            self.warn(owner, member, element_type, f"'{element_type}' is not a known primitive type")
            return element_type, is_collection, TypeKind.UNKNOWN

        qualified = self.qualify(element_type)
        if qualified in self.declared:
            return qualified, is_collection, self.declared[qualified]

        if '.' not in element_type:
            primitive = lookup_primitive(element_type)
            if primitive is not None:
                return primitive.name, is_collection, TypeKind.PRIMITIVE
            matches = [name for name in self.declared if name.rpartition('.')[2] == element_type]
            if len(matches) == 1:
                return matches[0], is_collection, self.declared[matches[0]]

        self.warn(owner, member, element_type)
        return qualified, is_collection, TypeKind.UNKNOWN


class MetadataParser:
    """Parser for OData CSDL ($metadata) documents.

    Stateless between calls; a single instance can be shared.
    """

    def parse(self, text: Union[str, bytes]) -> SchemaModel:
        """
        Parse a metadata document.

        Args:
            text: EDMX document text

        Returns:
            The parsed SchemaModel

        Raises:
            SchemaError: If the document is empty, not well-formed, or not EDMX
            ValidationError: If it declares no schema or container, duplicates
                a type name, or an entity set references an undeclared type
        """
        if not text or not text.strip():
            raise SchemaError("Metadata document is empty")

        try:
            root = ET.fromstring(text)
        except ET.ParseError as e:
            raise SchemaError(
                f"Malformed metadata document: {e}",
                data={'line': e.position[0], 'column': e.position[1]}
            )

        namespace, local = _split_tag(root.tag)
        if local != 'Edmx' or namespace not in EDMX_NAMESPACES:
            raise SchemaError(
                f"Root element must be edmx:Edmx, got '{local}'",
                data={'root': root.tag}
            )

        schemas = [
            element for element in root.iter()
            if _split_tag(element.tag)[1] == 'Schema' and _split_tag(element.tag)[0] in EDM_NAMESPACES
        ]
        if not schemas:
            raise ValidationError("Metadata document declares no Schema")

        context = _ParseContext()
        self._index(schemas, context)

        entity_types: dict[str, EntityType] = {}
        complex_types: dict[str, ComplexType] = {}
        enum_types: dict[str, EnumType] = {}
        containers: dict[str, EntityContainer] = {}
        operations: list[Operation] = []

        for schema in schemas:
            schema_namespace = schema.get('Namespace', '')
            for element in schema:
                kind = _local(element)
                if kind == 'EntityType':
                    entity_type = self._parse_entity_type(element, schema_namespace, context)
                    entity_types[entity_type.qualified_name] = entity_type
                elif kind == 'ComplexType':
                    complex_type = self._parse_complex_type(element, schema_namespace, context)
                    complex_types[complex_type.qualified_name] = complex_type
                elif kind == 'EnumType':
                    enum_type = self._parse_enum_type(element, schema_namespace)
                    enum_types[enum_type.qualified_name] = enum_type
                elif kind in ('Action', 'Function'):
                    operations.append(self._parse_operation(element, schema_namespace, context))
                elif kind == 'EntityContainer':
                    container, legacy_operations = self._parse_container(element, schema_namespace, context)
                    containers[container.qualified_name] = container
                    operations.extend(legacy_operations)
                # Annotations, Terms, TypeDefinitions and Associations are not modeled

        model = SchemaModel(
            version=root.get('Version', '4.0'),
            namespaces=tuple(sorted(s.get('Namespace', '') for s in schemas)),
            aliases=MappingProxyType(dict(sorted(context.aliases.items()))),
            entity_types=MappingProxyType(dict(sorted(entity_types.items()))),
            complex_types=MappingProxyType(dict(sorted(complex_types.items()))),
            enum_types=MappingProxyType(dict(sorted(enum_types.items()))),
            containers=MappingProxyType(dict(sorted(containers.items()))),
            operations=tuple(sorted(operations, key=lambda op: (op.qualified_name, op.bound_type or ''))),
        )

        self._check_keys(model, context)
        model = replace(
            model,
            warnings=tuple(sorted(context.warnings, key=lambda w: (w.owner, w.member, w.type_name, w.reason or "")))
        )

        log_with_metadata(
            logger, logging.DEBUG, "Parsed metadata document",
            {
                'namespaces': list(model.namespaces),
                'entity_types': len(model.entity_types),
                'complex_types': len(model.complex_types),
                'entity_sets': sum(len(c.entity_sets) for c in model.containers.values()),
                'operations': len(model.operations),
                'warnings': len(model.warnings),
            }
        )
        return model

    def _index(self, schemas: list[ET.Element], context: _ParseContext) -> None:
        """First pass: declared type names, aliases and legacy associations."""
        container_count = 0
        for schema in schemas:
            schema_namespace = schema.get('Namespace')
            if not schema_namespace:
                raise ValidationError("Schema element is missing the Namespace attribute")

            alias = schema.get('Alias')
            if alias:
                context.aliases[alias] = schema_namespace

            for element in schema:
                kind = _local(element)
                if kind in _DECLARED_KINDS:
                    name = element.get('Name')
                    if not name:
                        raise ValidationError(f"{kind} in namespace '{schema_namespace}' is missing Name")
                    qualified = f"{schema_namespace}.{name}"
                    if qualified in context.declared:
                        raise ValidationError(
                            f"Duplicate type name '{qualified}'",
                            data={'type': qualified}
                        )
                    context.declared[qualified] = _DECLARED_KINDS[kind]
                elif kind == 'Association':
                    context.associations[f"{schema_namespace}.{element.get('Name', '')}"] = element
                elif kind == 'EntityContainer':
                    container_count += 1

        if container_count == 0:
            raise ValidationError("Metadata document declares no EntityContainer")

    def _parse_properties(
        self,
        element: ET.Element,
        owner: str,
        context: _ParseContext,
        key: tuple[str, ...] = ()
    ) -> tuple[Property, ...]:
        properties = []
        for prop in _children(element, 'Property'):
            name = prop.get('Name', '')
            type_name, is_collection, kind = context.resolve(prop.get('Type', ''), owner, name)
            properties.append(Property(
                name=name,
                type_name=type_name,
                # Key properties are never nullable
                nullable=False if name in key else _bool_attr(prop, 'Nullable', True),
                is_collection=is_collection,
                kind=kind,
                max_length=_int_attr(prop, 'MaxLength'),
                precision=_int_attr(prop, 'Precision'),
                scale=_int_attr(prop, 'Scale'),
                default_value=prop.get('DefaultValue'),
            ))
        return tuple(properties)

    def _parse_navigation(
        self,
        element: ET.Element,
        owner: str,
        context: _ParseContext
    ) -> tuple[NavigationProperty, ...]:
        navigation = []
        for nav in _children(element, 'NavigationProperty'):
            name = nav.get('Name', '')
            if nav.get('Type') is not None:
                target, is_collection, kind = context.resolve(nav.get('Type', ''), owner, name)
                nullable = _bool_attr(nav, 'Nullable', True)
            else:
                target, is_collection, nullable, kind = self._resolve_association(nav, owner, context)

            if kind not in (TypeKind.ENTITY, TypeKind.UNKNOWN):
                context.warn(owner, name, target, f"navigation target '{target}' is not an entity type")
                kind = TypeKind.UNKNOWN

            navigation.append(NavigationProperty(
                name=name,
                target_type=target,
                is_collection=is_collection,
                nullable=nullable,
                partner=nav.get('Partner'),
                contains_target=_bool_attr(nav, 'ContainsTarget', False),
                kind=kind,
            ))
        return tuple(navigation)

    def _resolve_association(
        self,
        nav: ET.Element,
        owner: str,
        context: _ParseContext
    ) -> tuple[str, bool, bool, TypeKind]:
        """Derive (target, is_collection, nullable, kind) from a v2/v3 Association end."""
        name = nav.get('Name', '')
        relationship = context.qualify(nav.get('Relationship', ''))
        association = context.associations.get(relationship)
        to_role = nav.get('ToRole')
        if association is None:
            context.warn(owner, name, relationship, f"association '{relationship}' is not declared")
            return relationship, False, True, TypeKind.UNKNOWN

        for end in _children(association, 'End'):
            if end.get('Role') == to_role:
                target, _, kind = context.resolve(end.get('Type', ''), owner, name)
                multiplicity = end.get('Multiplicity', '1')
                return target, multiplicity == '*', multiplicity != '1', kind

        context.warn(owner, name, relationship, f"association '{relationship}' has no end '{to_role}'")
        return relationship, False, True, TypeKind.UNKNOWN

    def _parse_base_type(self, element: ET.Element, owner: str, context: _ParseContext) -> Optional[str]:
        base = element.get('BaseType')
        if not base:
            return None
        qualified = context.qualify(base)
        if qualified not in context.declared:
            context.warn(owner, 'BaseType', qualified)
        return qualified

    def _parse_entity_type(self, element: ET.Element, namespace: str, context: _ParseContext) -> EntityType:
        name = element.get('Name', '')
        owner = f"{namespace}.{name}"
        key = tuple(
            ref.get('Name', '')
            for key_element in _children(element, 'Key')
            for ref in _children(key_element, 'PropertyRef')
        )
        return EntityType(
            name=name,
            namespace=namespace,
            key=key,
            properties=self._parse_properties(element, owner, context, key),
            navigation_properties=self._parse_navigation(element, owner, context),
            base_type=self._parse_base_type(element, owner, context),
            abstract=_bool_attr(element, 'Abstract', False),
            open_type=_bool_attr(element, 'OpenType', False),
            has_stream=_bool_attr(element, 'HasStream', False),
        )

    def _parse_complex_type(self, element: ET.Element, namespace: str, context: _ParseContext) -> ComplexType:
        name = element.get('Name', '')
        owner = f"{namespace}.{name}"
        return ComplexType(
            name=name,
            namespace=namespace,
            properties=self._parse_properties(element, owner, context),
            navigation_properties=self._parse_navigation(element, owner, context),
            base_type=self._parse_base_type(element, owner, context),
            abstract=_bool_attr(element, 'Abstract', False),
            open_type=_bool_attr(element, 'OpenType', False),
        )

    def _parse_enum_type(self, element: ET.Element, namespace: str) -> EnumType:
        return EnumType(
            name=element.get('Name', ''),
            namespace=namespace,
            members=tuple(member.get('Name', '') for member in _children(element, 'Member')),
            is_flags=_bool_attr(element, 'IsFlags', False),
        )

    def _parse_parameters(self, element: ET.Element, owner: str, context: _ParseContext) -> tuple[Parameter, ...]:
        parameters = []
        for param in _children(element, 'Parameter'):
            name = param.get('Name', '')
            type_name, is_collection, kind = context.resolve(param.get('Type', ''), owner, name)
            parameters.append(Parameter(
                name=name,
                type_name=type_name,
                nullable=_bool_attr(param, 'Nullable', True),
                is_collection=is_collection,
                kind=kind,
            ))
        return tuple(parameters)

    def _parse_return_type(
        self,
        element: ET.Element,
        owner: str,
        context: _ParseContext
    ) -> tuple[Optional[str], bool]:
        return_ref = element.get('ReturnType')
        if return_ref is None:
            return_elements = _children(element, 'ReturnType')
            if return_elements:
                return_ref = return_elements[0].get('Type')
        if not return_ref:
            return None, False
        type_name, is_collection, _ = context.resolve(return_ref, owner, 'ReturnType')
        return type_name, is_collection

    def _parse_operation(self, element: ET.Element, namespace: str, context: _ParseContext) -> Operation:
        name = element.get('Name', '')
        owner = f"{namespace}.{name}"
        return_type, return_is_collection = self._parse_return_type(element, owner, context)
        parameters = self._parse_parameters(element, owner, context)
        is_bound = _bool_attr(element, 'IsBound', False) and bool(parameters)
        if is_bound and parameters[0].kind is not TypeKind.ENTITY:
            context.warn(owner, parameters[0].name, parameters[0].type_name,
                         "binding parameter is not an entity type")
        return Operation(
            kind='action' if _local(element) == 'Action' else 'function',
            name=name,
            namespace=namespace,
            parameters=parameters,
            return_type=return_type,
            return_is_collection=return_is_collection,
            is_bound=is_bound,
            is_composable=_bool_attr(element, 'IsComposable', False),
        )

    def _parse_container(
        self,
        element: ET.Element,
        namespace: str,
        context: _ParseContext
    ) -> tuple[EntityContainer, list[Operation]]:
        name = element.get('Name', '')
        owner = f"{namespace}.{name}"
        entity_sets = []
        singletons = []
        imports = []
        legacy_operations = []

        for child in element:
            kind = _local(child)
            if kind == 'EntitySet':
                set_name = child.get('Name', '')
                type_name = context.qualify(child.get('EntityType', ''))
                if context.declared.get(type_name) is not TypeKind.ENTITY:
                    raise ValidationError(
                        f"Entity set '{set_name}' references undeclared entity type '{type_name}'",
                        data={'entity_set': set_name, 'entity_type': type_name}
                    )
                bindings = tuple(
                    (binding.get('Path', ''), binding.get('Target', ''))
                    for binding in _children(child, 'NavigationPropertyBinding')
                )
                entity_sets.append(EntitySet(name=set_name, entity_type=type_name, navigation_bindings=bindings))
            elif kind == 'Singleton':
                singleton_name = child.get('Name', '')
                type_name, _, _ = context.resolve(child.get('Type', ''), owner, singleton_name)
                singletons.append(Singleton(name=singleton_name, type=type_name))
            elif kind in ('ActionImport', 'FunctionImport'):
                import_name = child.get('Name', '')
                import_kind = 'action' if kind == 'ActionImport' else 'function'
                operation_ref = child.get('Action') or child.get('Function')
                if operation_ref is None:
                    # CSDL v2/v3 imports carry the signature inline
                    operation = self._parse_legacy_import(child, namespace, context)
                    legacy_operations.append(operation)
                    operation_ref = operation.qualified_name
                    import_kind = operation.kind
                imports.append(OperationImport(
                    kind=import_kind,
                    name=import_name,
                    operation=context.qualify(operation_ref),
                    entity_set=child.get('EntitySet'),
                ))

        container = EntityContainer(
            name=name,
            namespace=namespace,
            entity_sets=tuple(sorted(entity_sets, key=lambda s: s.name)),
            singletons=tuple(sorted(singletons, key=lambda s: s.name)),
            operation_imports=tuple(sorted(imports, key=lambda i: i.name)),
        )
        return container, legacy_operations

    def _parse_legacy_import(self, element: ET.Element, namespace: str, context: _ParseContext) -> Operation:
        name = element.get('Name', '')
        owner = f"{namespace}.{name}"
        return_type, return_is_collection = self._parse_return_type(element, owner, context)
        http_method = next(
            (value for attr, value in element.attrib.items() if _split_tag(attr)[1] == 'HttpMethod'),
            'GET'
        )
        return Operation(
            kind='function' if http_method.upper() == 'GET' else 'action',
            name=name,
            namespace=namespace,
            parameters=self._parse_parameters(element, owner, context),
            return_type=return_type,
            return_is_collection=return_is_collection,
            is_bound=False,
        )

    def _check_keys(self, model: SchemaModel, context: _ParseContext) -> None:
        """Record a warning for every entity type whose key names an undeclared property."""
        for entity_type in model.entity_types.values():
            declared = {p.name for p in model.all_properties(entity_type)}
            for key_name in model.key_of(entity_type):
                if key_name not in declared:
                    context.warn(
                        entity_type.qualified_name, key_name, key_name,
                        f"key property '{key_name}' is not declared"
                    )


def parse_metadata(text: Union[str, bytes]) -> SchemaModel:
    """Parse a metadata document with a default MetadataParser."""
    return MetadataParser().parse(text)


def parse_file(path: Union[str, Path]) -> SchemaModel:
    """
    Parse a metadata document from disk.

    Raises:
        OSError: If the file cannot be read
        SchemaError: If the document is not well-formed
        ValidationError: If the document is incomplete
    """
    return MetadataParser().parse(Path(path).read_bytes())
