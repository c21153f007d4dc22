"""
Tool generator.

Walks a SchemaModel and emits one ToolDefinition per (entity set, operation
kind) pair, per navigation property, and per action or function. Output is
deterministic: the same model and options always produce the same ordered
batch, and generation stops at max_tool_count.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from odata_mcp.core.config import GenerationOptions
from odata_mcp.core.errors import NamingConflict
from odata_mcp.core.logging import log_with_metadata
from odata_mcp.core.models import (
    ENTITY_SET_OPERATIONS,
    GenerationResult,
    InputContract,
    OperationKind,
    SkippedTool,
    ToolDefinition,
)
from odata_mcp.schema.model import (
    EntitySet,
    EntityType,
    NavigationProperty,
    Operation,
    SchemaModel,
    TypeKind,
)
from odata_mcp.tools import contracts
from odata_mcp.tools.examples import build_examples
from odata_mcp.tools.naming import render_tool_name


logger = logging.getLogger(__name__)


_HTTP_METHODS: dict[OperationKind, str] = {
    OperationKind.QUERY: 'GET',
    OperationKind.GET: 'GET',
    OperationKind.CREATE: 'POST',
    OperationKind.UPDATE: 'PATCH',
    OperationKind.DELETE: 'DELETE',
    OperationKind.NAVIGATION: 'GET',
    OperationKind.FUNCTION: 'GET',
    OperationKind.ACTION: 'POST',
}

_CATEGORIES: dict[OperationKind, str] = {
    OperationKind.QUERY: 'Query',
    OperationKind.GET: 'CRUD',
    OperationKind.CREATE: 'CRUD',
    OperationKind.UPDATE: 'CRUD',
    OperationKind.DELETE: 'CRUD',
    OperationKind.NAVIGATION: 'Navigation',
    OperationKind.ACTION: 'Operation',
    OperationKind.FUNCTION: 'Operation',
}


class _BatchFull(Exception):
    """Raised internally once max_tool_count tools have been emitted."""


@dataclass
class _Batch:
    """Accumulates one generation run."""
    options: GenerationOptions
    tools: list[ToolDefinition] = field(default_factory=list)
    skipped: list[SkippedTool] = field(default_factory=list)
    names: set[str] = field(default_factory=set)
    truncated: bool = False

    def skip(self, name: Optional[str], entity: str, reason: str, kind: OperationKind) -> None:
        self.skipped.append(SkippedTool(name=name, entity=entity, reason=reason, kind=kind))
        log_with_metadata(
            logger, logging.WARNING, f"Skipped {kind.value} tool for {entity}: {reason}",
            {'tool': name, 'entity': entity, 'kind': kind.value}
        )

    def claim(self, name: str, entity: str) -> None:
        if name in self.names:
            raise NamingConflict(
                f"Tool name '{name}' for {entity} is already used in this batch",
                data={'tool': name, 'entity': entity}
            )
        self.names.add(name)

    def emit(self, tool: ToolDefinition, entity: str) -> None:
        limit = self.options.max_tool_count
        if limit is not None and len(self.tools) >= limit:
            self.truncated = True
            raise _BatchFull()
        try:
            self.claim(tool.name, entity)
        except NamingConflict as e:
            self.skip(tool.name, entity, e.message, tool.operation_kind)
            return
        self.tools.append(tool)


class ToolGenerator:
    """Generates tool definitions from a schema model.

    Pure: performs no I/O and keeps no state between calls.
    """

    def generate(self, model: SchemaModel, options: Optional[GenerationOptions] = None) -> GenerationResult:
        """
        Generate the ordered tool batch for a model.

        Order is entity set (namespace, container and set name order), then
        per set: query, get, create, update, delete and one navigation tool
        per navigation property; operation tools follow all entity sets.

        Args:
            model: Parsed schema model
            options: Generation options (defaults apply when omitted)

        Returns:
            GenerationResult with tools, skipped tools and the truncation flag
        """
        options = options or GenerationOptions()
        batch = _Batch(options)

        try:
            for _, entity_set in model.iter_entity_sets():
                entity_type = model.get_entity_type(entity_set.entity_type)
                if entity_type is None or not self._is_selected(entity_type, options):
                    continue
                self._generate_entity_set(model, entity_set, entity_type, batch)

            if options.generate_operation_tools:
                self._generate_operations(model, batch)
        except _BatchFull:
            log_with_metadata(
                logger, logging.INFO, "Tool generation stopped at max_tool_count",
                {'max_tool_count': options.max_tool_count}
            )

        result = GenerationResult(
            tools=tuple(batch.tools),
            skipped=tuple(batch.skipped),
            truncated=batch.truncated,
        )
        log_with_metadata(
            logger, logging.INFO, f"Generated {len(result.tools)} tools",
            {
                'namespaces': list(model.namespaces),
                'tools': len(result.tools),
                'skipped': len(result.skipped),
                'truncated': result.truncated,
            }
        )
        return result

    def _is_selected(self, entity_type: EntityType, options: GenerationOptions) -> bool:
        names = {entity_type.name, entity_type.qualified_name}
        if options.include_entity_types and not names & set(options.include_entity_types):
            return False
        return not names & set(options.exclude_entity_types)

    def _tool(
        self,
        options: GenerationOptions,
        kind: OperationKind,
        name: str,
        description: str,
        contract: InputContract,
        subject: str,
        entity_set: Optional[str],
        entity_type: Optional[str],
        metadata: dict[str, Any],
    ) -> ToolDefinition:
        examples = ()
        if options.include_examples:
            examples = build_examples(kind, contract, subject)
        metadata = {'http_method': _HTTP_METHODS[kind], **metadata}
        return ToolDefinition(
            name=name,
            description=description,
            input_contract=contract,
            operation_kind=kind,
            target_entity_set=entity_set,
            target_entity_type=entity_type,
            examples=examples,
            category=_CATEGORIES[kind],
            version=options.tool_version,
            metadata=metadata,
        )

    def _generate_entity_set(
        self,
        model: SchemaModel,
        entity_set: EntitySet,
        entity_type: EntityType,
        batch: _Batch,
    ) -> None:
        options = batch.options
        qualified = entity_type.qualified_name
        has_key = bool(model.key_properties(entity_type))
        select = contracts.default_select(model, entity_type, options)

        for kind in ENTITY_SET_OPERATIONS:
            if kind is OperationKind.QUERY and not options.generate_query_tools:
                continue
            if kind.is_crud and not options.generate_crud_tools:
                continue

            name = render_tool_name(
                options, kind,
                namespace=entity_type.namespace,
                entity_set=entity_set.name,
                entity=entity_type.name,
            )
            if kind.is_crud and not has_key:
                batch.skip(name, qualified, "entity type has no resolvable key", kind)
                continue

            contract, description = self._entity_set_contract(model, options, kind, entity_set, entity_type)
            metadata: dict[str, Any] = {'namespace': entity_type.namespace}
            if kind in (OperationKind.QUERY, OperationKind.GET) and select is not None:
                metadata['default_select'] = select
            batch.emit(self._tool(
                options, kind, name, description, contract, entity_type.name,
                entity_set.name, qualified, metadata,
            ), qualified)

        if options.generate_navigation_tools:
            for navigation in model.all_navigation_properties(entity_type):
                self._generate_navigation(model, entity_set, entity_type, navigation, has_key, batch)

    def _entity_set_contract(
        self,
        model: SchemaModel,
        options: GenerationOptions,
        kind: OperationKind,
        entity_set: EntitySet,
        entity_type: EntityType,
    ) -> tuple[InputContract, str]:
        if kind is OperationKind.QUERY:
            description = (
                f"Query the {entity_set.name} entity set ({entity_type.qualified_name}). "
                f"Supports filtering, ordering, projection and paging."
            )
            if contracts.default_select(model, entity_type, options) is not None:
                description += " Binary properties are left out of results unless selected."
            return contracts.query_contract(model, entity_type), description
        if kind is OperationKind.GET:
            return (contracts.key_contract(model, entity_type),
                    f"Get a single {entity_type.name} from {entity_set.name} by key.")
        if kind is OperationKind.CREATE:
            return (contracts.create_contract(model, entity_type),
                    f"Create a new {entity_type.name} in {entity_set.name}.")
        if kind is OperationKind.UPDATE:
            return (contracts.update_contract(model, entity_type),
                    f"Update an existing {entity_type.name} in {entity_set.name}.")
        return (contracts.key_contract(model, entity_type),
                f"Delete a {entity_type.name} from {entity_set.name} by key.")

    def _generate_navigation(
        self,
        model: SchemaModel,
        entity_set: EntitySet,
        entity_type: EntityType,
        navigation: NavigationProperty,
        has_key: bool,
        batch: _Batch,
    ) -> None:
        kind = OperationKind.NAVIGATION
        qualified = entity_type.qualified_name
        name = render_tool_name(
            batch.options, kind,
            namespace=entity_type.namespace,
            entity_set=entity_set.name,
            entity=entity_type.name,
            target=navigation.name,
        )
        if not has_key:
            batch.skip(name, qualified, "entity type has no resolvable key", kind)
            return
        if navigation.kind is TypeKind.UNKNOWN:
            batch.skip(name, qualified,
                       f"navigation target '{navigation.target_type}' is not resolved", kind)
            return

        target_set = entity_set.binding_target(navigation.name)
        if target_set is None:
            bound = model.entity_set_for_type(navigation.target_type)
            target_set = bound.name if bound is not None else None

        shape = "collection" if navigation.is_collection else "entity"
        description = (
            f"Get the {navigation.name} of a {entity_type.name} in {entity_set.name} "
            f"(returns a {navigation.target_type} {shape})."
        )
        contract = contracts.navigation_contract(model, entity_type, navigation)
        batch.emit(self._tool(
            batch.options, kind, name, description, contract, f"{entity_type.name} {navigation.name}",
            entity_set.name, qualified,
            {
                'namespace': entity_type.namespace,
                'navigation_property': navigation.name,
                'target_type': navigation.target_type,
                'target_entity_set': target_set,
                'is_collection': navigation.is_collection,
            },
        ), qualified)

    def _generate_operations(self, model: SchemaModel, batch: _Batch) -> None:
        for container in model.containers.values():
            for operation_import in container.operation_imports:
                kind = OperationKind(operation_import.kind)
                operation = model.find_operation(operation_import.operation)
                if operation is None:
                    batch.skip(None, operation_import.operation,
                               f"operation '{operation_import.operation}' is not declared", kind)
                    continue
                self._emit_operation(model, operation, None, None, operation_import.name, batch)

        for operation in model.operations:
            if not operation.is_bound:
                continue
            kind = OperationKind(operation.kind)
            bound_entity = model.get_entity_type(operation.bound_type or '')
            if bound_entity is None:
                batch.skip(None, operation.qualified_name,
                           f"binding type '{operation.bound_type}' is not an entity type", kind)
                continue
            if not self._is_selected(bound_entity, batch.options):
                continue
            if not operation.binding_is_collection and not model.key_properties(bound_entity):
                batch.skip(None, operation.qualified_name,
                           f"bound entity type '{bound_entity.qualified_name}' has no resolvable key", kind)
                continue
            entity_set = model.entity_set_for_type(bound_entity.qualified_name)
            self._emit_operation(model, operation, bound_entity,
                                 entity_set.name if entity_set else None, operation.name, batch)

    def _emit_operation(
        self,
        model: SchemaModel,
        operation: Operation,
        bound_entity: Optional[EntityType],
        entity_set: Optional[str],
        exposed_name: str,
        batch: _Batch,
    ) -> None:
        kind = OperationKind(operation.kind)
        name = render_tool_name(
            batch.options, kind,
            namespace=operation.namespace,
            entity_set=entity_set or '',
            entity=bound_entity.name if bound_entity else '',
            target=exposed_name,
        )
        description = f"Invoke the {operation.kind} {operation.qualified_name}"
        if bound_entity is not None:
            scope = "collection" if operation.binding_is_collection else "entity"
            description += f" bound to a {bound_entity.name} {scope}"
        if operation.return_type:
            returned = f"Collection({operation.return_type})" if operation.return_is_collection else operation.return_type
            description += f"; returns {returned}"
        description += "."

        batch.emit(self._tool(
            batch.options, kind, name, description,
            contracts.operation_contract(model, operation, bound_entity),
            exposed_name, entity_set,
            bound_entity.qualified_name if bound_entity else None,
            {
                'namespace': operation.namespace,
                'operation': operation.qualified_name,
                'is_bound': operation.is_bound,
                'return_type': operation.return_type,
            },
        ), operation.qualified_name)


def generate_tools(model: SchemaModel, options: Optional[GenerationOptions] = None) -> GenerationResult:
    """Generate tools with a default ToolGenerator."""
    return ToolGenerator().generate(model, options)
