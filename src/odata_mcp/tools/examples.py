"""
Example payloads for generated tools.

Examples are derived from the input contract alone, so they always satisfy
the contract they illustrate.
"""
from typing import Any

from odata_mcp.core.models import ContractField, InputContract, OperationKind, ToolExample


_FORMAT_EXAMPLES: dict[str, str] = {
    'date': '2024-01-15',
    'date-time': '2024-01-15T09:30:00Z',
    'time': '09:30:00',
    'duration': 'PT1H30M',
    'uuid': '3fa85f64-5717-4562-b3fc-2c963f66afa6',
    'byte': 'SGVsbG8=',
}


def example_value(contract_field: ContractField) -> Any:
    """Return a representative value for a contract field."""
    if contract_field.enum:
        return contract_field.enum[0]

    if contract_field.type == 'string':
        if contract_field.format in _FORMAT_EXAMPLES:
            return _FORMAT_EXAMPLES[contract_field.format]
        value = f"example {contract_field.name}"
        if contract_field.max_length is not None:
            value = value[:contract_field.max_length]
        return value
    if contract_field.type == 'integer':
        return 1
    if contract_field.type == 'number':
        return 9.99
    if contract_field.type == 'boolean':
        return True
    if contract_field.type == 'array':
        return [example_value(contract_field.items)] if contract_field.items is not None else []
    if contract_field.type == 'object':
        return {
            child.name: example_value(child)
            for child in contract_field.children
            if child.required
        }
    return None


def _payload(fields: list[ContractField]) -> dict[str, Any]:
    return {f.name: example_value(f) for f in fields}


def build_examples(kind: OperationKind, contract: InputContract, subject: str) -> tuple[ToolExample, ...]:
    """
    Build example invocations for a tool.

    Args:
        kind: Operation kind of the tool
        contract: The tool's input contract
        subject: Entity or operation name used in titles

    Returns:
        Tuple of examples (possibly empty)
    """
    required = [f for f in contract.fields if f.required]
    optional = [f for f in contract.fields if not f.required]

    if kind is OperationKind.QUERY:
        return (
            ToolExample(f"First 10 {subject} records", {'top': 10}),
            ToolExample(f"Count {subject} records", {'top': 0, 'count': True}),
        )

    if kind in (OperationKind.GET, OperationKind.DELETE):
        verb = 'Get' if kind is OperationKind.GET else 'Delete'
        return (ToolExample(f"{verb} a {subject} by key", _payload(required)),)

    if kind is OperationKind.CREATE:
        fields = required or optional
        return (ToolExample(f"Create a {subject}", _payload(fields)),)

    if kind is OperationKind.UPDATE:
        payload = _payload(required)
        if optional:
            payload.update(_payload(optional[:1]))
        return (ToolExample(f"Update a {subject}", payload),)

    if kind is OperationKind.NAVIGATION:
        payload = _payload(required)
        if contract.get_field('top') is not None:
            payload['top'] = 5
        return (ToolExample(f"Read {subject}", payload),)

    return (ToolExample(f"Invoke {subject}", _payload(required)),)
