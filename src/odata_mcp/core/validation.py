"""
Argument validation for generated OData tools.

This module checks tool call arguments against a tool's input contract
before they are forwarded to an executor.
"""
from typing import Any, Optional

from .errors import ValidationError
from .models import ContractField, InputContract


def validate_tool_arguments(arguments: Optional[dict[str, Any]], contract: InputContract) -> None:
    """
    Validate tool call arguments against an input contract.

    Args:
        arguments: Arguments to validate (None is treated as no arguments)
        contract: Input contract to validate against

    Raises:
        ValidationError: If arguments are missing, unknown or of the wrong type
    """
    if arguments is None:
        arguments = {}

    if not isinstance(arguments, dict):
        raise ValidationError(
            f"Arguments must be an object, got {type(arguments).__name__}",
            data={"actual_type": type(arguments).__name__}
        )

    for required_field in contract.required_names():
        if required_field not in arguments:
            raise ValidationError(
                f"Missing required parameter: {required_field}",
                data={"missing_field": required_field}
            )

    for param_name, param_value in arguments.items():
        contract_field = contract.get_field(param_name)
        if contract_field is None:
            raise ValidationError(
                f"Unknown parameter: {param_name}",
                data={"unknown_field": param_name}
            )
        _validate_field(param_name, param_value, contract_field)


def _validate_field(path: str, value: Any, contract_field: ContractField) -> None:
    if value is None:
        if contract_field.nullable or not contract_field.required:
            return
        raise ValidationError(
            f"Parameter '{path}' cannot be null",
            data={"parameter": path}
        )

    if not _validate_type(value, contract_field.type):
        raise ValidationError(
            f"Invalid type for parameter '{path}': expected {contract_field.type}, got {type(value).__name__}",
            data={
                "parameter": path,
                "expected_type": contract_field.type,
                "actual_type": type(value).__name__
            }
        )

    if contract_field.enum is not None and value not in contract_field.enum:
        raise ValidationError(
            f"Invalid value for parameter '{path}': must be one of {', '.join(contract_field.enum)}",
            data={"parameter": path, "allowed": list(contract_field.enum)}
        )

    if contract_field.minimum is not None and value < contract_field.minimum:
        raise ValidationError(
            f"Parameter '{path}' must be at least {contract_field.minimum}",
            data={"parameter": path, "minimum": contract_field.minimum}
        )

    if contract_field.type == 'array' and contract_field.items is not None:
        for index, item in enumerate(value):
            _validate_field(f"{path}[{index}]", item, contract_field.items)

    if contract_field.type == 'object' and contract_field.children:
        for child in contract_field.children:
            if child.required and child.name not in value:
                raise ValidationError(
                    f"Missing required parameter: {path}.{child.name}",
                    data={"missing_field": f"{path}.{child.name}"}
                )
        by_name = {child.name: child for child in contract_field.children}
        for key, item in value.items():
            if key in by_name:
                _validate_field(f"{path}.{key}", item, by_name[key])


def _validate_type(value: Any, expected_type: str) -> bool:
    """
    Validate that a value matches the expected JSON schema type.

    Args:
        value: Value to validate
        expected_type: Expected JSON schema type

    Returns:
        True if value matches expected type, False otherwise
    """
    # bool is an int subclass but never a JSON number
    if isinstance(value, bool):
        return expected_type == "boolean"

    type_mapping = {
        "string": str,
        "number": (int, float),
        "integer": int,
        "boolean": bool,
        "array": list,
        "object": dict,
    }

    expected_python_type = type_mapping.get(expected_type)

    if expected_python_type is None:
        # Unknown type - accept any value
        return True

    return isinstance(value, expected_python_type)
