"""
Property-based tests for argument validation and error handling.

Invalid tool arguments produce a validation error, and every error is
formatted with a code and a message.
"""
import pytest
from hypothesis import given, strategies as st, settings, HealthCheck

from odata_mcp.core.validation import validate_tool_arguments
from odata_mcp.core.errors import (
    ValidationError,
    SchemaError,
    ConfigurationError,
    ToolNotFoundError,
    RouteConflict,
    NamingConflict,
    UpstreamError,
    format_error_response
)
from odata_mcp.core.models import ContractField, InputContract


# Strategy for generating contract field types
json_type_strategy = st.sampled_from(['string', 'number', 'integer', 'boolean', 'array', 'object'])

# Strategy for generating field names
field_name_strategy = st.text(
    alphabet=st.characters(whitelist_categories=('Lu', 'Ll', 'Nd'), whitelist_characters='_'),
    min_size=1,
    max_size=30
)


def value_strategy(field_type: str) -> st.SearchStrategy:
    """Values that satisfy a contract field type."""
    if field_type == 'string':
        return st.text()
    if field_type == 'number':
        return st.one_of(st.integers(), st.floats(allow_nan=False, allow_infinity=False))
    if field_type == 'integer':
        return st.integers()
    if field_type == 'boolean':
        return st.booleans()
    if field_type == 'array':
        return st.lists(st.text(), max_size=5)
    return st.dictionaries(st.text(), st.text(), max_size=3)


def wrong_value_strategy(field_type: str) -> st.SearchStrategy:
    """Values that violate a contract field type."""
    if field_type == 'string':
        return st.one_of(st.integers(), st.booleans())
    if field_type in ('number', 'integer'):
        return st.one_of(st.text(), st.booleans())
    if field_type == 'boolean':
        return st.one_of(st.text(), st.integers())
    return st.text()


@st.composite
def contracts(draw: st.DrawFn) -> InputContract:
    """Generate an input contract with at least one required field."""
    names = draw(st.lists(field_name_strategy, min_size=1, max_size=5, unique=True))
    required_count = draw(st.integers(min_value=1, max_value=len(names)))

    fields = tuple(
        ContractField(
            name=name,
            type=draw(json_type_strategy),
            required=index < required_count
        )
        for index, name in enumerate(names)
    )
    return InputContract(fields=fields)


@st.composite
def valid_arguments(draw: st.DrawFn, contract: InputContract) -> dict:
    """Generate arguments with every required field and a subset of the optional ones."""
    arguments = {}
    for contract_field in contract.fields:
        if contract_field.required or draw(st.booleans()):
            arguments[contract_field.name] = draw(value_strategy(contract_field.type))
    return arguments


@st.composite
def contract_and_valid_arguments(draw: st.DrawFn) -> tuple[InputContract, dict]:
    contract = draw(contracts())
    return contract, draw(valid_arguments(contract))


@st.composite
def contract_and_arguments_missing_required(draw: st.DrawFn) -> tuple[InputContract, dict]:
    """Generate a contract and arguments missing one required field."""
    contract = draw(contracts())
    arguments = draw(valid_arguments(contract))
    omitted = draw(st.sampled_from(contract.required_names()))
    del arguments[omitted]
    return contract, arguments


@st.composite
def contract_and_arguments_with_wrong_type(draw: st.DrawFn) -> tuple[InputContract, dict]:
    """Generate a contract and arguments where one field has the wrong type."""
    contract = draw(contracts())
    arguments = draw(valid_arguments(contract))
    target = draw(st.sampled_from(contract.fields))
    arguments[target.name] = draw(wrong_value_strategy(target.type))
    return contract, arguments


@st.composite
def contract_and_arguments_with_extra_field(draw: st.DrawFn) -> tuple[InputContract, dict]:
    """Generate a contract and arguments carrying a field the contract lacks."""
    contract = draw(contracts())
    arguments = draw(valid_arguments(contract))
    extra = draw(field_name_strategy.filter(lambda name: name not in contract.field_names()))
    arguments[extra] = draw(st.text())
    return contract, arguments


@pytest.mark.property
@given(contract_and_arguments=contract_and_valid_arguments())
@settings(max_examples=50, suppress_health_check=[HealthCheck.too_slow])
def test_property_valid_arguments_are_accepted(
    contract_and_arguments: tuple[InputContract, dict]
) -> None:
    """Arguments that satisfy every field of the contract pass validation."""
    contract, arguments = contract_and_arguments

    validate_tool_arguments(arguments, contract)


@pytest.mark.property
@given(contract_and_arguments=contract_and_arguments_missing_required())
@settings(max_examples=50, suppress_health_check=[HealthCheck.too_slow])
def test_property_missing_required_field_produces_validation_error(
    contract_and_arguments: tuple[InputContract, dict]
) -> None:
    """A call missing a required field fails with code -32602."""
    contract, arguments = contract_and_arguments

    with pytest.raises(ValidationError) as exc_info:
        validate_tool_arguments(arguments, contract)

    assert exc_info.value.code == -32602
    assert "Missing required parameter" in exc_info.value.message


@pytest.mark.property
@given(contract_and_arguments=contract_and_arguments_with_wrong_type())
@settings(max_examples=50, suppress_health_check=[HealthCheck.too_slow])
def test_property_wrong_type_produces_validation_error(
    contract_and_arguments: tuple[InputContract, dict]
) -> None:
    """A call with a mistyped field fails with code -32602."""
    contract, arguments = contract_and_arguments

    with pytest.raises(ValidationError) as exc_info:
        validate_tool_arguments(arguments, contract)

    assert exc_info.value.code == -32602
    assert "Invalid type" in exc_info.value.message


@pytest.mark.property
@given(contract_and_arguments=contract_and_arguments_with_extra_field())
@settings(max_examples=50, suppress_health_check=[HealthCheck.too_slow])
def test_property_extra_field_produces_validation_error(
    contract_and_arguments: tuple[InputContract, dict]
) -> None:
    """A call carrying a field outside the contract fails with code -32602."""
    contract, arguments = contract_and_arguments

    with pytest.raises(ValidationError) as exc_info:
        validate_tool_arguments(arguments, contract)

    assert exc_info.value.code == -32602
    assert "Unknown parameter" in exc_info.value.message


@pytest.mark.property
@given(
    error_class=st.sampled_from([
        ValidationError,
        SchemaError,
        ConfigurationError,
        ToolNotFoundError,
        RouteConflict,
        NamingConflict,
        UpstreamError,
    ]),
    message=st.text(min_size=1, max_size=200),
    request_id=st.one_of(st.none(), st.integers(), st.text(max_size=20)),
    data=st.one_of(st.none(), st.dictionaries(st.text(max_size=10), st.text(max_size=20), max_size=3))
)
@settings(max_examples=50, suppress_health_check=[HealthCheck.too_slow])
def test_property_all_errors_include_code_and_message(
    error_class: type,
    message: str,
    request_id,
    data
) -> None:
    """Every router error formats as a JSON-RPC error with code and message."""
    response = format_error_response(error_class(message, data=data), request_id=request_id)

    assert response['jsonrpc'] == '2.0'
    assert response['id'] == request_id
    assert isinstance(response['error']['code'], int)
    assert response['error']['code'] < 0
    assert response['error']['message'] == message
    assert ('data' in response['error']) == (data is not None)


@pytest.mark.property
@given(message=st.text(max_size=200))
@settings(max_examples=30, suppress_health_check=[HealthCheck.too_slow])
def test_property_unknown_errors_formatted_correctly(message: str) -> None:
    """Exceptions outside the taxonomy are reported as internal errors."""
    response = format_error_response(RuntimeError(message))

    assert response['error']['code'] == -32603
    assert response['error']['message'] == message
    assert response['error']['data'] == {'type': 'RuntimeError'}
