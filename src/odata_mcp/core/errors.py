"""
Error taxonomy and JSON-RPC error formatting for the OData MCP router.

Every fatal error raised by the parser, generator, registry and protocol
handlers derives from RouterError so the protocol layer can turn it into a
JSON-RPC 2.0 error object. Unresolved type references are not errors: they are
recorded as UnresolvedReferenceWarning instances on the parsed model.
"""
from typing import Any, Optional


# JSON-RPC 2.0 Error Codes
ERROR_CODE_PARSE_ERROR = -32700  # Malformed metadata document
ERROR_CODE_INVALID_REQUEST = -32600  # Bad configuration or registration
ERROR_CODE_METHOD_NOT_FOUND = -32601  # Tool or route not found
ERROR_CODE_INVALID_PARAMS = -32602  # Invalid arguments / incomplete schema
ERROR_CODE_INTERNAL_ERROR = -32603  # Generation failures
ERROR_CODE_SERVER_ERROR = -32000  # Executor / backend failures


class RouterError(Exception):
    """Base exception for all router errors.

    Attributes:
        message: Error message
        code: JSON-RPC error code
        data: Optional additional error data
    """

    def __init__(self, message: str, code: int, data: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.data = data


class SchemaError(RouterError):
    """The metadata document is not well-formed markup.

    Fatal to the parse: no model is produced.
    """

    def __init__(self, message: str, data: Optional[dict[str, Any]] = None):
        super().__init__(message, ERROR_CODE_PARSE_ERROR, data)


class ValidationError(RouterError):
    """Input is parseable but semantically incomplete or invalid.

    Raised by the parser (no namespace, no container, duplicate type names,
    entity sets referencing undeclared types) and by argument validation
    for tool calls.
    """

    def __init__(self, message: str, data: Optional[dict[str, Any]] = None):
        super().__init__(message, ERROR_CODE_INVALID_PARAMS, data)


class NamingConflict(RouterError):
    """Two generated tools derived the same name.

    Fatal for the conflicting tool only; the generator records it and
    carries on with the rest of the batch.
    """

    def __init__(self, message: str, data: Optional[dict[str, Any]] = None):
        super().__init__(message, ERROR_CODE_INTERNAL_ERROR, data)


class RouteConflict(RouterError):
    """A namespace registration collides with an existing one."""

    def __init__(self, message: str, data: Optional[dict[str, Any]] = None):
        super().__init__(message, ERROR_CODE_INVALID_REQUEST, data)


class ConfigurationError(RouterError):
    """Configuration error (startup phase).

    Raised when the configuration file is missing, malformed or invalid.
    """

    def __init__(self, message: str, data: Optional[dict[str, Any]] = None):
        super().__init__(message, ERROR_CODE_INVALID_REQUEST, data)


class ToolNotFoundError(RouterError):
    """A request referenced an unknown tool or namespace."""

    def __init__(self, message: str, data: Optional[dict[str, Any]] = None):
        super().__init__(message, ERROR_CODE_METHOD_NOT_FOUND, data)


class UpstreamError(RouterError):
    """Executing a tool against the backend failed."""

    def __init__(self, message: str, data: Optional[dict[str, Any]] = None):
        super().__init__(message, ERROR_CODE_SERVER_ERROR, data)


class UnresolvedReferenceWarning(UserWarning):
    """A type reference in the metadata could not be resolved.

    Non-fatal: the referencing property (or navigation target) is degraded
    to an unknown type and the warning is kept on the schema model.

    Attributes:
        owner: Qualified name of the type declaring the reference
        member: Property, navigation property or parameter name
        type_name: The reference that failed to resolve
    """

    def __init__(self, owner: str, member: str, type_name: str, reason: Optional[str] = None):
        self.owner = owner
        self.member = member
        self.type_name = type_name
        self.reason = reason or f"type '{type_name}' is not declared"
        super().__init__(f"{owner}.{member}: {self.reason}")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, UnresolvedReferenceWarning):
            return NotImplemented
        return (self.owner, self.member, self.type_name, self.reason) == (
            other.owner, other.member, other.type_name, other.reason
        )

    def __hash__(self) -> int:
        return hash((self.owner, self.member, self.type_name, self.reason))


def format_error_response(
    error: Exception,
    request_id: Optional[Any] = None
) -> dict[str, Any]:
    """
    Format an exception as a JSON-RPC 2.0 error response.

    Args:
        error: Exception to format
        request_id: Optional request ID from JSON-RPC request

    Returns:
        JSON-RPC 2.0 error response dictionary
    """
    if isinstance(error, RouterError):
        code = error.code
        message = error.message
        data = error.data
    else:
        # Unknown error - treat as internal error
        code = ERROR_CODE_INTERNAL_ERROR
        message = str(error)
        data = {"type": type(error).__name__}

    error_response: dict[str, Any] = {
        "jsonrpc": "2.0",
        "id": request_id,
        "error": {
            "code": code,
            "message": message
        }
    }

    if data is not None:
        error_response["error"]["data"] = data

    return error_response
