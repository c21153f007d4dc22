"""
Tool name generation utilities.

This module renders tool names from the configured naming pattern, applies
the case convention, and keeps the result inside the character set MCP
clients accept for tool names.
"""
import re

from odata_mcp.core.config import GenerationOptions
from odata_mcp.core.models import OperationKind


_INVALID_CHARS = re.compile(r'[^A-Za-z0-9_.-]')
_REPEATED_UNDERSCORES = re.compile(r'_{2,}')
_WORD_BOUNDARY_UPPER = re.compile(r'([A-Z]+)([A-Z][a-z])')
_WORD_BOUNDARY_LOWER = re.compile(r'([a-z0-9])([A-Z])')
_SEPARATORS = re.compile(r'[\s_.\-]+')


def sanitize_tool_name(name: str) -> str:
    """
    Restrict a tool name to letters, digits, '_', '.' and '-'.

    Args:
        name: Raw rendered name

    Returns:
        Sanitized name

    Examples:
        >>> sanitize_tool_name('Order Items_get')
        'Order_Items_get'
        >>> sanitize_tool_name('_ResetData')
        'ResetData'
    """
    sanitized = _INVALID_CHARS.sub('_', name)
    sanitized = _REPEATED_UNDERSCORES.sub('_', sanitized)
    return sanitized.strip('_.-')


def split_words(name: str) -> list[str]:
    """
    Split an identifier into words on separators and case changes.

    Examples:
        >>> split_words('OrderItems_get')
        ['Order', 'Items', 'get']
        >>> split_words('HTTPRequest')
        ['HTTP', 'Request']
    """
    spaced = _WORD_BOUNDARY_UPPER.sub(r'\1 \2', name)
    spaced = _WORD_BOUNDARY_LOWER.sub(r'\1 \2', spaced)
    return [word for word in _SEPARATORS.split(spaced) if word]


def apply_convention(name: str, convention: str) -> str:
    """
    Apply a naming convention to a rendered name.

    Args:
        name: Rendered name
        convention: One of 'as_is', 'snake', 'camel', 'pascal', 'kebab'

    Examples:
        >>> apply_convention('Products_get', 'snake')
        'products_get'
        >>> apply_convention('Products_get', 'camel')
        'productsGet'
        >>> apply_convention('Products_get', 'kebab')
        'products-get'
    """
    if convention == 'as_is':
        return name

    words = split_words(name)
    if not words:
        return name

    if convention == 'snake':
        return '_'.join(word.lower() for word in words)
    if convention == 'kebab':
        return '-'.join(word.lower() for word in words)
    if convention == 'pascal':
        return ''.join(word[:1].upper() + word[1:].lower() for word in words)
    if convention == 'camel':
        head, *tail = words
        return head.lower() + ''.join(word[:1].upper() + word[1:].lower() for word in tail)

    raise ValueError(f"Unknown naming convention: {convention}")


def operation_label(kind: OperationKind, pattern: str, target: str = "") -> str:
    """
    Value substituted for {operation} in the naming pattern.

    Navigation tools fold the navigation property into the label unless the
    pattern places it separately through {target}; operation tools use the
    action or function name.
    """
    if kind is OperationKind.NAVIGATION and '{target}' not in pattern:
        return f"{kind.value}_{target}"
    if kind in (OperationKind.ACTION, OperationKind.FUNCTION):
        return target
    return kind.value


def render_tool_name(
    options: GenerationOptions,
    kind: OperationKind,
    namespace: str = "",
    entity_set: str = "",
    entity: str = "",
    target: str = "",
) -> str:
    """
    Render the tool name for one generated tool.

    The naming pattern is filled in, the naming convention applied, the
    configured prefix and suffix attached, and the result sanitized.

    Args:
        options: Generation options carrying the pattern, convention, prefix and suffix
        kind: Operation kind of the tool
        namespace: Schema namespace of the target
        entity_set: Entity set name ('' for unbound operations)
        entity: Entity type simple name
        target: Navigation property, action or function name

    Returns:
        Deterministic tool name

    Examples:
        >>> render_tool_name(GenerationOptions(), OperationKind.GET, entity_set='Products')
        'Products_get'
    """
    rendered = options.naming_pattern.format(
        namespace=namespace,
        entity_set=entity_set,
        entity=entity,
        operation=operation_label(kind, options.naming_pattern, target),
        target=target,
    )
    rendered = apply_convention(sanitize_tool_name(rendered), options.naming_convention)
    return sanitize_tool_name(f"{options.tool_name_prefix}{rendered}{options.tool_name_suffix}")
