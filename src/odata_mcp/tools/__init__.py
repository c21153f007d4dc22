"""Tool generation from OData schema models."""

from .cache import ToolCache
from .generator import ToolGenerator, generate_tools
from .naming import apply_convention, render_tool_name, sanitize_tool_name

__all__ = [
    'ToolCache',
    'ToolGenerator',
    'generate_tools',
    'apply_convention',
    'render_tool_name',
    'sanitize_tool_name',
]
