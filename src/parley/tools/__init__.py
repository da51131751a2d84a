"""Tool collaborators and namespaced tool dispatch."""

from parley.tools.collaborators import (
    FunctionCollaborator,
    ToolCollaborator,
    parameters_from_signature,
)
from parley.tools.executor import (
    DEFAULT_TOOL_TIMEOUT,
    SEPARATOR,
    ToolDispatcher,
    parse_tool_name,
)
from parley.tools.models import ToolDefinition, ToolResult

__all__ = [
    "ToolCollaborator",
    "FunctionCollaborator",
    "ToolDefinition",
    "ToolDispatcher",
    "ToolResult",
    "parse_tool_name",
    "parameters_from_signature",
    "SEPARATOR",
    "DEFAULT_TOOL_TIMEOUT",
]
