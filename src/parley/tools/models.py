"""Tool data models.

Frozen dataclasses for locally registered tool definitions and for the
structured outcome of one dispatched tool call.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from parley.messages import Tool, ToolSchema

if TYPE_CHECKING:
    from collections.abc import Callable


@dataclass(frozen=True)
class ToolDefinition:
    """A single tool backed by a Python callable.

    Attributes:
        name: Tool name, unique within its collaborator.
        description: Human-readable description of when/why to use this tool.
        parameters: JSON Schema dict describing tool parameters.
        handler: Callable invoked with the call's arguments as keywords.
    """

    name: str
    description: str
    parameters: dict
    handler: Callable[..., object]

    def to_tool(self) -> Tool:
        """Convert to the provider-facing Tool declaration."""
        return Tool(
            name=self.name,
            description=self.description,
            input_schema=ToolSchema(
                type=self.parameters.get("type", "object"),
                properties=self.parameters.get("properties", {}),
                required=self.parameters.get("required", []),
            ),
        )


@dataclass(frozen=True)
class ToolResult:
    """Structured result from executing a tool call.

    Attributes:
        call_id: Id of the tool_use block this result answers.
        collaborator: Collaborator the call was routed to.
        tool_name: Collaborator-local tool name.
        success: Whether execution succeeded.
        output: Raw tool output on success.
        error: Error message on failure.
    """

    call_id: str
    collaborator: str
    tool_name: str
    success: bool
    output: Any = None
    error: str = ""

    @property
    def content(self) -> Any:
        """The payload sent back to the model."""
        if self.success:
            return self.output
        return f"Error calling tool {self.tool_name}: {self.error}"
