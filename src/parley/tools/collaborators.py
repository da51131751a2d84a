"""Tool collaborators: named sources of tools.

A collaborator lists the tools it offers and invokes one by its local
name. The dispatcher advertises every collaborator's tools under
``<collaborator>__<tool>`` names. FunctionCollaborator serves plain
Python callables in-process.
"""

from __future__ import annotations

import inspect
import logging
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from parley.exceptions import ToolExecutionError
from parley.tools.models import ToolDefinition

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from parley.messages import Tool

logger = logging.getLogger(__name__)

_JSON_TYPES: dict[Any, str] = {
    str: "string",
    int: "integer",
    float: "number",
    bool: "boolean",
    list: "array",
    dict: "object",
    "str": "string",
    "int": "integer",
    "float": "number",
    "bool": "boolean",
    "list": "array",
    "dict": "object",
}


@runtime_checkable
class ToolCollaborator(Protocol):
    """Anything that can list and invoke tools."""

    @property
    def name(self) -> str: ...

    def list_tools(self) -> list[Tool]: ...

    def call_tool(self, tool_name: str, arguments: dict) -> Any: ...


def parameters_from_signature(fn: Callable[..., object]) -> dict:
    """Derive a JSON Schema object from ``fn``'s keyword parameters.

    Annotated builtins map to their JSON types; anything else is left
    untyped. Parameters without defaults are required.
    """
    properties: dict[str, dict] = {}
    required: list[str] = []
    for param in inspect.signature(fn).parameters.values():
        if param.kind in (param.VAR_POSITIONAL, param.VAR_KEYWORD):
            continue
        prop: dict[str, str] = {}
        json_type = _JSON_TYPES.get(param.annotation)
        if json_type:
            prop["type"] = json_type
        properties[param.name] = prop
        if param.default is param.empty:
            required.append(param.name)
    return {"type": "object", "properties": properties, "required": required}


class FunctionCollaborator:
    """A collaborator whose tools are Python callables.

    Usage::

        weather = FunctionCollaborator("weather")

        @weather.tool(description="Current temperature for a city.")
        def temperature(city: str) -> dict:
            return {"city": city, "celsius": 21}

    A handler reports a tool-level failure by raising; the dispatcher
    turns the exception into an error result for the model.
    """

    def __init__(self, name: str, tools: Iterable[ToolDefinition] = ()) -> None:
        if not name or "__" in name:
            raise ValueError(f"Invalid collaborator name: {name!r}")
        self._name = name
        self._tools: dict[str, ToolDefinition] = {}
        for definition in tools:
            self.register(definition)

    @property
    def name(self) -> str:
        return self._name

    def register(self, definition: ToolDefinition) -> None:
        """Add a tool, replacing any existing tool of the same name."""
        if not definition.name or "__" in definition.name:
            raise ValueError(f"Invalid tool name: {definition.name!r}")
        if definition.name in self._tools:
            logger.warning("%s: replacing tool %s", self._name, definition.name)
        self._tools[definition.name] = definition

    def tool(
        self,
        name: str | None = None,
        *,
        description: str | None = None,
        parameters: dict | None = None,
    ) -> Callable[[Callable[..., object]], Callable[..., object]]:
        """Decorator registering a function as a tool.

        The name defaults to the function name, the description to its
        docstring, and the parameters to its signature.
        """

        def decorator(fn: Callable[..., object]) -> Callable[..., object]:
            self.register(
                ToolDefinition(
                    name=name or fn.__name__,
                    description=description or inspect.getdoc(fn) or "",
                    parameters=parameters or parameters_from_signature(fn),
                    handler=fn,
                )
            )
            return fn

        return decorator

    def list_tools(self) -> list[Tool]:
        return [definition.to_tool() for definition in self._tools.values()]

    def call_tool(self, tool_name: str, arguments: dict) -> Any:
        definition = self._tools.get(tool_name)
        if definition is None:
            raise ToolExecutionError(f"Unknown tool: {tool_name}")
        return definition.handler(**arguments)

    def __repr__(self) -> str:
        return f"FunctionCollaborator({self._name!r}, tools={list(self._tools)})"
