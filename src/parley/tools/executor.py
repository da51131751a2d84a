"""ToolDispatcher: routes namespaced tool calls to collaborators.

Tools are advertised to the model as ``<collaborator>__<tool>``.
``execute()`` splits the name, invokes the collaborator under a per-call
deadline and returns a structured ``ToolResult``; failures of the tool
itself never raise.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from parley.concurrency import DeadlineExceeded, run_cancellable
from parley.exceptions import (
    MalformedToolNameError,
    ToolTimeoutError,
    TurnCancelledError,
    UnknownCollaboratorError,
)
from parley.tools.models import ToolResult

if TYPE_CHECKING:
    from collections.abc import Iterable
    from threading import Event

    from parley.messages import Tool, ToolCall
    from parley.tools.collaborators import ToolCollaborator

logger = logging.getLogger(__name__)

SEPARATOR = "__"
DEFAULT_TOOL_TIMEOUT = 10.0


def parse_tool_name(name: str) -> tuple[str, str]:
    """Split ``<collaborator>__<tool>`` into its two parts.

    Raises:
        MalformedToolNameError: Unless the name splits into exactly two
            non-empty parts.
    """
    parts = name.split(SEPARATOR)
    if len(parts) != 2 or not all(parts):
        raise MalformedToolNameError(name)
    return parts[0], parts[1]


class ToolDispatcher:
    """Holds the collaborator registry and dispatches tool calls.

    Usage::

        dispatcher = ToolDispatcher([weather])
        result = dispatcher.execute(call, timeout=10.0)
        if result.success:
            print(result.output)
        else:
            print(result.error)
    """

    def __init__(self, collaborators: Iterable[ToolCollaborator] = ()) -> None:
        self._collaborators: dict[str, ToolCollaborator] = {}
        for collaborator in collaborators:
            self.add(collaborator)

    def add(self, collaborator: ToolCollaborator) -> None:
        """Register a collaborator under its name."""
        name = collaborator.name
        if not name or SEPARATOR in name:
            raise ValueError(f"Invalid collaborator name: {name!r}")
        if name in self._collaborators:
            raise ValueError(f"Collaborator already registered: {name}")
        self._collaborators[name] = collaborator

    @property
    def collaborators(self) -> list[str]:
        return list(self._collaborators)

    def tools(self) -> list[Tool]:
        """Every collaborator's tools, renamed to ``<collaborator>__<tool>``.

        A collaborator whose listing fails is logged and skipped.
        """
        tools: list[Tool] = []
        for name, collaborator in self._collaborators.items():
            try:
                listed = collaborator.list_tools()
            except Exception:
                logger.error("Error fetching tools from %s", name, exc_info=True)
                continue
            for tool in listed:
                tools.append(tool.model_copy(update={"name": f"{name}{SEPARATOR}{tool.name}"}))
        return tools

    def resolve(self, name: str) -> tuple[ToolCollaborator, str]:
        """Map a namespaced tool name to its collaborator and local name.

        Raises:
            MalformedToolNameError: If the name is not namespaced.
            UnknownCollaboratorError: If no collaborator has that name.
        """
        collaborator_name, tool_name = parse_tool_name(name)
        collaborator = self._collaborators.get(collaborator_name)
        if collaborator is None:
            raise UnknownCollaboratorError(collaborator_name)
        return collaborator, tool_name

    def execute(
        self,
        call: ToolCall,
        timeout: float = DEFAULT_TOOL_TIMEOUT,
        *,
        cancel_event: Event | None = None,
    ) -> ToolResult:
        """Invoke ``call`` on its collaborator.

        Routing errors (malformed name, unknown collaborator) propagate so
        the caller can skip the call. Tool failures and timeouts come back
        as unsuccessful results.

        Raises:
            MalformedToolNameError: If the name is not namespaced.
            UnknownCollaboratorError: If no collaborator has that name.
            TurnCancelledError: If ``cancel_event`` is set while waiting.
        """
        collaborator, tool_name = self.resolve(call.name)
        logger.info("calling tool %s on %s", tool_name, collaborator.name)
        try:
            output = run_cancellable(
                lambda: collaborator.call_tool(tool_name, call.arguments),
                timeout=timeout,
                cancel_event=cancel_event,
                name=f"parley-tool-{tool_name}",
            )
        except DeadlineExceeded:
            error = ToolTimeoutError(tool_name, timeout)
            logger.warning("%s", error)
            return ToolResult(
                call_id=call.id,
                collaborator=collaborator.name,
                tool_name=tool_name,
                success=False,
                error=str(error),
            )
        except TurnCancelledError:
            raise
        except Exception as exc:
            logger.debug("Tool %s failed: %s", tool_name, exc, exc_info=True)
            return ToolResult(
                call_id=call.id,
                collaborator=collaborator.name,
                tool_name=tool_name,
                success=False,
                error=str(exc) or type(exc).__name__,
            )
        return ToolResult(
            call_id=call.id,
            collaborator=collaborator.name,
            tool_name=tool_name,
            success=True,
            output=output,
        )
