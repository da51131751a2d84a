"""Provider protocol.

Every backend adapter implements this interface so the orchestrator and
history pruning are written once against the abstract Message model.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from parley.messages import Message, Tool


@runtime_checkable
class Provider(Protocol):
    """Protocol for pluggable text-generation backends.

    The built-in AnthropicProvider, OpenAIProvider, AzureOpenAIProvider and
    OllamaProvider implement this protocol. Any object with matching
    methods works, which is how tests inject scripted providers.
    """

    name: str

    def create_message(
        self,
        prompt: str,
        messages: list[Message],
        tools: list[Tool],
    ) -> Message:
        """Send the conversation to the backend and return the assistant reply.

        ``prompt`` is appended as a trailing user turn when non-empty.
        """
        ...

    def create_tool_response(
        self,
        tool_call_id: str,
        content: Any,
        *,
        is_error: bool = False,
    ) -> Message:
        """Build a tool-result message answering ``tool_call_id``."""
        ...

    def supports_tools(self) -> bool:
        """Whether this backend/model accepts tool declarations."""
        ...

    def close(self) -> None:
        """Release underlying resources."""
        ...
