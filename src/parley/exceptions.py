"""Parley exception hierarchy.

All Parley-specific exceptions inherit from ParleyError.
"""


class ParleyError(Exception):
    """Base exception for all Parley errors."""


class ContentValidationError(ParleyError):
    """Raised when a content block or message fails validation.

    Named ContentValidationError (not ValidationError) to avoid
    collision with pydantic.ValidationError.
    """


class ServiceOverloadedError(ParleyError):
    """Raised when the model backend stays overloaded after every retry."""

    def __init__(self, provider: str, attempts: int) -> None:
        self.provider = provider
        self.attempts = attempts
        super().__init__(
            f"{provider} is currently overloaded after {attempts} attempts. "
            "Please wait a few minutes and try again."
        )


class MalformedToolNameError(ParleyError):
    """Raised when a tool name is not of the form ``<collaborator>__<tool>``."""

    def __init__(self, tool_name: str) -> None:
        self.tool_name = tool_name
        super().__init__(f"Invalid tool name format: {tool_name}")


class UnknownCollaboratorError(ParleyError):
    """Raised when a tool call names a collaborator that is not registered."""

    def __init__(self, collaborator: str) -> None:
        self.collaborator = collaborator
        super().__init__(f"Collaborator not found: {collaborator}")


class ToolTimeoutError(ParleyError):
    """Raised when a tool invocation exceeds its time limit."""

    def __init__(self, tool_name: str, timeout: float) -> None:
        self.tool_name = tool_name
        self.timeout = timeout
        super().__init__(f"Tool {tool_name} timed out after {timeout}s")


class ToolSerializationError(ParleyError):
    """Raised when tool arguments or results cannot be serialized."""


class TurnCancelledError(ParleyError):
    """Raised when a turn is aborted by Conversation.stop()."""

    def __init__(self) -> None:
        super().__init__("Turn cancelled")


class OrchestratorError(ParleyError):
    """Raised on conversation orchestrator misconfiguration or misuse."""


class ToolExecutionError(ParleyError):
    """Raised by a collaborator to report a tool-level failure.

    The message is surfaced to the model as an error tool result.
    """
