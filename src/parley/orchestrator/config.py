"""Conversation configuration types.

Provides OrchestratorState and ConversationSettings. Settings are an
immutable value handed to Conversation at construction; build a new one
with ``dataclasses.replace()`` to change them between conversations.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field

from parley.exceptions import OrchestratorError
from parley.history import DEFAULT_WINDOW
from parley.retry import BackoffPolicy
from parley.tools.executor import DEFAULT_TOOL_TIMEOUT


class OrchestratorState(str, enum.Enum):
    """States a conversation can be in during its lifecycle."""

    IDLE = "idle"
    AWAITING_MODEL = "awaiting_model"
    DISPATCHING_TOOLS = "dispatching_tools"
    STOPPED = "stopped"


@dataclass(frozen=True)
class ConversationSettings:
    """Settings for one conversation.

    Attributes:
        window: Maximum number of retained history messages.
        tool_timeout: Seconds allowed per tool invocation.
        backoff: Retry policy for overloaded model backends.
        max_round_trips: Maximum model calls per turn, or None for no cap.
        system_prompt: Sent ahead of the history on every model call.
            It is not part of the pruned history.
    """

    window: int = DEFAULT_WINDOW
    tool_timeout: float = DEFAULT_TOOL_TIMEOUT
    backoff: BackoffPolicy = field(default_factory=BackoffPolicy)
    max_round_trips: int | None = None
    system_prompt: str | None = None

    def __post_init__(self) -> None:
        if self.window < 0:
            raise OrchestratorError(f"window must be non-negative, got {self.window}")
        if self.tool_timeout <= 0:
            raise OrchestratorError(
                f"tool_timeout must be positive, got {self.tool_timeout}"
            )
        if self.max_round_trips is not None and self.max_round_trips < 1:
            raise OrchestratorError(
                f"max_round_trips must be at least 1, got {self.max_round_trips}"
            )
