"""Turn result models.

StepResult records one dispatched tool call; TurnResult summarizes a
whole send() call. Both are frozen records of what happened.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from parley.messages import TokenUsage

if TYPE_CHECKING:
    from parley.messages import Message, ToolCall
    from parley.orchestrator.config import OrchestratorState

STOP_COMPLETE = "complete"
STOP_MAX_ROUND_TRIPS = "max_round_trips"


@dataclass(frozen=True)
class StepResult:
    """Result of a single tool call within a turn.

    ``skipped`` marks calls that were never routed (malformed name or
    unknown collaborator); no tool result was recorded for them.
    """

    step: int
    tool_call: ToolCall
    collaborator: str = ""
    tool_name: str = ""
    success: bool = True
    output: Any = None
    error: str = ""
    skipped: bool = False


@dataclass(frozen=True)
class TurnResult:
    """Final result of one turn."""

    reply: Message | None
    state: OrchestratorState
    steps: list[StepResult] = field(default_factory=list)
    model_calls: int = 0
    usage: TokenUsage = field(default_factory=TokenUsage)
    stopped_reason: str = STOP_COMPLETE

    @property
    def text(self) -> str:
        """Text of the final assistant reply."""
        return self.reply.text if self.reply is not None else ""

    @property
    def failed(self) -> list[StepResult]:
        """Steps that were skipped or returned an error."""
        return [s for s in self.steps if not s.success]
