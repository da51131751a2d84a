"""Orchestrator package: the conversation turn loop and its types."""

from parley.orchestrator.config import ConversationSettings, OrchestratorState
from parley.orchestrator.loop import Conversation
from parley.orchestrator.models import (
    STOP_COMPLETE,
    STOP_MAX_ROUND_TRIPS,
    StepResult,
    TurnResult,
)

__all__ = [
    "Conversation",
    "ConversationSettings",
    "OrchestratorState",
    "StepResult",
    "TurnResult",
    "STOP_COMPLETE",
    "STOP_MAX_ROUND_TRIPS",
]
