"""Parley: tool-calling conversations over interchangeable LLM backends.

A Conversation drives one provider adapter through the tool-calling
loop, dispatching the model's tool calls to named collaborators and
keeping a bounded, pairing-safe message history.
"""

from parley._version import __version__

# Message model
from parley.messages import (
    ContentBlock,
    Message,
    TextBlock,
    TokenUsage,
    Tool,
    ToolCall,
    ToolResultBlock,
    ToolSchema,
    ToolUseBlock,
)

# Configuration
from parley.config import ProviderConfig
from parley.retry import BackoffPolicy, call_with_backoff

# History
from parley.history import ConversationHistory, drop_orphans, find_orphans, prune_messages

# Providers
from parley.llm import Provider, create_provider

# Tools
from parley.tools import (
    FunctionCollaborator,
    ToolCollaborator,
    ToolDefinition,
    ToolDispatcher,
    ToolResult,
)

# Orchestrator
from parley.orchestrator import (
    Conversation,
    ConversationSettings,
    OrchestratorState,
    StepResult,
    TurnResult,
)

# Exceptions
from parley.exceptions import (
    ContentValidationError,
    MalformedToolNameError,
    OrchestratorError,
    ParleyError,
    ServiceOverloadedError,
    ToolExecutionError,
    ToolSerializationError,
    ToolTimeoutError,
    TurnCancelledError,
    UnknownCollaboratorError,
)

__all__ = [
    "__version__",
    # Message model
    "ContentBlock",
    "Message",
    "TextBlock",
    "ToolUseBlock",
    "ToolResultBlock",
    "ToolCall",
    "TokenUsage",
    "Tool",
    "ToolSchema",
    # Configuration
    "ProviderConfig",
    "BackoffPolicy",
    "call_with_backoff",
    # History
    "ConversationHistory",
    "prune_messages",
    "find_orphans",
    "drop_orphans",
    # Providers
    "Provider",
    "create_provider",
    # Tools
    "ToolCollaborator",
    "FunctionCollaborator",
    "ToolDefinition",
    "ToolDispatcher",
    "ToolResult",
    # Orchestrator
    "Conversation",
    "ConversationSettings",
    "OrchestratorState",
    "StepResult",
    "TurnResult",
    # Exceptions
    "ParleyError",
    "ContentValidationError",
    "ServiceOverloadedError",
    "MalformedToolNameError",
    "UnknownCollaboratorError",
    "ToolTimeoutError",
    "ToolExecutionError",
    "ToolSerializationError",
    "TurnCancelledError",
    "OrchestratorError",
]
