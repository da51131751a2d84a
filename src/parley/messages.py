"""Provider-agnostic message and tool model for Parley.

Defines the three content block kinds as Pydantic models joined in a
discriminated union (ContentBlock), the Message model every provider
adapter produces and consumes, the ToolCall view of a ``tool_use`` block,
and the Tool declaration advertised to providers.

Accessors on Message never raise: malformed stored content yields empty
text or an empty argument mapping.
"""

from __future__ import annotations

import json
import uuid
from dataclasses import dataclass, field
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from parley.exceptions import ContentValidationError, ToolSerializationError

Role = Literal["system", "user", "assistant", "tool"]

EMPTY_TOOL_CONTENT = "No content returned from tool"


# ---------------------------------------------------------------------------
# Content blocks
# ---------------------------------------------------------------------------


class TextBlock(BaseModel):
    """Plain text."""

    model_config = ConfigDict(frozen=True)

    type: Literal["text"] = "text"
    text: str = ""


class ToolUseBlock(BaseModel):
    """A tool invocation requested by the model."""

    model_config = ConfigDict(frozen=True)

    type: Literal["tool_use"] = "tool_use"
    id: str
    name: str
    input: Any = Field(default_factory=dict)


class ToolResultBlock(BaseModel):
    """The result of a tool invocation, answering a prior ``tool_use`` id."""

    model_config = ConfigDict(frozen=True)

    type: Literal["tool_result"] = "tool_result"
    tool_use_id: str
    content: str = ""
    is_error: bool = False


ContentBlock = Annotated[
    Union[TextBlock, ToolUseBlock, ToolResultBlock],
    Field(discriminator="type"),
]

_block_adapter = TypeAdapter(ContentBlock)


def parse_block(data: dict) -> TextBlock | ToolUseBlock | ToolResultBlock:
    """Validate a raw block dict against the content block union.

    Raises:
        ContentValidationError: If the ``type`` tag is unknown or the
            block is missing required fields.
    """
    try:
        return _block_adapter.validate_python(data)
    except ValidationError as e:
        raise ContentValidationError(f"Content block validation failed: {e}") from e


# ---------------------------------------------------------------------------
# Tool calls and usage
# ---------------------------------------------------------------------------


def new_tool_call_id(name: str) -> str:
    """Generate a conversation-unique id for backends that do not supply one."""
    return f"tc_{name}_{uuid.uuid4().hex[:12]}"


@dataclass(frozen=True)
class ToolCall:
    """A tool/function invocation extracted from a ``tool_use`` block."""

    id: str
    name: str
    arguments: dict = field(default_factory=dict)


class TokenUsage(BaseModel):
    """Token counts reported by a provider. Zero when unknown."""

    model_config = ConfigDict(frozen=True)

    input_tokens: int = 0
    output_tokens: int = 0

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens

    def __add__(self, other: TokenUsage) -> TokenUsage:
        return TokenUsage(
            input_tokens=self.input_tokens + other.input_tokens,
            output_tokens=self.output_tokens + other.output_tokens,
        )


# ---------------------------------------------------------------------------
# Message
# ---------------------------------------------------------------------------


class Message(BaseModel):
    """One turn in the conversation.

    Created by the orchestrator (user and tool messages) or by a provider
    adapter (assistant messages). Only history pruning derives modified
    copies, and only by removing blocks.
    """

    role: Role
    content: list[ContentBlock] = Field(default_factory=list)
    usage: TokenUsage = Field(default_factory=TokenUsage)

    @classmethod
    def user(cls, text: str) -> Message:
        return cls(role="user", content=[TextBlock(text=text)])

    @classmethod
    def system(cls, text: str) -> Message:
        return cls(role="system", content=[TextBlock(text=text)])

    @classmethod
    def assistant(
        cls,
        text: str = "",
        tool_calls: list[ToolCall] | None = None,
        usage: TokenUsage | None = None,
    ) -> Message:
        """Build an assistant message from text and tool calls."""
        blocks: list[Any] = []
        if text:
            blocks.append(TextBlock(text=text))
        for tc in tool_calls or []:
            blocks.append(ToolUseBlock(id=tc.id, name=tc.name, input=tc.arguments))
        return cls(role="assistant", content=blocks, usage=usage or TokenUsage())

    @classmethod
    def tool_result(
        cls,
        tool_use_id: str,
        content: str,
        *,
        is_error: bool = False,
        role: Role = "tool",
    ) -> Message:
        return cls(
            role=role,
            content=[
                ToolResultBlock(tool_use_id=tool_use_id, content=content, is_error=is_error)
            ],
        )

    @property
    def text(self) -> str:
        """Concatenation of all text blocks, trimmed."""
        parts = [b.text for b in self.content if isinstance(b, TextBlock)]
        return " ".join(parts).strip()

    @property
    def tool_calls(self) -> list[ToolCall]:
        """All ``tool_use`` blocks as ToolCall views, in order."""
        calls: list[ToolCall] = []
        for block in self.content:
            if isinstance(block, ToolUseBlock):
                args = dict(block.input) if isinstance(block.input, dict) else {}
                calls.append(ToolCall(id=block.id, name=block.name, arguments=args))
        return calls

    @property
    def tool_results(self) -> list[ToolResultBlock]:
        return [b for b in self.content if isinstance(b, ToolResultBlock)]

    @property
    def is_tool_response(self) -> bool:
        return any(isinstance(b, ToolResultBlock) for b in self.content)

    @property
    def tool_response_id(self) -> str:
        """The ``tool_use_id`` answered by the first tool-result block, or ""."""
        for block in self.content:
            if isinstance(block, ToolResultBlock):
                return block.tool_use_id
        return ""

    @property
    def tool_use_ids(self) -> set[str]:
        return {b.id for b in self.content if isinstance(b, ToolUseBlock)}

    @property
    def tool_result_ids(self) -> set[str]:
        return {b.tool_use_id for b in self.content if isinstance(b, ToolResultBlock)}

    @property
    def has_text_block(self) -> bool:
        return any(isinstance(b, TextBlock) for b in self.content)


# ---------------------------------------------------------------------------
# Tool declarations
# ---------------------------------------------------------------------------


class ToolSchema(BaseModel):
    """JSON-Schema-like description of a tool's input."""

    type: str = "object"
    properties: dict[str, Any] = Field(default_factory=dict)
    required: list[str] = Field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "type": self.type,
            "properties": self.properties,
            "required": list(self.required),
        }


class Tool(BaseModel):
    """A tool definition advertised to providers.

    Accepts both ``input_schema`` and MCP-style ``inputSchema`` keys.
    """

    model_config = ConfigDict(populate_by_name=True)

    name: str
    description: str = ""
    input_schema: ToolSchema = Field(default_factory=ToolSchema, alias="inputSchema")

    def to_anthropic(self) -> dict:
        """Convert to Anthropic tool-use format."""
        return {
            "name": self.name,
            "description": self.description,
            "input_schema": self.input_schema.to_dict(),
        }

    def to_openai(self) -> dict:
        """Convert to OpenAI function-calling format."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.input_schema.to_dict(),
            },
        }


# ---------------------------------------------------------------------------
# Tool result serialization
# ---------------------------------------------------------------------------


def serialize_tool_content(content: Any) -> str:
    """Render arbitrary tool output as the canonical string sent to providers.

    Strings pass through, bytes are decoded as UTF-8, lists of MCP-style
    ``{"text": ...}`` items are joined by newlines, and everything else is
    JSON-encoded. An empty rendering becomes a fixed placeholder.

    Raises:
        ToolSerializationError: If the value cannot be JSON-encoded.
    """
    if content is None:
        text = ""
    elif isinstance(content, str):
        text = content
    elif isinstance(content, (bytes, bytearray)):
        text = bytes(content).decode("utf-8", errors="replace")
    else:
        text = ""
        if isinstance(content, list):
            text = "\n".join(
                item["text"]
                for item in content
                if isinstance(item, dict) and isinstance(item.get("text"), str)
            )
        if not text:
            if isinstance(content, BaseModel):
                content = content.model_dump(mode="json")
            try:
                text = json.dumps(content)
            except (TypeError, ValueError) as exc:
                raise ToolSerializationError(
                    f"Cannot serialize tool content of type {type(content).__name__}: {exc}"
                ) from exc
    if not text.strip():
        return EMPTY_TOOL_CONTENT
    return text
