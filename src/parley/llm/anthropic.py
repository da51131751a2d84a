"""Anthropic Messages API adapter.

Translates the abstract Message model to and from the Anthropic wire
format: content-block arrays, a top-level ``system`` field, and tool
results carried as ``tool_result`` blocks inside user turns.
"""

from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING, Any

import httpx

from parley.exceptions import ContentValidationError
from parley.llm.base import BaseProvider
from parley.llm.errors import LLMConfigError, LLMResponseError
from parley.messages import (
    Message,
    TextBlock,
    TokenUsage,
    ToolResultBlock,
    ToolUseBlock,
    parse_block,
)

if TYPE_CHECKING:
    from parley.messages import Tool

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "claude-3-5-sonnet-20240620"
ANTHROPIC_VERSION = "2023-06-01"

_OVERLOADED_STATUS = 529


def _normalize_base_url(base_url: str | None) -> str:
    if not base_url:
        return "https://api.anthropic.com/v1"
    base_url = base_url.rstrip("/")
    if not base_url.endswith("/v1"):
        base_url = f"{base_url}/v1"
    return base_url


def _block_to_wire(block: Any) -> dict | None:
    if isinstance(block, TextBlock):
        if not block.text.strip():
            return None
        return {"type": "text", "text": block.text}
    if isinstance(block, ToolUseBlock):
        return {
            "type": "tool_use",
            "id": block.id,
            "name": block.name,
            "input": block.input if isinstance(block.input, dict) else {},
        }
    if isinstance(block, ToolResultBlock):
        wire: dict[str, Any] = {
            "type": "tool_result",
            "tool_use_id": block.tool_use_id,
            "content": block.content,
        }
        if block.is_error:
            wire["is_error"] = True
        return wire
    raise ContentValidationError(f"Unsupported content block: {type(block).__name__}")


class AnthropicProvider(BaseProvider):
    """Provider adapter for the Anthropic Messages API.

    Usage::

        with AnthropicProvider(api_key="sk-ant-...") as provider:
            reply = provider.create_message("Hello", [], [])
            print(reply.text)
    """

    name = "anthropic"

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        model: str = DEFAULT_MODEL,
        *,
        max_tokens: int = 4096,
        temperature: float | None = None,
        timeout: float = 120.0,
        client: httpx.Client | None = None,
    ) -> None:
        """Initialize the Anthropic adapter.

        Args:
            api_key: API key. Falls back to ANTHROPIC_API_KEY env var.
            base_url: API base URL; ``/v1`` is appended when missing.
            model: Model identifier.
            max_tokens: Maximum tokens to generate per reply.
            temperature: Sampling temperature, omitted when None.
            timeout: Request timeout in seconds.
            client: Pre-built httpx client (tests inject mock transports).

        Raises:
            LLMConfigError: If no API key is provided or found in environment.
        """
        self._api_key = api_key or os.environ.get("ANTHROPIC_API_KEY", "")
        if not self._api_key:
            raise LLMConfigError(
                "No API key provided. Pass api_key= or set ANTHROPIC_API_KEY "
                "environment variable."
            )
        self._base_url = _normalize_base_url(
            base_url or os.environ.get("ANTHROPIC_BASE_URL")
        )
        self.model = model or DEFAULT_MODEL
        self._max_tokens = max_tokens
        self._temperature = temperature
        super().__init__(
            headers={"x-api-key": self._api_key, "anthropic-version": ANTHROPIC_VERSION},
            timeout=timeout,
            client=client,
        )

    def _is_overloaded(self, status_code: int, error_type: str | None) -> bool:
        return error_type == "overloaded_error" or status_code == _OVERLOADED_STATUS

    def to_wire(self, prompt: str, messages: list[Message]) -> tuple[str | None, list[dict]]:
        """Convert abstract messages into (system, messages) wire form.

        System messages are hoisted into the ``system`` string, tool
        results become user turns, empty turns are dropped, and
        consecutive turns with the same role are merged.
        """
        system_parts: list[str] = []
        wire: list[dict] = []

        for msg in messages:
            if msg.role == "system":
                if msg.text:
                    system_parts.append(msg.text)
                continue

            blocks = [b for b in (_block_to_wire(block) for block in msg.content) if b]
            if not blocks:
                logger.debug("skipping empty %s message", msg.role)
                continue

            role = "user" if msg.role in ("user", "tool") else "assistant"
            if wire and wire[-1]["role"] == role:
                wire[-1]["content"].extend(blocks)
            else:
                wire.append({"role": role, "content": blocks})

        if prompt:
            prompt_block = {"type": "text", "text": prompt}
            if wire and wire[-1]["role"] == "user":
                wire[-1]["content"].append(prompt_block)
            else:
                wire.append({"role": "user", "content": [prompt_block]})

        system = "\n\n".join(system_parts) if system_parts else None
        return system, wire

    def create_message(
        self,
        prompt: str,
        messages: list[Message],
        tools: list[Tool],
    ) -> Message:
        system, wire_messages = self.to_wire(prompt, messages)
        payload: dict[str, Any] = {
            "model": self.model,
            "max_tokens": self._max_tokens,
            "messages": wire_messages,
        }
        if system:
            payload["system"] = system
        if tools:
            payload["tools"] = [t.to_anthropic() for t in tools]
        if self._temperature is not None:
            payload["temperature"] = self._temperature

        data = self._post(f"{self._base_url}/messages", payload)
        return self.from_wire(data)

    @staticmethod
    def from_wire(data: dict) -> Message:
        """Convert an Anthropic response body into an assistant Message.

        Raises:
            LLMResponseError: If ``content`` is missing or not a list.
        """
        raw_content = data.get("content")
        if not isinstance(raw_content, list):
            raise LLMResponseError(
                f"Unexpected response format: missing 'content' list. Response: {data}"
            )

        blocks: list[Any] = []
        for raw in raw_content:
            kind = raw.get("type") if isinstance(raw, dict) else None
            if kind not in ("text", "tool_use"):
                logger.debug("ignoring %s block in anthropic response", kind)
                continue
            try:
                blocks.append(parse_block(raw))
            except ContentValidationError as exc:
                raise LLMResponseError(str(exc)) from exc

        usage = data.get("usage") or {}
        return Message(
            role="assistant",
            content=blocks,
            usage=TokenUsage(
                input_tokens=usage.get("input_tokens", 0) or 0,
                output_tokens=usage.get("output_tokens", 0) or 0,
            ),
        )
