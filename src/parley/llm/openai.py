"""OpenAI-compatible chat completions adapter.

Reads configuration from constructor arguments or environment variables.
Tool calls travel as ``tool_calls`` on assistant messages with JSON-string
arguments; tool results use the ``tool`` role with a ``tool_call_id``.
"""

from __future__ import annotations

import json
import logging
import os
from typing import TYPE_CHECKING, Any

import httpx

from parley.llm.base import BaseProvider
from parley.llm.errors import LLMConfigError, LLMResponseError
from parley.messages import (
    Message,
    TextBlock,
    TokenUsage,
    ToolUseBlock,
    new_tool_call_id,
)

if TYPE_CHECKING:
    from parley.messages import Tool

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-4o-mini"
EMPTY_FUNCTION_CONTENT = "No content returned from function"

_OVERLOADED_STATUS_CODES = {429, 503}


def messages_to_openai(prompt: str, messages: list[Message]) -> list[dict]:
    """Convert abstract messages to the chat completions ``messages`` array.

    Each tool-result block becomes its own ``tool`` message; messages with
    neither text nor tool calls are dropped.
    """
    wire: list[dict] = []
    for msg in messages:
        if msg.is_tool_response:
            for block in msg.tool_results:
                wire.append({
                    "role": "tool",
                    "tool_call_id": block.tool_use_id,
                    "content": block.content or EMPTY_FUNCTION_CONTENT,
                })
            continue

        text = msg.text
        tool_calls = msg.tool_calls
        if tool_calls:
            wire.append({
                "role": msg.role,
                "content": text or None,
                "tool_calls": [
                    {
                        "id": tc.id,
                        "type": "function",
                        "function": {
                            "name": tc.name,
                            "arguments": json.dumps(tc.arguments),
                        },
                    }
                    for tc in tool_calls
                ],
            })
        elif text:
            wire.append({"role": msg.role, "content": text})
        else:
            logger.debug("skipping empty %s message", msg.role)

    if prompt:
        wire.append({"role": "user", "content": prompt})
    return wire


def message_from_openai(data: dict) -> Message:
    """Parse a chat completion response into an assistant Message.

    Malformed JSON arguments are logged and replaced by an empty mapping.

    Raises:
        LLMResponseError: If the response has no choices or a tool call
            entry is not an object.
    """
    try:
        choice = data["choices"][0]
        raw = choice["message"]
    except (KeyError, IndexError, TypeError) as exc:
        raise LLMResponseError(
            f"Unexpected response format: missing 'choices'. Response: {data}"
        ) from exc

    logger.debug("finish_reason=%s", choice.get("finish_reason"))

    blocks: list[Any] = []
    if raw.get("content"):
        blocks.append(TextBlock(text=raw["content"]))
    for tc in raw.get("tool_calls") or []:
        if not isinstance(tc, dict):
            raise LLMResponseError(f"Unexpected tool call entry: {tc!r}")
        func = tc.get("function")
        if not isinstance(func, dict):
            func = {}
        name = func.get("name") or ""
        raw_args = func.get("arguments", "{}")
        if isinstance(raw_args, dict):
            arguments = raw_args
        else:
            try:
                arguments = json.loads(raw_args or "{}")
            except (json.JSONDecodeError, TypeError):
                logger.warning("Malformed JSON in tool call arguments for %s", name)
                arguments = {}
        blocks.append(
            ToolUseBlock(
                id=tc.get("id") or new_tool_call_id(name),
                name=name,
                input=arguments if isinstance(arguments, dict) else {},
            )
        )

    usage = data.get("usage") or {}
    return Message(
        role="assistant",
        content=blocks,
        usage=TokenUsage(
            input_tokens=usage.get("prompt_tokens", 0) or 0,
            output_tokens=usage.get("completion_tokens", 0) or 0,
        ),
    )


class OpenAIProvider(BaseProvider):
    """Provider adapter for OpenAI-compatible chat completion APIs.

    Usage::

        with OpenAIProvider(api_key="sk-...") as provider:
            reply = provider.create_message("Hello", [], [])
    """

    name = "openai"

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
        """Initialize the OpenAI-compatible adapter.

        Args:
            api_key: API key. Falls back to OPENAI_API_KEY env var.
            base_url: API base URL. Falls back to OPENAI_BASE_URL env var,
                then to https://api.openai.com/v1.
            model: Model identifier.
            max_tokens: Maximum tokens to generate.
            temperature: Sampling temperature, omitted when None.
            timeout: Request timeout in seconds.
            client: Pre-built httpx client.

        Raises:
            LLMConfigError: If no API key is provided or found in environment.
        """
        self._api_key = api_key or os.environ.get("OPENAI_API_KEY", "")
        if not self._api_key:
            raise LLMConfigError(
                "No API key provided. Pass api_key= or set OPENAI_API_KEY "
                "environment variable."
            )
        self._base_url = (
            base_url or os.environ.get("OPENAI_BASE_URL", "https://api.openai.com/v1")
        ).rstrip("/")
        self.model = model or DEFAULT_MODEL
        self._max_tokens = max_tokens
        self._temperature = temperature
        super().__init__(
            headers=self._auth_headers(),
            timeout=timeout,
            client=client,
        )

    def _auth_headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self._api_key}"}

    def _completions_url(self) -> str:
        return f"{self._base_url}/chat/completions"

    def _completions_params(self) -> dict | None:
        return None

    def _is_overloaded(self, status_code: int, error_type: str | None) -> bool:
        return status_code in _OVERLOADED_STATUS_CODES

    def build_payload(
        self,
        prompt: str,
        messages: list[Message],
        tools: list[Tool],
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "model": self.model,
            "messages": messages_to_openai(prompt, messages),
            "max_tokens": self._max_tokens,
        }
        if tools:
            payload["tools"] = [t.to_openai() for t in tools]
        if self._temperature is not None:
            payload["temperature"] = self._temperature
        return payload

    def create_message(
        self,
        prompt: str,
        messages: list[Message],
        tools: list[Tool],
    ) -> Message:
        payload = self.build_payload(prompt, messages, tools)
        data = self._post(
            self._completions_url(), payload, params=self._completions_params()
        )
        return message_from_openai(data)
