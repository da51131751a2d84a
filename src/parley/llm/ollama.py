"""Ollama local-model adapter.

Talks to the Ollama REST API (``/api/chat`` with streaming disabled).
Ollama has no tool-call ids and reports no usage for some models, so ids
are synthesized and missing counts become zeros. Tool support depends on
the model and is probed at runtime through ``/api/show``.
"""

from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING, Any

import httpx

from parley.llm.base import BaseProvider
from parley.llm.errors import LLMClientError, LLMResponseError
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

DEFAULT_MODEL = "qwen2.5:3b"
DEFAULT_HOST = "http://localhost:11434"


def _normalize_host(host: str | None) -> str:
    host = (host or DEFAULT_HOST).rstrip("/")
    if "://" not in host:
        host = f"http://{host}"
    return host


def convert_properties(properties: dict[str, Any]) -> dict[str, dict]:
    """Reduce JSON-Schema properties to Ollama's ``{type, description, enum}`` shape.

    Non-mapping property definitions are dropped.
    """
    result: dict[str, dict] = {}
    for name, prop in properties.items():
        if not isinstance(prop, dict):
            logger.warning("Invalid property type for %s", name)
            continue
        converted: dict[str, Any] = {
            "type": prop.get("type", "") if isinstance(prop.get("type"), str) else "",
            "description": prop.get("description", "")
            if isinstance(prop.get("description"), str)
            else "",
        }
        enum = prop.get("enum")
        if isinstance(enum, list):
            converted["enum"] = [e for e in enum if isinstance(e, str)]
        result[name] = converted
    return result


def tool_to_ollama(tool: Tool) -> dict:
    return {
        "type": "function",
        "function": {
            "name": tool.name,
            "description": tool.description,
            "parameters": {
                "type": tool.input_schema.type,
                "required": list(tool.input_schema.required),
                "properties": convert_properties(tool.input_schema.properties),
            },
        },
    }


class OllamaProvider(BaseProvider):
    """Provider adapter for a local Ollama server."""

    name = "ollama"

    def __init__(
        self,
        model: str = DEFAULT_MODEL,
        host: str | None = None,
        *,
        temperature: float | None = None,
        timeout: float = 300.0,
        client: httpx.Client | None = None,
    ) -> None:
        """Initialize the Ollama adapter.

        Args:
            model: Local model name (e.g. ``qwen2.5:3b``).
            host: Server address. Falls back to OLLAMA_HOST, then
                http://localhost:11434.
            temperature: Sampling temperature, omitted when None.
            timeout: Request timeout in seconds.
            client: Pre-built httpx client.
        """
        self.model = model or DEFAULT_MODEL
        self._host = _normalize_host(host or os.environ.get("OLLAMA_HOST"))
        self._temperature = temperature
        self._supports_tools: bool | None = None
        super().__init__(timeout=timeout, client=client)

    def to_wire(self, prompt: str, messages: list[Message]) -> list[dict]:
        wire: list[dict] = []
        for msg in messages:
            if msg.is_tool_response:
                for block in msg.tool_results:
                    if not block.content:
                        logger.debug("skipping empty tool response")
                        continue
                    wire.append({"role": "tool", "content": block.content})
                continue

            text = msg.text
            tool_calls = [tc for tc in msg.tool_calls if tc.name]
            if not text and not tool_calls:
                logger.debug("skipping empty %s message", msg.role)
                continue

            entry: dict[str, Any] = {"role": msg.role, "content": text}
            if msg.role == "assistant" and tool_calls:
                entry["tool_calls"] = [
                    {"function": {"name": tc.name, "arguments": tc.arguments}}
                    for tc in tool_calls
                ]
            wire.append(entry)

        if prompt:
            wire.append({"role": "user", "content": prompt})
        return wire

    def create_message(
        self,
        prompt: str,
        messages: list[Message],
        tools: list[Tool],
    ) -> Message:
        payload: dict[str, Any] = {
            "model": self.model,
            "messages": self.to_wire(prompt, messages),
            "stream": False,
        }
        if tools:
            payload["tools"] = [tool_to_ollama(t) for t in tools]
        if self._temperature is not None:
            payload["options"] = {"temperature": self._temperature}

        data = self._post(f"{self._host}/api/chat", payload)
        return self.from_wire(data)

    @staticmethod
    def from_wire(data: dict) -> Message:
        raw = data.get("message")
        if not isinstance(raw, dict):
            raise LLMResponseError(
                f"Unexpected response format: missing 'message'. Response: {data}"
            )

        blocks: list[Any] = []
        if raw.get("content"):
            blocks.append(TextBlock(text=raw["content"]))
        for call in raw.get("tool_calls") or []:
            if not isinstance(call, dict):
                raise LLMResponseError(f"Unexpected tool call entry: {call!r}")
            func = call.get("function")
            if not isinstance(func, dict):
                func = {}
            name = func.get("name") or ""
            arguments = func.get("arguments")
            blocks.append(
                ToolUseBlock(
                    id=call.get("id") or new_tool_call_id(name),
                    name=name,
                    input=arguments if isinstance(arguments, dict) else {},
                )
            )

        return Message(
            role="assistant",
            content=blocks,
            usage=TokenUsage(
                input_tokens=data.get("prompt_eval_count", 0) or 0,
                output_tokens=data.get("eval_count", 0) or 0,
            ),
        )

    def supports_tools(self) -> bool:
        """Probe the model metadata for function-calling support.

        The answer is cached after the first successful probe. Any probe
        failure is logged and treated as "no tool support".
        """
        if self._supports_tools is not None:
            return self._supports_tools
        try:
            info = self._post(f"{self._host}/api/show", {"model": self.model})
        except LLMClientError as exc:
            logger.error("Failed to get model info for %s: %s", self.model, exc)
            return False

        capabilities = info.get("capabilities") or []
        template = f"{info.get('template', '')}{info.get('modelfile', '')}"
        self._supports_tools = (
            "tools" in capabilities or "<tools>" in template or ".Tools" in template
        )
        return self._supports_tools
