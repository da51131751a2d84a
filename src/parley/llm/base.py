"""Shared httpx plumbing for provider adapters.

BaseProvider owns the sync httpx client, maps non-2xx responses onto the
LLM error hierarchy, and implements the provider-independent part of
create_tool_response(). Adapters supply the wire translation.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import httpx

from parley.llm.errors import (
    LLMAuthError,
    LLMOverloadedError,
    LLMRequestError,
    LLMResponseError,
)
from parley.messages import Message, serialize_tool_content

if TYPE_CHECKING:
    from parley.messages import Tool

logger = logging.getLogger(__name__)

_AUTH_ERROR_STATUS_CODES = {401, 403}


def _parse_retry_after(response: httpx.Response) -> float | None:
    raw = response.headers.get("Retry-After")
    if raw is None:
        return None
    try:
        return float(raw)
    except (ValueError, TypeError):
        return None


def _error_details(response: httpx.Response) -> tuple[str | None, str]:
    """Return (error_type, message) from a provider error body.

    Understands ``{"error": {"type", "message"}}`` (Anthropic/OpenAI) and
    ``{"error": "..."}`` (Ollama); falls back to the raw body.
    """
    try:
        body = response.json()
    except ValueError:
        return None, response.text
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict):
        return error.get("type") or error.get("code"), str(error.get("message", ""))
    if isinstance(error, str):
        return None, error
    return None, response.text


class BaseProvider:
    """Base class for httpx-backed provider adapters.

    Subclasses set ``name``, implement ``create_message()`` and may
    override ``_is_overloaded()`` with their backend's transient marker.
    """

    name = "base"
    tool_role = "tool"

    def __init__(
        self,
        *,
        headers: dict[str, str] | None = None,
        timeout: float = 120.0,
        client: httpx.Client | None = None,
    ) -> None:
        self._timeout = timeout
        self._headers = {"Content-Type": "application/json", **(headers or {})}
        self._client = client or httpx.Client(timeout=timeout)

    # ------------------------------------------------------------------
    # Provider protocol
    # ------------------------------------------------------------------

    def create_message(
        self,
        prompt: str,
        messages: list[Message],
        tools: list[Tool],
    ) -> Message:
        raise NotImplementedError

    def create_tool_response(
        self,
        tool_call_id: str,
        content: Any,
        *,
        is_error: bool = False,
    ) -> Message:
        """Build a tool-result message from arbitrary result content.

        Non-string content is serialized to JSON; an empty result becomes
        a fixed placeholder so every backend receives some content.

        Raises:
            ToolSerializationError: If the content cannot be serialized.
        """
        text = serialize_tool_content(content)
        logger.debug(
            "creating tool response: id=%s type=%s len=%d",
            tool_call_id,
            type(content).__name__,
            len(text),
        )
        return Message.tool_result(
            tool_call_id, text, is_error=is_error, role=self.tool_role
        )

    def supports_tools(self) -> bool:
        return True

    def close(self) -> None:
        """Close the underlying httpx client."""
        self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    # ------------------------------------------------------------------
    # HTTP helpers
    # ------------------------------------------------------------------

    def _is_overloaded(self, status_code: int, error_type: str | None) -> bool:
        return status_code == 503

    def _post(self, url: str, payload: dict, *, params: dict | None = None) -> dict:
        """POST a JSON payload and return the decoded body.

        Raises:
            LLMAuthError: On 401/403.
            LLMOverloadedError: When the backend's overload marker is present.
            LLMRequestError: On any other non-2xx status or transport failure.
            LLMResponseError: If the body is not a JSON object.
        """
        logger.debug(
            "%s request: url=%s messages=%d tools=%d",
            self.name,
            url,
            len(payload.get("messages", [])),
            len(payload.get("tools", []) or []),
        )
        try:
            response = self._client.post(
                url, json=payload, params=params, headers=self._headers
            )
        except httpx.TimeoutException as exc:
            raise LLMRequestError(f"{self.name} request timed out: {exc}") from exc
        except httpx.HTTPError as exc:
            raise LLMRequestError(f"Error making request to {self.name}: {exc}") from exc

        if response.status_code in _AUTH_ERROR_STATUS_CODES:
            raise LLMAuthError(
                f"Authentication failed: HTTP {response.status_code} - {response.text}"
            )

        if response.status_code >= 400:
            error_type, message = _error_details(response)
            if self._is_overloaded(response.status_code, error_type):
                raise LLMOverloadedError(
                    f"{error_type or 'overloaded'}: {message}",
                    retry_after=_parse_retry_after(response),
                )
            raise LLMRequestError(
                f"{error_type or f'HTTP {response.status_code}'}: {message}",
                status_code=response.status_code,
                error_type=error_type,
            )

        try:
            data = response.json()
        except ValueError as exc:
            raise LLMResponseError(f"Error decoding {self.name} response: {exc}") from exc
        if not isinstance(data, dict):
            raise LLMResponseError(f"Unexpected {self.name} response: {data!r}")
        return data
