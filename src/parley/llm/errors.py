"""LLM-specific error hierarchy.

All LLM errors inherit from ParleyError for consistent exception handling.
Only LLMOverloadedError is transient; every other LLMClientError is a
permanent provider fault that aborts the turn.
"""

from __future__ import annotations

from parley.exceptions import ParleyError


class LLMClientError(ParleyError):
    """Base for all LLM client errors."""


class LLMConfigError(LLMClientError):
    """Missing or invalid LLM configuration (e.g., no API key)."""


class LLMAuthError(LLMClientError):
    """Authentication failed (401/403)."""


class LLMOverloadedError(LLMClientError):
    """The backend signalled a transient overload.

    Attributes:
        retry_after: Seconds to wait before retrying (from Retry-After header),
            or None if not provided.
    """

    def __init__(self, message: str = "Overloaded", retry_after: float | None = None) -> None:
        self.retry_after = retry_after
        if retry_after is not None:
            message = f"{message} (retry after {retry_after}s)"
        super().__init__(message)


class LLMRequestError(LLMClientError):
    """Non-transient HTTP error from the provider (bad request, quota, ...)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        error_type: str | None = None,
    ) -> None:
        self.status_code = status_code
        self.error_type = error_type
        super().__init__(message)


class LLMResponseError(LLMClientError):
    """Unexpected response format from LLM API."""
