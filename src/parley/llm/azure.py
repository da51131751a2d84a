"""Azure OpenAI adapter.

Same wire format as the OpenAI adapter, routed through a deployment URL
with an ``api-version`` query parameter and ``api-key`` header auth.
"""

from __future__ import annotations

import os

import httpx

from parley.llm.base import BaseProvider
from parley.llm.errors import LLMConfigError
from parley.llm.openai import OpenAIProvider

DEFAULT_API_VERSION = "2024-06-01"


class AzureOpenAIProvider(OpenAIProvider):
    """Provider adapter for Azure OpenAI deployments."""

    name = "azure"

    def __init__(
        self,
        api_key: str | None = None,
        endpoint: str | None = None,
        deployment: str | None = None,
        api_version: str | None = None,
        *,
        max_tokens: int = 4096,
        temperature: float | None = None,
        timeout: float = 120.0,
        client: httpx.Client | None = None,
    ) -> None:
        """Initialize the Azure adapter.

        Args:
            api_key: Falls back to AZURE_OPENAI_API_KEY.
            endpoint: Resource endpoint. Falls back to AZURE_OPENAI_ENDPOINT.
            deployment: Deployment name. Falls back to AZURE_OPENAI_DEPLOYMENT.
            api_version: Falls back to AZURE_OPENAI_API_VERSION, then
                DEFAULT_API_VERSION.

        Raises:
            LLMConfigError: If the key, endpoint or deployment is missing.
        """
        self._api_key = api_key or os.environ.get("AZURE_OPENAI_API_KEY", "")
        endpoint = endpoint or os.environ.get("AZURE_OPENAI_ENDPOINT", "")
        deployment = deployment or os.environ.get("AZURE_OPENAI_DEPLOYMENT", "")
        missing = [
            label
            for label, value in (
                ("api key (AZURE_OPENAI_API_KEY)", self._api_key),
                ("endpoint (AZURE_OPENAI_ENDPOINT)", endpoint),
                ("deployment (AZURE_OPENAI_DEPLOYMENT)", deployment),
            )
            if not value
        ]
        if missing:
            raise LLMConfigError(f"Missing Azure OpenAI configuration: {', '.join(missing)}")

        self._base_url = endpoint.rstrip("/")
        self._deployment = deployment
        self._api_version = (
            api_version
            or os.environ.get("AZURE_OPENAI_API_VERSION")
            or DEFAULT_API_VERSION
        )
        self.model = deployment
        self._max_tokens = max_tokens
        self._temperature = temperature
        BaseProvider.__init__(
            self,
            headers=self._auth_headers(),
            timeout=timeout,
            client=client,
        )

    def _auth_headers(self) -> dict[str, str]:
        return {"api-key": self._api_key}

    def _completions_url(self) -> str:
        return f"{self._base_url}/openai/deployments/{self._deployment}/chat/completions"

    def _completions_params(self) -> dict | None:
        return {"api-version": self._api_version}
