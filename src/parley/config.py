"""Provider configuration.

ProviderConfig selects and parameterizes one backend adapter. It is
built by the caller (the CLI reads it from flags and the environment)
and handed to create_provider() once at startup.
"""

from __future__ import annotations

import os
from typing import Literal, Optional

from pydantic import BaseModel

ProviderName = Literal["anthropic", "openai", "azure", "ollama"]

DEFAULT_MODELS: dict[str, str] = {
    "anthropic": "claude-3-5-sonnet-20240620",
    "openai": "gpt-4o-mini",
    "ollama": "qwen2.5:3b",
}


class ProviderConfig(BaseModel):
    """Backend selection and connection settings."""

    model_config = {"frozen": True}

    provider: ProviderName = "anthropic"
    model: Optional[str] = None
    api_key: Optional[str] = None
    base_url: Optional[str] = None
    azure_deployment: Optional[str] = None
    api_version: Optional[str] = None
    max_tokens: int = 4096
    temperature: Optional[float] = None
    timeout: float = 120.0

    @property
    def resolved_model(self) -> str:
        """The configured model, or the backend default."""
        if self.model:
            return self.model
        if self.provider == "azure":
            return self.azure_deployment or ""
        return DEFAULT_MODELS[self.provider]

    @classmethod
    def from_env(
        cls,
        provider: ProviderName = "anthropic",
        *,
        model: str | None = None,
        **overrides: object,
    ) -> ProviderConfig:
        """Build a config for ``provider`` from environment variables.

        Explicit keyword overrides win over the environment.
        """
        env = os.environ
        values: dict[str, object] = {"provider": provider, "model": model}
        if provider == "anthropic":
            values["api_key"] = env.get("ANTHROPIC_API_KEY")
            values["base_url"] = env.get("ANTHROPIC_BASE_URL")
        elif provider == "openai":
            values["api_key"] = env.get("OPENAI_API_KEY")
            values["base_url"] = env.get("OPENAI_BASE_URL")
        elif provider == "azure":
            values["api_key"] = env.get("AZURE_OPENAI_API_KEY")
            values["base_url"] = env.get("AZURE_OPENAI_ENDPOINT")
            values["azure_deployment"] = env.get("AZURE_OPENAI_DEPLOYMENT")
            values["api_version"] = env.get("AZURE_OPENAI_API_VERSION")
        elif provider == "ollama":
            values["base_url"] = env.get("OLLAMA_HOST")
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)
