"""Build the configured provider adapter."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from parley.llm.errors import LLMConfigError

if TYPE_CHECKING:
    from parley.config import ProviderConfig
    from parley.llm.base import BaseProvider

logger = logging.getLogger(__name__)


def create_provider(config: ProviderConfig) -> BaseProvider:
    """Instantiate the adapter named by ``config.provider``.

    Raises:
        LLMConfigError: For an unknown provider or missing credentials.
    """
    logger.debug("creating %s provider for model %s", config.provider, config.resolved_model)

    if config.provider == "anthropic":
        from parley.llm.anthropic import AnthropicProvider

        return AnthropicProvider(
            api_key=config.api_key,
            base_url=config.base_url,
            model=config.resolved_model,
            max_tokens=config.max_tokens,
            temperature=config.temperature,
            timeout=config.timeout,
        )
    if config.provider == "openai":
        from parley.llm.openai import OpenAIProvider

        return OpenAIProvider(
            api_key=config.api_key,
            base_url=config.base_url,
            model=config.resolved_model,
            max_tokens=config.max_tokens,
            temperature=config.temperature,
            timeout=config.timeout,
        )
    if config.provider == "azure":
        from parley.llm.azure import AzureOpenAIProvider

        return AzureOpenAIProvider(
            api_key=config.api_key,
            endpoint=config.base_url,
            deployment=config.azure_deployment or config.model,
            api_version=config.api_version,
            max_tokens=config.max_tokens,
            temperature=config.temperature,
            timeout=config.timeout,
        )
    if config.provider == "ollama":
        from parley.llm.ollama import OllamaProvider

        return OllamaProvider(
            model=config.resolved_model,
            host=config.base_url,
            temperature=config.temperature,
            timeout=config.timeout,
        )
    raise LLMConfigError(f"Unknown provider: {config.provider}")
