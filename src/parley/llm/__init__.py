"""Provider adapters for Parley.

One adapter per backend (Anthropic, OpenAI, Azure OpenAI, Ollama), all
implementing the Provider protocol over the abstract Message model.
"""

from parley.llm.anthropic import AnthropicProvider
from parley.llm.azure import AzureOpenAIProvider
from parley.llm.base import BaseProvider
from parley.llm.errors import (
    LLMAuthError,
    LLMClientError,
    LLMConfigError,
    LLMOverloadedError,
    LLMRequestError,
    LLMResponseError,
)
from parley.llm.factory import create_provider
from parley.llm.ollama import OllamaProvider
from parley.llm.openai import OpenAIProvider
from parley.llm.protocols import Provider

__all__ = [
    "Provider",
    "BaseProvider",
    "AnthropicProvider",
    "OpenAIProvider",
    "AzureOpenAIProvider",
    "OllamaProvider",
    "create_provider",
    "LLMClientError",
    "LLMConfigError",
    "LLMAuthError",
    "LLMOverloadedError",
    "LLMRequestError",
    "LLMResponseError",
]
