"""Tests for ProviderConfig and ConversationSettings."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from parley.config import DEFAULT_MODELS, ProviderConfig
from parley.exceptions import OrchestratorError
from parley.orchestrator import ConversationSettings
from parley.retry import BackoffPolicy


class TestProviderConfig:
    def test_defaults(self):
        config = ProviderConfig()
        assert config.provider == "anthropic"
        assert config.resolved_model == DEFAULT_MODELS["anthropic"]
        assert config.max_tokens == 4096

    def test_explicit_model_wins(self):
        assert ProviderConfig(provider="ollama", model="llama3.1").resolved_model == "llama3.1"

    def test_azure_model_is_deployment(self):
        assert ProviderConfig(provider="azure", azure_deployment="gpt4o").resolved_model == "gpt4o"

    def test_unknown_provider_rejected(self):
        with pytest.raises(ValidationError):
            ProviderConfig(provider="bard")

    def test_frozen(self):
        config = ProviderConfig()
        with pytest.raises(ValidationError):
            config.model = "other"

    def test_from_env_anthropic(self, monkeypatch):
        monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-env")
        monkeypatch.setenv("ANTHROPIC_BASE_URL", "https://proxy")
        config = ProviderConfig.from_env("anthropic")
        assert config.api_key == "sk-env"
        assert config.base_url == "https://proxy"

    def test_from_env_azure(self, monkeypatch):
        monkeypatch.setenv("AZURE_OPENAI_API_KEY", "az")
        monkeypatch.setenv("AZURE_OPENAI_ENDPOINT", "https://res")
        monkeypatch.setenv("AZURE_OPENAI_DEPLOYMENT", "dep")
        monkeypatch.setenv("AZURE_OPENAI_API_VERSION", "2024-10-21")
        config = ProviderConfig.from_env("azure")
        assert (config.api_key, config.base_url, config.azure_deployment, config.api_version) == (
            "az",
            "https://res",
            "dep",
            "2024-10-21",
        )

    def test_from_env_overrides_win(self, monkeypatch):
        monkeypatch.setenv("OLLAMA_HOST", "box:11434")
        config = ProviderConfig.from_env("ollama", model="qwen2.5:7b", base_url="other:1", temperature=None)
        assert config.base_url == "other:1"
        assert config.model == "qwen2.5:7b"
        assert config.temperature is None


class TestConversationSettings:
    def test_defaults(self):
        settings = ConversationSettings()
        assert settings.window == 10
        assert settings.tool_timeout == 10.0
        assert settings.backoff == BackoffPolicy()
        assert settings.max_round_trips is None
        assert settings.system_prompt is None

    @pytest.mark.parametrize(
        "kwargs",
        [{"window": -1}, {"tool_timeout": 0}, {"max_round_trips": 0}],
    )
    def test_invalid_values(self, kwargs):
        with pytest.raises(OrchestratorError):
            ConversationSettings(**kwargs)
