"""Tests for the OpenAI and Azure OpenAI adapters."""

from __future__ import annotations

import json

import httpx
import pytest

from parley.llm import (
    AzureOpenAIProvider,
    LLMConfigError,
    LLMOverloadedError,
    LLMResponseError,
    OpenAIProvider,
)
from parley.llm.openai import EMPTY_FUNCTION_CONTENT, message_from_openai, messages_to_openai
from parley.messages import Message, Tool, ToolCall
from tests.conftest import json_client, request_json


# ---------------------------------------------------------------------------
# Fixtures and helpers
# ---------------------------------------------------------------------------


def _completion(message: dict, prompt_tokens: int = 10, completion_tokens: int = 5) -> dict:
    return {
        "id": "chatcmpl-test123",
        "object": "chat.completion",
        "choices": [{"index": 0, "message": message, "finish_reason": "stop"}],
        "usage": {
            "prompt_tokens": prompt_tokens,
            "completion_tokens": completion_tokens,
            "total_tokens": prompt_tokens + completion_tokens,
        },
    }


# ---------------------------------------------------------------------------
# Wire conversion
# ---------------------------------------------------------------------------


class TestMessagesToOpenAI:
    def test_tool_calls_and_results(self):
        history = [
            Message.user("Weather?"),
            Message.assistant("", [ToolCall("call_1", "weather__temperature", {"city": "Oslo"})]),
            Message.tool_result("call_1", '{"celsius": 21}'),
        ]
        wire = messages_to_openai("", history)

        assert wire[0] == {"role": "user", "content": "Weather?"}
        assert wire[1]["content"] is None
        call = wire[1]["tool_calls"][0]
        assert call["id"] == "call_1"
        assert json.loads(call["function"]["arguments"]) == {"city": "Oslo"}
        assert wire[2] == {"role": "tool", "tool_call_id": "call_1", "content": '{"celsius": 21}'}

    def test_empty_tool_content_placeholder(self):
        wire = messages_to_openai("", [Message.tool_result("call_1", "")])
        assert wire[0]["content"] == EMPTY_FUNCTION_CONTENT

    def test_empty_messages_skipped_prompt_appended(self):
        wire = messages_to_openai("hello", [Message(role="assistant", content=[])])
        assert wire == [{"role": "user", "content": "hello"}]


class TestMessageFromOpenAI:
    def test_text_and_usage(self):
        msg = message_from_openai(_completion({"role": "assistant", "content": "Hi"}))
        assert msg.text == "Hi"
        assert (msg.usage.input_tokens, msg.usage.output_tokens) == (10, 5)

    def test_tool_calls_parsed(self):
        msg = message_from_openai(
            _completion(
                {
                    "role": "assistant",
                    "content": None,
                    "tool_calls": [
                        {"id": "call_1", "type": "function", "function": {"name": "a__b", "arguments": '{"x": 1}'}}
                    ],
                }
            )
        )
        assert msg.tool_calls == [ToolCall("call_1", "a__b", {"x": 1})]

    def test_malformed_arguments_become_empty(self):
        msg = message_from_openai(
            _completion(
                {
                    "role": "assistant",
                    "tool_calls": [{"id": "call_1", "function": {"name": "a__b", "arguments": "{not json"}}],
                }
            )
        )
        assert msg.tool_calls[0].arguments == {}

    def test_missing_id_synthesized(self):
        msg = message_from_openai(
            _completion({"role": "assistant", "tool_calls": [{"function": {"name": "a__b", "arguments": "{}"}}]})
        )
        assert msg.tool_calls[0].id.startswith("tc_a__b_")

    def test_missing_choices(self):
        with pytest.raises(LLMResponseError):
            message_from_openai({"choices": []})

    def test_null_function_becomes_unnamed_call(self):
        msg = message_from_openai(
            _completion({"role": "assistant", "tool_calls": [{"id": "c1", "function": None}]})
        )
        assert msg.tool_calls[0].id == "c1"
        assert msg.tool_calls[0].name == ""
        assert msg.tool_calls[0].arguments == {}

    def test_non_object_tool_call_raises(self):
        with pytest.raises(LLMResponseError):
            message_from_openai(_completion({"role": "assistant", "tool_calls": ["a__b"]}))


# ---------------------------------------------------------------------------
# OpenAIProvider
# ---------------------------------------------------------------------------


class TestOpenAIProvider:
    def test_missing_key(self, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        with pytest.raises(LLMConfigError):
            OpenAIProvider()

    def test_request(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["auth"] = request.headers["authorization"]
            seen["body"] = request_json(request)
            return httpx.Response(200, json=_completion({"role": "assistant", "content": "ok"}))

        provider = OpenAIProvider(
            api_key="sk-test",
            base_url="http://test-api/v1/",
            temperature=0.2,
            client=json_client(handler),
        )
        reply = provider.create_message("hi", [], [Tool(name="a__b")])

        assert reply.text == "ok"
        assert seen["url"] == "http://test-api/v1/chat/completions"
        assert seen["auth"] == "Bearer sk-test"
        assert seen["body"]["model"] == "gpt-4o-mini"
        assert seen["body"]["temperature"] == 0.2
        assert seen["body"]["tools"][0]["function"]["name"] == "a__b"

    def test_no_tools_key_without_tools(self):
        seen = {}

        def handler(request):
            seen["body"] = request_json(request)
            return httpx.Response(200, json=_completion({"role": "assistant", "content": "ok"}))

        OpenAIProvider(api_key="k", base_url="http://x", client=json_client(handler)).create_message("hi", [], [])
        assert "tools" not in seen["body"]

    @pytest.mark.parametrize("status", [429, 503])
    def test_overload_statuses(self, status):
        def handler(request):
            return httpx.Response(status, json={"error": {"message": "slow down", "type": "rate_limit"}})

        provider = OpenAIProvider(api_key="k", base_url="http://x", client=json_client(handler))
        with pytest.raises(LLMOverloadedError):
            provider.create_message("hi", [], [])


# ---------------------------------------------------------------------------
# AzureOpenAIProvider
# ---------------------------------------------------------------------------


class TestAzureOpenAIProvider:
    def test_missing_settings_listed(self, monkeypatch):
        for var in ("AZURE_OPENAI_API_KEY", "AZURE_OPENAI_ENDPOINT", "AZURE_OPENAI_DEPLOYMENT"):
            monkeypatch.delenv(var, raising=False)
        with pytest.raises(LLMConfigError) as exc_info:
            AzureOpenAIProvider(api_key="k")
        message = str(exc_info.value)
        assert "AZURE_OPENAI_ENDPOINT" in message
        assert "AZURE_OPENAI_DEPLOYMENT" in message
        assert "AZURE_OPENAI_API_KEY" not in message

    def test_deployment_url_and_api_key_header(self, monkeypatch):
        monkeypatch.delenv("AZURE_OPENAI_API_VERSION", raising=False)
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["request"] = request
            return httpx.Response(200, json=_completion({"role": "assistant", "content": "ok"}))

        provider = AzureOpenAIProvider(
            api_key="az-key",
            endpoint="https://res.openai.azure.com/",
            deployment="gpt4o",
            client=json_client(handler),
        )
        provider.create_message("hi", [], [])

        request = seen["request"]
        assert request.url.path == "/openai/deployments/gpt4o/chat/completions"
        assert request.url.params["api-version"] == "2024-06-01"
        assert request.headers["api-key"] == "az-key"
        assert "authorization" not in request.headers
        assert request_json(request)["model"] == "gpt4o"
