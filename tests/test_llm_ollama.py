"""Tests for the Ollama adapter."""

from __future__ import annotations

import httpx
import pytest

from parley.llm import LLMResponseError, OllamaProvider
from parley.llm.ollama import convert_properties, tool_to_ollama
from parley.messages import Message, Tool, ToolCall
from tests.conftest import json_client, request_json


def _chat_response(message: dict, **extra) -> dict:
    return {"model": "qwen2.5:3b", "message": message, "done": True, **extra}


class TestOllamaWire:
    def test_convert_properties_reduces_schema(self):
        props = {
            "unit": {"type": "string", "description": "Unit", "enum": ["C", "F"], "default": "C"},
            "bad": "not a mapping",
        }
        assert convert_properties(props) == {
            "unit": {"type": "string", "description": "Unit", "enum": ["C", "F"]}
        }

    def test_tool_declaration(self):
        tool = Tool(
            name="weather__temperature",
            description="Temp",
            input_schema={"properties": {"city": {"type": "string"}}, "required": ["city"]},
        )
        wire = tool_to_ollama(tool)
        assert wire["function"]["parameters"]["required"] == ["city"]
        assert wire["function"]["parameters"]["properties"]["city"]["type"] == "string"

    def test_history_conversion(self):
        provider = OllamaProvider(client=json_client(lambda r: httpx.Response(200)))
        wire = provider.to_wire(
            "",
            [
                Message.user("hi"),
                Message.assistant("", [ToolCall("tc_1", "a__b", {"x": 1})]),
                Message.tool_result("tc_1", "result"),
                Message.tool_result("tc_2", ""),
            ],
        )
        assert wire == [
            {"role": "user", "content": "hi"},
            {"role": "assistant", "content": "", "tool_calls": [{"function": {"name": "a__b", "arguments": {"x": 1}}}]},
            {"role": "tool", "content": "result"},
        ]


class TestOllamaProvider:
    def test_create_message(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["body"] = request_json(request)
            return httpx.Response(
                200,
                json=_chat_response(
                    {
                        "role": "assistant",
                        "content": "",
                        "tool_calls": [{"function": {"name": "a__b", "arguments": {"x": 1}}}],
                    },
                    prompt_eval_count=30,
                    eval_count=4,
                ),
            )

        provider = OllamaProvider(host="gpu-box:11434", temperature=0.1, client=json_client(handler))
        reply = provider.create_message("hi", [], [])

        assert seen["url"] == "http://gpu-box:11434/api/chat"
        assert seen["body"]["stream"] is False
        assert seen["body"]["options"] == {"temperature": 0.1}
        call = reply.tool_calls[0]
        assert call.id.startswith("tc_a__b_")
        assert call.arguments == {"x": 1}
        assert (reply.usage.input_tokens, reply.usage.output_tokens) == (30, 4)

    def test_missing_usage_is_zero(self):
        msg = OllamaProvider.from_wire(_chat_response({"role": "assistant", "content": "hey"}))
        assert msg.text == "hey"
        assert msg.usage.total_tokens == 0

    def test_missing_message_raises(self):
        with pytest.raises(LLMResponseError):
            OllamaProvider.from_wire({"done": True})

    def test_null_function_becomes_unnamed_call(self):
        msg = OllamaProvider.from_wire(
            _chat_response({"role": "assistant", "tool_calls": [{"function": None}]})
        )
        assert msg.tool_calls[0].name == ""
        assert msg.tool_calls[0].arguments == {}

    def test_non_object_tool_call_raises(self):
        with pytest.raises(LLMResponseError):
            OllamaProvider.from_wire(_chat_response({"role": "assistant", "tool_calls": [None]}))


class TestOllamaSupportsTools:
    @pytest.mark.parametrize(
        "info, expected",
        [
            ({"capabilities": ["completion", "tools"]}, True),
            ({"template": "{{ if .Tools }}<tools>{{ end }}"}, True),
            ({"modelfile": "FROM llama\nTEMPLATE <tools>"}, True),
            ({"template": "{{ .Prompt }}"}, False),
        ],
    )
    def test_probe(self, info, expected):
        provider = OllamaProvider(client=json_client(lambda r: httpx.Response(200, json=info)))
        assert provider.supports_tools() is expected

    def test_probe_cached(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200, json={"capabilities": ["tools"]})

        provider = OllamaProvider(client=json_client(handler))
        assert provider.supports_tools()
        assert provider.supports_tools()
        assert len(calls) == 1

    def test_probe_failure_means_no_tools(self):
        provider = OllamaProvider(
            client=json_client(lambda r: httpx.Response(404, json={"error": "model not found"}))
        )
        assert provider.supports_tools() is False
