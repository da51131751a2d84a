"""Shared test fixtures for Parley.

Provides a scripted in-memory provider, a small weather collaborator,
and helpers for building mock httpx clients. No test touches the network.
"""

from __future__ import annotations

import json
import threading

import httpx
import pytest

from parley.messages import Message, ToolCall, serialize_tool_content
from parley.tools import FunctionCollaborator, ToolDispatcher


class ScriptedProvider:
    """Provider stub that replays a fixed list of replies.

    Each entry is a Message to return or an exception to raise. The
    history passed to every call is recorded for later inspection.
    """

    name = "scripted"

    def __init__(self, replies: list, *, tools_supported: bool = True) -> None:
        self._replies = list(replies)
        self._tools_supported = tools_supported
        self.calls: list[list[Message]] = []
        self.tools_seen: list[list] = []
        self.closed = False

    def create_message(self, prompt, messages, tools):
        self.calls.append(list(messages))
        self.tools_seen.append(list(tools))
        if not self._replies:
            raise AssertionError("ScriptedProvider ran out of replies")
        reply = self._replies.pop(0)
        if isinstance(reply, BaseException):
            raise reply
        return reply

    def create_tool_response(self, tool_call_id, content, *, is_error=False):
        return Message.tool_result(
            tool_call_id, serialize_tool_content(content), is_error=is_error
        )

    def supports_tools(self) -> bool:
        return self._tools_supported

    def close(self) -> None:
        self.closed = True


class BlockingProvider(ScriptedProvider):
    """Provider whose create_message blocks until ``release`` is set."""

    def __init__(self, replies: list) -> None:
        super().__init__(replies)
        self.entered = threading.Event()
        self.release = threading.Event()

    def create_message(self, prompt, messages, tools):
        self.entered.set()
        self.release.wait(5)
        return super().create_message(prompt, messages, tools)


def tool_call_reply(*calls: tuple[str, str, dict], text: str = "") -> Message:
    """Assistant reply carrying ``(id, name, arguments)`` tool calls."""
    return Message.assistant(
        text, [ToolCall(id=cid, name=name, arguments=args) for cid, name, args in calls]
    )


def json_client(handler) -> httpx.Client:
    """httpx client backed by a MockTransport running ``handler``."""
    return httpx.Client(transport=httpx.MockTransport(handler))


def request_json(request: httpx.Request) -> dict:
    return json.loads(request.content)


def make_weather() -> FunctionCollaborator:
    weather = FunctionCollaborator("weather")

    @weather.tool(description="Current temperature for a city.")
    def temperature(city: str) -> dict:
        return {"city": city, "celsius": 21}

    @weather.tool()
    def fail(reason: str = "boom") -> None:
        """Always fails."""
        raise RuntimeError(reason)

    return weather


@pytest.fixture
def weather() -> FunctionCollaborator:
    return make_weather()


@pytest.fixture
def dispatcher(weather) -> ToolDispatcher:
    return ToolDispatcher([weather])


@pytest.fixture
def no_sleep():
    """Sleep replacement recording requested delays."""
    delays: list[float] = []

    def sleep(seconds: float) -> None:
        delays.append(seconds)

    sleep.delays = delays
    return sleep
