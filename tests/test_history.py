"""Tests for history pruning and the pairing invariant."""

from __future__ import annotations

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from parley.history import ConversationHistory, drop_orphans, find_orphans, prune_messages
from parley.messages import Message, TextBlock, ToolCall, ToolResultBlock, ToolUseBlock
from tests.strategies import conversations, windows


def _four_message_history() -> list[Message]:
    return [
        Message.user("A"),
        Message.assistant("", [ToolCall("1", "weather__temperature", {"city": "Oslo"})]),
        Message.tool_result("1", "21C"),
        Message.user("B"),
    ]


# ---------------------------------------------------------------------------
# Scenarios
# ---------------------------------------------------------------------------


class TestPruneScenarios:
    def test_within_window_is_identity(self):
        history = _four_message_history()
        assert prune_messages(history, window=10) is history
        assert prune_messages(history, window=4) is history

    def test_window_three_keeps_pair(self):
        history = _four_message_history()
        pruned = prune_messages(history, window=3)
        assert pruned == history[1:]

    def test_window_two_drops_orphaned_result(self):
        pruned = prune_messages(_four_message_history(), window=2)
        assert len(pruned) == 1
        assert pruned[0].role == "user"
        assert pruned[0].text == "B"

    def test_window_zero_empties_history(self):
        assert prune_messages(_four_message_history(), window=0) == []

    def test_negative_window_rejected(self):
        with pytest.raises(ValueError):
            prune_messages([], window=-1)

    def test_assistant_with_text_keeps_text_when_tool_use_orphaned(self):
        history = [
            Message.user("A"),
            Message.user("B"),
            Message.assistant("let me check", [ToolCall("9", "a__b")]),
        ]
        pruned = prune_messages(history, window=2)
        assert [m.text for m in pruned] == ["B", "let me check"]
        assert pruned[1].tool_calls == []

    def test_trailing_tool_use_without_result_dropped(self):
        history = [
            Message.user("A"),
            Message.user("B"),
            Message.assistant("", [ToolCall("9", "a__b")]),
        ]
        pruned = prune_messages(history, window=2)
        assert [m.role for m in pruned] == ["user"]

    def test_mixed_tool_results_keep_surviving_pair(self):
        history = [
            Message.assistant("", [ToolCall("1", "a__b")]),
            Message.user("filler"),
            Message.assistant("", [ToolCall("2", "a__b")]),
            Message(
                role="user",
                content=[
                    ToolResultBlock(tool_use_id="1", content="old"),
                    ToolResultBlock(tool_use_id="2", content="new"),
                ],
            ),
        ]
        pruned = prune_messages(history, window=2)
        assert len(pruned) == 2
        assert pruned[1].tool_result_ids == {"2"}

    def test_non_assistant_with_empty_text_kept(self):
        history = [
            Message.user("A"),
            Message(role="system", content=[TextBlock(text="")]),
            Message.user("B"),
        ]
        pruned = prune_messages(history, window=2)
        assert [m.role for m in pruned] == ["system", "user"]

    def test_input_not_mutated(self):
        history = _four_message_history()
        snapshot = [m.model_copy(deep=True) for m in history]
        prune_messages(history, window=2)
        assert history == snapshot


# ---------------------------------------------------------------------------
# drop_orphans
# ---------------------------------------------------------------------------


class TestDropOrphans:
    def test_paired_history_unchanged(self):
        history = _four_message_history()
        assert drop_orphans(history) == history

    def test_unanswered_tool_use_removed_regardless_of_window(self):
        history = [
            Message.user("A"),
            Message.assistant(
                "checking",
                [ToolCall("bad", "nonamespace"), ToolCall("2", "weather__temperature")],
            ),
            Message.tool_result("2", "21C"),
        ]
        repaired = drop_orphans(history)
        assert not find_orphans(repaired)
        assert [b.id for b in repaired[1].content if isinstance(b, ToolUseBlock)] == ["2"]
        assert repaired[1].text == "checking"

    def test_assistant_left_empty_dropped(self):
        history = [Message.user("A"), Message.assistant("", [ToolCall("bad", "nonamespace")])]
        assert drop_orphans(history) == [history[0]]

    def test_result_without_use_dropped(self):
        history = [Message.user("A"), Message.tool_result("ghost", "x"), Message.user("B")]
        assert [m.text for m in drop_orphans(history)] == ["A", "B"]

    @given(history=conversations(), data=st.data())
    @settings(max_examples=100)
    def test_never_leaves_orphans(self, history, data):
        start = data.draw(st.integers(min_value=0, max_value=len(history)))
        end = data.draw(st.integers(min_value=start, max_value=len(history)))
        assert not find_orphans(drop_orphans(history[start:end]))


# ---------------------------------------------------------------------------
# Properties
# ---------------------------------------------------------------------------


class TestPruneProperties:
    @given(history=conversations(), window=windows)
    @settings(max_examples=200)
    def test_no_orphans_after_pruning(self, history, window):
        pruned = prune_messages(history, window)
        if len(history) > window:
            assert not find_orphans(pruned)

    @given(history=conversations(), window=windows)
    @settings(max_examples=200)
    def test_never_exceeds_window(self, history, window):
        pruned = prune_messages(history, window)
        assert len(pruned) <= max(window, len(history) if len(history) <= window else 0)

    @given(history=conversations(), window=windows)
    @settings(max_examples=100)
    def test_prune_is_idempotent(self, history, window):
        once = prune_messages(history, window)
        assert prune_messages(once, window) == once

    @given(history=conversations(), window=windows)
    @settings(max_examples=100)
    def test_no_contentless_assistant_survives(self, history, window):
        for msg in prune_messages(history, window):
            if msg.role == "assistant" and len(history) > window:
                has_tool_use = any(isinstance(b, ToolUseBlock) for b in msg.content)
                assert has_tool_use or msg.text


# ---------------------------------------------------------------------------
# ConversationHistory
# ---------------------------------------------------------------------------


class TestConversationHistory:
    def test_prune_in_place_reports_removed(self):
        history = ConversationHistory.from_messages(_four_message_history(), window=2)
        assert history.prune() == 3
        assert len(history) == 1

    def test_messages_is_snapshot(self):
        history = ConversationHistory()
        history.append(Message.user("x"))
        snapshot = history.messages
        history.append(Message.user("y"))
        assert len(snapshot) == 1
        assert len(history) == 2

    def test_orphans_reported(self):
        history = ConversationHistory()
        history.extend([Message.assistant("", [ToolCall("1", "a__b")]), Message.tool_result("2", "x")])
        orphans = history.orphans()
        assert orphans.tool_uses == {"1"}
        assert orphans.tool_results == {"2"}

    def test_clear(self):
        history = ConversationHistory.from_messages(_four_message_history())
        history.clear()
        assert list(history) == []
