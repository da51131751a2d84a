"""Bounded conversation history.

prune_messages() keeps the newest ``window`` messages and then removes
tool-use and tool-result blocks whose counterpart fell outside the
window, in both directions. Orphans are dropped, never repaired.
drop_orphans() is the window-independent half, applied to the messages
sent on every model call.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from parley.messages import Message, TextBlock, ToolResultBlock, ToolUseBlock

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

logger = logging.getLogger(__name__)

DEFAULT_WINDOW = 10


@dataclass(frozen=True)
class Orphans:
    """Unpaired tool ids found in a message list."""

    tool_uses: frozenset[str] = frozenset()
    tool_results: frozenset[str] = frozenset()

    def __bool__(self) -> bool:
        return bool(self.tool_uses or self.tool_results)


def find_orphans(messages: Iterable[Message]) -> Orphans:
    """Return tool-use ids without a result and result ids without a use."""
    use_ids: set[str] = set()
    result_ids: set[str] = set()
    for msg in messages:
        use_ids |= msg.tool_use_ids
        result_ids |= msg.tool_result_ids
    return Orphans(
        tool_uses=frozenset(use_ids - result_ids),
        tool_results=frozenset(result_ids - use_ids),
    )


def _is_contentless_assistant(blocks: list) -> bool:
    for block in blocks:
        if isinstance(block, ToolUseBlock):
            return False
        if isinstance(block, TextBlock) and block.text.strip():
            return False
    return True


def drop_orphans(messages: Iterable[Message]) -> list[Message]:
    """Remove unpaired tool-use and tool-result blocks from ``messages``.

    Assistant messages left without text or tool use are dropped, as are
    non-assistant messages whose only content was removed tool results.
    Other non-assistant messages are kept even when their text is empty.
    Messages that lost blocks are copies; the input is not mutated.
    """
    messages = list(messages)
    orphans = find_orphans(messages)
    if not orphans:
        return messages

    kept: list[Message] = []
    for msg in messages:
        blocks = [
            block
            for block in msg.content
            if not (isinstance(block, ToolUseBlock) and block.id in orphans.tool_uses)
            and not (
                isinstance(block, ToolResultBlock)
                and block.tool_use_id in orphans.tool_results
            )
        ]
        if len(blocks) == len(msg.content):
            kept.append(msg)
            continue

        if msg.role == "assistant":
            if _is_contentless_assistant(blocks):
                logger.debug("dropping contentless assistant message")
                continue
        elif not blocks and not msg.has_text_block:
            logger.debug("dropping %s message left without content", msg.role)
            continue

        kept.append(msg.model_copy(update={"content": blocks}))
    return kept


def prune_messages(messages: list[Message], window: int = DEFAULT_WINDOW) -> list[Message]:
    """Trim ``messages`` to the newest ``window`` entries without orphans.

    1. No-op when ``len(messages) <= window`` (the same list is returned).
    2. Otherwise keep the last ``window`` messages.
    3. Apply drop_orphans() to the kept messages.
    """
    if window < 0:
        raise ValueError(f"window must be non-negative, got {window}")
    if len(messages) <= window:
        return messages

    kept = messages[len(messages) - window:] if window else []
    pruned = drop_orphans(kept)
    # Contentless assistant messages go even when they lost no blocks.
    pruned = [
        msg
        for msg in pruned
        if not (msg.role == "assistant" and _is_contentless_assistant(msg.content))
    ]

    logger.debug(
        "pruned history from %d to %d messages (window=%d)",
        len(messages),
        len(pruned),
        window,
    )
    return pruned


@dataclass
class ConversationHistory:
    """The in-memory message list owned by one conversation.

    Attributes:
        window: Maximum number of retained messages before pruning.
    """

    window: int = DEFAULT_WINDOW
    _messages: list[Message] = field(default_factory=list)

    @classmethod
    def from_messages(
        cls, messages: Iterable[Message], window: int = DEFAULT_WINDOW
    ) -> ConversationHistory:
        return cls(window=window, _messages=list(messages))

    @property
    def messages(self) -> tuple[Message, ...]:
        """Snapshot of the current messages."""
        return tuple(self._messages)

    def append(self, message: Message) -> None:
        self._messages.append(message)

    def extend(self, messages: Iterable[Message]) -> None:
        self._messages.extend(messages)

    def prune(self) -> int:
        """Apply prune_messages() in place. Returns the number of messages removed."""
        before = len(self._messages)
        self._messages = list(prune_messages(self._messages, self.window))
        return before - len(self._messages)

    def clear(self) -> None:
        self._messages.clear()

    def orphans(self) -> Orphans:
        return find_orphans(self._messages)

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[Message]:
        return iter(list(self._messages))
