"""Conversation: the tool-calling turn loop.

A turn appends the user's prompt, prunes the history, then alternates
between asking the model and dispatching the tool calls it returns
until the model answers without calling a tool. Tool calls run one at a
time in the order the model emitted them.

A model reply and the tool results answering it are appended to the
history together once the round is complete, so a turn aborted by stop()
or by a provider error leaves no unanswered tool call behind. Callbacks
still see each message as soon as it exists.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import replace
from typing import TYPE_CHECKING

from parley.concurrency import cancellable_sleep, run_cancellable
from parley.exceptions import (
    MalformedToolNameError,
    OrchestratorError,
    ToolSerializationError,
    TurnCancelledError,
    UnknownCollaboratorError,
)
from parley.history import ConversationHistory, drop_orphans
from parley.messages import Message, TokenUsage
from parley.orchestrator.config import ConversationSettings, OrchestratorState
from parley.orchestrator.models import (
    STOP_COMPLETE,
    STOP_MAX_ROUND_TRIPS,
    StepResult,
    TurnResult,
)
from parley.retry import call_with_backoff
from parley.tools.executor import ToolDispatcher

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from parley.llm.protocols import Provider
    from parley.messages import Tool, ToolCall

logger = logging.getLogger(__name__)


class Conversation:
    """A single conversation with one provider and a set of collaborators.

    Usage::

        conversation = Conversation(provider, ToolDispatcher([weather]))
        result = conversation.send("What's the temperature in Oslo?")
        print(result.text)

    ``send()`` blocks. ``stop()`` may be called from another thread to
    abort the turn in progress; the conversation then stays STOPPED until
    ``reset()``.
    """

    def __init__(
        self,
        provider: Provider,
        dispatcher: ToolDispatcher | None = None,
        settings: ConversationSettings | None = None,
        *,
        history: Iterable[Message] | None = None,
        on_message: Callable[[Message], None] | None = None,
        on_step: Callable[[StepResult], None] | None = None,
    ) -> None:
        self._provider = provider
        self._dispatcher = dispatcher or ToolDispatcher()
        self._settings = settings or ConversationSettings()
        self._history = ConversationHistory.from_messages(
            history or (), window=self._settings.window
        )
        self._on_message = on_message
        self._on_step = on_step
        self._state = OrchestratorState.IDLE
        self._stop_event = threading.Event()
        self._turn_lock = threading.Lock()
        self._tools: list[Tool] | None = None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def state(self) -> OrchestratorState:
        return self._state

    @property
    def settings(self) -> ConversationSettings:
        return self._settings

    @property
    def provider(self) -> Provider:
        return self._provider

    @property
    def dispatcher(self) -> ToolDispatcher:
        return self._dispatcher

    @property
    def history(self) -> list[Message]:
        """A copy of the current history."""
        return list(self._history.messages)

    @property
    def tools(self) -> list[Tool]:
        """Namespaced tool declarations sent with every model call.

        Collected once and cached. Empty when the provider cannot call
        tools.
        """
        if self._tools is None:
            if not self._dispatcher.collaborators:
                self._tools = []
            elif not self._provider.supports_tools():
                logger.warning(
                    "%s model does not support tools; continuing without them",
                    self._provider.name,
                )
                self._tools = []
            else:
                self._tools = self._dispatcher.tools()
                logger.debug("loaded %d tools", len(self._tools))
        return self._tools

    def send(self, prompt: str = "") -> TurnResult:
        """Run one turn.

        Args:
            prompt: The user's message. An empty prompt continues from
                the current history without adding a user message.

        Returns:
            TurnResult with the final reply, per-call steps and usage.

        Raises:
            TurnCancelledError: If stop() was called during the turn.
            ServiceOverloadedError: If the backend stayed overloaded.
            LLMClientError: On any other provider failure.
            OrchestratorError: If a turn is already running or the
                conversation is stopped.
        """
        if not self._turn_lock.acquire(blocking=False):
            raise OrchestratorError("A turn is already in progress")
        try:
            if self._stop_event.is_set():
                raise OrchestratorError("Conversation is stopped; call reset() first")
            return self._run_turn(prompt)
        finally:
            self._turn_lock.release()

    def stop(self) -> None:
        """Abort the turn in progress.

        An in-flight model or tool call is abandoned and send() raises
        TurnCancelledError.
        """
        self._stop_event.set()
        self._state = OrchestratorState.STOPPED

    def reset(self, *, clear_history: bool = False) -> None:
        """Return to IDLE after stop(), optionally dropping the history."""
        self._stop_event.clear()
        self._state = OrchestratorState.IDLE
        if clear_history:
            self._history.clear()

    # ------------------------------------------------------------------
    # Turn loop
    # ------------------------------------------------------------------

    def _run_turn(self, prompt: str) -> TurnResult:
        steps: list[StepResult] = []
        usage = TokenUsage()
        model_calls = 0
        reply: Message | None = None
        stopped_reason = STOP_COMPLETE
        max_round_trips = self._settings.max_round_trips

        try:
            if prompt:
                user_message = Message.user(prompt)
                self._history.append(user_message)
                self._notify_message(user_message)
            removed = self._history.prune()
            if removed:
                logger.debug("pruned %d messages from history", removed)
            tools = self.tools

            pending_tool_results = True
            while pending_tool_results:
                if max_round_trips is not None and model_calls >= max_round_trips:
                    logger.warning(
                        "stopping turn after %d model calls (max_round_trips)",
                        model_calls,
                    )
                    stopped_reason = STOP_MAX_ROUND_TRIPS
                    break

                self._state = OrchestratorState.AWAITING_MODEL
                reply = self._ask_model(tools)
                model_calls += 1
                usage = usage + reply.usage
                self._notify_message(reply)

                pending_tool_results = False
                results: list[Message] = []
                calls = reply.tool_calls
                if calls:
                    self._state = OrchestratorState.DISPATCHING_TOOLS
                for call in calls:
                    self._check_stopped()
                    step, message = self._dispatch(call, len(steps) + 1)
                    steps.append(step)
                    self._notify_step(step)
                    if message is not None:
                        results.append(message)
                        pending_tool_results = True
                self._commit_round(reply, results)
                self._check_stopped()
        except TurnCancelledError:
            self._state = OrchestratorState.STOPPED
            logger.info("turn cancelled after %d model calls", model_calls)
            raise
        except Exception:
            self._state = OrchestratorState.IDLE
            raise

        self._state = OrchestratorState.IDLE
        logger.info(
            "turn complete: model_calls=%d tool_calls=%d input_tokens=%d "
            "output_tokens=%d total_tokens=%d",
            model_calls,
            len(steps),
            usage.input_tokens,
            usage.output_tokens,
            usage.total_tokens,
        )
        return TurnResult(
            reply=reply,
            state=self._state,
            steps=steps,
            model_calls=model_calls,
            usage=usage,
            stopped_reason=stopped_reason,
        )

    def _ask_model(self, tools: list[Tool]) -> Message:
        """One model call under the retry policy, abortable by stop()."""
        messages = drop_orphans(self._history.messages)
        if self._settings.system_prompt:
            messages.insert(0, Message.system(self._settings.system_prompt))

        def attempt() -> Message:
            return run_cancellable(
                lambda: self._provider.create_message("", messages, tools),
                cancel_event=self._stop_event,
                name="parley-model",
            )

        return call_with_backoff(
            attempt,
            self._settings.backoff,
            sleep=cancellable_sleep(self._stop_event),
            provider_name=self._provider.name,
        )

    def _dispatch(
        self, call: ToolCall, step_num: int
    ) -> tuple[StepResult, Message | None]:
        """Execute one tool call.

        Returns the step and the tool-result message, or None for a
        skipped call.
        """
        try:
            result = self._dispatcher.execute(
                call,
                self._settings.tool_timeout,
                cancel_event=self._stop_event,
            )
        except (MalformedToolNameError, UnknownCollaboratorError) as exc:
            logger.error("Skipping tool call %s: %s", call.name, exc)
            step = StepResult(
                step=step_num,
                tool_call=call,
                success=False,
                error=str(exc),
                skipped=True,
            )
            return step, None

        try:
            message = self._provider.create_tool_response(
                call.id, result.content, is_error=not result.success
            )
        except ToolSerializationError as exc:
            logger.warning("Could not serialize result of %s: %s", call.name, exc)
            result = replace(result, success=False, output=None, error=str(exc))
            message = self._provider.create_tool_response(
                call.id, result.content, is_error=True
            )
        self._notify_message(message)

        if not result.success:
            logger.warning("Tool %s failed: %s", call.name, result.error)
        step = StepResult(
            step=step_num,
            tool_call=call,
            collaborator=result.collaborator,
            tool_name=result.tool_name,
            success=result.success,
            output=result.output,
            error=result.error,
        )
        return step, message

    def _commit_round(self, reply: Message, results: list[Message]) -> None:
        """Append a model reply and its tool results to the history.

        Tool-use blocks of skipped calls have no result and are removed;
        a reply left with nothing else is not stored.
        """
        self._history.extend(drop_orphans([reply, *results]))

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _check_stopped(self) -> None:
        if self._stop_event.is_set():
            raise TurnCancelledError()

    def _notify_message(self, message: Message) -> None:
        if self._on_message is not None:
            try:
                self._on_message(message)
            except Exception:
                logger.debug("on_message callback error", exc_info=True)

    def _notify_step(self, step: StepResult) -> None:
        if self._on_step is not None:
            try:
                self._on_step(step)
            except Exception:
                logger.debug("on_step callback error", exc_info=True)
