"""Run blocking calls on a worker thread with a deadline and a stop signal.

Model requests and tool invocations are synchronous. run_cancellable()
moves them to a daemon thread so the caller can give up waiting when a
deadline passes or a stop event is set. The abandoned worker keeps
running until its call returns; its result is discarded.
"""

from __future__ import annotations

import threading
import time
from concurrent.futures import Future, wait
from typing import TYPE_CHECKING, Callable, TypeVar

from parley.exceptions import TurnCancelledError

if TYPE_CHECKING:
    from threading import Event

T = TypeVar("T")

POLL_INTERVAL = 0.05


class DeadlineExceeded(TimeoutError):
    """The worker did not finish before its deadline."""

    def __init__(self, timeout: float) -> None:
        self.timeout = timeout
        super().__init__(f"call did not finish within {timeout}s")


def run_cancellable(
    fn: Callable[[], T],
    *,
    timeout: float | None = None,
    cancel_event: Event | None = None,
    name: str = "parley-worker",
) -> T:
    """Run ``fn`` on a daemon thread and wait for its result.

    Args:
        fn: Zero-argument callable.
        timeout: Seconds to wait, or None to wait indefinitely.
        cancel_event: When set, stop waiting and raise TurnCancelledError.
        name: Worker thread name.

    Raises:
        DeadlineExceeded: If ``timeout`` elapses first.
        TurnCancelledError: If ``cancel_event`` is set first.
        Exception: Whatever ``fn`` raised.
    """
    if cancel_event is not None and cancel_event.is_set():
        raise TurnCancelledError()

    future: Future = Future()

    def _runner() -> None:
        if not future.set_running_or_notify_cancel():
            return
        try:
            result = fn()
        except BaseException as exc:
            future.set_exception(exc)
        else:
            future.set_result(result)

    threading.Thread(target=_runner, name=name, daemon=True).start()

    deadline = None if timeout is None else time.monotonic() + timeout
    while True:
        step = POLL_INTERVAL
        if deadline is not None:
            step = min(step, max(deadline - time.monotonic(), 0.0))
        done, _ = wait([future], timeout=step)
        if done:
            return future.result()
        if cancel_event is not None and cancel_event.is_set():
            raise TurnCancelledError()
        if deadline is not None and time.monotonic() >= deadline:
            raise DeadlineExceeded(timeout)


def cancellable_sleep(cancel_event: Event) -> Callable[[float], None]:
    """Return a sleep function that aborts when ``cancel_event`` is set."""

    def _sleep(seconds: float) -> None:
        if cancel_event.wait(seconds):
            raise TurnCancelledError()

    return _sleep
