"""Retry/backoff wrapper for model calls.

Provides call_with_backoff() -- a tenacity-driven loop that retries a
provider call only while the backend signals transient overload, with
exponential backoff capped per step. Any other error propagates on the
first attempt. A fresh retryer is built per call, so a success resets
the backoff for the next call.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, TypeVar

import tenacity

from parley.exceptions import ServiceOverloadedError
from parley.llm.errors import LLMOverloadedError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class BackoffPolicy:
    """Backoff parameters for transient provider faults.

    Attributes:
        initial_delay: Seconds slept after the first failed attempt.
        max_delay: Upper bound on any single sleep.
        max_retries: Retries after the first attempt (total attempts is
            ``max_retries + 1``).
    """

    initial_delay: float = 1.0
    max_delay: float = 30.0
    max_retries: int = 5

    def delays(self) -> list[float]:
        """The sleep sequence a fully exhausted call goes through."""
        return [
            min(self.initial_delay * 2**n, self.max_delay)
            for n in range(self.max_retries)
        ]


def is_overloaded(exc: BaseException) -> bool:
    """Default transient-fault predicate: the backend's overload marker."""
    return isinstance(exc, LLMOverloadedError)


def call_with_backoff(
    fn: Callable[[], T],
    policy: BackoffPolicy | None = None,
    *,
    is_transient: Callable[[BaseException], bool] = is_overloaded,
    sleep: Callable[[float], None] = time.sleep,
    provider_name: str = "provider",
) -> T:
    """Call ``fn`` and retry transient failures with exponential backoff.

    Args:
        fn: Zero-argument callable issuing the model request.
        policy: Backoff parameters. Defaults to BackoffPolicy().
        is_transient: Predicate selecting retryable exceptions.
        sleep: Sleep function (injected by tests and by cancellable turns).
        provider_name: Used in the exhaustion error message.

    Returns:
        Whatever ``fn`` returns on its first successful attempt.

    Raises:
        ServiceOverloadedError: If every attempt failed transiently.
        Exception: Any non-transient error raised by ``fn``, unchanged.
    """
    policy = policy or BackoffPolicy()
    retryer = tenacity.Retrying(
        retry=tenacity.retry_if_exception(is_transient),
        wait=tenacity.wait_exponential(
            multiplier=policy.initial_delay, min=0, max=policy.max_delay
        ),
        stop=tenacity.stop_after_attempt(policy.max_retries + 1),
        before_sleep=tenacity.before_sleep_log(logger, logging.WARNING),
        sleep=sleep,
    )
    try:
        return retryer(fn)
    except tenacity.RetryError as exc:
        last = exc.last_attempt.exception()
        raise ServiceOverloadedError(provider_name, policy.max_retries + 1) from last
