"""Bounded retry with exponential backoff for remote calls."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import TypeVar

from pydantic import BaseModel, Field
from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RetryPolicy(BaseModel):
    """How many times to try a remote call and how long to wait between tries.

    The wait before attempt ``k + 1`` is ``initial_delay * multiplier ** (k - 1)``,
    capped at ``max_delay``.
    """

    max_attempts: int = Field(default=3, ge=1)
    initial_delay: float = Field(default=2.0, ge=0)
    multiplier: float = Field(default=2.0, ge=1)
    max_delay: float = Field(default=30.0, ge=0)

    def delay_for(self, attempt: int) -> float:
        """Seconds slept after the given (1-based) failed attempt."""
        return min(self.initial_delay * self.multiplier ** (attempt - 1), self.max_delay)


def _is_retryable(retry_on: tuple[type[BaseException], ...]) -> Callable[[BaseException], bool]:
    def predicate(exc: BaseException) -> bool:
        if not isinstance(exc, retry_on):
            return False
        return getattr(exc, "retryable", True)

    return predicate


def call_with_retry(
    fn: Callable[..., T],
    *args: object,
    policy: RetryPolicy | None = None,
    label: str = "remote call",
    retry_on: tuple[type[BaseException], ...] = (Exception,),
    sleep: Callable[[float], None] = time.sleep,
    **kwargs: object,
) -> T:
    """Call ``fn`` until it succeeds or the policy's attempt ceiling is hit.

    Exceptions outside ``retry_on``, or carrying ``retryable = False``, are
    raised immediately. After the last attempt the original exception is
    re-raised unchanged.

    Args:
        fn: The callable to invoke.
        policy: Attempt ceiling and backoff shape. Defaults to ``RetryPolicy()``.
        label: Name used in log lines.
        retry_on: Exception types eligible for retry.
        sleep: Sleep function, injectable for tests.

    Returns:
        Whatever ``fn`` returns on its first successful attempt.
    """
    policy = policy or RetryPolicy()

    def _log_retry(state: RetryCallState) -> None:
        exc = state.outcome.exception() if state.outcome else None
        wait = state.next_action.sleep if state.next_action else 0.0
        logger.warning(
            "%s failed (attempt %d/%d): %s; retrying in %.1fs",
            label,
            state.attempt_number,
            policy.max_attempts,
            exc,
            wait,
        )

    retrying = Retrying(
        stop=stop_after_attempt(policy.max_attempts),
        wait=wait_exponential(
            multiplier=policy.initial_delay,
            exp_base=policy.multiplier,
            max=policy.max_delay,
        ),
        retry=retry_if_exception(_is_retryable(retry_on)),
        before_sleep=_log_retry,
        sleep=sleep,
        reraise=True,
    )
    return retrying(fn, *args, **kwargs)
