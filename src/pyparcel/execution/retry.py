"""Retry with exponential backoff for collaborator calls."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import ParamSpec, TypeVar

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from pyparcel.config.schema import RetryConfig
from pyparcel.errors import RegistryError, TransientError

logger = logging.getLogger(__name__)

P = ParamSpec("P")
R = TypeVar("R")


def is_retryable(error: BaseException) -> bool:
    """Whether an exception is worth another attempt."""
    if isinstance(error, RegistryError):
        return error.transient
    return isinstance(error, TransientError)


def _log_retry(state: RetryCallState) -> None:
    error = state.outcome.exception() if state.outcome else None
    logger.warning("Attempt %d failed (%s), retrying", state.attempt_number, error)


async def call_with_retry(
    policy: RetryConfig,
    fn: Callable[P, Awaitable[R]],
    *args: P.args,
    **kwargs: P.kwargs,
) -> R:
    """Await ``fn(*args, **kwargs)`` retrying transient failures.

    Args:
        policy: Number of attempts and backoff bounds.
        fn: Coroutine function to call.

    Returns:
        The first successful result.

    Raises:
        The last exception once attempts are exhausted, or immediately for
        non-retryable errors.
    """
    retrying = AsyncRetrying(
        stop=stop_after_attempt(policy.attempts),
        wait=wait_exponential(multiplier=policy.base_delay, max=policy.max_delay),
        retry=retry_if_exception(is_retryable),
        before_sleep=_log_retry,
        reraise=True,
    )
    async for attempt in retrying:
        with attempt:
            return await fn(*args, **kwargs)
    raise AssertionError("unreachable")  # pragma: no cover
