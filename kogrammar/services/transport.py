"""Retry and timeout plumbing for backend and model calls."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, TypeVar

from tenacity import AsyncRetrying, RetryCallState, retry_if_exception, stop_after_attempt, wait_exponential

from kogrammar.config import settings
from kogrammar.exceptions import BackendRequestFailed, BackendUnreachable

T = TypeVar("T")
logger = logging.getLogger(__name__)


@dataclass
class RetryPolicy:
    """Exponential backoff: ``base_delay * backoff_factor ** (attempt - 1)``, capped."""

    max_retries: int = 2
    base_delay: float = 1.0
    max_delay: float = 3.0
    backoff_factor: float = 1.5

    @classmethod
    def from_settings(cls) -> "RetryPolicy":
        return cls(
            max_retries=settings.retry_max_retries,
            base_delay=settings.retry_base_delay,
            max_delay=settings.retry_max_delay,
            backoff_factor=settings.retry_backoff_factor,
        )


def is_retryable(exc: BaseException) -> bool:
    if isinstance(exc, BackendUnreachable):
        return True
    if isinstance(exc, BackendRequestFailed):
        return exc.retryable
    return False


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    key: str,
    policy: RetryPolicy | None = None,
) -> T:
    """Run *operation* until it succeeds or the policy's retries are exhausted.

    Only unreachable backends and retryable status codes are retried; the last
    error is re-raised unchanged.
    """
    policy = policy or RetryPolicy.from_settings()

    def _log_retry(state: RetryCallState) -> None:
        exc = state.outcome.exception() if state.outcome else None
        logger.warning(
            "Retrying %s (%d/%d) after error: %s",
            key, state.attempt_number, policy.max_retries, exc,
        )

    retrying = AsyncRetrying(
        stop=stop_after_attempt(policy.max_retries + 1),
        wait=wait_exponential(
            multiplier=policy.base_delay,
            exp_base=policy.backoff_factor,
            max=policy.max_delay,
        ),
        retry=retry_if_exception(is_retryable),
        before_sleep=_log_retry,
        reraise=True,
    )
    async for attempt in retrying:
        with attempt:
            result = await operation()
    return result


async def with_timeout(awaitable: Awaitable[T], seconds: float, message: str) -> T:
    """Await with a deadline; an expired deadline becomes BackendUnreachable."""
    try:
        return await asyncio.wait_for(awaitable, timeout=seconds)
    except asyncio.TimeoutError as exc:
        logger.warning("%s (%.1fs)", message, seconds)
        raise BackendUnreachable(message) from exc


def describe(value: Any, limit: int = 50) -> str:
    """Short, log-safe key for an operation on *value*."""
    text = str(value)
    return text if len(text) <= limit else text[:limit] + "..."
