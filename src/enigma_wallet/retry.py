"""Retry with exponential backoff for rate-limited upstream calls."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import backoff

from .errors import RateLimited
from .logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

HTTP_TOO_MANY_REQUESTS = 429


def is_rate_limited(exc: BaseException) -> bool:
    """Return True when ``exc`` signals upstream throttling (HTTP 429)."""
    if isinstance(exc, RateLimited):
        return True
    response = getattr(exc, "response", None)
    return getattr(response, "status_code", None) == HTTP_TOO_MANY_REQUESTS


class RetryExecutor:
    """Re-invoke an async operation while it keeps failing with a rate limit.

    The delay before retry ``n`` (counted from 1) is ``base_delay * 2**(n - 1)``
    seconds. There is no jitter, so the schedule is deterministic. Any failure
    that is not a rate limit propagates immediately; the last rate-limit
    failure propagates unchanged once ``max_attempts`` tries are used up.
    """

    def __init__(self, max_attempts: int = 3, base_delay: float = 1.0):
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {max_attempts}")
        if base_delay < 0:
            raise ValueError(f"base_delay must be non-negative, got {base_delay}")
        self.max_attempts = max_attempts
        self.base_delay = base_delay

    def delay_for(self, attempt: int) -> float:
        """Delay in seconds after the failed ``attempt`` (1-indexed)."""
        return self.base_delay * 2 ** (attempt - 1)

    async def run(
        self,
        operation: Callable[[], Awaitable[T]],
        *,
        description: str = "upstream call",
    ) -> T:
        def _log_backoff(details: dict[str, Any]) -> None:
            logger.info(
                "Rate limited on %s (attempt %d/%d), retrying in %.2fs",
                description,
                details["tries"],
                self.max_attempts,
                self.delay_for(details["tries"]),
            )

        def _log_giveup(details: dict[str, Any]) -> None:
            exc = details.get("exception")
            if exc is not None and is_rate_limited(exc):
                logger.warning(
                    "Giving up on %s after %d rate-limited attempts",
                    description,
                    details["tries"],
                )

        @backoff.on_exception(
            backoff.expo,
            Exception,
            max_tries=self.max_attempts,
            jitter=None,
            giveup=lambda exc: not is_rate_limited(exc),
            on_backoff=_log_backoff,
            on_giveup=_log_giveup,
            logger=None,
            factor=self.base_delay,
        )
        async def _attempt() -> T:
            return await operation()

        return await _attempt()

    async def run_in_thread(
        self,
        fn: Callable[..., T],
        *args: Any,
        description: str | None = None,
        semaphore: asyncio.Semaphore | None = None,
        **kwargs: Any,
    ) -> T:
        """Run a blocking call in a worker thread under this retry policy."""

        async def _once() -> T:
            if semaphore is None:
                return await asyncio.to_thread(fn, *args, **kwargs)
            async with semaphore:
                return await asyncio.to_thread(fn, *args, **kwargs)

        return await self.run(
            _once, description=description or getattr(fn, "__name__", "upstream call")
        )
