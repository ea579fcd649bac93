"""Retry policy with exponential backoff for upstream calls."""

from __future__ import annotations

import asyncio
import functools
import logging
import random
from typing import Any, Awaitable, Callable, TypeVar

from pydantic import BaseModel, Field

from launchwing.core.exceptions import LaunchwingError

logger = logging.getLogger(__name__)

_T = TypeVar("_T")


class RetryPolicy(BaseModel):
    """Configurable retry policy with exponential backoff.

    Attributes:
        max_attempts: Total number of attempts, the first call included
            (1 = no retries).
        backoff_base: Delay in seconds before the first retry. Each later
            retry doubles it (``backoff_base * 2**n``).
        backoff_max: Maximum delay in seconds (caps the exponential growth).
        jitter: If ``True``, draw the delay uniformly between 0 and the
            computed value.
        retryable_exceptions: Exception types retried when they do not
            declare ``is_retryable`` themselves.
    """

    max_attempts: int = Field(default=3, ge=1, le=20)
    backoff_base: float = Field(default=2.0, ge=0.0)
    backoff_max: float = Field(default=30.0, ge=0.0)
    jitter: bool = False
    retryable_exceptions: tuple[type[Exception], ...] = ()

    model_config = {"arbitrary_types_allowed": True}

    def _is_retryable(self, exc: Exception) -> bool:
        """Decide whether *exc* should be retried.

        Package errors answer through their ``is_retryable`` property, which
        lets ``RequestRejected`` (never) and ``UpstreamTimeoutError``
        (always) decide for themselves. Anything else is retried only when
        it is an instance of ``retryable_exceptions``.
        """
        if isinstance(exc, LaunchwingError):
            return exc.is_retryable
        return isinstance(exc, self.retryable_exceptions)

    def compute_delay(self, attempt: int) -> float:
        """Backoff delay after the given failed attempt (0-indexed)."""
        delay: float = min(self.backoff_base * (2 ** attempt), self.backoff_max)
        if self.jitter:
            delay = random.uniform(0, delay)  # noqa: S311
        return delay

    def delay_for(self, attempt: int, exc: BaseException) -> float:
        """Delay before retrying after *exc*.

        A ``retry_after`` hint on the error (parsed from the server's
        ``Retry-After`` header) replaces the computed backoff, capped at
        ``backoff_max``.
        """
        hint = getattr(exc, "retry_after", None)
        if hint is not None:
            return min(max(float(hint), 0.0), self.backoff_max)
        return self.compute_delay(attempt)

    async def execute(
        self,
        fn: Callable[..., Awaitable[_T]],
        *args: Any,
        **kwargs: Any,
    ) -> _T:
        """Execute *fn* with retry logic.

        Calls ``await fn(*args, **kwargs)`` up to ``max_attempts`` times,
        sleeping with exponential backoff between retryable failures, or for
        the server's ``Retry-After`` hint when the error carries one.

        Raises:
            Exception: The last exception raised by *fn* once attempts are
                exhausted, or immediately if the exception is not retryable.
        """
        last_exc: Exception | None = None

        for attempt in range(self.max_attempts):
            try:
                return await fn(*args, **kwargs)
            except Exception as exc:
                last_exc = exc

                if not self._is_retryable(exc):
                    raise

                if attempt + 1 >= self.max_attempts:
                    logger.warning(
                        "Retry exhausted after %d attempt(s): %s",
                        attempt + 1,
                        exc,
                    )
                    raise

                delay = self.delay_for(attempt, exc)
                logger.info(
                    "Retry attempt %d/%d after %.2fs: %s",
                    attempt + 1,
                    self.max_attempts - 1,
                    delay,
                    exc,
                )
                await asyncio.sleep(delay)

        # max_attempts >= 1, so the loop always returns or raises.
        assert last_exc is not None  # noqa: S101
        raise last_exc

    def as_decorator(
        self,
    ) -> Callable[[Callable[..., Awaitable[_T]]], Callable[..., Awaitable[_T]]]:
        """Return a decorator that wraps async functions with this policy.

        Usage::

            policy = RetryPolicy(max_attempts=4)

            @policy.as_decorator()
            async def fragile_call():
                ...
        """

        def decorator(
            fn: Callable[..., Awaitable[_T]],
        ) -> Callable[..., Awaitable[_T]]:
            @functools.wraps(fn)
            async def wrapper(*args: Any, **kwargs: Any) -> _T:
                return await self.execute(fn, *args, **kwargs)

            return wrapper

        return decorator
