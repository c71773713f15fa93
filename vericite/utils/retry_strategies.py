"""
Retry Strategies for Upstream Service Calls

Implements exponential backoff with jitter for rate-limited and overloaded
services. Only those two failure classes are retried; everything else
propagates on the first failure.
"""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable
from typing import Optional, TypeVar

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
)

from vericite.exceptions import RateLimitError, ServiceOverloadedError, UpstreamServiceError
from vericite.models import RetryPolicyConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")

_RATE_LIMIT_MARKERS = ("429", "resource_exhausted", "quota")
_OVERLOAD_MARKERS = ("503", "overloaded", "unavailable")

# Rate-limit failures back off three times longer than overload failures.
RATE_LIMIT_DELAY_FACTOR = 3


def _status_of(exc: BaseException) -> Optional[int]:
    status = getattr(exc, "status", None)
    if status is None:
        status = getattr(exc, "status_code", None)
    return status if isinstance(status, int) else None


def is_rate_limit_error(exc: BaseException) -> bool:
    if isinstance(exc, RateLimitError):
        return True
    if isinstance(exc, UpstreamServiceError):
        return exc.status == 429
    status = _status_of(exc)
    if status is not None:
        return status == 429
    message = str(exc).lower()
    return any(marker in message for marker in _RATE_LIMIT_MARKERS)


def is_overload_error(exc: BaseException) -> bool:
    if isinstance(exc, ServiceOverloadedError):
        return True
    if isinstance(exc, UpstreamServiceError):
        return exc.status == 503
    status = _status_of(exc)
    if status is not None:
        return status == 503
    message = str(exc).lower()
    return any(marker in message for marker in _OVERLOAD_MARKERS)


def is_retryable(exc: BaseException) -> bool:
    return is_rate_limit_error(exc) or is_overload_error(exc)


def backoff_delay_ms(exc: BaseException, base_delay_ms: float, attempt: int) -> float:
    """
    Delay before the retry that follows failed attempt ``attempt`` (1-based).

    The base delay doubles with every attempt and is tripled for
    rate-limit errors. Jitter is added by the caller.
    """
    delay = base_delay_ms * (2 ** (attempt - 1))
    if is_rate_limit_error(exc):
        delay *= RATE_LIMIT_DELAY_FACTOR
    return delay


class RetryingInvoker:
    """Runs async operations under a bounded exponential-backoff retry policy.

    ``sleep`` and ``jitter`` are injectable so tests can run without real
    delays and with a fixed jitter. ``jitter`` returns milliseconds.
    """

    def __init__(
        self,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        jitter: Optional[Callable[[], float]] = None,
        jitter_ms: float = 1000.0,
    ):
        self._sleep = sleep
        self._jitter = jitter or (lambda: random.random() * jitter_ms)

    def _wait(self, base_delay_ms: float) -> Callable[[RetryCallState], float]:
        def compute(retry_state: RetryCallState) -> float:
            exc = retry_state.outcome.exception() if retry_state.outcome else None
            delay = backoff_delay_ms(exc, base_delay_ms, retry_state.attempt_number)
            return (delay + self._jitter()) / 1000.0

        return compute

    async def invoke(
        self,
        op: Callable[[], Awaitable[T]],
        max_retries: int = 5,
        base_delay_ms: float = 1000,
    ) -> T:
        """Await ``op()``, retrying transient failures up to ``max_retries`` times.

        Raises the last error of the operation once retries are exhausted.
        """
        retryer = AsyncRetrying(
            sleep=self._sleep,
            stop=stop_after_attempt(max_retries + 1),
            wait=self._wait(base_delay_ms),
            retry=retry_if_exception(is_retryable),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        # op is usually a plain lambda returning a coroutine; await it per attempt
        async for attempt in retryer:
            with attempt:
                return await op()

    async def invoke_with_policy(
        self, op: Callable[[], Awaitable[T]], policy: RetryPolicyConfig
    ) -> T:
        return await self.invoke(
            op, max_retries=policy.max_retries, base_delay_ms=policy.base_delay_ms
        )
