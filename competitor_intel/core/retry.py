"""Bounded retry with a per-attempt timeout race, built on tenacity."""

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable, TypeVar

from loguru import logger
from tenacity import AsyncRetrying, retry_if_exception, stop_after_attempt, wait_fixed

from competitor_intel.core.errors import ProviderHTTPError, ProviderTimeout

T = TypeVar("T")


def is_retryable(exc: BaseException) -> bool:
    """Only transient failures are worth a second attempt."""
    if isinstance(exc, ProviderTimeout):
        return True
    if isinstance(exc, ProviderHTTPError):
        return exc.retryable
    return False


@dataclass(frozen=True)
class RetryPolicy:
    """
    How many times to try a provider call, how long to wait between tries
    and how long each try may take.

    The default is a single attempt, which is what cheap API providers use.
    """
    max_attempts: int = 1
    backoff_seconds: float = 0.0
    timeout_seconds: float = 30.0

    async def run(self, name: str, operation: Callable[[], Awaitable[T]]) -> T:
        """
        Run ``operation`` under this policy.

        Args:
            name: Provider name, used for errors and logs
            operation: Zero-argument callable returning a fresh awaitable per attempt

        Raises:
            ProviderTimeout: When the final attempt exceeded ``timeout_seconds``
            ProviderError: Whatever the final attempt raised
        """
        retrying = AsyncRetrying(
            stop=stop_after_attempt(max(1, self.max_attempts)),
            wait=wait_fixed(self.backoff_seconds),
            retry=retry_if_exception(is_retryable),
            before_sleep=lambda state: logger.warning(
                "{} attempt {} failed ({}), retrying in {}s",
                name,
                state.attempt_number,
                state.outcome.exception(),
                self.backoff_seconds,
            ),
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                return await self._attempt(name, operation)

    async def _attempt(self, name: str, operation: Callable[[], Awaitable[T]]) -> T:
        try:
            return await asyncio.wait_for(operation(), timeout=self.timeout_seconds)
        except asyncio.TimeoutError:
            raise ProviderTimeout(name, f"{name} timed out after {self.timeout_seconds}s")
