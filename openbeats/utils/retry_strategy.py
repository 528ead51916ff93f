"""
Retry Strategy for external service calls
Centralizes retry logic with exponential backoff
"""

import asyncio
import random
from typing import Optional, Callable, Awaitable, TypeVar
from ..pkg.logger import logger

T = TypeVar("T")


def _retry_all(error: BaseException) -> bool:
    return True


class RetryStrategy:
    """Generic retry strategy with exponential backoff and jitter"""

    def __init__(
        self,
        max_attempts: int = 3,
        base_delay: float = 1.0,
        backoff_factor: float = 2.0,
        timeout: Optional[float] = 30,
        jitter: bool = True,
        retry_on: Callable[[BaseException], bool] = _retry_all,
    ):
        """
        Initialize retry strategy

        Args:
            max_attempts: Maximum number of attempts (including the first)
            base_delay: Base delay in seconds before first retry
            backoff_factor: Multiplier for exponential backoff
            timeout: Timeout in seconds for each attempt (None = no limit)
            jitter: Add random jitter to prevent thundering herd
            retry_on: Predicate deciding whether an error is worth another attempt
        """
        self.max_attempts = max(1, max_attempts)
        self.base_delay = base_delay
        self.backoff_factor = backoff_factor
        self.timeout = timeout
        self.jitter = jitter
        self.retry_on = retry_on

    def _calculate_delay(self, attempt: int) -> float:
        """Calculate delay with exponential backoff and optional jitter"""
        delay = self.base_delay * (self.backoff_factor**attempt)
        if self.jitter:
            # Add random jitter ±25%
            jitter_amount = delay * 0.25
            delay += random.uniform(-jitter_amount, jitter_amount)
        return max(0, delay)

    async def execute(
        self,
        operation: Callable[[], Awaitable[T]],
        operation_name: str = "operation",
    ) -> T:
        """
        Execute operation with retry logic

        Args:
            operation: Async function to execute (no arguments)
            operation_name: Name for logging

        Returns:
            Result of the first successful attempt

        Raises:
            The last error once attempts are exhausted or the error is not retryable
        """
        for attempt in range(self.max_attempts):
            try:
                if self.timeout is None:
                    return await operation()
                return await asyncio.wait_for(operation(), timeout=self.timeout)

            except Exception as e:
                is_last = attempt >= self.max_attempts - 1
                if is_last or not self.retry_on(e):
                    if is_last and self.max_attempts > 1:
                        logger.error(f"{operation_name} failed after {self.max_attempts} attempts: {e}")
                    raise

                delay = self._calculate_delay(attempt)
                logger.warning(
                    f"⏳ {operation_name} attempt {attempt + 1}/{self.max_attempts} failed ({e}), retrying in {delay:.1f}s"
                )
                await asyncio.sleep(delay)

        raise RuntimeError("unreachable")  # pragma: no cover
