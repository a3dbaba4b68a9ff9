"""Retry utilities with exponential backoff.

Used for persistence hand-offs that must not be lost silently, such as
appending a finished ride to history. Periodic snapshots do not retry
here; they simply try again on the next scheduled interval.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import TypeVar

from .exceptions import TransientError

T = TypeVar("T")
logger = logging.getLogger(__name__)


@dataclass
class RetryConfig:
    max_attempts: int = 3
    base_delay: float = 0.5
    multiplier: float = 2.0
    max_delay: float = 30.0
    retryable_exceptions: tuple[type[Exception], ...] = field(
        default_factory=lambda: (TransientError,)
    )

    def delay_for(self, attempt: int) -> float:
        """Backoff delay in seconds after the given zero-based failed attempt."""
        return min(self.base_delay * (self.multiplier**attempt), self.max_delay)


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    config: RetryConfig | None = None,
    operation_name: str = "operation",
) -> T:
    """Run an async operation, retrying retryable failures with backoff.

    The last exception is re-raised once ``max_attempts`` is exhausted.
    Non-retryable exceptions propagate immediately.
    """
    config = config or RetryConfig()

    for attempt in range(config.max_attempts):
        try:
            return await operation()
        except config.retryable_exceptions as e:
            if attempt == config.max_attempts - 1:
                logger.error(
                    "%s failed after %d attempts: %s", operation_name, config.max_attempts, e
                )
                raise

            delay = config.delay_for(attempt)
            logger.warning(
                "%s failed (attempt %d/%d), retrying in %.1fs: %s",
                operation_name,
                attempt + 1,
                config.max_attempts,
                delay,
                e,
            )
            await asyncio.sleep(delay)

    raise RuntimeError(f"{operation_name}: max_attempts must be at least 1")
