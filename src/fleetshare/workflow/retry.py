"""
Backoff Retrier

Bounded polling used for every cross-database wait. A lookup returning a falsy
value means "not visible yet" and is polled again; an exception raised by the
lookup is never retried.
"""

import asyncio
import time
from typing import Any
from typing import Awaitable
from typing import Callable
from typing import Generic
from typing import List
from typing import Optional
from typing import TypeVar

from loguru import logger
from pydantic import BaseModel
from pydantic import Field
from pydantic import model_validator

T = TypeVar("T")


class RetryPolicy(BaseModel):
    """Polling budget: a few quick polls at base_delay_ms, then exponential backoff capped at max_delay_ms."""

    max_attempts: int = Field(default=12, ge=1)
    quick_attempts: int = Field(default=4, ge=0)
    base_delay_ms: int = Field(default=50, ge=0)
    max_delay_ms: int = Field(default=2000, ge=0)

    @model_validator(mode="after")
    def validate_delays(self):
        """Validate that the backoff cap is not below the base delay."""
        if self.max_delay_ms < self.base_delay_ms:
            raise ValueError("max_delay_ms must be greater than or equal to base_delay_ms")
        return self

    def delay_after(self, attempt: int) -> int:
        """
        Delay in milliseconds to wait after the given failed attempt (1-indexed).

        Args:
            attempt: Number of the attempt that just came back empty

        Returns:
            Delay in milliseconds before the next attempt
        """
        if attempt <= self.quick_attempts:
            return self.base_delay_ms
        return min(self.max_delay_ms, self.base_delay_ms * 2 ** (attempt - self.quick_attempts))

    def schedule(self) -> List[int]:
        """Every delay inserted when no attempt succeeds (max_attempts - 1 entries)."""
        return [self.delay_after(attempt) for attempt in range(1, self.max_attempts)]


class RetryResult(BaseModel, Generic[T]):
    """What a poll found, how many attempts it took and how long it waited."""

    result: Optional[T] = None
    attempts: int
    elapsed_ms: int

    @property
    def found(self) -> bool:
        return self.result is not None


async def retry_with_backoff(
    task: Callable[[], Awaitable[Optional[T]]],
    policy: Optional[RetryPolicy] = None,
    description: str = "lookup",
    **log_context: Any,
) -> RetryResult[T]:
    """
    Poll ``task`` until it returns a truthy value or the policy's budget is spent.

    Args:
        task: Zero-argument coroutine function returning the value or None
        policy: Polling budget (defaults to RetryPolicy())
        description: Name of the lookup used in log messages
        **log_context: Extra structured fields for log records

    Returns:
        RetryResult with the found value, or result=None and attempts=max_attempts on exhaustion
    """
    policy = policy or RetryPolicy()
    start = time.monotonic()

    for attempt in range(1, policy.max_attempts + 1):
        result = await task()

        if result:
            elapsed_ms = int((time.monotonic() - start) * 1000)
            logger.debug(
                f"{description} succeeded on attempt {attempt} after {elapsed_ms}ms",
                attempts=attempt,
                elapsed_ms=elapsed_ms,
                **log_context,
            )
            return RetryResult(result=result, attempts=attempt, elapsed_ms=elapsed_ms)

        if attempt == policy.max_attempts:
            break

        await asyncio.sleep(policy.delay_after(attempt) / 1000)

    elapsed_ms = int((time.monotonic() - start) * 1000)
    logger.warning(
        f"{description} gave up after {policy.max_attempts} attempts ({elapsed_ms}ms)",
        attempts=policy.max_attempts,
        elapsed_ms=elapsed_ms,
        **log_context,
    )
    return RetryResult(result=None, attempts=policy.max_attempts, elapsed_ms=elapsed_ms)
