"""
Retry control for model invocations.

Errors are sorted into two kinds by looking at their message text. Rate limit
errors are retried with exponential backoff; everything else is raised as-is
on the first failure.
"""

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Optional

from grim_translator.ai.exceptions import RateLimitError
from grim_translator.logger import get_logger

logger = get_logger(__name__)

RATE_LIMIT_MARKERS = ('429', 'rate limit', 'resource exhausted', 'quota')

Invoke = Callable[[str], Awaitable[str]]
Sleep = Callable[[float], Awaitable[None]]


class ErrorKind(Enum):
    """Retry classification of an invocation error."""

    RATE_LIMITED = "rate_limited"
    FATAL = "fatal"


def classify_error(error: BaseException) -> ErrorKind:
    """
    Categorize an error by its message text.

    Args:
        error: Exception raised by the model invocation

    Returns:
        ErrorKind.RATE_LIMITED if the message mentions a rate limit, else ErrorKind.FATAL
    """
    error_str = str(error).lower()
    if any(marker in error_str for marker in RATE_LIMIT_MARKERS):
        return ErrorKind.RATE_LIMITED
    return ErrorKind.FATAL


@dataclass(frozen=True)
class RetryPolicy:
    """Attempt budget and backoff schedule."""

    max_attempts: int = 3
    base_delay: float = 1.0
    multiplier: float = 2.0

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.base_delay <= 0:
            raise ValueError("base_delay must be positive")
        if self.multiplier <= 1:
            raise ValueError("multiplier must be greater than 1")

    def delay_for(self, attempt: int) -> float:
        """Backoff before the retry that follows failed attempt number `attempt` (1-based)."""
        return self.base_delay * self.multiplier ** (attempt - 1)


class RetryController:
    """Runs one model invocation under a RetryPolicy."""

    def __init__(self, policy: Optional[RetryPolicy] = None, sleep: Optional[Sleep] = None):
        self.policy = policy or RetryPolicy()
        self._sleep = sleep or asyncio.sleep

    async def call(self, invoke: Invoke, prompt: str) -> str:
        """
        Invoke the model, retrying rate limit failures.

        Args:
            invoke: Async callable taking a prompt and returning response text
            prompt: Prompt to send

        Returns:
            Response text of the first successful attempt

        Raises:
            RateLimitError: If every attempt was rate limited
            Exception: The original error, for anything that is not a rate limit
        """
        max_attempts = self.policy.max_attempts

        for attempt in range(1, max_attempts + 1):
            try:
                return await invoke(prompt)
            except Exception as e:
                if classify_error(e) is ErrorKind.FATAL:
                    logger.error(f"  Non-recoverable error: {e}")
                    raise

                if attempt >= max_attempts:
                    logger.error(f"  Rate limited on all {max_attempts} attempts: {e}")
                    raise RateLimitError(details={"attempts": attempt, "last_error": str(e)}) from e

                wait_time = self.policy.delay_for(attempt)
                logger.warning(f"  Attempt {attempt}/{max_attempts} rate limited: {e}. Waiting {wait_time}s before retry...")
                await self._sleep(wait_time)

        # max_attempts >= 1 so the loop always returns or raises
        raise AssertionError("unreachable")
