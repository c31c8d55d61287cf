"""Retry with exponential backoff for provider calls."""

import asyncio
import random
from typing import Any, Awaitable, Callable, Optional, TypeVar

import structlog

logger = structlog.get_logger()

T = TypeVar("T")


def backoff_delay(
    attempt: int,
    base_delay: float,
    max_delay: float = 30.0,
    jitter: bool = True,
    rng: Optional[random.Random] = None,
) -> float:
    """Delay before retry number attempt + 1 (attempt is zero-based)."""
    delay = min(base_delay * (2**attempt), max_delay)
    if jitter:
        delay *= 0.5 + (rng or random).random()
    return delay


async def retry_async(
    func: Callable[..., Awaitable[T]],
    *args: Any,
    max_attempts: int = 2,
    base_delay: float = 0.5,
    retryable_exceptions: tuple[type[Exception], ...] = (Exception,),
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    name: Optional[str] = None,
    **kwargs: Any,
) -> T:
    """Execute an async function, retrying retryable failures with backoff.

    Args:
        func: Async function to execute
        *args: Positional arguments for func
        max_attempts: Total attempts, including the first
        base_delay: Initial delay between attempts in seconds
        retryable_exceptions: Exception types worth another attempt
        sleep: Awaitable sleep, replaceable in tests
        name: Label for logging, defaults to the function name
        **kwargs: Keyword arguments for func

    Returns:
        Result of the first successful call

    Raises:
        The last exception once attempts are exhausted, or any
        non-retryable exception immediately
    """
    label = name or getattr(func, "__name__", "call")

    for attempt in range(max_attempts):
        try:
            return await func(*args, **kwargs)
        except retryable_exceptions as e:
            if attempt >= max_attempts - 1:
                logger.error(
                    "retry_exhausted",
                    function=label,
                    max_attempts=max_attempts,
                    error=str(e),
                )
                raise
            delay = backoff_delay(attempt, base_delay)
            logger.warning(
                "retry_attempt",
                function=label,
                attempt=attempt + 1,
                max_attempts=max_attempts,
                delay=round(delay, 2),
                error=str(e),
            )
            await sleep(delay)

    raise ValueError("max_attempts must be at least 1")
