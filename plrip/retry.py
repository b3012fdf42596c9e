"""Retry logic with fixed or exponential backoff."""

import random
import time
from functools import wraps
from typing import Callable, Optional, TypeVar, ParamSpec

from plrip.constants import (
    RETRY_MAX_ATTEMPTS,
    RETRY_BASE_DELAY_SEC,
    RETRY_MAX_DELAY_SEC,
    get_logger,
)

logger = get_logger("retry")

P = ParamSpec("P")
T = TypeVar("T")


def backoff_delay(attempt: int, base_delay: float, max_delay: float, factor: float, jitter: bool) -> float:
    """Delay to wait after the given (1-based) failed attempt."""
    delay = min(base_delay * (factor ** (attempt - 1)), max_delay)
    if jitter:
        delay = delay * (0.5 + random.random())
    return delay


def retry_with_backoff(
    max_attempts: int = RETRY_MAX_ATTEMPTS,
    base_delay: float = RETRY_BASE_DELAY_SEC,
    max_delay: float = RETRY_MAX_DELAY_SEC,
    exceptions: tuple = (Exception,),
    factor: float = 2.0,
    jitter: bool = True,
    reraise: bool = False,
    sleep: Optional[Callable[[float], None]] = None,
) -> Callable[[Callable[P, T]], Callable[P, T | None]]:
    """
    Decorator for retrying a function with backoff.

    Args:
        max_attempts: Maximum number of attempts, the first call included
        base_delay: Delay after the first failure in seconds
        max_delay: Upper bound for any single delay in seconds
        exceptions: Tuple of exception types to catch and retry
        factor: Multiplier applied per attempt; 1.0 gives a fixed delay
        jitter: Randomize each delay between 50% and 150%
        reraise: Raise the last exception when attempts run out instead of returning None
        sleep: Sleep function, ``time.sleep`` when not given
    """

    def decorator(func: Callable[P, T]) -> Callable[P, T | None]:
        @wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> T | None:
            pause = sleep or time.sleep

            for attempt in range(1, max_attempts + 1):
                try:
                    return func(*args, **kwargs)
                except exceptions as e:
                    if attempt == max_attempts:
                        logger.warning(
                            f"{func.__name__} failed after {max_attempts} attempts: {e}"
                        )
                        if reraise:
                            raise
                        return None

                    delay = backoff_delay(attempt, base_delay, max_delay, factor, jitter)
                    logger.info(
                        f"{func.__name__} attempt {attempt} of {max_attempts} failed: {e}. "
                        f"Retrying in {delay:.1f}s..."
                    )
                    pause(delay)

            return None

        return wrapper

    return decorator
