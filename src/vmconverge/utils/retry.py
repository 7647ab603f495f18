"""Retry helper for establishing vCenter sessions.

Only session setup is retried. Reconfigure and power-on calls are never
repeated within a cycle; a failure there is counted and the loop halts.
"""

from __future__ import annotations

import functools
import time
from collections.abc import Callable
from typing import ParamSpec, TypeVar

from vmconverge.utils.logging import get_logger

logger = get_logger("retry")

P = ParamSpec("P")
T = TypeVar("T")


def retry_with_backoff(
    max_attempts: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 30.0,
    exceptions: tuple[type[Exception], ...] = (Exception,),
    give_up_on: tuple[type[Exception], ...] = (),
) -> Callable[[Callable[P, T]], Callable[P, T]]:
    """Retry the decorated call, doubling the delay after each failure.

    Args:
        max_attempts: Total attempts, the first call included.
        base_delay: Seconds to wait after the first failure.
        max_delay: Upper bound for a single wait.
        exceptions: Exception types that trigger another attempt.
            Anything else propagates immediately.
        give_up_on: Subclasses of ``exceptions`` that are never retried,
            such as rejected credentials.

    Returns:
        Decorator applying the retry policy.
    """

    def decorator(func: Callable[P, T]) -> Callable[P, T]:
        @functools.wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            delay = base_delay
            attempt = 1
            while True:
                try:
                    return func(*args, **kwargs)
                except exceptions as e:
                    if isinstance(e, give_up_on) or attempt >= max_attempts:
                        logger.debug(f"{func.__name__} gave up after {attempt} attempt(s)")
                        raise
                    logger.warning(
                        f"{func.__name__} failed ({e}), attempt {attempt} of "
                        f"{max_attempts}, next try in {delay:.1f}s"
                    )
                    time.sleep(delay)
                    delay = min(delay * 2, max_delay)
                    attempt += 1

        return wrapper

    return decorator
