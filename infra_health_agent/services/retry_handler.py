"""Retry handler with exponential backoff for report delivery."""

import asyncio
import inspect
import logging
import random
from typing import Awaitable, Callable, Optional, Tuple, TypeVar, Union


T = TypeVar('T')


class RetryHandler:
    """
    Handles retry logic with exponential backoff and jitter.

    Collectors never retry; delivery of their results to a sink does.
    """

    @staticmethod
    def backoff_delay(attempt: int, base_delay: float, max_delay: float) -> float:
        """
        Delay before the retry that follows a failed attempt.

        Args:
            attempt: 1-based number of the attempt that just failed
            base_delay: Initial delay in seconds
            max_delay: Upper bound for the exponential part

        Returns:
            float: Seconds to wait, including 0-10% jitter
        """
        delay = min(base_delay * (2 ** (attempt - 1)), max_delay)
        return delay + random.uniform(0, delay * 0.1)

    @staticmethod
    async def with_retry(
        func: Callable[[], Union[T, Awaitable[T]]],
        max_attempts: int = 3,
        base_delay: float = 1.0,
        max_delay: float = 60.0,
        exceptions: Tuple[type, ...] = (Exception,),
        logger: Optional[logging.Logger] = None
    ) -> T:
        """
        Execute function with exponential backoff retry.

        Args:
            func: Sync or async callable to execute
            max_attempts: Maximum attempts, including the first (default 3)
            base_delay: Initial delay in seconds (default 1.0)
            max_delay: Maximum delay in seconds (default 60.0)
            exceptions: Tuple of exception types to retry on
            logger: Optional logger for retry events

        Returns:
            Result from successful function execution

        Raises:
            Exception: Last exception if all retries exhausted
        """
        logger = logger or logging.getLogger(__name__)
        max_attempts = max(max_attempts, 1)

        for attempt in range(1, max_attempts + 1):
            try:
                result = func()
                if inspect.isawaitable(result):
                    result = await result
                return result

            except exceptions as e:
                if attempt == max_attempts:
                    logger.error(f"All {max_attempts} delivery attempts exhausted: {e}")
                    raise

                total_delay = RetryHandler.backoff_delay(attempt, base_delay, max_delay)
                logger.warning(
                    f"Attempt {attempt}/{max_attempts} failed: {e}. "
                    f"Retrying in {total_delay:.2f}s..."
                )
                await asyncio.sleep(total_delay)

        raise RuntimeError("unreachable: retry loop exited without result")
