"""
unsurf/utils/retry.py

Bounded retry with exponential backoff for async calls.
"""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import TypeVar

from unsurf.config import Config
from unsurf.utils.logger import get_logger

logger = get_logger(name=__name__)

T = TypeVar("T")


@dataclass
class RetryPolicy:
    """
    Hard attempt ceiling combined with an exponential delay schedule.

    The wrapped call runs once, then up to max_retries more times. Delay
    before retry n (0-based) is base_delay * factor ** n.
    """
    max_retries: int = field(default_factory=lambda: Config.HEAL_MAX_RETRIES)
    base_delay: float = field(default_factory=lambda: Config.HEAL_BASE_DELAY)
    factor: float = 2.0
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep

    def delays(self) -> list[float]:
        """The delay schedule, one entry per retry."""
        return [self.base_delay * (self.factor ** attempt) for attempt in range(self.max_retries)]

    async def call(
        self,
        fn: Callable[[], Awaitable[T]],
        retry_on: tuple[type[BaseException], ...] = (Exception,),
        give_up_on: tuple[type[BaseException], ...] = (),
        should_retry_result: Callable[[T], bool] | None = None,
    ) -> T:
        """
        Run fn under this policy.

        Args:
            fn: Zero-argument coroutine factory, invoked once per attempt.
            retry_on: Exception types that trigger another attempt.
            give_up_on: Subtypes of retry_on that propagate immediately.
            should_retry_result: Optional predicate; a result for which it
                returns True is treated as a failed attempt.

        Returns:
            The first acceptable result, or the last result when every
            attempt produced a rejected result.

        Raises:
            The last exception when every attempt raised.
        """
        schedule = self.delays()
        attempts = len(schedule) + 1
        for attempt in range(attempts):
            try:
                result = await fn()
            except retry_on as e:
                if isinstance(e, give_up_on) or attempt == attempts - 1:
                    raise
                delay = schedule[attempt]
                logger.warning(
                    "Attempt %d/%d failed, retrying in %.1fs: %s",
                    attempt + 1, attempts, delay, e,
                )
                await self.sleep(delay)
                continue

            if should_retry_result is None or not should_retry_result(result):
                return result
            if attempt == attempts - 1:
                return result
            delay = schedule[attempt]
            logger.warning(
                "Attempt %d/%d returned an unsuccessful result, retrying in %.1fs",
                attempt + 1, attempts, delay,
            )
            await self.sleep(delay)

        # unreachable: the loop always returns or raises on the final attempt
        raise RuntimeError("retry loop exited without a result")
