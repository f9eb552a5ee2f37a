"""Jittered delay between sequential fetches."""

import asyncio
import random
from typing import Awaitable, Callable


class JitterRateLimiter:
    """
    Sleeps for ``base_interval * uniform(jitter_min, jitter_max)`` on each wait.

    The sleep function and random generator are injectable so the delays
    can be observed in tests without real waiting.
    """

    def __init__(
        self,
        base_interval: float,
        jitter_min: float = 0.8,
        jitter_max: float = 1.2,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        rng: random.Random | None = None,
    ):
        if jitter_min > jitter_max:
            raise ValueError("jitter_min must not exceed jitter_max")
        self.base_interval = base_interval
        self.jitter_min = jitter_min
        self.jitter_max = jitter_max
        self._sleep = sleep
        self._rng = rng or random.Random()

    def next_delay(self) -> float:
        return self.base_interval * self._rng.uniform(self.jitter_min, self.jitter_max)

    async def wait(self) -> float:
        """Sleep for one jittered interval and return the delay used."""
        delay = self.next_delay()
        if delay > 0:
            await self._sleep(delay)
        return delay
