"""
Periodic tick source for the sampling loop.
"""

import asyncio
from typing import Optional


class Scheduler:
    """
    Yields one tick per elapsed interval.

    The first tick fires one full interval after the first wait. Ticks are
    never queued: if the consumer overruns one or more periods, the next wait
    returns immediately and the schedule restarts from that moment.
    """

    def __init__(self, interval: float):
        if interval <= 0:
            raise ValueError(f"Interval must be positive, got {interval}")
        self.interval = interval
        self.ticks = 0
        self._deadline: Optional[float] = None

    async def wait(self) -> int:
        """Sleep until the next tick and return its sequence number (from 1)"""
        loop = asyncio.get_running_loop()
        if self._deadline is None:
            self._deadline = loop.time() + self.interval

        delay = self._deadline - loop.time()
        if delay > 0:
            await asyncio.sleep(delay)

        now = loop.time()
        self._deadline += self.interval
        if self._deadline <= now:
            self._deadline = now + self.interval

        self.ticks += 1
        return self.ticks

    def __aiter__(self):
        return self

    async def __anext__(self) -> int:
        return await self.wait()
