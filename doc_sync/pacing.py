"""Pause policies applied between fetch batches.

The fetcher calls ``await pacer.pause()`` once between consecutive batches,
never before the first or after the last one.
"""

import asyncio
import time
from typing import Awaitable, Callable, Optional

from doc_sync.errors import ConfigError

Sleep = Callable[[float], Awaitable[None]]


class FixedDelayPacer:
    """Always sleep ``delay`` seconds between batches."""

    def __init__(self, delay: float = 1.0, sleep: Optional[Sleep] = None):
        self.delay = delay
        self._sleep = sleep or asyncio.sleep

    def mark_batch_start(self) -> None:
        pass

    async def pause(self) -> None:
        if self.delay > 0:
            await self._sleep(self.delay)


class MinimumIntervalPacer:
    """Keep batch starts at least ``interval`` seconds apart.

    Slow batches eat into the wait, so a batch that already took longer than
    the interval is followed immediately by the next one.
    """

    def __init__(
        self,
        interval: float = 1.0,
        sleep: Optional[Sleep] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.interval = interval
        self._sleep = sleep or asyncio.sleep
        self._clock = clock
        self._last_start: Optional[float] = None

    def mark_batch_start(self) -> None:
        self._last_start = self._clock()

    async def pause(self) -> None:
        if self._last_start is None:
            return
        remaining = self.interval - (self._clock() - self._last_start)
        if remaining > 0:
            await self._sleep(remaining)


def build_pacer(kind: str, seconds: float, sleep: Optional[Sleep] = None):
    """Return the pacer named by ``kind`` (``fixed`` or ``interval``)."""
    if kind == "fixed":
        return FixedDelayPacer(seconds, sleep=sleep)
    if kind == "interval":
        return MinimumIntervalPacer(seconds, sleep=sleep)
    raise ConfigError(f"Unknown pacing '{kind}'")
