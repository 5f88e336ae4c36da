"""Pacing for calls to the categorization backend."""

import asyncio
import logging
from typing import Awaitable, Callable

logger = logging.getLogger(__name__)

DEFAULT_DELAY_SECONDS = 0.2


class FixedDelayLimiter:
    """
    Fixed pause between consecutive backend calls.

    The first call goes through immediately; every later call waits
    `delay_seconds` first, so total pacing grows with the batch size.
    """

    def __init__(
        self,
        delay_seconds: float = DEFAULT_DELAY_SECONDS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if delay_seconds < 0:
            raise ValueError(f"delay_seconds must not be negative, got {delay_seconds}")
        self.delay_seconds = delay_seconds
        self._sleep = sleep
        self._calls = 0

    async def acquire(self) -> None:
        """Wait until the next call may be made."""
        if self._calls > 0 and self.delay_seconds > 0:
            await self._sleep(self.delay_seconds)
        self._calls += 1
