"""
Fixed-delay turn throttle.

The delay is config-driven, not adaptive. A production deployment facing a
strict quota would replace this with a token bucket or back off on observed
429 responses; the interface (``wait`` / ``wait_between_calls``) stays the same.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

logger = logging.getLogger(__name__)

Sleeper = Callable[[float], Awaitable[None]]


class TurnThrottle:
    def __init__(self, delay_ms: float = 0, per_call_delay_ms: float = 0, sleep: Sleeper = asyncio.sleep) -> None:
        self.delay_ms = max(0.0, float(delay_ms))
        self.per_call_delay_ms = max(0.0, float(per_call_delay_ms))
        self._sleep = sleep

    async def wait(self) -> None:
        """Suspend for the turn delay. Called once per turn, before the next send."""
        if self.delay_ms:
            logger.info("Waiting for %gms before next iteration...", self.delay_ms)
            await self._sleep(self.delay_ms / 1000.0)

    async def wait_between_calls(self) -> None:
        """Suspend between sibling calls of one turn when they run sequentially."""
        if self.per_call_delay_ms:
            await self._sleep(self.per_call_delay_ms / 1000.0)


__all__ = ["TurnThrottle"]
