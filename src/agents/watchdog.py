"""
Master watchdog: bounds the wall-clock duration of a whole conversation.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional, TypeVar

from src.abstractions.errors import MasterTimeoutError

T = TypeVar("T")

logger = logging.getLogger(__name__)


class MasterWatchdog:
    """
    Races a run against a single deadline.

    On expiry ``on_expire`` is invoked (the driver uses it to mark its state
    terminal so no further gateway calls are made) and MasterTimeoutError is
    raised. The run itself is not cancelled; whatever it is awaiting is left
    to settle on its own.
    """

    def __init__(self, timeout_ms: Optional[float]) -> None:
        self.timeout_ms = timeout_ms

    async def watch(self, run: Awaitable[T], on_expire: Optional[Callable[[], Any]] = None) -> T:
        task = asyncio.ensure_future(run)
        if self.timeout_ms is None:
            return await task
        done, _ = await asyncio.wait({task}, timeout=self.timeout_ms / 1000.0)
        if task in done:
            return task.result()
        if on_expire is not None:
            on_expire()
        task.add_done_callback(_log_late_finish)
        logger.error("Master timeout reached after %gms; abandoning conversation", self.timeout_ms)
        raise MasterTimeoutError(self.timeout_ms)


def _log_late_finish(task: "asyncio.Future[Any]") -> None:
    if not task.cancelled() and task.exception() is not None:
        logger.debug("Abandoned conversation raised after master timeout: %s", task.exception())


__all__ = ["MasterWatchdog"]
