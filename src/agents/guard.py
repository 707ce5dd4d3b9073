"""
Per-call timeout guard.

The guard races an operation against a timer. If the timer wins, the guard
stops waiting and raises ExecutionTimeoutError; the operation is left running
(no cancellation is attempted), so a runaway handler can keep consuming
resources after its timeout has been reported.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Optional, TypeVar

from src.abstractions.errors import ExecutionTimeoutError

T = TypeVar("T")

logger = logging.getLogger(__name__)


def _drain(task: "asyncio.Future[Any]") -> None:
    # Retrieve the late result so asyncio does not warn about an unobserved exception.
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.debug("Abandoned operation finished with %s: %s", type(exc).__name__, exc)


async def guard(operation: Awaitable[T], timeout_ms: Optional[float], tool_name: str = "operation") -> T:
    """
    Await ``operation`` for at most ``timeout_ms`` milliseconds.

    ``timeout_ms=None`` waits indefinitely. Success and failure of an operation
    that settles in time pass through unchanged.

    Raises:
        ExecutionTimeoutError: labelled with ``tool_name`` and the bound
    """
    task = asyncio.ensure_future(operation)
    timeout = None if timeout_ms is None else timeout_ms / 1000.0
    # asyncio.wait never cancels the task, unlike asyncio.wait_for.
    done, _ = await asyncio.wait({task}, timeout=timeout)
    if task in done:
        return task.result()
    task.add_done_callback(_drain)
    raise ExecutionTimeoutError(tool_name, timeout_ms)


class ExecutionGuard:
    """Binds a fixed per-call timeout to ``guard``."""

    def __init__(self, timeout_ms: Optional[float]) -> None:
        self.timeout_ms = timeout_ms

    async def run(self, tool_name: str, operation: Awaitable[T]) -> T:
        return await guard(operation, self.timeout_ms, tool_name)


__all__ = ["guard", "ExecutionGuard"]
