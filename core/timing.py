"""
Bounded waits and settle delays. Every pause yields to the event loop.
"""

from __future__ import annotations
import asyncio
from typing import Awaitable, Callable, Optional, TypeVar

T = TypeVar("T")


async def settle(seconds: float):
    """Give the venue time to reflect the last mutation."""
    await asyncio.sleep(max(0.0, seconds))


async def wait_for(
    probe: Callable[[], Awaitable[Optional[T]]],
    timeout: float,
    interval: float = 0.1,
) -> Optional[T]:
    """
    Poll `probe` until it returns something other than None.
    Returns None once `timeout` has elapsed. The probe runs at least once.
    """
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout

    while True:
        result = await probe()
        if result is not None:
            return result
        if loop.time() >= deadline:
            return None
        await asyncio.sleep(interval)
