from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Optional

from loguru import logger

Sleep = Callable[[float], Awaitable[None]]


class TimerHandle:
    """One running countdown. Once cancelled it never calls back again."""

    def __init__(self) -> None:
        self.cancelled = False
        self._task: Optional[asyncio.Task] = None

    def cancel(self) -> None:
        if self.cancelled:
            return
        self.cancelled = True
        task = self._task
        if task is None or task.done():
            return
        try:
            current = asyncio.current_task()
        except RuntimeError:
            current = None
        # the expiry callback may cancel its own handle; let that task finish normally
        if task is not current:
            task.cancel()

    @property
    def done(self) -> bool:
        return self._task is None or self._task.done()


class Countdown:
    def __init__(self, budget: int = 10, tick_seconds: float = 1.0, sleep: Sleep = asyncio.sleep):
        self.budget = budget
        self.tick_seconds = tick_seconds
        self._sleep = sleep

    def start(self, on_tick: Callable[[int], None], on_expire: Callable[[], None]) -> TimerHandle:
        handle = TimerHandle()
        loop = asyncio.get_running_loop()
        handle._task = loop.create_task(self._run(handle, on_tick, on_expire))
        return handle

    async def _run(self, handle: TimerHandle, on_tick, on_expire) -> None:
        remaining = self.budget
        while remaining > 0:
            await self._sleep(self.tick_seconds)
            if handle.cancelled:
                return
            remaining -= 1
            on_tick(remaining)
        if handle.cancelled:
            return
        logger.debug("[timer] countdown expired")
        on_expire()
