"""asyncio-backed named timers."""

from __future__ import annotations

import asyncio
import logging

from ticket_monitor.exceptions import SchedulerError
from ticket_monitor.host.base import Scheduler

logger = logging.getLogger(__name__)


class AsyncioScheduler(Scheduler):
    """One task per named timer on the running event loop.

    Timers live only as long as the process; the monitor re-creates them on
    startup from durable state.
    """

    def __init__(self) -> None:
        super().__init__()
        self._timers: dict[str, asyncio.Task] = {}

    @property
    def names(self) -> list[str]:
        return sorted(self._timers)

    def _start(self, name: str, coro) -> None:
        existing = self._timers.pop(name, None)
        if existing is not None:
            existing.cancel()
        try:
            task = asyncio.get_running_loop().create_task(coro, name=f"timer:{name}")
        except RuntimeError as e:
            coro.close()
            raise SchedulerError(f"No running event loop for timer {name}") from e
        self._timers[name] = task

    async def _fire(self, name: str) -> None:
        if self._callback is None:
            logger.warning("Timer %s fired with no callback registered", name)
            return
        try:
            await self._callback(name)
        except Exception:
            logger.exception("Timer callback for %s failed", name)

    async def _run_recurring(self, name: str, period_seconds: float) -> None:
        while True:
            await asyncio.sleep(period_seconds)
            await self._fire(name)

    async def _run_once(self, name: str, delay_seconds: float) -> None:
        await asyncio.sleep(delay_seconds)
        if self._timers.get(name) is asyncio.current_task():
            del self._timers[name]
        await self._fire(name)

    async def schedule_recurring(self, name: str, period_minutes: float) -> None:
        if period_minutes <= 0:
            raise SchedulerError(f"Period for {name} must be positive, got {period_minutes}")
        self._start(name, self._run_recurring(name, period_minutes * 60))
        logger.debug("Recurring timer %s every %s min", name, period_minutes)

    async def schedule_once(self, name: str, delay_minutes: float) -> None:
        self._start(name, self._run_once(name, max(0.0, delay_minutes * 60)))
        logger.debug("One-shot timer %s in %s min", name, delay_minutes)

    async def cancel(self, name: str) -> bool:
        task = self._timers.pop(name, None)
        if task is None:
            return False
        task.cancel()
        return True

    async def cancel_all(self) -> None:
        for name in list(self._timers):
            await self.cancel(name)
