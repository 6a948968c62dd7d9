"""Notification snooze window.

All snooze truth lives in durable storage. Every query re-reads it, because
the process may have been torn down and recreated since the last call.
Expiry is handled twice: a one-shot ``snoozeEnd`` timer clears the record
promptly, and any query that finds an expired record clears it too (the
timer is lost when the host shuts down).
"""

from __future__ import annotations

import logging
import math
from typing import Awaitable, Callable

from ticket_monitor.clock import MS_PER_MINUTE, Clock, now_ms
from ticket_monitor.exceptions import SchedulerError, StorageUnavailable
from ticket_monitor.host.base import Scheduler
from ticket_monitor.models import SnoozeState, SnoozeStatus
from ticket_monitor.storage.state import SNOOZE_KEY, StateStore

logger = logging.getLogger(__name__)

SNOOZE_ALARM = "snoozeEnd"
INDEFINITE_SNOOZE_MS = 365 * 24 * 60 * MS_PER_MINUTE


class SnoozeController:
    """Set, clear and query the snooze window.

    Args:
        state: Two-tier state store; only the durable tier is used.
        scheduler: Timer facility for the ``snoozeEnd`` wake-up.
        clock: Millisecond clock.
        on_change: Awaited after set/clear, typically the badge refresh.
    """

    def __init__(
        self,
        state: StateStore,
        scheduler: Scheduler,
        clock: Clock = now_ms,
        on_change: Callable[[], Awaitable[None]] | None = None,
    ):
        self.state = state
        self.scheduler = scheduler
        self.clock = clock
        self.on_change = on_change

    async def _notify_change(self) -> None:
        if self.on_change is None:
            return
        try:
            await self.on_change()
        except Exception:
            logger.exception("Snooze change hook failed")

    async def _clear_record(self) -> bool:
        """Remove the durable record and cancel the wake-up. Idempotent.

        Returns:
            False if the record could not be removed.
        """
        removed = True
        try:
            await self.state.remove_durable([SNOOZE_KEY])
        except StorageUnavailable as e:
            logger.error(f"Could not remove snooze state: {e}")
            removed = False
        try:
            await self.scheduler.cancel(SNOOZE_ALARM)
        except SchedulerError as e:
            logger.error(f"Could not cancel snooze timer: {e}")
        return removed

    async def _active_state(self) -> SnoozeState | None:
        """Return the stored snooze if it has not expired, clearing it if it has."""
        try:
            data = await self.state.read_durable([SNOOZE_KEY])
        except StorageUnavailable as e:
            logger.warning(f"Snooze state unreadable, treating as not snoozed: {e}")
            return None

        raw = data.get(SNOOZE_KEY)
        if not raw:
            return None
        try:
            snooze = SnoozeState.from_dict(raw)
        except (KeyError, TypeError, ValueError):
            logger.warning("Discarding malformed snooze state: %r", raw)
            await self._clear_record()
            return None

        if snooze.end_time > self.clock():
            return snooze
        logger.info("Snooze expired without its timer firing; clearing")
        if await self._clear_record():
            await self._notify_change()
        return None

    async def set_snooze(self, duration_minutes: int) -> dict:
        """Suppress notifications for ``duration_minutes`` (0 = indefinitely).

        Returns:
            ``{"success": True, "endTime": ms}``, or ``{"success": False,
            "error": ...}`` when the record could not be stored.
        """
        try:
            duration_minutes = int(duration_minutes)
        except (TypeError, ValueError):
            return {"success": False, "error": f"Invalid snooze duration: {duration_minutes!r}"}
        if duration_minutes < 0:
            return {"success": False, "error": "Snooze duration must not be negative"}

        now = self.clock()
        if duration_minutes == 0:
            end_time = now + INDEFINITE_SNOOZE_MS
        else:
            end_time = now + duration_minutes * MS_PER_MINUTE

        snooze = SnoozeState(end_time=end_time, duration_minutes=duration_minutes)
        try:
            await self.state.write_durable({SNOOZE_KEY: snooze.to_dict()})
        except StorageUnavailable as e:
            logger.error(f"Could not store snooze state: {e}")
            return {"success": False, "error": str(e)}

        if duration_minutes > 0:
            try:
                await self.scheduler.schedule_once(SNOOZE_ALARM, duration_minutes)
            except SchedulerError as e:
                logger.error(f"Could not schedule snooze end: {e}")
        else:
            # An earlier finite snooze may still have a timer pending.
            try:
                await self.scheduler.cancel(SNOOZE_ALARM)
            except SchedulerError as e:
                logger.error(f"Could not cancel snooze timer: {e}")

        if snooze.indefinite:
            logger.info("Notifications snoozed indefinitely")
        else:
            logger.info(f"Notifications snoozed for {duration_minutes} minutes")

        await self._notify_change()
        return {"success": True, "endTime": end_time}

    async def clear_snooze(self) -> dict:
        await self._clear_record()
        logger.info("Notifications no longer snoozed")
        await self._notify_change()
        return {"success": True}

    async def is_snoozed(self) -> bool:
        return await self._active_state() is not None

    async def get_end_time(self) -> int | None:
        snooze = await self._active_state()
        return snooze.end_time if snooze else None

    async def get_remaining_minutes(self) -> int:
        """Whole minutes left, rounded up. 0 when not snoozed or snoozed
        indefinitely; use :meth:`is_snoozed` to tell those apart."""
        snooze = await self._active_state()
        return self._remaining(snooze)

    def _remaining(self, snooze: SnoozeState | None) -> int:
        if snooze is None or snooze.indefinite:
            return 0
        return max(0, math.ceil((snooze.end_time - self.clock()) / MS_PER_MINUTE))

    async def get_status(self) -> SnoozeStatus:
        """Snapshot from a single storage read."""
        snooze = await self._active_state()
        return SnoozeStatus(
            is_snoozed=snooze is not None,
            snooze_end_time=snooze.end_time if snooze else None,
            remaining_minutes=self._remaining(snooze),
        )

    async def restore_timer(self) -> None:
        """Re-create the ``snoozeEnd`` timer after a restart if a finite
        snooze is still running."""
        snooze = await self._active_state()
        if snooze is None or snooze.indefinite:
            return
        delay_minutes = (snooze.end_time - self.clock()) / MS_PER_MINUTE
        try:
            await self.scheduler.schedule_once(SNOOZE_ALARM, delay_minutes)
        except SchedulerError as e:
            logger.error(f"Could not restore snooze timer: {e}")
            return
        logger.info(f"Restored snooze timer, ending in {delay_minutes:.1f} minutes")
