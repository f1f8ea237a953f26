from __future__ import annotations

import asyncio
import logging
from typing import List, Optional

from .clock import Clock
from .errors import StorageFailure
from .messages import MessageLog
from .participants import Participant, ParticipantRegistry
from .proto import LEAVE_TEXT, status_message

log = logging.getLogger("chatrelay.reaper")

DEFAULT_INTERVAL_S = 15.0
DEFAULT_STALE_AFTER_S = 10.0


class PresenceReaper:
    """Periodic task that evicts silent participants.

    Each tick evicts everyone whose last heartbeat is older than the stale
    window, then appends one broadcast ``left`` notice per evicted participant.
    The registry lock is held only for the eviction itself, never while the
    notices are written.
    """

    def __init__(
        self,
        registry: ParticipantRegistry,
        messages: MessageLog,
        clock: Clock,
        *,
        interval_s: float = DEFAULT_INTERVAL_S,
        stale_after_s: float = DEFAULT_STALE_AFTER_S,
    ) -> None:
        if interval_s <= 0 or stale_after_s <= 0:
            raise ValueError("reaper interval and stale window must be positive")
        self.registry = registry
        self.messages = messages
        self.clock = clock
        self.interval_s = interval_s
        self.stale_after_s = stale_after_s
        self._task: Optional[asyncio.Task] = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._loop(), name="presence-reaper")
        log.info("Reaper started (interval=%ss, stale after %ss)", self.interval_s, self.stale_after_s)

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)
        log.info("Reaper stopped")

    # ------------------------------------------------------------------
    # Ticks
    # ------------------------------------------------------------------

    async def tick(self) -> List[Participant]:
        threshold = self.clock.now() - self.stale_after_s
        evicted = await self.registry.evict_stale_before(threshold)
        for participant in evicted:
            notice = status_message(participant.name, LEAVE_TEXT, self.clock.stamp())
            try:
                await self.messages.append(notice)
            except StorageFailure:
                log.exception("Could not record departure of %s", participant.name)
        return evicted

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self.interval_s)
            try:
                await self.tick()
            except Exception:
                log.exception("reaper tick failed")


__all__ = ["PresenceReaper"]
