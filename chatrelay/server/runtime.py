from __future__ import annotations

import asyncio
import logging
from typing import Optional

from chatrelay.core.clock import Clock
from chatrelay.core.config import RelayConfig
from chatrelay.core.engine import Engine
from chatrelay.core.messages import MessageLog
from chatrelay.core.participants import ParticipantRegistry
from chatrelay.core.reaper import PresenceReaper
from chatrelay.core.store import MemoryStore, MessageStore, SqliteStore

log = logging.getLogger("chatrelay.server.runtime")


class RelayRuntime:
    """Owns the relay state for the lifetime of the process."""

    def __init__(self, config: RelayConfig, clock: Optional[Clock] = None) -> None:
        self.cfg = config
        self.clock = clock or Clock(config.timezone)
        self.store: MessageStore = SqliteStore(config.db_path) if config.db_path else MemoryStore()
        self.registry = ParticipantRegistry(self.clock)
        self.messages = MessageLog(self.store)
        self.engine = Engine(self.registry, self.messages, self.clock)
        self.reaper = PresenceReaper(
            self.registry,
            self.messages,
            self.clock,
            interval_s=config.reap_interval_secs,
            stale_after_s=config.stale_after_secs,
        )
        self._started = False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        if self._started:
            return
        await self.store.open()
        self.reaper.start()
        self._started = True
        log.info("Relay runtime started (store=%s)", self.cfg.db_path or "memory")

    async def stop(self) -> None:
        if not self._started:
            return
        await self.reaper.stop()
        await self.store.close()
        self._started = False
        log.info("Relay runtime stopped")

    async def run_until(self, stop_event: asyncio.Event) -> None:
        """Run the relay until ``stop_event`` is set, then shut down."""
        await self.start()
        log.info("Relay running. Press Ctrl+C to stop.")
        try:
            await stop_event.wait()
        finally:
            await self.stop()

    async def __aenter__(self) -> "RelayRuntime":
        await self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.stop()


__all__ = ["RelayRuntime"]
