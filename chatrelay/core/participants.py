from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from .clock import Clock
from .errors import Conflict, InvalidArgument, NotFound

log = logging.getLogger("chatrelay.participants")


@dataclass
class Participant:
    name: str
    last_seen: float

    def touch(self, now: float) -> None:
        self.last_seen = now

    def to_dict(self) -> dict:
        return {"name": self.name, "lastStatus": int(self.last_seen * 1000)}


class ParticipantRegistry:
    """Keyed table of live participants.

    A single lock guards the table: the uniqueness check and insert in
    ``register``, the timestamp refresh in ``heartbeat`` and the scan+remove
    in ``evict_stale_before`` never interleave, so a heartbeat is never lost
    to a concurrent eviction of the same name.
    """

    def __init__(self, clock: Clock) -> None:
        self.clock = clock
        self._participants: Dict[str, Participant] = {}
        self._lock = asyncio.Lock()

    async def register(self, name: str) -> Participant:
        if not name:
            raise InvalidArgument("participant name is required")
        async with self._lock:
            if name in self._participants:
                raise Conflict(f"name {name!r} is already in use")
            participant = Participant(name=name, last_seen=self.clock.now())
            self._participants[name] = participant
        log.info("Registered participant %s", name)
        return self._copy(participant)

    async def heartbeat(self, name: str) -> Participant:
        async with self._lock:
            participant = self._participants.get(name)
            if participant is None:
                raise NotFound(f"no live participant named {name!r}")
            participant.touch(self.clock.now())
            snapshot = self._copy(participant)
        log.debug("Heartbeat from %s", name)
        return snapshot

    async def list(self) -> List[Participant]:
        async with self._lock:
            return [self._copy(p) for p in self._participants.values()]

    async def get(self, name: str) -> Optional[Participant]:
        async with self._lock:
            participant = self._participants.get(name)
            return self._copy(participant) if participant else None

    async def is_live(self, name: str) -> bool:
        async with self._lock:
            return name in self._participants

    async def evict_stale_before(self, threshold: float) -> List[Participant]:
        """Remove and return every participant last seen before ``threshold``."""

        async with self._lock:
            stale = [p for p in self._participants.values() if p.last_seen < threshold]
            for participant in stale:
                del self._participants[participant.name]
        if stale:
            log.warning("Evicted %d stale participant(s): %s", len(stale), ", ".join(p.name for p in stale))
        return stale

    def __len__(self) -> int:
        return len(self._participants)

    @staticmethod
    def _copy(participant: Participant) -> Participant:
        return Participant(name=participant.name, last_seen=participant.last_seen)


__all__ = ["Participant", "ParticipantRegistry"]
