import pytest

from chatrelay.core.clock import Clock
from chatrelay.core.engine import Engine
from chatrelay.core.messages import MessageLog
from chatrelay.core.participants import ParticipantRegistry
from chatrelay.core.reaper import PresenceReaper
from chatrelay.core.store import MemoryStore


class FakeClock(Clock):
    """Clock whose time only moves when a test advances it."""

    def __init__(self, start: float = 1_700_000_000.0, tz: str = "America/Sao_Paulo") -> None:
        super().__init__(tz)
        self.t = start

    def now(self) -> float:
        return self.t

    def advance(self, seconds: float) -> None:
        self.t += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def registry(clock):
    return ParticipantRegistry(clock)


@pytest.fixture
def message_log(store):
    return MessageLog(store)


@pytest.fixture
def engine(registry, message_log, clock):
    return Engine(registry, message_log, clock)


@pytest.fixture
def reaper(registry, message_log, clock):
    return PresenceReaper(registry, message_log, clock, interval_s=15.0, stale_after_s=10.0)
