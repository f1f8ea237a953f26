# tests/test_reaper.py
import asyncio

import pytest

from chatrelay.core.errors import NotFound, StorageFailure
from chatrelay.core.messages import MessageLog
from chatrelay.core.proto import BROADCAST, MessageKind
from chatrelay.core.reaper import PresenceReaper
from chatrelay.core.store import MemoryStore


class FlakyStore(MemoryStore):
    """Fails appends for the names listed in ``fail_for``."""

    def __init__(self, fail_for=()):
        super().__init__()
        self.fail_for = set(fail_for)

    async def append(self, message):
        if message.from_ in self.fail_for:
            raise StorageFailure("disk unavailable")
        await super().append(message)


@pytest.mark.asyncio
async def test_tick_evicts_stale_and_emits_one_notice_each(reaper, registry, message_log, store, clock):
    await registry.register("ana")
    await registry.register("bia")
    clock.advance(8)
    await registry.register("carla")
    clock.advance(4)  # ana, bia silent 12s; carla 4s

    evicted = await reaper.tick()

    assert {p.name for p in evicted} == {"ana", "bia"}
    assert [p.name for p in await registry.list()] == ["carla"]

    notices = await message_log.query("observer")
    assert len(notices) == 2
    assert {n.from_ for n in notices} == {"ana", "bia"}
    for n in notices:
        assert n.to == BROADCAST
        assert n.kind is MessageKind.STATUS
        assert n.text == "left"


@pytest.mark.asyncio
async def test_tick_without_stale_participants_writes_nothing(reaper, registry, store, clock):
    await registry.register("ana")
    clock.advance(9)
    assert await reaper.tick() == []
    assert len(store) == 0


@pytest.mark.asyncio
async def test_steady_heartbeats_are_never_evicted(reaper, registry, clock):
    await registry.register("ana")
    for _ in range(10):
        clock.advance(6)
        await registry.heartbeat("ana")
        assert await reaper.tick() == []
    assert await registry.is_live("ana")


@pytest.mark.asyncio
async def test_evicted_participant_is_not_resurrected(reaper, registry, engine, clock):
    await registry.register("ana")
    clock.advance(11)
    await reaper.tick()

    assert not await registry.is_live("ana")
    with pytest.raises(NotFound):
        await registry.heartbeat("ana")
    # a fresh registration is the only way back in
    await engine.join_participant("ana")
    assert await registry.is_live("ana")


@pytest.mark.asyncio
async def test_storage_failure_is_swallowed_per_notice(registry, clock):
    store = FlakyStore(fail_for={"ana"})
    log = MessageLog(store)
    reaper = PresenceReaper(registry, log, clock, interval_s=15.0, stale_after_s=10.0)
    await registry.register("ana")
    await registry.register("bia")
    clock.advance(20)

    evicted = await reaper.tick()

    assert {p.name for p in evicted} == {"ana", "bia"}
    assert [m.from_ for m in await log.query("x")] == ["bia"]
    # next tick proceeds independently
    store.fail_for.clear()
    await registry.register("carla")
    clock.advance(20)
    await reaper.tick()
    assert [m.from_ for m in await log.query("x")] == ["carla", "bia"]


@pytest.mark.asyncio
async def test_background_loop_reaps_on_schedule(registry, message_log, clock):
    reaper = PresenceReaper(registry, message_log, clock, interval_s=0.01, stale_after_s=10.0)
    await registry.register("ana")
    clock.advance(30)

    reaper.start()
    assert reaper.running
    try:
        for _ in range(100):
            if not await registry.is_live("ana"):
                break
            await asyncio.sleep(0.01)
    finally:
        await reaper.stop()

    assert not reaper.running
    assert not await registry.is_live("ana")
    assert [m.text for m in await message_log.query("ana")] == ["left"]


@pytest.mark.asyncio
async def test_loop_survives_unexpected_tick_errors(registry, message_log, clock, monkeypatch):
    reaper = PresenceReaper(registry, message_log, clock, interval_s=0.01, stale_after_s=10.0)
    calls = {"n": 0}
    real_evict = registry.evict_stale_before

    async def flaky_evict(threshold):
        calls["n"] += 1
        if calls["n"] == 1:
            raise RuntimeError("boom")
        return await real_evict(threshold)

    monkeypatch.setattr(registry, "evict_stale_before", flaky_evict)
    reaper.start()
    try:
        for _ in range(100):
            if calls["n"] >= 2:
                break
            await asyncio.sleep(0.01)
    finally:
        await reaper.stop()
    assert calls["n"] >= 2


def test_reaper_rejects_non_positive_timings(registry, message_log, clock):
    with pytest.raises(ValueError):
        PresenceReaper(registry, message_log, clock, interval_s=0)
    with pytest.raises(ValueError):
        PresenceReaper(registry, message_log, clock, stale_after_s=-1)
