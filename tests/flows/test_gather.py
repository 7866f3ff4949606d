"""Tests for the Gather accumulation buffer."""

from __future__ import annotations

import time

import anyio
import pytest

from remoteflow import Bus, Gather


class TestGather:
    """Tests for prep / record / wait / values."""

    async def test_wait_returns_when_count_reached(self) -> None:
        gather = Gather(timeout=5.0)
        await gather.prep(2)
        await gather.record('a')
        await gather.record('b')
        started = time.monotonic()
        assert await gather.wait()
        assert time.monotonic() - started < 1.0
        assert gather.values() == ['a', 'b']
        assert gather.pending == 0

    async def test_wait_times_out_with_partial_values(self) -> None:
        gather = Gather()
        await gather.prep(3)
        await gather.record(1)
        assert not await gather.wait(timeout=0.05)
        assert gather.values() == [1]
        assert gather.pending == 2

    async def test_prep_zero_does_not_wait(self) -> None:
        gather = Gather()
        await gather.prep(0)
        with anyio.fail_after(0.5):
            assert await gather.wait()

    async def test_prep_clears_previous_window(self) -> None:
        gather = Gather()
        await gather.prep(1)
        await gather.record('old')
        await gather.prep(1)
        assert gather.values() == []
        assert gather.pending == 1

    async def test_extra_values_still_recorded(self) -> None:
        gather = Gather()
        await gather.prep(1)
        for v in range(3):
            await gather.record(v)
        assert await gather.wait()
        assert gather.values() == [0, 1, 2]

    async def test_values_is_a_snapshot(self) -> None:
        gather = Gather()
        await gather.prep(1)
        await gather.record(1)
        snapshot = gather.values()
        snapshot.append(2)
        assert gather.values() == [1]

    async def test_waiter_wakes_on_record(self) -> None:
        gather = Gather()
        await gather.prep(1)

        async def record_later() -> None:
            await anyio.sleep(0.02)
            await gather.record('late')

        async with anyio.create_task_group() as tg:
            tg.start_soon(record_later)
            assert await gather.wait()

    async def test_concurrent_producers_all_counted(self) -> None:
        gather = Gather(timeout=5.0)
        await gather.prep(50)

        async def produce(i: int) -> None:
            await anyio.sleep(0)
            await gather.record(i)

        async with anyio.create_task_group() as tg:
            for i in range(50):
                tg.start_soon(produce, i)

        assert await gather.wait(0.1)
        assert sorted(gather.values()) == list(range(50))
        assert gather.pending == 0

    async def test_prep_racing_records_keeps_count_consistent(self) -> None:
        gather = Gather(timeout=5.0)
        await gather.prep(10)

        async def produce(i: int) -> None:
            for _ in range(i % 3):
                await anyio.sleep(0)
            await gather.record(i)

        async def reprep() -> None:
            await anyio.sleep(0)
            await gather.prep(10)

        async with anyio.create_task_group() as tg:
            for i in range(20):
                tg.start_soon(produce, i)
            tg.start_soon(reprep)

        # every value recorded since the last prep counted against it, no more, no less
        assert gather.pending == max(10 - len(gather.values()), 0)

    async def test_rejects_negative_count(self) -> None:
        with pytest.raises(ValueError):
            await Gather().prep(-1)

    def test_default_timeout_from_config(self) -> None:
        assert Gather().timeout == 2.0

    def test_repr(self) -> None:
        assert repr(Gather()) == 'Gather(received=0, pending=0)'


class TestGatherOnBus:
    """Tests for a Gather bound to a channel."""

    async def test_records_sent_values(self) -> None:
        async with Bus() as bus:
            gather = Gather().bind(bus, 'sink')
            await gather.prep(2)
            await bus.send('sink', 'x')
            await bus.send('sink', 'y')
            assert await gather.wait()

        assert gather.values() == ['x', 'y']

    async def test_request_replied_with_none(self) -> None:
        async with Bus() as bus:
            gather = Gather().bind(bus, 'sink')
            await gather.prep(1)
            assert await bus.ask('sink', 'x') is None

        assert gather.values() == ['x']
