"""Tests for ResultHandle and the handle adapters."""

from __future__ import annotations

import builtins

import anyio
import pytest

from remoteflow.result import Err, Ok
from remoteflow.runtime import (
    AlreadyResolvedError,
    ResultHandle,
    SourceCancelledError,
    join_all,
    wrap_failure,
    wrap_immediate,
)


class TestResultHandle:
    """Tests for resolving and awaiting a handle."""

    async def test_resolve_then_await(self) -> None:
        handle: ResultHandle[int] = ResultHandle()
        handle.resolve(42)
        assert await handle == 42
        assert handle.done()

    async def test_fail_reraises_same_exception(self) -> None:
        error = ValueError('bad')
        handle: ResultHandle[int] = ResultHandle()
        handle.fail(error)
        with pytest.raises(ValueError) as exc_info:
            await handle
        assert exc_info.value is error

    async def test_outcome_does_not_raise(self) -> None:
        error = ValueError('bad')
        handle = wrap_failure(error)
        assert await handle.outcome() == Err(error)

    async def test_resolves_exactly_once(self) -> None:
        handle: ResultHandle[int] = ResultHandle()
        handle.resolve(1)
        with pytest.raises(AlreadyResolvedError):
            handle.resolve(2)
        with pytest.raises(AlreadyResolvedError):
            handle.fail(ValueError())
        assert await handle == 1

    async def test_waiters_wake_on_resolve(self) -> None:
        handle: ResultHandle[str] = ResultHandle()
        seen: list[str] = []

        async def waiter() -> None:
            seen.append(await handle)

        async with anyio.create_task_group() as tg:
            tg.start_soon(waiter)
            tg.start_soon(waiter)
            await anyio.sleep(0.01)
            assert not handle.done()
            handle.resolve('ready')

        assert seen == ['ready', 'ready']

    async def test_wait_for_times_out(self) -> None:
        handle: ResultHandle[int] = ResultHandle()
        with pytest.raises(builtins.TimeoutError):
            await handle.wait_for(0.05)

    def test_result_before_resolution_raises(self) -> None:
        with pytest.raises(RuntimeError, match='not yet resolved'):
            ResultHandle().result()

    def test_result_after_resolution(self) -> None:
        assert wrap_immediate(3).result() == Ok(3)

    def test_repr(self) -> None:
        assert repr(ResultHandle('lookup acct')) == "ResultHandle('lookup acct', pending)"
        assert repr(wrap_immediate(1)) == 'ResultHandle(Ok(1))'


class TestDeferred:
    """Tests for handles driven by a source awaitable."""

    async def test_source_awaited_once(self) -> None:
        calls = 0

        async def source() -> int:
            nonlocal calls
            calls += 1
            await anyio.sleep(0.01)
            return 7

        handle = ResultHandle.deferred(source())
        results: list[int] = []

        async def waiter() -> None:
            results.append(await handle)

        async with anyio.create_task_group() as tg:
            for _ in range(3):
                tg.start_soon(waiter)

        assert results == [7, 7, 7]
        assert calls == 1

    async def test_source_failure(self) -> None:
        async def source() -> int:
            raise KeyError('gone')

        with pytest.raises(KeyError):
            await ResultHandle.deferred(source())

    async def test_cancelled_source_settles_handle(self) -> None:
        async def slow() -> int:
            await anyio.sleep(10)
            return 1

        handle = join_all([slow()])
        with pytest.raises(builtins.TimeoutError):
            await handle.wait_for(0.05)

        assert handle.done()
        with anyio.fail_after(1), pytest.raises(SourceCancelledError, match=r'join_all\[1\]'):
            await handle


class TestAdapters:
    """Tests for wrap_immediate, wrap_failure and join_all."""

    async def test_wrap_immediate(self) -> None:
        handle = wrap_immediate('x')
        assert handle.done()
        assert await handle == 'x'

    async def test_wrap_failure(self) -> None:
        with pytest.raises(RuntimeError):
            await wrap_failure(RuntimeError('nope'))

    async def test_join_all_keeps_input_order(self) -> None:
        async def delayed(value: int, delay: float) -> int:
            await anyio.sleep(delay)
            return value

        joined = join_all([delayed(1, 0.03), delayed(2, 0.0), wrap_immediate(3)])
        assert await joined == [1, 2, 3]

    async def test_join_all_empty(self) -> None:
        assert await join_all([]) == []

    async def test_join_all_first_failure_in_input_order(self) -> None:
        first, second = ValueError('first'), ValueError('second')

        async def fail_late() -> int:
            await anyio.sleep(0.02)
            raise first

        joined = join_all([fail_late(), wrap_failure(second), wrap_immediate(1)])
        with pytest.raises(ValueError) as exc_info:
            await joined
        assert exc_info.value is first

    async def test_join_all_runs_concurrently(self) -> None:
        async def slow() -> None:
            await anyio.sleep(0.1)

        with anyio.fail_after(0.5):
            await join_all([slow() for _ in range(4)])
