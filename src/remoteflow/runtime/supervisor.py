"""Supervisor: runs flow functions as tasks and pipes their outcomes onward.

Every transformation a listener performs goes through `Supervisor.run()`,
which schedules the work and returns a `ResultHandle` immediately, so the
listener can accept its next message without waiting. A `then` callback,
when given, runs after the handle resolves and receives the outcome; this
is where replies and forwards happen.
"""

from __future__ import annotations

import contextlib
import functools
import inspect
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import aiologic
import anyio
from anyio.abc import TaskGroup

from remoteflow.result import Err, Ok, Result
from remoteflow.runtime._logging import get_logger
from remoteflow.runtime.errors import BusClosedError
from remoteflow.runtime.handle import ResultHandle

__all__ = ['Continuation', 'Supervisor']

T = TypeVar('T')

type Continuation = Callable[[Result[Any, Exception]], Awaitable[None]]

log = get_logger(__name__)


class Supervisor:
    """Local task supervisor built on an anyio task group.

    The task group is entered by `start()` and left by `shutdown()`; both
    must be called from the same task (the owning `Bus` does this from its
    `async with` block). A CountdownEvent tracks in-flight runs so shutdown
    can wait for them.

    Attributes:
        _task_group: The anyio task group running all tasks.
        _task_group_cm: The async context manager for the task group.
        _in_flight: CountdownEvent tracking runs that have not finished.
        _limiter: Capacity limiter for thread-offloaded sync callables.
    """

    __slots__ = ('_in_flight', '_limiter', '_task_group', '_task_group_cm')

    def __init__(self, max_workers: int | None = None) -> None:
        """Create a Supervisor.

        Args:
            max_workers: Maximum worker threads for offloaded sync callables.
        """
        self._task_group: TaskGroup | None = None
        self._task_group_cm: Any = None
        # starts in the "set" state: nothing in flight
        self._in_flight: aiologic.CountdownEvent = aiologic.CountdownEvent()
        self._limiter: anyio.CapacityLimiter | None = anyio.CapacityLimiter(max_workers) if max_workers else None

    @property
    def running(self) -> bool:
        return self._task_group is not None

    async def start(self) -> None:
        """Enter the task group. Idempotent."""
        if self._task_group is not None:
            return
        self._task_group_cm = anyio.create_task_group()
        self._task_group = await self._task_group_cm.__aenter__()

    def _require_task_group(self) -> TaskGroup:
        if self._task_group is None:
            raise BusClosedError('Supervisor is not running')
        return self._task_group

    def spawn(self, fn: Callable[..., Awaitable[Any]], *args: Any) -> None:
        """Start a long-lived task (e.g. a listener loop) in the task group."""
        self._require_task_group().start_soon(fn, *args)

    def run(
        self,
        fn: Callable[..., T] | Callable[..., Awaitable[T]],
        *args: Any,
        then: Continuation | None = None,
        label: str | None = None,
        offload: bool = False,
    ) -> ResultHandle[T]:
        """Schedule `fn(*args)` and return its handle without waiting.

        Async callables run in the task group. Sync callables run on the
        event loop thread unless `offload` is set, in which case they run
        in a worker thread via anyio.to_thread.run_sync(). Flow functions
        stay on the loop because they may call back into the bus. If the
        callable returns an awaitable (such as another handle) it is
        awaited too. Any exception becomes the handle's failure.

        Args:
            fn: Sync or async callable.
            *args: Positional arguments for fn.
            then: Continuation awaited with the outcome after the handle resolves.
            label: Description used in logs.
            offload: Run a sync callable in a worker thread.

        Returns:
            ResultHandle for the scheduled run.

        Raises:
            BusClosedError: If the supervisor is not running.
        """
        tg = self._require_task_group()
        handle: ResultHandle[T] = ResultHandle(label)

        async def _execute() -> None:
            try:
                outcome = await self._invoke(fn, args, offload)
                handle.settle(outcome)
                if then is not None:
                    try:
                        await then(outcome)
                    except Exception:
                        log.exception('continuation_failed', task=label)
            finally:
                self._in_flight.down()

        tg.start_soon(_execute)
        # counted only once scheduled; start_soon may raise on a closing group
        self._in_flight.up()
        return handle

    async def _invoke(self, fn: Callable[..., Any], args: tuple[Any, ...], offload: bool) -> Result[Any, Exception]:
        try:
            if _is_async_callable(fn):
                value = await fn(*args)
            elif not offload:
                value = fn(*args)
            else:
                value = await anyio.to_thread.run_sync(
                    functools.partial(fn, *args),
                    limiter=self._limiter,
                )
            if inspect.isawaitable(value):
                value = await value
        except Exception as e:
            return Err(e)
        return Ok(value)

    async def shutdown(self, *, wait: bool = True, timeout: float | None = None) -> None:
        """Stop the supervisor.

        Waits for in-flight runs if requested, then cancels the task group
        (ending listener loops) and exits it.

        Args:
            wait: If True, wait for in-flight runs to complete.
            timeout: Maximum time to wait for in-flight runs.
        """
        if self._task_group is None:
            return

        try:
            if wait and self._in_flight.value:
                with anyio.move_on_after(timeout) if timeout is not None else contextlib.nullcontext():
                    await self._in_flight
        finally:
            self._task_group.cancel_scope.cancel()

        task_group_cm = self._task_group_cm
        self._task_group = None
        self._task_group_cm = None
        if task_group_cm is not None:
            await task_group_cm.__aexit__(None, None, None)


def _is_async_callable(fn: Callable[..., Any]) -> bool:
    """True for coroutine functions and objects with an async __call__."""
    if inspect.iscoroutinefunction(fn):
        return True
    call = getattr(fn, '__call__', None)  # noqa: B004
    return call is not None and inspect.iscoroutinefunction(call)
