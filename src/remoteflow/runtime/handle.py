"""ResultHandle: a value or failure that becomes available later.

Handles are what flow functions, lookups and requests hand back instead of
blocking. A handle resolves exactly once, to `Ok(value)` or
`Err(exception)`; awaiting it returns the value or re-raises the exception
unchanged.

Two explicit adapters build handles at composition points:

- `wrap_immediate(value)`: a handle that is already resolved.
- `join_all(handles)`: a handle for the list of all values, failing with
  the first failure in input order.
"""

from __future__ import annotations

from collections.abc import Awaitable, Iterable
from typing import Any

import aiologic
import anyio

from remoteflow.result import Err, Ok, Result, sequence
from remoteflow.runtime.errors import AlreadyResolvedError, SourceCancelledError

__all__ = [
    'ResultHandle',
    'join_all',
    'wrap_failure',
    'wrap_immediate',
]


class ResultHandle[T]:
    """Handle to an outcome that resolves exactly once.

    A handle is either settled by its producer (`resolve`/`fail`/`settle`)
    or, when created with `deferred()`, by awaiting a source awaitable the
    first time someone waits on it. If that wait is cancelled part way (for
    example by `wait_for`), the source cannot be resumed and the handle
    fails with SourceCancelledError.

    Attributes:
        label: Free-form description used in logs and repr.
    """

    __slots__ = (
        '_completed',
        '_event',
        '_outcome',
        '_source',
        '_source_lock',
        'label',
    )

    def __init__(self, label: str | None = None) -> None:
        self.label = label
        self._outcome: Result[T, Exception] | None = None
        self._event: aiologic.Event = aiologic.Event()
        self._completed = False
        self._source: Awaitable[T] | None = None
        self._source_lock: aiologic.Lock | None = None

    @classmethod
    def deferred(cls, source: Awaitable[T], label: str | None = None) -> ResultHandle[T]:
        """Create a handle resolved by awaiting `source` on first wait.

        `source` is awaited at most once, however many tasks wait on the
        handle.
        """
        handle: ResultHandle[T] = cls(label)
        handle._source = source
        handle._source_lock = aiologic.Lock()
        return handle

    def settle(self, outcome: Result[T, Exception]) -> None:
        """Resolve the handle with an Ok/Err outcome.

        Raises:
            AlreadyResolvedError: If the handle was already resolved.
        """
        if self._completed:
            raise AlreadyResolvedError
        self._outcome = outcome
        self._completed = True
        self._event.set()

    def resolve(self, value: T) -> None:
        """Resolve the handle with a value."""
        self.settle(Ok(value))

    def fail(self, exc: Exception) -> None:
        """Resolve the handle with a failure."""
        self.settle(Err(exc))

    def done(self) -> bool:
        """Return True once the handle has resolved."""
        return self._completed

    async def _drive_source(self) -> None:
        assert self._source_lock is not None
        async with self._source_lock:
            if self._completed or self._source is None:
                return
            source, self._source = self._source, None
            try:
                value = await source
            except anyio.get_cancelled_exc_class():
                self.settle(Err(SourceCancelledError(self.label)))
                raise
            except Exception as e:
                self.settle(Err(e))
            else:
                self.settle(Ok(value))

    async def outcome(self) -> Result[T, Exception]:
        """Wait for resolution and return the outcome without raising."""
        if not self._completed and self._source_lock is not None:
            await self._drive_source()
        await self._event
        assert self._outcome is not None
        return self._outcome

    async def wait(self) -> T:
        """Wait for resolution and return the value.

        Raises:
            Exception: The failure the handle resolved with.
        """
        return (await self.outcome()).unwrap()

    async def wait_for(self, seconds: float) -> T:
        """Like `wait()`, bounded by `seconds`.

        Raises:
            TimeoutError: If the handle does not resolve in time.
        """
        with anyio.fail_after(seconds):
            return await self.wait()

    def result(self) -> Result[T, Exception]:
        """Get the outcome (non-blocking).

        Raises:
            RuntimeError: If the handle has not resolved yet.
        """
        if not self._completed or self._outcome is None:
            msg = 'Handle not yet resolved. Use await or wait() first.'
            raise RuntimeError(msg)
        return self._outcome

    def __await__(self) -> Any:
        """Support await syntax."""
        return self.wait().__await__()

    def __repr__(self) -> str:
        state = repr(self._outcome) if self._completed else 'pending'
        if self.label:
            return f'ResultHandle({self.label!r}, {state})'
        return f'ResultHandle({state})'


def wrap_immediate[T](value: T) -> ResultHandle[T]:
    """Return a handle already resolved with `value`."""
    handle: ResultHandle[T] = ResultHandle()
    handle.resolve(value)
    return handle


def wrap_failure(exc: Exception) -> ResultHandle[Any]:
    """Return a handle already failed with `exc`."""
    handle: ResultHandle[Any] = ResultHandle()
    handle.fail(exc)
    return handle


def join_all[T](handles: Iterable[Awaitable[T]]) -> ResultHandle[list[T]]:
    """Combine awaitables into one handle for the list of their values.

    All inputs are awaited concurrently once the joined handle is waited on.
    Values keep input order. If any input fails, the joined handle fails
    with the first failure in input order; the other inputs still run to
    completion.

    Example:
        ```python
        balances = await join_all(bal_lookup(a) for a in accounts)
        ```
    """
    pending = list(handles)

    async def _join() -> list[T]:
        outcomes: list[Result[T, Exception]] = [Ok(None)] * len(pending)  # type: ignore[list-item]

        async def _collect(index: int, awaitable: Awaitable[T]) -> None:
            try:
                outcomes[index] = Ok(await awaitable)
            except Exception as e:
                outcomes[index] = Err(e)

        async with anyio.create_task_group() as tg:
            for index, awaitable in enumerate(pending):
                tg.start_soon(_collect, index, awaitable)

        return sequence(outcomes).unwrap()

    return ResultHandle.deferred(_join(), label=f'join_all[{len(pending)}]')
