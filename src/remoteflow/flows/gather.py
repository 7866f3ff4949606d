"""Gather: collect the results of oneway flows within a bounded wait.

Oneway flows have no reply path, so their results can only be observed
where they are delivered. A Gather bound to the output channel records
every delivered value. A harness opens an observation window with
`prep(n)`, triggers the flows, then `wait()`s for `n` results or the
timeout, whichever comes first, and asserts on `values()`.

    gather = Gather().bind(bus, 'gather')
    await gather.prep(2)
    await bus.send('slbIn', num)
    await bus.send('slbIn', num)
    await gather.wait()
    assert gather.values() == [Bal(124.5), Bal(124.5)]

A timed-out wait is not an error: `wait()` returns False and `values()`
holds whatever arrived.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Self

import aiologic
import anyio

from remoteflow.runtime._config import get_config
from remoteflow.runtime._logging import get_logger
from remoteflow.runtime.types import ExpectedCount, TimeoutSeconds, validate
from remoteflow.transport.envelope import Envelope

if TYPE_CHECKING:
    from remoteflow.transport.bus import Bus

__all__ = ['Gather']

log = get_logger(__name__)


class Gather:
    """Bounded-wait accumulation buffer.

    `prep` and `record` are mutually exclusive under one lock, so a reset
    never interleaves with a delivery. The countdown is an
    aiologic.CountdownEvent that is waitable once its value reaches zero.

    Attributes:
        timeout: Default bound for `wait()`.
    """

    __slots__ = ('_countdown', '_lock', '_values', 'timeout')

    def __init__(self, timeout: float | None = None) -> None:
        self.timeout: float = validate(get_config().gather_timeout if timeout is None else timeout, TimeoutSeconds)
        self._lock = aiologic.Lock()
        self._values: list[Any] = []
        self._countdown = aiologic.CountdownEvent()

    async def prep(self, expected: int) -> None:
        """Start a new observation window expecting `expected` results.

        Clears recorded values and resets the countdown.

        Raises:
            ValueError: If `expected` is negative.
        """
        expected = validate(expected, ExpectedCount)
        countdown = aiologic.CountdownEvent()
        for _ in range(expected):
            countdown.up()
        async with self._lock:
            self._values.clear()
            self._countdown = countdown

    async def record(self, value: Any) -> None:
        """Append `value` and count the window down by one.

        Values beyond the expected count are still recorded.
        """
        async with self._lock:
            self._values.append(value)
            if self._countdown.value > 0:
                self._countdown.down()

    async def wait(self, timeout: float | None = None) -> bool:
        """Wait until the expected number of values arrived or the bound elapses.

        Returns:
            True if the expected count was reached, False on timeout.
        """
        seconds = self.timeout if timeout is None else validate(timeout, TimeoutSeconds)
        countdown = self._countdown
        with anyio.move_on_after(seconds):
            await countdown
        reached = countdown.value == 0
        if not reached:
            log.debug('gather_timeout', pending=countdown.value, received=len(self._values), seconds=seconds)
        return reached

    def values(self) -> list[Any]:
        """Snapshot of the values recorded in the current window, in arrival order."""
        return list(self._values)

    @property
    def pending(self) -> int:
        """Results still expected in the current window."""
        return self._countdown.value

    def bind(self, bus: Bus, name: str) -> Self:
        """Record every message delivered to channel `name`."""
        bus.bind_listener(name, self._make_listener(bus))
        return self

    def _make_listener(self, bus: Bus) -> Any:
        async def _on_message(envelope: Envelope) -> None:
            await self.record(envelope.payload)
            if envelope.expects_reply:
                await bus.reply(envelope, None)

        return _on_message

    def __repr__(self) -> str:
        return f'Gather(received={len(self._values)}, pending={self.pending})'
