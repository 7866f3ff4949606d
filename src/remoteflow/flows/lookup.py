"""Lookup: the async key-to-value capability flows use to call services.

A `Lookup[K, V]` is anything callable with a key that returns an awaitable
value. Flow functions depend on the protocol only, so the same flow can be
exercised against a remote channel (`ChannelLookup`) or a local table
(`StaticLookup`).
"""

from __future__ import annotations

from collections.abc import Awaitable, Mapping
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from remoteflow.flows.binding import accepts
from remoteflow.runtime.errors import KeyNotFoundError, TypeMismatch
from remoteflow.runtime.handle import ResultHandle, wrap_failure, wrap_immediate
from remoteflow.runtime.types import ChannelName, TimeoutSeconds, validate

if TYPE_CHECKING:
    from remoteflow.transport.bus import Bus

__all__ = ['ChannelLookup', 'Lookup', 'StaticLookup']


@runtime_checkable
class Lookup[K, V](Protocol):
    """Async call to an external service: key in, value out later."""

    def __call__(self, key: K) -> Awaitable[V]:
        """Start the lookup for `key` and return an awaitable for its value."""
        ...


class ChannelLookup[K, V]:
    """Lookup implemented as a request on a bus channel.

    Each call issues a request carrying `key` and returns a handle that
    resolves with the reply. The handle fails with:

    - TimeoutError if no reply arrives within `timeout`,
    - TypeMismatchError if the reply is not a `reply_type`,
    - whatever failure the listener replied with, unchanged.

    Calls must be made from the bus' event loop (e.g. inside an
    `async def` flow function).

    Example:
        ```python
        acct = ChannelLookup(bus, 'acct', Acct)
        account = await acct(Num('124-555-1234'))
        ```
    """

    __slots__ = ('bus', 'channel', 'reply_type', 'timeout')

    def __init__(
        self,
        bus: Bus,
        channel: str,
        reply_type: Any = object,
        *,
        timeout: float | None = None,
    ) -> None:
        self.bus = bus
        self.channel: str = validate(channel, ChannelName)
        self.reply_type = reply_type
        self.timeout: float | None = None if timeout is None else validate(timeout, TimeoutSeconds)

    def __call__(self, key: K) -> ResultHandle[V]:
        return self.bus.supervisor.run(self._ask, key, label=f'lookup {self.channel}')

    async def _ask(self, key: K) -> V:
        value = await self.bus.ask(self.channel, key, timeout=self.timeout)
        if not accepts(value, self.reply_type):
            raise TypeMismatch.for_value(self.reply_type, value).to_exception()
        return value

    def __repr__(self) -> str:
        return f'ChannelLookup({self.channel!r}, {self.reply_type!r})'


class StaticLookup[K, V]:
    """Lookup answered from an in-memory table, already resolved.

    Misses fail with KeyNotFoundError, the same way a Responder does.
    """

    __slots__ = ('table',)

    def __init__(self, table: Mapping[K, V]) -> None:
        self.table = dict(table)

    def __call__(self, key: K) -> ResultHandle[V]:
        try:
            return wrap_immediate(self.table[key])
        except (KeyError, TypeError):
            return wrap_failure(KeyNotFoundError(key))
