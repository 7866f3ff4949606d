"""Responder: a static lookup table exposed as a channel listener."""

from __future__ import annotations

import functools
from collections.abc import Mapping
from types import MappingProxyType
from typing import TYPE_CHECKING, Self

from remoteflow.result import Err, Ok, Result
from remoteflow.runtime._logging import get_logger
from remoteflow.runtime.errors import BusClosedError, KeyNotFoundError, describe
from remoteflow.transport.envelope import Envelope, RequestEnvelope, SendEnvelope

if TYPE_CHECKING:
    from remoteflow.transport.bus import Bus

__all__ = ['Responder']

log = get_logger(__name__)


class Responder[K, V]:
    """Answers requests by looking the payload up in a fixed table.

    A hit replies with the mapped value; a miss replies with
    KeyNotFoundError. Send-style messages have nowhere to reply to, so the
    result is only logged.

    The table is copied and frozen at construction and may be shared by
    several channels.

    Example:
        ```python
        Responder({Num('124-555-1234'): Acct('alpha')}).bind(bus, 'acct')
        assert await bus.ask('acct', Num('124-555-1234')) == Acct('alpha')
        ```
    """

    def __init__(self, table: Mapping[K, V]) -> None:
        self.table: Mapping[K, V] = MappingProxyType(dict(table))
        self._bus: Bus | None = None

    def __call__(self, key: K) -> V:
        """Look `key` up synchronously.

        Raises:
            KeyNotFoundError: If the key (or an unhashable key) is not in the table.
        """
        try:
            return self.table[key]
        except (KeyError, TypeError):
            raise KeyNotFoundError(key) from None

    @property
    def bus(self) -> Bus:
        if self._bus is None:
            raise BusClosedError('Responder is not bound')
        return self._bus

    def bind(self, bus: Bus, name: str) -> Self:
        """Serve the table on channel `name`."""
        bus.bind_listener(name, self._on_message)
        self._bus = bus
        return self

    async def _on_message(self, envelope: Envelope) -> None:
        # a pure table lookup never calls back into the bus
        self.bus.supervisor.run(
            self,
            envelope.payload,
            then=functools.partial(self._respond, envelope),
            label=f'{envelope.channel}#{envelope.seq}',
            offload=True,
        )

    async def _respond(self, envelope: Envelope, outcome: Result[V, Exception]) -> None:
        match envelope, outcome:
            case RequestEnvelope(), _:
                await self.bus.reply(envelope, outcome)
            case SendEnvelope(), Ok():
                log.debug('send_result_discarded', channel=envelope.channel, seq=envelope.seq)
            case SendEnvelope(), Err(error):
                log.warning('send_failure_dropped', channel=envelope.channel, seq=envelope.seq, **describe(error))

    def __repr__(self) -> str:
        return f'Responder({len(self.table)} entries)'
