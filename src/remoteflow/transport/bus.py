"""In-process channel transport built on anyio memory object streams.

The bus offers named channels with a single listener each and two ways to
deliver a message:

- `send(name, payload)`: fire-and-forget, the sender learns nothing.
- `request(name, payload)`: delivered with a fresh reply address; the
  returned handle resolves with the listener's reply or fails with
  TimeoutError when none arrives within the bound.

Channels behave like queue endpoints: a channel comes into existence on
first use, and messages sent before a listener binds are buffered (up to
the configured capacity) until one does.

Example:
    ```python
    async with Bus() as bus:
        bus.bind_listener('echo', echo_listener)
        handle = await bus.request('echo', 'hi')
        assert await handle == 'hi'
    ```
"""

from __future__ import annotations

import builtins
import itertools
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from types import TracebackType
from typing import Any

import anyio
from anyio.streams.memory import MemoryObjectReceiveStream, MemoryObjectSendStream

from remoteflow.result import Err, Result, as_result
from remoteflow.runtime._config import get_config
from remoteflow.runtime._logging import dispatch_context, get_logger
from remoteflow.runtime.errors import (
    BusClosedError,
    KeyNotFoundError,
    ListenerExistsError,
    NoReplyPathError,
    Timeout,
    describe,
)
from remoteflow.runtime.handle import ResultHandle, wrap_failure
from remoteflow.runtime.supervisor import Supervisor
from remoteflow.runtime.types import ChannelName, TimeoutSeconds, validate
from remoteflow.transport.envelope import Envelope, RequestEnvelope, SendEnvelope
from remoteflow.transport.reply import ReplyReceiver, create_reply_address
from remoteflow.transport.stats import ChannelStats

__all__ = ['Bus', 'Listener']

type Listener = Callable[[Envelope], Awaitable[None]]

log = get_logger(__name__)


class _Channel:
    """A named endpoint: an inbox stream plus its (optional) listener."""

    __slots__ = (
        'created_at',
        'delivered',
        'listener',
        'name',
        'receive_stream',
        'replied',
        'requested',
        'send_stream',
        'sent',
        'seq',
    )

    def __init__(self, name: str, capacity: int) -> None:
        self.name = name
        self.send_stream: MemoryObjectSendStream[Envelope]
        self.receive_stream: MemoryObjectReceiveStream[Envelope]
        self.send_stream, self.receive_stream = anyio.create_memory_object_stream(max_buffer_size=capacity)
        self.listener: Listener | None = None
        self.seq = itertools.count(1)
        self.created_at = datetime.now(UTC)
        self.sent = 0
        self.requested = 0
        self.delivered = 0
        self.replied = 0

    def snapshot(self) -> ChannelStats:
        return ChannelStats(
            channel=self.name,
            listener_bound=self.listener is not None,
            sent=self.sent,
            requested=self.requested,
            delivered=self.delivered,
            replied=self.replied,
            queued=self.receive_stream.statistics().current_buffer_used,
            created_at=self.created_at,
        )

    def close(self) -> None:
        self.send_stream.close()
        self.receive_stream.close()


class Bus:
    """Named-channel message bus with request/reply correlation.

    Must be used as an async context manager; entering it starts the
    supervisor that runs listener loops and flow functions, leaving it
    waits for in-flight work and stops everything.

    Attributes:
        request_timeout: Default bound for `request()`/`ask()`.
        capacity: Buffered messages per channel.
    """

    __slots__ = ('_channels', '_running', '_supervisor', 'capacity', 'request_timeout')

    def __init__(
        self,
        *,
        request_timeout: float | None = None,
        capacity: int | None = None,
        concurrency: int | None = None,
    ) -> None:
        """Create a bus; unset options come from the active FlowConfig.

        Args:
            request_timeout: Default seconds a request waits for its reply.
            capacity: Buffered messages per channel.
            concurrency: Worker threads for offloaded synchronous work.
        """
        config = get_config()
        self.request_timeout: float = validate(
            config.request_timeout if request_timeout is None else request_timeout, TimeoutSeconds
        )
        self.capacity: int = config.channel_capacity if capacity is None else capacity
        self._supervisor = Supervisor(config.concurrency if concurrency is None else concurrency)
        self._channels: dict[str, _Channel] = {}
        self._running = False

    async def __aenter__(self) -> Bus:
        """Start the bus."""
        await self._supervisor.start()
        self._running = True
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Stop the bus, waiting briefly for in-flight work."""
        self._running = False
        try:
            await self._supervisor.shutdown(wait=True, timeout=self.request_timeout)
        finally:
            for ch in self._channels.values():
                ch.close()

    @property
    def supervisor(self) -> Supervisor:
        """Supervisor running this bus' listener work."""
        return self._supervisor

    @property
    def running(self) -> bool:
        return self._running

    def _ensure_running(self) -> None:
        if not self._running:
            msg = 'Bus must be used as async context manager: async with Bus() as bus:'
            raise BusClosedError(msg)

    def _channel(self, name: str) -> _Channel:
        ch = self._channels.get(name)
        if ch is None:
            ch = _Channel(validate(name, ChannelName), self.capacity)
            self._channels[name] = ch
        return ch

    def channels(self) -> list[str]:
        """Names of every channel used so far."""
        return sorted(self._channels)

    def bind_listener(self, name: str, listener: Listener) -> None:
        """Register the only listener for `name`.

        Messages already buffered on the channel are delivered right away.

        Raises:
            ListenerExistsError: If the channel already has a listener.
            BusClosedError: If the bus is not running.
            ValueError: If `name` is not a valid channel name.
        """
        self._ensure_running()
        ch = self._channel(name)
        if ch.listener is not None:
            raise ListenerExistsError(name)
        ch.listener = listener
        self._supervisor.spawn(self._listen, ch)
        log.info('listener_bound', channel=name)

    async def _listen(self, ch: _Channel) -> None:
        assert ch.listener is not None
        async for envelope in ch.receive_stream:
            ch.delivered += 1
            with dispatch_context(ch.name, envelope.seq):
                log.debug('dispatch', kind=envelope.kind.name)
                try:
                    await ch.listener(envelope)
                except Exception as e:
                    log.exception('listener_failed')
                    if envelope.expects_reply and not envelope.reply_to.used:
                        envelope.reply_to.send(Err(e))

    async def send(self, name: str, payload: Any) -> None:
        """Deliver `payload` to `name` without a reply path.

        Raises:
            BusClosedError: If the bus is not running.
        """
        self._ensure_running()
        ch = self._channel(name)
        await ch.send_stream.send(SendEnvelope(channel=name, seq=next(ch.seq), payload=payload))
        ch.sent += 1

    async def request(self, name: str, payload: Any, *, timeout: float | None = None) -> ResultHandle[Any]:
        """Deliver `payload` to `name` with a reply address.

        One bound covers both waiting for room on a full channel and
        waiting for the reply.

        Args:
            name: Target channel.
            payload: The value to deliver.
            timeout: Seconds to wait for the reply (default: bus request_timeout).

        Returns:
            Handle resolving with the reply value, or failing with the
            replied failure or TimeoutError.

        Raises:
            BusClosedError: If the bus is not running.
        """
        self._ensure_running()
        seconds = self.request_timeout if timeout is None else validate(timeout, TimeoutSeconds)
        expired = Timeout(seconds, f"request '{name}'")
        deadline = anyio.current_time() + seconds
        ch = self._channel(name)
        address, receiver = create_reply_address()
        envelope = RequestEnvelope(channel=name, seq=next(ch.seq), payload=payload, reply_to=address)
        with anyio.move_on_after(seconds) as scope:
            await ch.send_stream.send(envelope)
        if scope.cancelled_caught:
            receiver.abandon()
            error = expired.to_exception()
            log.warning('request_timeout', channel=name, seq=envelope.seq, stage='enqueue', **describe(error))
            return wrap_failure(error)
        ch.requested += 1
        return self._supervisor.run(
            self._await_reply,
            envelope,
            receiver,
            expired,
            deadline,
            label=f'request {name}#{envelope.seq}',
        )

    async def _await_reply(
        self, envelope: RequestEnvelope, receiver: ReplyReceiver, expired: Timeout, deadline: float
    ) -> Any:
        try:
            with anyio.fail_after(max(deadline - anyio.current_time(), 0)):
                outcome = await receiver.recv()
        except builtins.TimeoutError:
            receiver.abandon()
            error = expired.to_exception()
            log.warning('request_timeout', channel=envelope.channel, seq=envelope.seq, stage='reply', **describe(error))
            raise error from None
        return outcome.unwrap()

    async def ask(self, name: str, payload: Any, *, timeout: float | None = None) -> Any:
        """Request and wait for the reply value.

        Raises:
            TimeoutError: If no reply arrives in time.
            Exception: The failure the listener replied with.
        """
        handle = await self.request(name, payload, timeout=timeout)
        return await handle

    async def reply(self, envelope: Envelope, outcome: Result[Any, Exception] | Any) -> bool:
        """Send `outcome` back along a request's reply address.

        A bare value is replied as `Ok(value)`, a bare exception as `Err`.

        Returns:
            True if the requester received it, False if it had stopped waiting.

        Raises:
            NoReplyPathError: If the envelope was sent, not requested.
            AlreadyRepliedError: If this request was already replied to.
        """
        match envelope:
            case RequestEnvelope(channel=name, reply_to=address):
                delivered = address.send(as_result(outcome))
                if name in self._channels:
                    self._channels[name].replied += 1
                if not delivered:
                    log.debug('late_reply_dropped', channel=name, seq=envelope.seq)
                return delivered
            case SendEnvelope(channel=name):
                raise NoReplyPathError(name)
        msg = f'Not an envelope: {envelope!r}'
        raise TypeError(msg)

    def stats(self, name: str) -> ChannelStats:
        """Statistics snapshot for a channel.

        Raises:
            KeyNotFoundError: If the channel has never been used.
        """
        ch = self._channels.get(name)
        if ch is None:
            raise KeyNotFoundError(name)
        return ch.snapshot()
