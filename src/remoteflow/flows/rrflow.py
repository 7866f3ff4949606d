"""Request-response flow: one channel, replies go back to the caller."""

from __future__ import annotations

from typing import Any

from remoteflow.flows.binding import FlowBinding, FlowFunction
from remoteflow.result import Err, Ok, Result
from remoteflow.runtime._logging import get_logger
from remoteflow.runtime.errors import describe
from remoteflow.runtime.types import ChannelName, validate
from remoteflow.transport.envelope import Envelope, RequestEnvelope, SendEnvelope

__all__ = ['RRFlow']

log = get_logger(__name__)


class RRFlow[A, R](FlowBinding[A, R]):
    """Expose a flow function as a request-response service.

    Each well-typed request runs the flow function and the outcome is
    replied to that request's caller: the value on success, the flow's own
    exception on failure. Ill-typed requests are answered with
    TypeMismatchError and never reach the flow function.

    Example:
        ```python
        RRFlow('slb', SingleLineBalance(acct, bal)).bind(bus)
        assert await bus.ask('slb', Num('124-555-1234')) == Bal(124.5)
        ```

    Attributes:
        name: Channel the flow serves.
    """

    def __init__(self, name: str, flow: FlowFunction[A, R], input_type: Any = None) -> None:
        super().__init__(flow, input_type)
        self.name: str = validate(name, ChannelName)

    @property
    def listen_on(self) -> str:
        return self.name

    async def _deliver(self, envelope: Envelope, outcome: Result[R, Exception]) -> None:
        match envelope, outcome:
            case RequestEnvelope(), _:
                await self.bus.reply(envelope, outcome)
            case SendEnvelope(), Ok():
                log.debug('send_result_discarded', channel=self.name, seq=envelope.seq)
            case SendEnvelope(), Err(error):
                log.warning('send_failure_dropped', channel=self.name, seq=envelope.seq, **describe(error))

    def __repr__(self) -> str:
        return f'RRFlow({self.name!r}, input_type={self.input_type!r})'
