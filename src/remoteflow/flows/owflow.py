"""Oneway flow: results are forwarded to a fixed output channel."""

from __future__ import annotations

from typing import Any

from remoteflow.flows.binding import FlowBinding, FlowFunction
from remoteflow.result import Err, Ok, Result
from remoteflow.runtime._logging import get_logger
from remoteflow.runtime.errors import describe
from remoteflow.runtime.types import ChannelName, validate
from remoteflow.transport.envelope import Envelope

__all__ = ['OWFlow']

log = get_logger(__name__)


class OWFlow[A, R](FlowBinding[A, R]):
    """Expose a flow function as a fire-and-forget service.

    Every well-typed message received on `input` runs the flow function
    and the outcome is *sent* (not replied) to `output`. A failed flow
    forwards its exception object itself, so whatever listens on `output`
    must accept error-shaped values. The original sender never hears back
    about a well-typed message.

    Ill-typed messages are not forwarded: a request-style caller gets a
    TypeMismatchError reply, a send-style one is logged and dropped.

    Example:
        ```python
        OWFlow('slbIn', 'gather', SingleLineBalance(acct, bal)).bind(bus)
        await bus.send('slbIn', Num('124-555-1234'))
        ```

    Attributes:
        input: Channel the flow listens on.
        output: Channel results are sent to.
    """

    def __init__(self, input: str, output: str, flow: FlowFunction[A, R], input_type: Any = None) -> None:  # noqa: A002
        super().__init__(flow, input_type)
        self.input: str = validate(input, ChannelName)
        self.output: str = validate(output, ChannelName)
        if self.input == self.output:
            msg = f"OWFlow input and output must differ, both are '{input}'"
            raise ValueError(msg)

    @property
    def listen_on(self) -> str:
        return self.input

    async def _deliver(self, envelope: Envelope, outcome: Result[R, Exception]) -> None:
        match outcome:
            case Ok(value):
                await self.bus.send(self.output, value)
            case Err(error):
                log.warning(
                    'flow_failed_forwarded', channel=self.input, output=self.output, seq=envelope.seq, **describe(error)
                )
                await self.bus.send(self.output, error)

    def __repr__(self) -> str:
        return f'OWFlow({self.input!r} -> {self.output!r}, input_type={self.input_type!r})'
