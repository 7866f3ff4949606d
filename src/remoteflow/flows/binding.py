"""Binding a typed flow function to channels.

A flow function takes one input value and produces its result
asynchronously: an `async def`, a callable object with an async
`__call__`, or a plain function returning a value or an awaitable (such
as a `ResultHandle`).

`FlowBinding` is the dispatch machinery shared by `RRFlow` and `OWFlow`.
Each incoming envelope is checked against the binding's declared input
type exactly once, here, before anything else runs:

- accepted payloads are handed to the flow function on the bus
  supervisor, with a continuation that delivers the outcome;
- rejected payloads are answered with a TypeMismatchError on the reply
  path, or logged and dropped when the message has no reply path.
"""

from __future__ import annotations

import collections.abc
import functools
import inspect
import types
import typing
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any, Self, Union, get_args, get_origin, get_type_hints

import msgspec

from remoteflow.result import Err, Result
from remoteflow.runtime._logging import get_logger
from remoteflow.runtime.errors import BusClosedError, TypeMismatch
from remoteflow.transport.envelope import Envelope, RequestEnvelope, SendEnvelope

if TYPE_CHECKING:
    from remoteflow.transport.bus import Bus

__all__ = ['FlowBinding', 'FlowFunction', 'accepts', 'infer_input_type']

type FlowFunction[A, R] = Callable[[A], Awaitable[R]] | Callable[[A], R]

log = get_logger(__name__)

_SEQUENCE_ORIGINS = (list, set, frozenset, collections.abc.Sequence, collections.abc.Set)


def accepts(value: object, tp: Any) -> bool:
    """Return True if `value` is an instance of the (possibly generic) type `tp`.

    Supports plain classes, unions (`A | B`, `Optional[A]`), parameterised
    sequences (`list[A]`, `set[A]`), tuples (`tuple[A, ...]` and fixed
    `tuple[A, B]`), mappings (`dict[K, V]`) and `Any`/`object`. Element
    types are checked for every element.

    Example:
        >>> accepts([Num('1')], list[Num])
        True
        >>> accepts(Num('1'), Id)
        False
    """
    if tp is Any or tp is object:
        return True
    if tp is None or tp is type(None):
        return value is None

    origin = get_origin(tp)
    if origin is None:
        return isinstance(value, tp)
    if origin is Union or origin is types.UnionType:
        return any(accepts(value, arg) for arg in get_args(tp))
    if origin is typing.Literal:
        return value in get_args(tp)
    if origin is typing.Annotated:
        return accepts(value, get_args(tp)[0])

    args = get_args(tp)
    if not isinstance(value, origin):
        return False
    if not args:
        return True
    if origin is tuple:
        if len(args) == 2 and args[1] is Ellipsis:
            return all(accepts(v, args[0]) for v in value)
        return len(value) == len(args) and all(accepts(v, a) for v, a in zip(value, args, strict=True))
    if origin in _SEQUENCE_ORIGINS:
        return all(accepts(v, args[0]) for v in value)
    if origin in (dict, collections.abc.Mapping):
        key_type, value_type = args
        return all(accepts(k, key_type) and accepts(v, value_type) for k, v in value.items())
    return True


def infer_input_type(flow: Callable[..., Any]) -> Any:
    """Read the declared type of a flow function's single parameter.

    Unannotated parameters accept anything (`object`).

    Raises:
        TypeError: If the annotation cannot be resolved.
    """
    target = flow
    if not inspect.isfunction(flow) and not inspect.ismethod(flow):
        target = getattr(flow, '__call__', flow)  # noqa: B004
    try:
        params = list(inspect.signature(target).parameters.values())
    except (TypeError, ValueError):
        return object
    if not params:
        return object
    try:
        hints = get_type_hints(target)
    except Exception as e:
        msg = f'Cannot resolve input annotation of {flow!r}; pass input_type explicitly'
        raise TypeError(msg) from e
    return hints.get(params[0].name, object)


class FlowBinding[A, R](ABC):
    """Common dispatch for flow functions bound to a bus.

    Subclasses decide where an outcome goes by implementing `_deliver`.

    Attributes:
        flow: The flow function.
        input_type: Declared input type checked at dispatch.
    """

    def __init__(self, flow: FlowFunction[A, R], input_type: Any = None) -> None:
        self.flow = flow
        self.input_type = infer_input_type(flow) if input_type is None else input_type
        self._bus: Bus | None = None

    @property
    def bus(self) -> Bus:
        if self._bus is None:
            msg = f'{type(self).__name__} is not bound'
            raise BusClosedError(msg)
        return self._bus

    @property
    @abstractmethod
    def listen_on(self) -> str:
        """Channel the binding listens on."""

    def bind(self, bus: Bus) -> Self:
        """Register this binding as the listener of `listen_on`.

        Raises:
            ListenerExistsError: If the channel already has a listener.
        """
        bus.bind_listener(self.listen_on, self._on_message)
        self._bus = bus
        return self

    async def _on_message(self, envelope: Envelope) -> None:
        match envelope:
            case RequestEnvelope(payload=payload) | SendEnvelope(payload=payload) if accepts(payload, self.input_type):
                self.bus.supervisor.run(
                    self.flow,
                    payload,
                    then=functools.partial(self._deliver, envelope),
                    label=f'{self.listen_on}#{envelope.seq}',
                )
            case RequestEnvelope(payload=payload) | SendEnvelope(payload=payload):
                await self._reject(envelope, TypeMismatch.for_value(self.input_type, payload))

    async def _reject(self, envelope: Envelope, mismatch: TypeMismatch) -> None:
        fields = msgspec.structs.asdict(mismatch)
        match envelope:
            case RequestEnvelope():
                log.warning('type_mismatch', channel=envelope.channel, seq=envelope.seq, **fields)
                await self.bus.reply(envelope, Err(mismatch.to_exception()))
            case SendEnvelope():
                log.warning('type_mismatch_dropped', channel=envelope.channel, seq=envelope.seq, **fields)

    @abstractmethod
    async def _deliver(self, envelope: Envelope, outcome: Result[R, Exception]) -> None:
        """Send the flow outcome to its destination."""
