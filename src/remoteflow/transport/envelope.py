"""Message envelopes delivered to channel listeners.

An envelope is a tagged union of two variants:

- `SendEnvelope`: fire-and-forget delivery, no reply path.
- `RequestEnvelope`: delivery with a single-use `ReplyAddress`.

Listeners decide how to handle a message by matching on the variant at
the dispatch boundary:

    match envelope:
        case RequestEnvelope(payload=p, reply_to=address):
            ...
        case SendEnvelope(payload=p):
            ...

Envelopes are in-process only; the payload is carried as the original
object and is never encoded.
"""

from __future__ import annotations

from enum import IntEnum
from typing import Any

import msgspec

from remoteflow.transport.reply import ReplyAddress

__all__ = [
    'Envelope',
    'MessageKind',
    'RequestEnvelope',
    'SendEnvelope',
]


class MessageKind(IntEnum):
    """Discriminator for envelope variants."""

    SEND = 1
    """Fire-and-forget delivery (SendEnvelope)."""

    REQUEST = 2
    """Delivery expecting one reply (RequestEnvelope)."""


class SendEnvelope(msgspec.Struct, tag=int(MessageKind.SEND), frozen=True):
    """Fire-and-forget message.

    Attributes:
        channel: Target channel name.
        seq: Per-channel sequence number assigned by the bus.
        payload: The delivered value.
    """

    channel: str
    seq: int
    payload: Any

    @property
    def kind(self) -> MessageKind:
        return MessageKind.SEND

    @property
    def expects_reply(self) -> bool:
        return False


class RequestEnvelope(msgspec.Struct, tag=int(MessageKind.REQUEST), frozen=True):
    """Message expecting exactly one reply.

    Attributes:
        channel: Target channel name.
        seq: Per-channel sequence number assigned by the bus.
        payload: The delivered value.
        reply_to: Return path to the requester. Usable once.
    """

    channel: str
    seq: int
    payload: Any
    reply_to: ReplyAddress

    @property
    def kind(self) -> MessageKind:
        return MessageKind.REQUEST

    @property
    def expects_reply(self) -> bool:
        return True


Envelope = SendEnvelope | RequestEnvelope
"""Every message a listener can receive."""
