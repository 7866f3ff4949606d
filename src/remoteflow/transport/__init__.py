"""In-process channel transport: named channels, send, request and reply.

- `Bus`: channel registry, one listener per channel, request/reply correlation
- `SendEnvelope` / `RequestEnvelope`: the two message shapes a listener sees
- `ReplyAddress`: single-use return path carried by every request
- `ChannelStats`: per-channel counters

Built on anyio.create_memory_object_stream(), so channels buffer messages
until a listener is bound and deliver them in order to that listener.
"""

from remoteflow.transport.bus import Bus, Listener
from remoteflow.transport.envelope import Envelope, MessageKind, RequestEnvelope, SendEnvelope
from remoteflow.transport.reply import ReplyAddress, ReplyReceiver, create_reply_address
from remoteflow.transport.stats import ChannelStats

__all__ = [
    'Bus',
    'ChannelStats',
    'Envelope',
    'Listener',
    'MessageKind',
    'ReplyAddress',
    'ReplyReceiver',
    'RequestEnvelope',
    'SendEnvelope',
    'create_reply_address',
]
