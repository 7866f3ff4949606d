"""Channel statistics snapshots."""

from __future__ import annotations

from datetime import datetime

import msgspec

__all__ = ['ChannelStats']


class ChannelStats(msgspec.Struct, frozen=True, gc=False):
    """Statistics snapshot for a channel.

    Attributes:
        channel: Channel name.
        listener_bound: Whether a listener is bound.
        sent: Send-style messages accepted for delivery.
        requested: Request-style messages accepted for delivery.
        delivered: Messages handed to the listener.
        replied: Replies sent back through request reply addresses.
        queued: Messages buffered and not yet delivered.
        created_at: When the channel was first used.
    """

    channel: str
    listener_bound: bool
    sent: int
    requested: int
    delivered: int
    replied: int
    queued: int
    created_at: datetime
