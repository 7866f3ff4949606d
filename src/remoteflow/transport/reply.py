"""Reply addresses: the single-use return path of a request.

Every request carries a `ReplyAddress`. The listener that handles the
request sends exactly one outcome through it; the requester holds the
matching `ReplyReceiver`. Because each request gets its own pair, a reply
can only ever reach the caller that issued that request.
"""

from __future__ import annotations

import anyio

from remoteflow.result import Result
from remoteflow.runtime.errors import AlreadyRepliedError, BusClosedError

__all__ = ['ReplyAddress', 'ReplyReceiver', 'create_reply_address']


class _ReplyState:
    """Shared mutable state for a reply address/receiver pair."""

    __slots__ = ('abandoned', 'event', 'outcome', 'sent')

    def __init__(self) -> None:
        self.event: anyio.Event = anyio.Event()
        self.outcome: Result[object, Exception] | None = None
        self.sent: bool = False
        self.abandoned: bool = False


class ReplyAddress:
    """Sending half of a reply path. Usable exactly once."""

    __slots__ = ('_state',)

    def __init__(self, state: _ReplyState) -> None:
        self._state = state

    @property
    def used(self) -> bool:
        """True once an outcome has been sent."""
        return self._state.sent

    @property
    def abandoned(self) -> bool:
        """True if the requester stopped waiting (e.g. it timed out)."""
        return self._state.abandoned

    def send(self, outcome: Result[object, Exception]) -> bool:
        """Send the outcome to the requester.

        Returns:
            True if the requester was still waiting, False if it had
            already given up (the reply is discarded).

        Raises:
            AlreadyRepliedError: If an outcome was already sent.
        """
        if self._state.sent:
            raise AlreadyRepliedError
        self._state.sent = True
        if self._state.abandoned:
            return False
        self._state.outcome = outcome
        self._state.event.set()
        return True

    def __repr__(self) -> str:
        return f'ReplyAddress(used={self.used}, abandoned={self.abandoned})'


class ReplyReceiver:
    """Receiving half of a reply path, held by the requester."""

    __slots__ = ('_state',)

    def __init__(self, state: _ReplyState) -> None:
        self._state = state

    async def recv(self) -> Result[object, Exception]:
        """Wait for the outcome.

        Callers bound the wait with anyio.fail_after(); a receiver that
        gives up should call `abandon()`.

        Raises:
            BusClosedError: If the receiver was abandoned.
        """
        if self._state.abandoned:
            raise BusClosedError('Reply receiver abandoned')
        await self._state.event.wait()
        assert self._state.outcome is not None
        return self._state.outcome

    def abandon(self) -> None:
        """Stop waiting; a later reply is discarded by the sender side."""
        self._state.abandoned = True


def create_reply_address() -> tuple[ReplyAddress, ReplyReceiver]:
    """Create a linked reply address and receiver."""
    state = _ReplyState()
    return ReplyAddress(state), ReplyReceiver(state)
