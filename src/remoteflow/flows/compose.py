"""Helpers for composing lookups inside flow functions."""

from __future__ import annotations

from collections.abc import Awaitable

from remoteflow.runtime.handle import ResultHandle, join_all

__all__ = ['pair', 'triple']


def pair[A, B](first: Awaitable[A], second: Awaitable[B]) -> ResultHandle[tuple[A, B]]:
    """Join two awaitables into a handle for `(a, b)`.

    Both run concurrently; the first failure (in argument order) wins.
    """
    joined = join_all([first, second])

    async def _pair() -> tuple[A, B]:
        a, b = await joined
        return a, b

    return ResultHandle.deferred(_pair(), label='pair')


def triple[I, A, B](ident: I, first: Awaitable[A], second: Awaitable[B]) -> ResultHandle[tuple[I, A, B]]:
    """Like `pair`, tagging the result with `ident`: `(ident, a, b)`."""
    joined = join_all([first, second])

    async def _triple() -> tuple[I, A, B]:
        a, b = await joined
        return ident, a, b

    return ResultHandle.deferred(_triple(), label=f'triple {ident!r}')
