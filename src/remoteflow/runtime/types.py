"""Constrained type aliases for configuration and binding validation.

These aliases carry msgspec constraints. They are validated with
`msgspec.convert()` wherever a value enters from the outside (config
arguments, environment variables, channel names given to `bind`), so a
misconfiguration is rejected at setup time with a clear message rather
than surfacing later as a hung wait.

Usage:
    >>> import msgspec
    >>> from remoteflow.runtime.types import ChannelName, TimeoutSeconds
    >>>
    >>> msgspec.convert('acct', ChannelName)
    'acct'
    >>> msgspec.convert(-1.0, TimeoutSeconds)
    # ValidationError: Expected `float` >= 0.0

See Also:
    - https://jcristharif.com/msgspec/constraints.html
"""

from __future__ import annotations

from typing import Annotated

import msgspec

__all__ = [
    'ChannelCapacity',
    'ChannelName',
    'ConcurrencyLimit',
    'ExpectedCount',
    'TimeoutSeconds',
    'validate',
]

# -----------------------------------------------------------------------------
# Numeric Constraints
# -----------------------------------------------------------------------------

TimeoutSeconds = Annotated[float, msgspec.Meta(gt=0.0, le=86400.0)]
"""Bounded wait in seconds.

Valid range: greater than 0.0, up to 86400.0 (24 hours).

A zero wait would make every request fail before the listener runs, and
the upper bound catches milliseconds passed where seconds were meant.
"""

ChannelCapacity = Annotated[int, msgspec.Meta(ge=1, le=1_000_000)]
"""Per-channel inbox capacity.

Valid range: 1 to 1,000,000 (inclusive)
"""

ConcurrencyLimit = Annotated[int, msgspec.Meta(ge=1, le=256)]
"""Maximum worker threads for offloaded synchronous work.

Valid range: 1 to 256 (inclusive)
"""

ExpectedCount = Annotated[int, msgspec.Meta(ge=0)]
"""Number of results a Gather window waits for. Zero opens immediately."""

# -----------------------------------------------------------------------------
# String Constraints
# -----------------------------------------------------------------------------

ChannelName = Annotated[
    str,
    msgspec.Meta(
        min_length=1,
        max_length=255,
        pattern=r'^[A-Za-z0-9_][A-Za-z0-9_.:-]*$',
    ),
]
"""Channel identifier.

Constraints:
    - Length: 1 to 255 characters
    - Pattern: starts with a letter, digit or underscore, followed by
      letters, digits, underscores, hyphens, dots or colons

Valid: "acct", "slbIn", "single-line-balance", "orders.v2:in"
Invalid: "", "-acct", "has space"
"""


def validate[T](value: object, tp: type[T] | object) -> T:
    """Validate `value` against a constrained alias.

    Raises:
        ValueError: If the value violates the alias' constraints. The
            msgspec ValidationError is chained as the cause.
    """
    try:
        return msgspec.convert(value, tp)  # type: ignore[arg-type]
    except msgspec.ValidationError as e:
        msg = f'{value!r}: {e}'
        raise ValueError(msg) from e
