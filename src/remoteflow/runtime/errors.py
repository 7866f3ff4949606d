"""Runtime error types: dual struct+exception for Result and raise-based code.

The failures worth reporting with their details (a rejected payload, an
expired wait) carry a msgspec struct variant. `describe()` turns any
exception into log fields, using the struct's fields where there is one.
"""

from __future__ import annotations

import builtins
from typing import Any

import msgspec

__all__ = [
    'AlreadyRepliedError',
    'AlreadyResolvedError',
    'BusClosedError',
    'KeyNotFoundError',
    'ListenerExistsError',
    'NoReplyPathError',
    'SourceCancelledError',
    'Timeout',
    'TimeoutError',
    'TypeMismatch',
    'TypeMismatchError',
    'describe',
]


# --- Dispatch Errors ---


class TypeMismatch(msgspec.Struct, frozen=True, gc=False):
    """Payload is not of the binding's declared type - struct variant."""

    expected: str
    actual: str
    value: str

    @classmethod
    def for_value(cls, expected: object, value: object) -> TypeMismatch:
        """Describe `value` rejected against `expected`."""
        return cls(_type_name(expected), type(value).__name__, repr(value))

    def to_exception(self) -> TypeMismatchError:
        """Convert to exception for raise-based code."""
        return TypeMismatchError(self.expected, self.actual, self.value)


class TypeMismatchError(TypeError):
    """Payload is not of the binding's declared type - exception variant.

    The message carries the offending value's repr so the caller can see
    what was rejected.
    """

    def __init__(self, expected: str, actual: str, value: str) -> None:
        self.expected = expected
        self.actual = actual
        self.value = value
        super().__init__(f'Expected {expected}, got {actual}: {value}')

    def to_struct(self) -> TypeMismatch:
        """Convert to struct for Result-based code."""
        return TypeMismatch(self.expected, self.actual, self.value)


class KeyNotFoundError(LookupError):
    """Responder table has no entry for the key."""

    def __init__(self, key: object) -> None:
        self.key = key
        super().__init__(f'Key not found: {key!r}')


# --- Timeout Errors ---


class Timeout(msgspec.Struct, frozen=True, gc=False):
    """Operation timed out - struct variant for Result[T, Timeout]."""

    seconds: float
    operation: str | None = None

    def to_exception(self) -> TimeoutError:
        """Convert to exception for raise-based code."""
        return TimeoutError(self.seconds, self.operation)


class TimeoutError(builtins.TimeoutError):  # noqa: A001 - intentionally shadows builtin
    """Operation timed out - exception variant.

    Subclasses the builtin so `except TimeoutError` written against the
    builtin still catches it.
    """

    def __init__(self, seconds: float, operation: str | None = None) -> None:
        self.seconds = seconds
        self.operation = operation
        msg = f'Timeout after {seconds}s'
        if operation:
            msg = f'{operation}: {msg}'
        super().__init__(msg)

    def to_struct(self) -> Timeout:
        """Convert to struct for Result-based code."""
        return Timeout(self.seconds, self.operation)


# --- Transport Errors ---


class ListenerExistsError(Exception):
    """A listener is already bound to the channel."""

    def __init__(self, channel: str) -> None:
        self.channel = channel
        super().__init__(f"Channel '{channel}' already has a listener")


class NoReplyPathError(Exception):
    """Reply attempted on a send-style message."""

    def __init__(self, channel: str) -> None:
        self.channel = channel
        super().__init__(f"Message on '{channel}' was sent, not requested; it has no reply path")


class AlreadyRepliedError(Exception):
    """Reply address was already used."""

    def __init__(self) -> None:
        super().__init__('Reply already sent')


class BusClosedError(Exception):
    """Bus is not running."""

    def __init__(self, reason: str | None = None) -> None:
        self.reason = reason
        super().__init__(reason or 'Bus closed')


# --- Handle Errors ---


class AlreadyResolvedError(Exception):
    """Result handle was already resolved."""

    def __init__(self) -> None:
        super().__init__('Handle already resolved')


class SourceCancelledError(Exception):
    """The wait driving a deferred handle was cancelled before it finished."""

    def __init__(self, label: str | None = None) -> None:
        self.label = label
        msg = 'Deferred source cancelled'
        if label:
            msg = f'{label}: {msg}'
        super().__init__(msg)


def describe(error: BaseException) -> dict[str, Any]:
    """Return log fields for `error`.

    Errors with a struct variant contribute its fields; every error gets
    `error` (the message) and `error_type`.

    Example:
        ```python
        log.warning('type_mismatch', **describe(error))
        # error='Expected Num, got Id: Id(i=1)', error_type='TypeMismatchError',
        # expected='Num', actual='Id', value='Id(i=1)'
        ```
    """
    fields: dict[str, Any] = {'error': str(error), 'error_type': type(error).__name__}
    to_struct = getattr(error, 'to_struct', None)
    if to_struct is not None:
        fields.update(msgspec.structs.asdict(to_struct()))
    return fields


def _type_name(tp: object) -> str:
    if isinstance(tp, type):
        return tp.__name__
    return repr(tp).replace('typing.', '')
