"""Ok / Err outcomes for values that resolve later.

Every asynchronous outcome in remoteflow (a flow function's result, a reply
carried back along a reply address, a resolved handle) is represented as a
`Result[T, E]`: either `Ok(value)` or `Err(exception)`. Failures are carried
as the original exception object so they can be re-raised unchanged at the
point where a caller finally awaits them.

Example:
    ```python
    from remoteflow.result import Ok, Err

    match await handle.outcome():
        case Ok(value):
            print(value)
        case Err(error):
            print(f'lookup failed: {error}')
    ```
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any

__all__ = [
    'Err',
    'Ok',
    'Result',
    'as_result',
    'sequence',
]


@dataclass(slots=True, frozen=True)
class Ok[T]:
    """Successful outcome holding a value of type T.

    Attributes:
        value: The resolved value.
    """

    value: T
    __match_args__ = ('value',)

    def is_ok(self) -> bool:
        """Return True, this outcome succeeded."""
        return True

    def is_err(self) -> bool:
        """Return False, this outcome did not fail."""
        return False

    def map[U](self, f: Callable[[T], U]) -> Ok[U]:
        """Apply `f` to the contained value."""
        return Ok(f(self.value))

    def unwrap(self) -> T:
        """Return the contained value."""
        return self.value

    def unwrap_err(self) -> BaseException:
        """Raise, an Ok has no error.

        Raises:
            RuntimeError: Always.
        """
        msg = f'Called unwrap_err on {self!r}'
        raise RuntimeError(msg)

    def unwrap_or(self, default: T) -> T:
        return self.value

    def ok(self) -> T | None:
        return self.value

    def err(self) -> BaseException | None:
        return None

    def __repr__(self) -> str:
        """Return a string representation of the Ok instance."""
        return f'Ok({self.value!r})'


@dataclass(slots=True, frozen=True)
class Err[E: BaseException]:
    """Failed outcome holding the exception that caused the failure.

    Attributes:
        error: The exception, kept as raised (never wrapped).
    """

    error: E
    __match_args__ = ('error',)

    def is_ok(self) -> bool:
        """Return False, this outcome did not succeed."""
        return False

    def is_err(self) -> bool:
        """Return True, this outcome failed."""
        return True

    def map(self, f: Callable[[Any], Any]) -> Err[E]:
        """Return self unchanged; there is no value to map."""
        return self

    def unwrap(self) -> Any:
        """Raise the contained error.

        Raises:
            E: Always.
        """
        raise self.error

    def unwrap_err(self) -> E:
        """Return the contained error."""
        return self.error

    def unwrap_or(self, default: Any) -> Any:
        return default

    def ok(self) -> Any | None:
        return None

    def err(self) -> E | None:
        return self.error

    def __repr__(self) -> str:
        """Return a string representation of the Err instance."""
        return f'Err({self.error!r})'


type Result[T, E: BaseException] = Ok[T] | Err[E]


def as_result(value: Any) -> Result[Any, BaseException]:
    """Normalise a reply payload into a Result.

    `Ok`/`Err` pass through, a bare exception becomes `Err`, any other
    value becomes `Ok`.
    """
    if isinstance(value, (Ok, Err)):
        return value
    if isinstance(value, BaseException):
        return Err(value)
    return Ok(value)


def sequence[T, E: BaseException](rs: Iterable[Result[T, E]]) -> Result[list[T], E]:
    """Collect results into `Ok(list)`, stopping at the first `Err`.

    Example:
        ```python
        assert sequence([Ok(1), Ok(2)]) == Ok([1, 2])
        assert sequence([Ok(1), Err(e)]) == Err(e)
        ```
    """
    values: list[T] = []
    for r in rs:
        match r:
            case Ok(v):
                values.append(v)
            case Err():
                return r
    return Ok(values)
