"""Structured logging for remoteflow.

structlog renders every record, including stdlib records from third-party
libraries, through one `ProcessorFormatter` pipeline (JSON by default).

While a listener handles a message, the bus binds the channel name and
sequence number into structlog's context variables. Tasks started from
that listener inherit the context, so a flow function's own log lines
carry the message they belong to without passing it around:

    {"event": "type_mismatch_dropped", "channel": "slbIn", "seq": 3, ...}
"""

from __future__ import annotations

import logging
import sys
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

import structlog

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

__all__ = [
    'add_log_hook',
    'clear_log_hooks',
    'configure_logging',
    'dispatch_context',
    'get_logger',
    'remove_log_hook',
]

type LogHook = Callable[[dict[str, Any]], None]

_hooks: list[LogHook] = []


def _run_hooks(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """Processor handing a copy of each event to the registered hooks."""
    for hook in tuple(_hooks):
        try:
            hook(dict(event_dict))
        except Exception:  # noqa: S110
            pass  # a failing hook must not break logging
    return event_dict


# Run for structlog events and, as foreign_pre_chain, for stdlib records.
_PRE_CHAIN: tuple[Any, ...] = (
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.processors.TimeStamper(fmt='iso'),
    structlog.stdlib.ExtraAdder(),
    _run_hooks,
)


def _level_number(level: str) -> int:
    return logging.getLevelNamesMapping().get(level.upper(), logging.INFO)


def configure_logging(level: str = 'INFO', *, json_output: bool = True) -> None:
    """Route structlog and stdlib logging through one stderr handler.

    Calling it again replaces the previous handler, so tests can switch
    levels freely.

    Args:
        level: "DEBUG", "INFO", "WARNING", "ERROR" or "CRITICAL". Unknown
            names fall back to INFO.
        json_output: JSON lines if True, colored console output otherwise.
    """
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *_PRE_CHAIN,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        # module-level loggers must follow later reconfiguration
        cache_logger_on_first_use=False,
    )

    renderer: Any = (
        structlog.processors.JSONRenderer(default=repr)
        if json_output
        else structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())
    )
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=list(_PRE_CHAIN),
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(_level_number(level))


def get_logger(name: str | None = None) -> Any:
    """Return a structlog logger named `name`."""
    return structlog.get_logger(name)


@contextmanager
def dispatch_context(channel: str, seq: int) -> Iterator[None]:
    """Bind `channel` and `seq` to every log event emitted inside the block.

    Tasks started inside the block keep the binding after it exits.
    """
    with structlog.contextvars.bound_contextvars(channel=channel, seq=seq):
        yield


def add_log_hook(hook: LogHook) -> None:
    """Call `hook` with a copy of every event dict that passes the level filter.

    Tests use hooks to assert that a rejected or dropped message was
    reported.
    """
    _hooks.append(hook)


def remove_log_hook(hook: LogHook) -> None:
    """Unregister `hook`; unknown hooks are ignored."""
    if hook in _hooks:
        _hooks.remove(hook)


def clear_log_hooks() -> None:
    _hooks.clear()
