"""
remoteflow.runtime: configuration, logging, errors and async result handles.

Provides the concurrency foundation the transport and flows are built on:
`ResultHandle` (a value that resolves later), the `Supervisor` that runs
flow functions as anyio tasks, and the error types.
"""

from remoteflow.runtime._config import FlowConfig, get_config, init
from remoteflow.runtime._logging import (
    add_log_hook,
    clear_log_hooks,
    configure_logging,
    dispatch_context,
    get_logger,
    remove_log_hook,
)
from remoteflow.runtime.errors import (
    AlreadyRepliedError,
    AlreadyResolvedError,
    BusClosedError,
    KeyNotFoundError,
    ListenerExistsError,
    NoReplyPathError,
    SourceCancelledError,
    Timeout,
    TimeoutError,
    TypeMismatch,
    TypeMismatchError,
    describe,
)
from remoteflow.runtime.handle import ResultHandle, join_all, wrap_failure, wrap_immediate
from remoteflow.runtime.supervisor import Supervisor

__all__ = [
    # Errors
    'AlreadyRepliedError',
    'AlreadyResolvedError',
    'BusClosedError',
    # Config
    'FlowConfig',
    'KeyNotFoundError',
    'ListenerExistsError',
    'NoReplyPathError',
    # Handles
    'ResultHandle',
    'SourceCancelledError',
    'Supervisor',
    'Timeout',
    'TimeoutError',
    'TypeMismatch',
    'TypeMismatchError',
    # Logging
    'add_log_hook',
    'clear_log_hooks',
    'configure_logging',
    'describe',
    'dispatch_context',
    'get_config',
    'get_logger',
    'init',
    'join_all',
    'remove_log_hook',
    'wrap_failure',
    'wrap_immediate',
]
