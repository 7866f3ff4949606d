"""remoteflow: remoted service flows over named channels.

Business functions are exposed behind named channels and invoked either
request-response (await a correlated reply) or oneway (fire-and-forget,
the result delivered to a separate fixed channel).

Flat imports (preferred):
    from remoteflow import Bus, RRFlow, OWFlow, Responder, ChannelLookup, Gather
    from remoteflow import Ok, Err, ResultHandle, wrap_immediate, join_all

Submodule imports (for organization):
    from remoteflow.transport import Bus, RequestEnvelope
    from remoteflow.flows import RRFlow, Gather
    from remoteflow.runtime import init, TimeoutError
"""

from remoteflow.flows import (
    ChannelLookup,
    Gather,
    Lookup,
    OWFlow,
    Responder,
    RRFlow,
    StaticLookup,
    accepts,
    pair,
    triple,
)
from remoteflow.result import Err, Ok, Result, sequence
from remoteflow.runtime import (
    FlowConfig,
    KeyNotFoundError,
    ListenerExistsError,
    ResultHandle,
    TimeoutError,
    TypeMismatchError,
    get_config,
    init,
    join_all,
    wrap_failure,
    wrap_immediate,
)
from remoteflow.transport import Bus, RequestEnvelope, SendEnvelope

__all__ = [
    # Transport
    'Bus',
    # Flows
    'ChannelLookup',
    # Result
    'Err',
    # Config
    'FlowConfig',
    'Gather',
    # Errors
    'KeyNotFoundError',
    'ListenerExistsError',
    'Lookup',
    'OWFlow',
    'Ok',
    'RRFlow',
    'RequestEnvelope',
    'Responder',
    'Result',
    # Handles
    'ResultHandle',
    'SendEnvelope',
    'StaticLookup',
    'TimeoutError',
    'TypeMismatchError',
    'accepts',
    'get_config',
    'init',
    'join_all',
    'pair',
    'sequence',
    'triple',
    'wrap_failure',
    'wrap_immediate',
]
