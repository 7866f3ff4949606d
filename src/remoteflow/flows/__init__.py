"""Flows: typed functions exposed as channel listeners.

- `RRFlow`: request-response; the result is replied to the caller
- `OWFlow`: oneway; the result is sent to a fixed output channel
- `Responder`: a static table served on a channel
- `Lookup` / `ChannelLookup` / `StaticLookup`: async key-to-value calls
- `Gather`: bounded-wait buffer for observing oneway results
"""

from remoteflow.flows.binding import FlowBinding, FlowFunction, accepts, infer_input_type
from remoteflow.flows.compose import pair, triple
from remoteflow.flows.gather import Gather
from remoteflow.flows.lookup import ChannelLookup, Lookup, StaticLookup
from remoteflow.flows.owflow import OWFlow
from remoteflow.flows.responder import Responder
from remoteflow.flows.rrflow import RRFlow

__all__ = [
    'ChannelLookup',
    'FlowBinding',
    'FlowFunction',
    'Gather',
    'Lookup',
    'OWFlow',
    'RRFlow',
    'Responder',
    'StaticLookup',
    'accepts',
    'infer_input_type',
    'pair',
    'triple',
]
