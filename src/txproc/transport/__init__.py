"""Transport layer implementations."""

from .base import (
    CodecError,
    ConnectionLost,
    DuplicateCorrelation,
    Transport,
    TransportError,
    TransportTimeout,
)

from . import session
from .session import Connection, CorrelationRegistry, PendingRequest

from . import zmq
