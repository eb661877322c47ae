"""Transport interface.

This is the (small) contract that transport implementations should follow.
It lives outside :mod:`txproc.protocol` so the protocol remains transport-agnostic.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from ..protocol.message import CodecError, Envelope


# Transport agnostic exceptions

class TransportError(Exception):
    """Base class for all transport-layer errors."""


class TransportTimeout(TransportError):
    """A request did not receive a timely response."""


class ConnectionLost(TransportError):
    """The connection dropped, or was closed, while work was outstanding."""


class DuplicateCorrelation(TransportError):
    """A correlation id was registered while already pending."""


__all__ = (
    "CodecError",
    "ConnectionLost",
    "DuplicateCorrelation",
    "Transport",
    "TransportError",
    "TransportTimeout",
)


class Transport(ABC):
    """Minimal contract for a wire-level transport.

    :func:`send` may be called from any thread, and must write each envelope
    atomically with respect to other senders. :func:`recv` is only ever
    called from the single connection I/O thread.
    """

    @abstractmethod
    def open(self) -> None:
        """Establish the underlying connection/socket."""

    @abstractmethod
    def close(self) -> None:
        """Tear down the underlying connection/socket."""

    @abstractmethod
    def send(self, envelope: Envelope) -> None:
        """Send an Envelope; raise ConnectionLost if the transport is closed."""

    @abstractmethod
    def recv(self, timeout: Optional[float] = None) -> Optional[Envelope]:
        """Receive the next Envelope, or None if *timeout* seconds elapse.

        Raises ConnectionLost if the peer disconnects, CodecError if the
        inbound frames cannot be decoded.
        """

    @property
    def is_open(self) -> bool:
        """Whether the transport is currently connected."""
        return False
