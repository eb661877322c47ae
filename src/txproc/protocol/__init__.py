from . import fields
from . import payload
from . import message
from . import wire

from .fields import MessageType
from .message import CodecError, Envelope


"""
txproc Protocol Layer
=====================

This package defines the transport-agnostic messaging protocol spoken
between a transaction processor and its validator. It provides the envelope,
the typed payloads carried inside it, and the framing used to put an
envelope on the wire.

The protocol layer MUST NOT depend on any transport implementation.

---------------------------------------------------------------------

Layer Architecture Overview
---------------------------

Processor (processor/)
    Handler registry, dispatcher, state context, lifecycle

    │
    ▼
Session (transport/session.py)
    Correlation registry, connection I/O loop

    │
    ▼
Framing (wire.py)
    Envelope <-> multipart frames

    │
    ▼
Message Model (message.py, payload.py)
    Envelope, typed payloads, correlation ids

    │
    ▼
Field Vocabulary (fields.py)
    Message types and status enumerations

---------------------------------------------------------------------

Below the Protocol Layer
------------------------

Transport Layer
    Moves frames
    - ZeroMQ DEALER socket

Dependencies only flow downward. Never upward.

---------------------------------------------------------------------
"""


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
