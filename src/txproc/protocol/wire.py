"""Multipart framing for envelopes.

Request/Response (DEALER<->ROUTER)
    (optional routing prefix...), version, correlation_id, message_type, content

The ROUTER side (the validator) prepends its routing identity; a DEALER never
sees it, so :func:`from_frames` only accepts the bare four-frame form.
"""

from __future__ import annotations

from typing import Sequence, Tuple

from .fields import MessageType, PROTOCOL_VERSION
from .message import CodecError, Envelope


FRAME_COUNT = 4


def to_frames(envelope: Envelope) -> Tuple[bytes, ...]:
    """Encode an Envelope to multipart frames."""

    message_type = str(int(envelope.message_type)).encode()
    correlation_id = envelope.correlation_id.encode()
    content = envelope.content or b""

    return (PROTOCOL_VERSION, correlation_id, message_type, content)


def from_frames(parts: Sequence[bytes]) -> Envelope:
    """Decode multipart frames into an Envelope.

    Raises CodecError if the frames are truncated, carry an unexpected
    protocol version, or name a message type that is not recognized. The
    raw frames are attached to the exception.
    """

    parts = tuple(parts)

    if len(parts) != FRAME_COUNT:
        raise CodecError(f"expected {FRAME_COUNT} frames, received {len(parts)}", parts)

    their_version, correlation_id, message_type, content = parts

    if their_version != PROTOCOL_VERSION:
        raise CodecError(
            f"message is protocol {their_version!r}, recipient expects {PROTOCOL_VERSION!r}",
            parts,
        )

    try:
        correlation_id = correlation_id.decode()
    except UnicodeDecodeError as e:
        raise CodecError("correlation id is not valid UTF-8", parts) from e

    if correlation_id == "":
        raise CodecError("empty correlation id", parts)

    if not message_type.isdigit():
        raise CodecError(f"message type {message_type!r} is not a decimal number", parts)

    try:
        message_type = MessageType(int(message_type))
    except ValueError as e:
        raise CodecError(f"unrecognized message type {message_type!r}", parts) from e

    return Envelope(message_type, correlation_id, content)
