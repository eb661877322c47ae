""" A class representation of a validator/processor envelope, plus the
    helpers that move typed payloads in and out of the envelope content.
"""

import uuid

from .. import json
from . import fields
from . import payload


class CodecError(ValueError):
    """ A frame or payload could not be interpreted. The *frames* attribute
        holds the raw bytes, if any, so that the caller can log exactly what
        arrived on the wire.
    """

    def __init__(self, text, frames=None):
        ValueError.__init__(self, text)
        self.frames = frames


# end of class CodecError



class Envelope:
    """ The :class:`Envelope` is the fixed outer structure of every message
        exchanged with the validator: a *message_type* (one of the values
        enumerated in :class:`fields.MessageType`), a *correlation_id* tying
        a reply to the request that prompted it, and the opaque *content*
        bytes whose interpretation depends on the message type.
    """

    def __init__(self, message_type, correlation_id, content=b''):

        self.message_type = fields.MessageType(message_type)
        self.correlation_id = correlation_id
        self.content = content


    def __eq__(self, other):
        try:
            return (self.message_type == other.message_type and
                    self.correlation_id == other.correlation_id and
                    self.content == other.content)
        except AttributeError:
            return NotImplemented


    def __repr__(self):
        return 'Envelope(%s, %r, %d bytes)' % (self.message_type.name, self.correlation_id, len(self.content))


    def decode(self, expected=None):
        """ Interpret the content according to the message type, returning
            the typed payload instance. If *expected* is provided it is the
            payload class the caller requires; a mismatch is a
            :class:`CodecError`.
        """

        kind = payload.TYPES[self.message_type]

        if expected is not None and kind is not expected:
            raise CodecError("expected %s content, envelope carries %s" % (expected.__name__, self.message_type.name))

        return decode_content(self.content, kind)


# end of class Envelope



def new_correlation_id():
    """ Return a fresh correlation id. Random UUIDs are used rather than a
        counter so that ids are never reused across reconnections, or across
        processes sharing a validator connection.
    """

    return uuid.uuid4().hex


def encode_content(instance):
    """ Return the bytes representation of a payload instance.
    """

    return json.dumps(instance)


def decode_content(content, kind):
    """ Return an instance of *kind* decoded from the *content* bytes. Empty
        content decodes to an instance with every field at its default.
    """

    if content in (b'', None):
        return kind()

    try:
        return json.loads(content, type=kind)
    except json.DecodeError as e:
        raise CodecError("cannot decode %s: %s" % (kind.__name__, str(e)), (content,)) from e


def build(message_type, instance, correlation_id=None):
    """ Convenience constructor: wrap the payload *instance* in an
        :class:`Envelope` of the given *message_type*. A new correlation id
        is generated if one is not provided, which is the normal case for a
        locally-initiated request; replies must echo the id of the request
        they answer.
    """

    if correlation_id is None:
        correlation_id = new_correlation_id()

    return Envelope(message_type, correlation_id, encode_content(instance))


def reply(request, message_type, instance):
    """ Construct the reply to the *request* envelope.
    """

    return build(message_type, instance, request.correlation_id)


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
