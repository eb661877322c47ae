''' Wrapper module around msgspec to handle the equivalent of
    :func:`json.loads` and :func:`json.dumps`. Encoding always returns
    bytes; decoding optionally validates against a target *type*, which is
    how typed protocol payloads are recovered from the wire.
'''

import typing

import msgspec


encoder = msgspec.json.Encoder()
dumps = encoder.encode

DecodeError = msgspec.DecodeError


def loads(data, type=typing.Any):
    return msgspec.json.decode(data, type=type)


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
