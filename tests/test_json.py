import json
import txproc


def test_json_encode_and_decode():
    encode_and_decode(json.dumps, json.loads, dump_is_bytes=False)


def test_txproc_encode_and_decode():
    encode_and_decode(txproc.json.dumps, txproc.json.loads)


def test_typed_decode():

    header = txproc.protocol.payload.TransactionHeader(family_name='intkey', inputs=['abc'])
    encoded = txproc.json.dumps(header)

    decoded = txproc.json.loads(encoded, type=txproc.protocol.payload.TransactionHeader)
    assert decoded == header


def test_decode_errors():

    # Malformed JSON and JSON of the wrong shape are both a DecodeError;
    # callers need not tell them apart.

    payload = txproc.protocol.payload

    for encoded in (b'{not json', b'{"family_name": 5}', b'[1, 2]'):
        try:
            txproc.json.loads(encoded, type=payload.TransactionHeader)
        except txproc.json.DecodeError:
            pass
        else:
            raise RuntimeError('expected a DecodeError for %r' % (encoded,))


def encode_and_decode(dumps, loads, dump_is_bytes=True):

    input_dictionary = dict()
    input_dictionary['list'] = [1, 2, 3, 'a', 'b', None, 'c', 'z']
    input_dictionary['dict'] = {'one': 1, 'two': 2}
    input_dictionary['none'] = None
    input_dictionary['true'] = True
    input_dictionary['false'] = False

    encoded = dumps(input_dictionary)

    if dump_is_bytes:
        assert isinstance(encoded, bytes)
    else:
        assert isinstance(encoded, str)

    # It won't do to compare the encoded JSON against a pre-set notion of
    # what the encoded output should look like, as there is variance in
    # the handling of whitespace between the different modules.

    decoded = loads(encoded)
    assert isinstance(decoded, dict)
    assert decoded == input_dictionary


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
