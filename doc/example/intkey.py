""" A minimal integer-key transaction family. Each transaction payload is a
    JSON object with a *verb* ('set', 'inc' or 'dec'), a *name*, and an
    integer *value*; the state for each name is its current value, JSON
    encoded, at an address derived from the name.

    Run it against a validator with:

        python intkey.py tcp://localhost:4004
"""

import hashlib
import logging
import sys

import txproc
from txproc import json


FAMILY = 'intkey'
NAMESPACE = hashlib.sha512(FAMILY.encode()).hexdigest()[:6]
MAX_VALUE = 2 ** 32 - 1


def make_address(name):
    return NAMESPACE + hashlib.sha512(name.encode()).hexdigest()[-64:]


class IntKey(txproc.TransactionHandler):

    family_name = FAMILY
    family_versions = ('1.0',)
    namespaces = (NAMESPACE,)
    encodings = ('application/json',)


    def apply(self, transaction, context):

        try:
            body = json.loads(transaction.payload)
            verb = body['verb']
            name = body['name']
            value = body['value']
        except (json.DecodeError, KeyError, TypeError):
            raise txproc.InvalidTransaction('malformed payload')

        if not isinstance(verb, str) or not isinstance(name, str) or name == '':
            raise txproc.InvalidTransaction('verb and name must be non-empty strings')

        if not isinstance(value, int) or isinstance(value, bool):
            raise txproc.InvalidTransaction('value must be an integer')

        if value < 0 or value > MAX_VALUE:
            raise txproc.InvalidTransaction('value out of range: %d' % (value))

        address = make_address(name)
        stored = context.get_state([address])[address]

        if stored is None:
            current = None
        else:
            current = json.loads(stored)

        if verb == 'set':
            if current is not None:
                raise txproc.InvalidTransaction("'%s' is already set" % (name))
            new = value

        elif verb == 'inc' or verb == 'dec':
            if current is None:
                raise txproc.InvalidTransaction("'%s' is not set" % (name))

            if verb == 'inc':
                new = current + value
            else:
                new = current - value

            if new < 0 or new > MAX_VALUE:
                raise txproc.InvalidTransaction("'%s' would leave the valid range" % (name))

        else:
            raise txproc.InvalidTransaction('unknown verb: %r' % (verb,))

        context.set_state({address: json.dumps(new)})
        context.add_event('intkey/' + verb, [('name', name), ('value', str(new))])


# end of class IntKey


def main():

    logging.basicConfig(level=logging.INFO, format='%(asctime)s %(name)s %(levelname)s %(message)s')

    config = txproc.Configuration()
    config.update_from_environment()

    if len(sys.argv) > 1:
        config['endpoint'] = sys.argv[1]

    processor = txproc.TransactionProcessor(config=config)
    processor.add_handler(IntKey())
    processor.start()


if __name__ == '__main__':
    main()


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
