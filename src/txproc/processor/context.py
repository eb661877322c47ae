""" The per-transaction state context handed to a handler's apply() method.

    Every operation here is one or more request/response exchanges with the
    validator, scoped by the context id the validator assigned to the
    transaction being executed. Addresses are checked locally before anything
    is sent: a malformed address, or a write outside the handler's declared
    namespaces, never reaches the wire.
"""

import re

from ..protocol import fields
from ..protocol import message
from ..protocol import payload
from .exceptions import AuthorizationDenied, InternalError, InvalidAddress


ADDRESS_LENGTH = 70

_address = re.compile('^[0-9a-f]{%d}$' % (ADDRESS_LENGTH))


def validate_address(address):
    """ Raise :class:`InvalidAddress` unless *address* is exactly 70
        lowercase hexadecimal characters.
    """

    if not isinstance(address, str):
        raise InvalidAddress('state address must be a string: %r' % (address,))

    if len(address) != ADDRESS_LENGTH:
        raise InvalidAddress("state address must be %d characters, not %d: '%s'" % (ADDRESS_LENGTH, len(address), address))

    if _address.match(address) is None:
        raise InvalidAddress("state address must be lowercase hexadecimal: '%s'" % (address))


def _unique(addresses):

    if isinstance(addresses, (str, bytes)):
        raise TypeError('expected a collection of addresses, not a single address')

    unique = list()
    seen = set()

    for address in addresses:
        validate_address(address)
        if address in seen:
            continue
        seen.add(address)
        unique.append(address)

    return unique


def _batches(values, size):

    if len(values) == 0:
        return

    if size is None:
        yield values
        return

    for start in range(0, len(values), size):
        yield values[start:start + size]



class Context:
    """ The :class:`Context` is constructed by the dispatcher for a single
        transaction, and is only valid for the duration of the handler's
        :func:`apply` call. It is not safe to share a :class:`Context` between
        threads.

        *connection* is the :class:`~txproc.transport.session.Connection`
        carrying the exchange; *context_id* is the validator's identifier for
        this execution; *namespaces* are the prefixes the handler registered,
        and bound every write. The *timeout* applies to each individual
        round-trip; *max_batch*, if set, is the most addresses sent in a
        single request, larger requests are split.
    """

    def __init__(self, connection, context_id, namespaces, timeout=None, max_batch=None):

        self.connection = connection
        self.context_id = context_id
        self.namespaces = tuple(namespaces)
        self.timeout = timeout
        self.max_batch = max_batch


    def _check_namespace(self, address):

        for namespace in self.namespaces:
            if address.startswith(namespace):
                return

        raise InvalidAddress("address '%s' is outside the namespaces registered for writing" % (address))


    def _request(self, message_type, instance, timeout):

        if timeout is None:
            timeout = self.timeout

        request = message.build(message_type, instance)
        response = self.connection.request(request, timeout)
        return response.decode(payload.TYPES[fields.REPLY_TYPES[message_type]])


    def get_state(self, addresses, timeout=None):
        """ Return a dictionary mapping each requested address to its data,
            or to None if the address has no data in state.
        """

        addresses = _unique(addresses)
        results = dict.fromkeys(addresses)

        for batch in _batches(addresses, self.max_batch):
            request = payload.TpStateGetRequest(context_id=self.context_id, addresses=batch)
            response = self._request(fields.MessageType.TP_STATE_GET_REQUEST, request, timeout)

            if response.status == fields.StateStatus.AUTHORIZATION_ERROR:
                raise AuthorizationDenied('tried to get unauthorized address: ' + ', '.join(batch))

            for entry in response.entries:
                if entry.address in results and entry.data:
                    results[entry.address] = entry.data

        return results


    def set_state(self, entries, timeout=None):
        """ Write each address/data pair in the *entries* dictionary to
            state. Returns the list of addresses the validator confirmed.
        """

        addresses = list()

        for address,data in entries.items():
            validate_address(address)
            self._check_namespace(address)

            if not isinstance(data, bytes):
                raise TypeError("data for address '%s' must be bytes" % (address))

            addresses.append(address)

        confirmed = list()

        for batch in _batches(addresses, self.max_batch):
            state = [payload.TpStateEntry(address=address, data=entries[address]) for address in batch]
            request = payload.TpStateSetRequest(context_id=self.context_id, entries=state)
            response = self._request(fields.MessageType.TP_STATE_SET_REQUEST, request, timeout)

            if response.status == fields.StateStatus.AUTHORIZATION_ERROR:
                raise AuthorizationDenied('tried to set unauthorized address: ' + ', '.join(batch))

            confirmed.extend(response.addresses)

        return confirmed


    def delete_state(self, addresses, timeout=None):
        """ Delete each of the *addresses* from state. Returns the list of
            addresses that were actually deleted.
        """

        addresses = _unique(addresses)
        for address in addresses:
            self._check_namespace(address)

        deleted = list()

        for batch in _batches(addresses, self.max_batch):
            request = payload.TpStateDeleteRequest(context_id=self.context_id, addresses=batch)
            response = self._request(fields.MessageType.TP_STATE_DELETE_REQUEST, request, timeout)

            if response.status == fields.StateStatus.AUTHORIZATION_ERROR:
                raise AuthorizationDenied('tried to delete unauthorized address: ' + ', '.join(batch))

            deleted.extend(response.addresses)

        return deleted


    def add_event(self, event_type, attributes=None, data=b'', timeout=None):
        """ Attach an event to the transaction's execution result. The
            *attributes* are an ordered sequence of (key, value) string
            pairs. This blocks until the validator confirms the event was
            recorded, so that a successful transaction never silently loses
            its events.
        """

        if not isinstance(event_type, str) or event_type == '':
            raise ValueError('event type must be a non-empty string')

        if attributes is None:
            attributes = ()

        event = payload.Event(
            event_type=event_type,
            attributes=[payload.EventAttribute(key=key, value=value) for key,value in attributes],
            data=data)

        request = payload.TpEventAddRequest(context_id=self.context_id, event=event)
        response = self._request(fields.MessageType.TP_EVENT_ADD_REQUEST, request, timeout)

        if response.status != fields.AddStatus.OK:
            raise InternalError("failed to add event '%s'" % (event_type))


    def add_receipt_data(self, data, timeout=None):
        """ Attach opaque *data* to the transaction receipt. Like
            :func:`add_event`, this blocks until the validator confirms.
        """

        if not isinstance(data, bytes):
            raise TypeError('receipt data must be bytes')

        request = payload.TpReceiptAddDataRequest(context_id=self.context_id, data=data)
        response = self._request(fields.MessageType.TP_RECEIPT_ADD_DATA_REQUEST, request, timeout)

        if response.status != fields.AddStatus.OK:
            raise InternalError('failed to add receipt data')


# end of class Context


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
