""" An in-memory stand-in for the validator, used as a foil by the unit
    tests. :class:`MemoryTransport` implements the transport contract with
    queues instead of sockets; :class:`MockValidator` answers whatever the
    processor sends through it, according to a simple script.

    Every envelope crossing a :class:`MemoryTransport` is encoded to frames
    and decoded again, so the wire codec is exercised on every exchange.
"""

import queue
import threading
import time

from txproc.protocol import fields
from txproc.protocol import message
from txproc.protocol import payload
from txproc.protocol import wire
from txproc.processor.handler import TransactionHandler
from txproc.transport.base import ConnectionLost, Transport


MessageType = fields.MessageType


def wait_for(predicate, timeout=2.0):
    """ Poll *predicate* until it returns something true, or fail after
        *timeout* seconds.
    """

    expiration = time.time() + timeout

    while time.time() < expiration:
        result = predicate()
        if result:
            return result
        time.sleep(0.005)

    raise AssertionError('condition not met within %.1f seconds' % (timeout))



class MemoryTransport(Transport):

    def __init__(self, validator=None):

        self.validator = validator
        self.inbound = queue.Queue()
        self.sent = list()
        self.sent_lock = threading.Lock()
        self.opened = False
        self.closed = False


    @property
    def is_open(self):
        return self.opened and not self.closed


    def open(self):
        self.opened = True


    def close(self):
        self.closed = True


    def send(self, envelope):

        if not self.is_open:
            raise ConnectionLost('memory transport is closed')

        envelope = wire.from_frames(wire.to_frames(envelope))

        self.sent_lock.acquire()
        self.sent.append(envelope)
        self.sent_lock.release()

        if self.validator is not None:
            self.validator.received(self, envelope)


    def recv(self, timeout=None):

        try:
            frames = self.inbound.get(timeout=timeout)
        except queue.Empty:
            return None

        if frames is None:
            raise ConnectionLost('validator hung up')

        return wire.from_frames(frames)


    def push(self, envelope):
        self.inbound.put(wire.to_frames(envelope))


    def push_frames(self, frames):
        self.inbound.put(tuple(frames))


    def hang_up(self):
        self.inbound.put(None)


    def sent_of(self, message_type):

        self.sent_lock.acquire()
        matching = [envelope for envelope in self.sent if envelope.message_type == message_type]
        self.sent_lock.release()

        return matching


# end of class MemoryTransport



class MockValidator:
    """ Answer requests from the processor. By default every registration is
        accepted and state behaves like a dictionary. Set *register_statuses*
        to a list of statuses to hand out before falling back to OK; add a
        message type to *silent* to never answer it; add an address to
        *denied* to answer any access to it with an authorization error.
    """

    def __init__(self):

        self.state = dict()
        self.events = list()
        self.receipts = list()
        self.register_statuses = list()
        self.silent = set()
        self.denied = set()
        self.transports = list()
        self.lock = threading.Lock()


    def transport(self):
        """ Factory method suitable as a processor's *transport_factory*.
        """

        transport = MemoryTransport(self)
        self.transports.append(transport)
        return transport


    @property
    def current(self):
        return self.transports[-1]


    def received(self, transport, envelope):

        if envelope.message_type in self.silent:
            return

        if envelope.message_type not in fields.REPLY_TYPES:
            return

        method = getattr(self, '_on_' + envelope.message_type.name.lower(), None)
        if method is None:
            return

        request = envelope.decode()

        self.lock.acquire()
        try:
            response = method(request)
        finally:
            self.lock.release()

        reply_type = fields.REPLY_TYPES[envelope.message_type]
        transport.push(message.reply(envelope, reply_type, response))


    def _on_tp_register_request(self, request):

        if self.register_statuses:
            status = self.register_statuses.pop(0)
        else:
            status = fields.RegisterStatus.OK

        return payload.TpRegisterResponse(status=status)


    def _on_tp_unregister_request(self, request):
        return payload.TpUnregisterResponse(status=fields.RegisterStatus.OK)


    def _on_tp_state_get_request(self, request):

        for address in request.addresses:
            if address in self.denied:
                return payload.TpStateGetResponse(status=fields.StateStatus.AUTHORIZATION_ERROR)

        entries = list()
        for address in request.addresses:
            data = self.state.get(address, b'')
            entries.append(payload.TpStateEntry(address=address, data=data))

        return payload.TpStateGetResponse(entries=entries, status=fields.StateStatus.OK)


    def _on_tp_state_set_request(self, request):

        for entry in request.entries:
            if entry.address in self.denied:
                return payload.TpStateSetResponse(status=fields.StateStatus.AUTHORIZATION_ERROR)

        for entry in request.entries:
            self.state[entry.address] = entry.data

        addresses = [entry.address for entry in request.entries]
        return payload.TpStateSetResponse(addresses=addresses, status=fields.StateStatus.OK)


    def _on_tp_state_delete_request(self, request):

        for address in request.addresses:
            if address in self.denied:
                return payload.TpStateDeleteResponse(status=fields.StateStatus.AUTHORIZATION_ERROR)

        deleted = list()
        for address in request.addresses:
            if self.state.pop(address, None) is not None:
                deleted.append(address)

        return payload.TpStateDeleteResponse(addresses=deleted, status=fields.StateStatus.OK)


    def _on_tp_event_add_request(self, request):
        self.events.append(request.event)
        return payload.TpEventAddResponse(status=fields.AddStatus.OK)


    def _on_tp_receipt_add_data_request(self, request):
        self.receipts.append(request.data)
        return payload.TpReceiptAddDataResponse(status=fields.AddStatus.OK)


    def execute(self, family, version, data=b'', context_id='context', encoding='', transport=None):
        """ Send an execution request to the processor, returning the
            correlation id the status reply must carry.
        """

        if transport is None:
            transport = self.current

        header = payload.TransactionHeader(family_name=family, family_version=version, payload_encoding=encoding)
        request = payload.TpProcessRequest(header=header, payload=data, context_id=context_id)
        envelope = message.build(MessageType.TP_PROCESS_REQUEST, request)

        transport.push(envelope)
        return envelope.correlation_id


    def statuses(self, transport=None):
        """ Return a dictionary mapping correlation id to the decoded
            :class:`TpProcessResponse` for every status sent so far.
        """

        if transport is None:
            transport = self.current

        statuses = dict()
        for envelope in transport.sent_of(MessageType.TP_PROCESS_RESPONSE):
            statuses[envelope.correlation_id] = envelope.decode()

        return statuses


# end of class MockValidator



class FamilyHandler(TransactionHandler):
    """ A handler whose behavior is supplied by the test: the *behavior*
        callable, if any, is invoked with the same arguments as
        :func:`apply`. Every invocation is recorded in *calls*.
    """

    def __init__(self, behavior=None, family='my-family', versions=('1.0',), namespaces=('abcdef',), encodings=()):

        self.behavior = behavior
        self.calls = list()
        self._family = family
        self._versions = versions
        self._namespaces = namespaces
        self._encodings = encodings


    @property
    def family_name(self):
        return self._family


    @property
    def family_versions(self):
        return self._versions


    @property
    def namespaces(self):
        return self._namespaces


    @property
    def encodings(self):
        return self._encodings


    def apply(self, transaction, context):

        self.calls.append(transaction)

        if self.behavior is not None:
            return self.behavior(transaction, context)


# end of class FamilyHandler


def address(prefix='abcdef', fill='0'):
    """ Return a well-formed 70 character address with the given *prefix*.
    """

    return prefix + fill * (70 - len(prefix))


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
