""" Exercise the ZeroMQ transport against a real ROUTER socket standing in
    for the validator, bound to an ephemeral port on the loopback interface.
"""

import pytest
import threading
import zmq

import txproc
from txproc.protocol import fields
from txproc.protocol import message
from txproc.protocol import payload
from txproc.protocol import wire
from txproc.transport import Connection
from txproc.transport.zmq import Client

from mockvalidator import FamilyHandler, address, wait_for


MessageType = fields.MessageType


@pytest.fixture
def router():

    context = zmq.Context.instance()
    socket = context.socket(zmq.ROUTER)
    socket.setsockopt(zmq.LINGER, 0)
    socket.bind('tcp://127.0.0.1:*')
    yield socket

    socket.close(linger=0)


def endpoint(router):
    return router.getsockopt(zmq.LAST_ENDPOINT).decode()


def receive(router, timeout=2000):
    """ Return the (identity, envelope) pair for the next message arriving
        at the *router*.
    """

    if router.poll(timeout) == 0:
        raise AssertionError('nothing arrived at the router')

    parts = router.recv_multipart()
    return parts[0], wire.from_frames(parts[1:])


def respond(router, identity, envelope):
    router.send_multipart([identity] + list(wire.to_frames(envelope)))


def test_request_reply(router):

    inbound = list()
    connection = Connection(Client(endpoint(router)), timeout=2)
    connection.poll_interval = 0.01
    connection.start(inbound.append)

    replies = list()

    def ask():
        request = payload.TpStateGetRequest(context_id='ctx', addresses=[address()])
        envelope = message.build(MessageType.TP_STATE_GET_REQUEST, request)
        replies.append(connection.request(envelope))

    asker = threading.Thread(target=ask, daemon=True)
    asker.start()

    identity, request = receive(router)
    assert request.message_type == MessageType.TP_STATE_GET_REQUEST
    assert request.decode().addresses == [address()]

    entry = payload.TpStateEntry(address=address(), data=b'stored')
    response = payload.TpStateGetResponse(entries=[entry], status=fields.StateStatus.OK)
    respond(router, identity, message.reply(request, MessageType.TP_STATE_GET_RESPONSE, response))

    asker.join(5)

    assert replies[0].correlation_id == request.correlation_id
    assert replies[0].decode().entries[0].data == b'stored'

    # Unsolicited requests from the router reach the callback.

    ping = message.build(MessageType.PING_REQUEST, payload.PingRequest())
    respond(router, identity, ping)

    wait_for(lambda: inbound)
    assert inbound[0] == ping

    connection.close()
    assert connection.transport.is_open == False


def test_send_after_close(router):

    client = Client(endpoint(router))
    client.open()
    client.close()

    envelope = message.build(MessageType.PING_RESPONSE, payload.PingResponse())

    with pytest.raises(txproc.transport.ConnectionLost):
        client.send(envelope)


def test_peer_disconnect(router):

    connection = Connection(Client(endpoint(router)), timeout=2)
    connection.poll_interval = 0.01
    connection.start(lambda envelope: None)

    # Make sure the TCP connection is up before tearing it down.

    connection.send(message.build(MessageType.PING_RESPONSE, payload.PingResponse()))
    receive(router)

    router.close(linger=0)

    wait_for(connection.closed.is_set, timeout=5)
    assert 'disconnected' in connection.reason


def test_processor(router):

    config = txproc.Configuration(poll_interval=0.01, request_timeout=2, register_timeout=2)
    processor = txproc.TransactionProcessor(endpoint(router), config)
    processor.add_handler(FamilyHandler())

    errors = list()

    def main():
        try:
            processor.start()
        except Exception as e:
            errors.append(e)

    thread = threading.Thread(target=main, daemon=True)
    thread.start()

    identity, request = receive(router)
    assert request.message_type == MessageType.TP_REGISTER_REQUEST
    assert request.decode().family == 'my-family'

    response = payload.TpRegisterResponse(status=fields.RegisterStatus.OK)
    respond(router, identity, message.reply(request, MessageType.TP_REGISTER_RESPONSE, response))

    wait_for(lambda: processor.state == txproc.processor.State.SERVING)

    header = payload.TransactionHeader(family_name='my-family', family_version='1.0')
    execute = message.build(MessageType.TP_PROCESS_REQUEST, payload.TpProcessRequest(header=header, context_id='ctx'))
    respond(router, identity, execute)

    identity, status = receive(router)
    assert status.message_type == MessageType.TP_PROCESS_RESPONSE
    assert status.correlation_id == execute.correlation_id
    assert status.decode().status == fields.ProcessStatus.OK

    processor.stop()

    identity, request = receive(router)
    assert request.message_type == MessageType.TP_UNREGISTER_REQUEST
    response = payload.TpUnregisterResponse(status=fields.RegisterStatus.OK)
    respond(router, identity, message.reply(request, MessageType.TP_UNREGISTER_RESPONSE, response))

    thread.join(5)
    assert errors == []


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
