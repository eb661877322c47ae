""" The :class:`TransactionProcessor` ties everything together: it owns the
    handler registry and the dispatcher, and drives the connection lifecycle

        DISCONNECTED -> CONNECTING -> REGISTERING -> SERVING
                     -> DISCONNECTING -> DISCONNECTED

    reconnecting from CONNECTING if the connection is lost while serving.
    Each connection attempt uses a fresh transport and a fresh correlation
    registry; the old registry is flushed whenever the processor leaves
    SERVING.
"""

import enum
import functools
import logging
import threading

from .. import config as configuration
from ..protocol import fields
from ..protocol import message
from ..protocol import payload
from ..protocol.message import CodecError
from ..transport import zmq as zmq_transport
from ..transport.base import ConnectionLost, TransportError, TransportTimeout
from ..transport.session import Connection
from .dispatcher import Dispatcher
from .exceptions import RegistrationRejected
from .handler import HandlerRegistry


logger = logging.getLogger(__name__)


class State(enum.Enum):
    DISCONNECTED = 'disconnected'
    CONNECTING = 'connecting'
    REGISTERING = 'registering'
    SERVING = 'serving'
    DISCONNECTING = 'disconnecting'



class TransactionProcessor:
    """ Connect to the validator at *url* and serve transactions for every
        handler added via :func:`add_handler`. The *config* argument is a
        :class:`txproc.config.Configuration` instance; if a *url* is also
        given it overrides the configured endpoint.

        The *transport_factory* is a callable returning a fresh, unopened
        :class:`~txproc.transport.base.Transport` for each connection
        attempt; the default is a ZeroMQ DEALER connected to the endpoint.

        :func:`start` blocks until :func:`stop` is called, from another
        thread or a signal handler, or until the connection fails for good.
    """

    def __init__(self, url=None, config=None, transport_factory=None):

        if config is None:
            config = configuration.Configuration()

        if url is not None:
            config['endpoint'] = url

        if transport_factory is None:
            transport_factory = functools.partial(zmq_transport.Client, config.endpoint)

        self.config = config
        self.handlers = HandlerRegistry()
        self.dispatcher = None
        self.state = State.DISCONNECTED

        self._connection = None
        self._listeners = list()
        self._stop = threading.Event()
        self._transport_factory = transport_factory


    @property
    def connection(self):
        """ The :class:`~txproc.transport.session.Connection` of the current
            connection epoch, or None when disconnected.
        """

        return self._connection


    def add_handler(self, handler):
        return self.handlers.add(handler)


    def add_listener(self, listener):
        """ Invoke *listener(old_state, new_state)* on every lifecycle
            transition. Listeners are called from the thread running
            :func:`start` and must not block.
        """

        self._listeners.append(listener)


    def _transition(self, state):

        old = self.state
        self.state = state
        logger.info('transaction processor: %s -> %s', old.value, state.value)

        for listener in self._listeners:
            try:
                listener(old, state)
            except Exception:
                logger.exception('state listener %r failed', listener)


    def start(self):

        if len(self.handlers) == 0:
            raise RuntimeError('no handlers have been added')

        self.handlers.freeze()
        self._stop.clear()

        self.dispatcher = Dispatcher(
            self.handlers,
            max_workers=self.config.max_workers,
            timeout=self.config.request_timeout,
            max_batch=self.config.max_batch)

        try:
            self._run()
        except KeyboardInterrupt:
            logger.info('interrupted, shutting down')
            self._stop.set()
            if self._connection is not None:
                self._disconnect(self._connection, 'interrupted', unregister=True)
        finally:
            self.dispatcher.shutdown(wait=True)


    def stop(self):
        """ Request an orderly shutdown. Safe to call from any thread.
        """

        self._stop.set()


    def _run(self):

        retry_delay = self.config.retry_delay

        while not self._stop.is_set():
            connection = self._connect()

            try:
                registered = self._register(connection)
            except RegistrationRejected as e:
                logger.error('%s', e)
                self._disconnect(connection, str(e))
                raise
            except (TransportError, CodecError) as e:
                logger.warning('registration failed: %s', e)
                self._disconnect(connection, 'registration failed: ' + str(e))
                if not self.config.reconnect:
                    raise
                self._stop.wait(retry_delay)
                retry_delay = min(retry_delay * 2, self.config.max_retry_delay)
                continue

            if not registered:
                self._disconnect(connection, 'stopped during registration')
                break

            retry_delay = self.config.retry_delay
            self._transition(State.SERVING)

            while not self._stop.is_set() and not connection.closed.is_set():
                self._stop.wait(self.config.poll_interval)

            if self._stop.is_set():
                self._disconnect(connection, 'stopped', unregister=True)
                break

            reason = connection.reason
            self._disconnect(connection, reason)

            if not self.config.reconnect:
                raise ConnectionLost(reason)

            logger.warning('connection lost (%s), reconnecting in %.1f seconds', reason, retry_delay)
            self._stop.wait(retry_delay)


    def _connect(self):

        self._transition(State.CONNECTING)

        transport = self._transport_factory()
        connection = Connection(transport, timeout=self.config.request_timeout)
        connection.poll_interval = self.config.poll_interval
        connection.start(functools.partial(self.dispatcher.dispatch, connection))

        self._connection = connection
        return connection


    def _register(self, connection):
        """ Register every (family, version) pair with the validator. Returns
            True once all registrations are acknowledged, False if a stop was
            requested before registration completed.
        """

        self._transition(State.REGISTERING)

        for family, version, namespaces in self.handlers.requests():
            request = payload.TpRegisterRequest(
                family=family,
                version=version,
                namespaces=namespaces,
                max_occupancy=self.config.max_occupancy)

            delay = self.config.retry_delay

            while True:
                envelope = message.build(fields.MessageType.TP_REGISTER_REQUEST, request)
                try:
                    response = connection.request(envelope, self.config.register_timeout, interrupt=self._stop)
                except TransportTimeout:
                    if self._stop.is_set():
                        return False
                    raise

                status = response.decode(payload.TpRegisterResponse).status

                if status == fields.RegisterStatus.OK:
                    logger.info('registered %s %s for namespaces %s', family, version, ', '.join(namespaces))
                    break

                if status != fields.RegisterStatus.NOT_READY:
                    raise RegistrationRejected('validator rejected registration of %s %s: %s' % (family, version, status.name))

                logger.info('validator not ready, retrying registration of %s %s in %.1f seconds', family, version, delay)

                if self._stop.wait(delay):
                    return False

                delay = min(delay * 2, self.config.max_retry_delay)

        return True


    def _unregister(self, connection):

        envelope = message.build(fields.MessageType.TP_UNREGISTER_REQUEST, payload.TpUnregisterRequest())

        try:
            response = connection.request(envelope, self.config.request_timeout)
            status = response.decode(payload.TpUnregisterResponse).status
        except (TransportError, CodecError) as e:
            logger.warning('unregister failed: %s', e)
            return

        logger.info('unregistered: %s', status.name)


    def _disconnect(self, connection, reason, unregister=False):

        self._transition(State.DISCONNECTING)

        if unregister and not connection.closed.is_set():
            self._unregister(connection)

        connection.close(reason)

        self._connection = None
        self._transition(State.DISCONNECTED)


# end of class TransactionProcessor


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
