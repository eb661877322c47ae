""" Dispatch inbound requests from the validator. Transaction execution
    requests are handed to a bounded pool of worker threads; everything else
    the validator may send unprompted is answered, or ignored, inline.
"""

import concurrent.futures
import logging
import threading

from ..protocol import fields
from ..protocol import message
from ..protocol import payload
from ..transport.base import TransportError
from .context import Context
from .exceptions import AuthorizationDenied, InternalError, InvalidAddress, InvalidTransaction, UnhandledFamily


logger = logging.getLogger(__name__)


class Dispatcher:
    """ The :class:`Dispatcher` receives every inbound request envelope from
        a :class:`~txproc.transport.session.Connection`, via :func:`dispatch`,
        which is invoked from the connection's reader thread and therefore
        never blocks on handler execution.

        At most *max_workers* handlers run at once. Excess requests wait in
        the pool's queue until a worker frees up; they are never refused,
        and never spawn additional threads.

        Whatever happens inside the handler, exactly one status reply is sent
        for every execution request.
    """

    def __init__(self, handlers, max_workers=8, timeout=None, max_batch=None):

        self.handlers = handlers
        self.max_workers = max_workers
        self.timeout = timeout
        self.max_batch = max_batch

        self.workers = concurrent.futures.ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix='txproc.worker')

        self._occupancy = 0
        self._occupancy_lock = threading.Lock()


    @property
    def occupancy(self):
        """ The number of execution requests accepted but not yet answered,
            whether running or queued.
        """

        return self._occupancy


    def dispatch(self, connection, envelope):

        message_type = envelope.message_type

        if message_type == fields.MessageType.TP_PROCESS_REQUEST:
            self._process_request(connection, envelope)

        elif message_type == fields.MessageType.PING_REQUEST:
            logger.debug('answering ping %s', envelope.correlation_id)
            connection.send(message.reply(envelope, fields.MessageType.PING_RESPONSE, payload.PingResponse()))

        else:
            logger.warning('ignoring unexpected inbound %s (correlation id %s)', message_type.name, envelope.correlation_id)


    def _process_request(self, connection, envelope):

        # A CodecError here is deliberately not caught: an execution request
        # that cannot be decoded is a protocol violation, and terminates the
        # connection.

        request = envelope.decode(payload.TpProcessRequest)
        header = request.header

        try:
            registration = self.handlers.find(header.family_name, header.family_version, header.payload_encoding)
        except UnhandledFamily as e:
            logger.warning('rejecting transaction for context %s: %s', request.context_id, e)
            self._respond(connection, envelope, fields.ProcessStatus.INVALID_TRANSACTION, 'unhandled transaction family: ' + str(e))
            return

        self._occupancy_lock.acquire()
        self._occupancy += 1
        self._occupancy_lock.release()

        try:
            self.workers.submit(self._worker_main, connection, envelope, request, registration)
        except RuntimeError:
            # The pool has been shut down.
            self._release()
            self._respond(connection, envelope, fields.ProcessStatus.INTERNAL_ERROR, 'processor is shutting down')


    def _release(self):

        self._occupancy_lock.acquire()
        self._occupancy -= 1
        self._occupancy_lock.release()


    def _worker_main(self, connection, envelope, request, registration):

        try:
            try:
                status, text, extended_data = self.execute(connection, request, registration)
            except Exception as e:
                logger.exception('execution failed for context %s', request.context_id)
                status = fields.ProcessStatus.INTERNAL_ERROR
                text = 'unexpected %s: %s' % (type(e).__name__, e)
                extended_data = None

            self._respond(connection, envelope, status, text, extended_data)
        finally:
            self._release()


    def execute(self, connection, request, registration):
        """ Run the handler of *registration* against *request*, returning the
            (status, message, extended data) triple for the reply. Writes are
            bounded by the registered namespaces, whatever the handler
            declares now.
        """

        try:
            context = Context(connection, request.context_id, registration.namespaces, self.timeout, self.max_batch)
            registration.handler.apply(request, context)

        except InvalidTransaction as e:
            logger.info('invalid transaction in context %s: %s', request.context_id, e)
            return (fields.ProcessStatus.INVALID_TRANSACTION, str(e), e.extended_data)

        except InternalError as e:
            logger.warning('internal error in context %s: %s', request.context_id, e)
            return (fields.ProcessStatus.INTERNAL_ERROR, str(e), e.extended_data)

        except (InvalidAddress, AuthorizationDenied) as e:
            # Touching state outside the family's namespace is as
            # deterministic as any other invalid transaction.
            logger.info('invalid state access in context %s: %s', request.context_id, e)
            return (fields.ProcessStatus.INVALID_TRANSACTION, str(e), None)

        except TransportError as e:
            logger.warning('state access failed in context %s: %s: %s', request.context_id, type(e).__name__, e)
            return (fields.ProcessStatus.INTERNAL_ERROR, '%s: %s' % (type(e).__name__, e), None)

        except Exception as e:
            logger.exception('unexpected failure in handler for context %s', request.context_id)
            return (fields.ProcessStatus.INTERNAL_ERROR, 'unexpected %s: %s' % (type(e).__name__, e), None)

        return (fields.ProcessStatus.OK, '', None)


    def _respond(self, connection, envelope, status, text='', extended_data=None):

        if extended_data is None:
            extended_data = b''
        elif not isinstance(extended_data, bytes):
            logger.warning('dropping extended data for %s: expected bytes, not %s', envelope.correlation_id, type(extended_data).__name__)
            extended_data = b''

        response = payload.TpProcessResponse(status=status, message=text, extended_data=extended_data)

        try:
            connection.send(message.reply(envelope, fields.MessageType.TP_PROCESS_RESPONSE, response))
        except TransportError as e:
            logger.warning('could not send %s status for %s: %s', status.name, envelope.correlation_id, e)


    def shutdown(self, wait=True):
        self.workers.shutdown(wait=wait)


# end of class Dispatcher


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
