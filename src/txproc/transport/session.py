"""Transport-agnostic session layer.

A :class:`Connection` owns one :class:`~txproc.transport.base.Transport` for
the lifetime of one connection epoch. A single background thread reads from
the transport; every inbound envelope is either a reply, delivered through
the :class:`CorrelationRegistry` to whichever thread is waiting on it, or a
new inbound request, handed to the request callback.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Dict, List, Optional

from ..protocol import fields
from ..protocol.message import CodecError, Envelope
from .base import ConnectionLost, DuplicateCorrelation, Transport, TransportError, TransportTimeout


logger = logging.getLogger(__name__)


class PendingRequest:
    """Caller-side synchronization for one outstanding request."""

    def __init__(self, correlation_id: str, expected_type: fields.MessageType):
        self.correlation_id = correlation_id
        self.expected_type = expected_type
        self.response: Optional[Envelope] = None
        self.error: Optional[Exception] = None
        self.rep_event = threading.Event()

    def poll(self) -> bool:
        return self.rep_event.is_set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the request completes; False if *timeout* elapsed."""
        return self.rep_event.wait(timeout)

    def result(self) -> Envelope:
        """Return the reply, or raise the failure this request completed with."""
        if self.error is not None:
            raise self.error
        if self.response is None:
            raise RuntimeError(f"request {self.correlation_id} is still pending")
        return self.response

    def _complete(self, response: Envelope) -> None:
        self.response = response
        self.rep_event.set()

    def _fail(self, error: Exception) -> None:
        self.error = error
        self.rep_event.set()


class CorrelationRegistry:
    """Track outstanding locally-initiated requests by correlation id.

    Each of :func:`register`, :func:`complete`, :func:`expire` and
    :func:`cancel` is atomic; an entry is removed by exactly one of them,
    so a request completes at most once. After :func:`cancel_all` the
    registry is closed and refuses new registrations.
    """

    def __init__(self):
        self._pending: Dict[str, PendingRequest] = {}
        self._lock = threading.Lock()
        self._closed: Optional[str] = None

    def __contains__(self, correlation_id: str) -> bool:
        with self._lock:
            return correlation_id in self._pending

    def __len__(self) -> int:
        with self._lock:
            return len(self._pending)

    def register(self, correlation_id: str, expected_type: fields.MessageType) -> PendingRequest:
        pending = PendingRequest(correlation_id, expected_type)

        with self._lock:
            if self._closed is not None:
                raise ConnectionLost(self._closed)
            if correlation_id in self._pending:
                raise DuplicateCorrelation(f"correlation id already pending: {correlation_id}")
            self._pending[correlation_id] = pending

        return pending

    def _remove(self, correlation_id: str) -> Optional[PendingRequest]:
        with self._lock:
            return self._pending.pop(correlation_id, None)

    def complete(self, correlation_id: str, envelope: Envelope) -> bool:
        """Deliver *envelope* to the waiter; False if nobody is waiting."""

        pending = self._remove(correlation_id)
        if pending is None:
            logger.warning(
                "dropping %s for correlation id %s: no request is pending",
                envelope.message_type.name, correlation_id,
            )
            return False

        if envelope.message_type != pending.expected_type:
            logger.warning(
                "correlation id %s expected %s, received %s",
                correlation_id, pending.expected_type.name, envelope.message_type.name,
            )
            pending._fail(CodecError(
                f"expected {pending.expected_type.name}, received {envelope.message_type.name}"
            ))
            return True

        pending._complete(envelope)
        return True

    def cancel(self, correlation_id: str, error: Exception) -> bool:
        pending = self._remove(correlation_id)
        if pending is None:
            return False
        pending._fail(error)
        return True

    def expire(self, correlation_id: str) -> bool:
        return self.cancel(correlation_id, TransportTimeout(f"no reply for correlation id {correlation_id}"))

    def cancel_all(self, reason: str) -> int:
        """Fail every pending request with ConnectionLost; close the registry."""

        with self._lock:
            self._closed = reason
            pending = list(self._pending.values())
            self._pending.clear()

        for request in pending:
            request._fail(ConnectionLost(reason))

        if pending:
            logger.info("cancelled %d pending request(s): %s", len(pending), reason)

        return len(pending)


class Connection:
    """Own a transport: one reader thread, serialized writes, correlation.

    *on_request* is invoked from the reader thread for every inbound envelope
    that is not a reply; it must hand real work off to another thread. If it
    raises CodecError the connection is terminated as a protocol violation.
    """

    poll_interval = 0.1

    def __init__(self, transport: Transport, timeout: Optional[float] = None):
        self.transport = transport
        self.timeout = timeout
        self.registry = CorrelationRegistry()
        self.closed = threading.Event()
        self.reason: Optional[str] = None

        self._on_request: Optional[Callable[[Envelope], None]] = None
        self._listeners: List[Callable[[Connection, str], None]] = []
        self._shutdown = False
        self._close_reason = "connection closed locally"
        self._thread: Optional[threading.Thread] = None

    def add_listener(self, listener: Callable[[Connection, str], None]) -> None:
        """Invoke *listener(connection, reason)* once the connection closes."""
        self._listeners.append(listener)

    def start(self, on_request: Callable[[Envelope], None]) -> None:
        self._on_request = on_request
        self.transport.open()

        self._thread = threading.Thread(target=self.run, name="txproc.Connection", daemon=True)
        self._thread.start()

    def close(self, reason: str = "connection closed locally") -> None:
        self._shutdown = True
        self._close_reason = reason

        if self._thread is None:
            self._teardown(reason)
        elif self._thread is not threading.current_thread():
            self._thread.join()

    # --- sending ---

    def send(self, envelope: Envelope) -> None:
        """Send an envelope that expects no reply, such as a reply of our own."""

        if self.closed.is_set():
            raise ConnectionLost(self.reason)
        self.transport.send(envelope)

    def request(
        self,
        envelope: Envelope,
        timeout: Optional[float] = None,
        interrupt: Optional[threading.Event] = None,
    ) -> Envelope:
        """Send a request and block until the matching reply arrives.

        Raises TransportTimeout if no reply arrives within *timeout* seconds
        (the connection default if None), or if *interrupt* is set first;
        ConnectionLost if the connection drops while the request is
        outstanding.
        """

        expected = fields.REPLY_TYPES[envelope.message_type]
        pending = self.registry.register(envelope.correlation_id, expected)

        try:
            self.transport.send(envelope)
        except TransportError as e:
            self.registry.cancel(envelope.correlation_id, e)
            raise

        if timeout is None:
            timeout = self.timeout

        if interrupt is None:
            finished = pending.wait(timeout)
        else:
            finished = self._wait_interruptible(pending, timeout, interrupt)

        if not finished:
            if interrupt is not None and interrupt.is_set():
                removed = self.registry.cancel(
                    envelope.correlation_id,
                    TransportTimeout(f"request {envelope.correlation_id} interrupted"),
                )
            else:
                removed = self.registry.expire(envelope.correlation_id)

            # A completion that already claimed the entry wins the race; its
            # result is set momentarily.

            if not removed:
                pending.wait()

        return pending.result()

    def _wait_interruptible(
        self, pending: PendingRequest, timeout: Optional[float], interrupt: threading.Event
    ) -> bool:
        deadline = None if timeout is None else time.monotonic() + timeout

        while True:
            wait = self.poll_interval
            if deadline is not None:
                wait = min(wait, max(0.0, deadline - time.monotonic()))

            if pending.wait(wait):
                return True
            if interrupt.is_set():
                return False
            if deadline is not None and time.monotonic() >= deadline:
                return False

    # --- receiving ---

    def run(self) -> None:
        reason = None

        while not self._shutdown:
            try:
                envelope = self.transport.recv(self.poll_interval)
                if envelope is not None:
                    self._route(envelope)
            except CodecError as e:
                logger.error("protocol violation, closing connection: %s; raw frames: %r", e, e.frames)
                reason = f"protocol violation: {e}"
                break
            except ConnectionLost as e:
                logger.warning("connection lost: %s", e)
                reason = str(e) or "connection lost"
                break
            except Exception as e:
                logger.exception("unexpected failure in connection loop")
                reason = f"unexpected failure: {e}"
                break

        if reason is None:
            reason = self._close_reason

        self._teardown(reason)

    def _route(self, envelope: Envelope) -> None:
        if envelope.message_type in fields.RESPONSES or envelope.correlation_id in self.registry:
            self.registry.complete(envelope.correlation_id, envelope)
        else:
            self._on_request(envelope)

    def _teardown(self, reason: str) -> None:
        if self.closed.is_set():
            return

        self.reason = reason
        self.registry.cancel_all(reason)
        self.transport.close()
        self.closed.set()

        for listener in self._listeners:
            try:
                listener(self, reason)
            except Exception:
                logger.exception("connection listener %r failed", listener)
