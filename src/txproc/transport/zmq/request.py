"""ZeroMQ DEALER transport.

The validator listens on a ROUTER socket; each processor connects a DEALER.
ZeroMQ sockets are not thread-safe, so the socket is only ever touched by
the connection I/O thread (the caller of :func:`Client.recv`). Other threads
queue outbound frames and wake the I/O thread through an inproc PAIR socket.
"""

from __future__ import annotations

import queue
import threading
import time
import uuid
from typing import Optional

import zmq
from zmq.utils.monitor import recv_monitor_message

from ...protocol import wire
from ...protocol.message import Envelope
from ..base import ConnectionLost, Transport


zmq_context = zmq.Context.instance()


class Client(Transport):
    """Exchange envelopes with a validator via a ZeroMQ DEALER socket."""

    def __init__(self, url: str, context: Optional[zmq.Context] = None):
        self.url = url
        self.context = context or zmq_context

        self.socket: Optional[zmq.Socket] = None
        self._monitor: Optional[zmq.Socket] = None
        self._signal_rx: Optional[zmq.Socket] = None
        self._signal_tx: Optional[zmq.Socket] = None
        self._poller: Optional[zmq.Poller] = None

        self._outbox: queue.SimpleQueue = queue.SimpleQueue()
        self._send_lock = threading.Lock()
        self._open = False

    @property
    def is_open(self) -> bool:
        return self._open

    def open(self) -> None:
        token = uuid.uuid4().hex

        self.socket = self.context.socket(zmq.DEALER)
        self.socket.setsockopt(zmq.LINGER, 0)
        self.socket.identity = f"txproc.Client.{token}".encode()
        self._monitor = self.socket.get_monitor_socket(zmq.EVENT_DISCONNECTED)
        self.socket.connect(self.url)

        internal = f"inproc://txproc.Client:signal:{token}"
        self._signal_rx = self.context.socket(zmq.PAIR)
        self._signal_rx.bind(internal)
        self._signal_tx = self.context.socket(zmq.PAIR)
        self._signal_tx.connect(internal)

        self._poller = zmq.Poller()
        self._poller.register(self.socket, zmq.POLLIN)
        self._poller.register(self._signal_rx, zmq.POLLIN)
        self._poller.register(self._monitor, zmq.POLLIN)

        self._open = True

    def close(self) -> None:
        with self._send_lock:
            if not self._open:
                return
            self._open = False

            self.socket.disable_monitor()
            for sock in (self._monitor, self._signal_tx, self._signal_rx, self.socket):
                sock.close(linger=0)

    def send(self, envelope: Envelope) -> None:
        frames = wire.to_frames(envelope)

        # One signal per queued message; the I/O thread drains both in step.

        with self._send_lock:
            if not self._open:
                raise ConnectionLost(f"transport to {self.url} is closed")
            self._outbox.put(frames)
            self._signal_tx.send(b"")

    def recv(self, timeout: Optional[float] = None) -> Optional[Envelope]:
        if not self._open:
            raise ConnectionLost(f"transport to {self.url} is closed")

        deadline = None if timeout is None else time.monotonic() + timeout

        while True:
            if deadline is None:
                wait = None
            else:
                wait = max(0, int((deadline - time.monotonic()) * 1000))

            for active, _flag in self._poller.poll(wait):
                if active == self._signal_rx:
                    self._flush_outgoing()
                elif active == self._monitor:
                    self._check_monitor()
                elif active == self.socket:
                    parts = self.socket.recv_multipart()
                    return wire.from_frames(parts)

            if deadline is not None and time.monotonic() >= deadline:
                return None

    # --- internal ---

    def _flush_outgoing(self) -> None:
        while True:
            try:
                self._signal_rx.recv(flags=zmq.NOBLOCK)
            except zmq.Again:
                return

            frames = self._outbox.get(block=False)
            self.socket.send_multipart(frames)

    def _check_monitor(self) -> None:
        event = recv_monitor_message(self._monitor)
        if event["event"] == zmq.EVENT_DISCONNECTED:
            raise ConnectionLost(f"disconnected from {self.url}")
