"""Listener Service for Shutdown on LAN

Accepts TCP connections on 0.0.0.0:<port>, one thread per connection.
Each connection is read until the peer closes its write side; if the
trimmed text equals the configured secret, the shutdown trigger fires.
Nothing is ever written back to the peer.

Known weaknesses kept for protocol parity:
  - plain equality over cleartext input (no constant-time compare, no TLS)
  - no read timeout: a peer that never closes holds its thread
  - configured addresses are logged against each connection, not enforced
"""

from __future__ import annotations

import logging
import socket
import threading

from .core.config_model import AppConfiguration
from .core.errors import ListenerBindError, ShutdownFailed
from .core.ports import ShutdownTrigger
from .core.state_machine import ListenerEvent, ListenerState, ListenerStateMachine
from .platform_utils import IS_WINDOWS, interface_name_for

logger = logging.getLogger(__name__)

LISTEN_HOST = "0.0.0.0"
BUFFER_SIZE = 4096
# How often the accept loop wakes up to notice close()
ACCEPT_POLL_INTERVAL = 0.5


class ListenerService:
    """Owns the listening socket and spawns a handler per connection."""

    def __init__(self, configuration: AppConfiguration, shutdown_trigger: ShutdownTrigger):
        self._configuration = configuration
        self._trigger = shutdown_trigger
        self._socket: socket.socket | None = None
        self._state = ListenerStateMachine()

    @property
    def state(self) -> ListenerState:
        return self._state.state

    def bind(self) -> tuple[str, int]:
        """Bind and listen; return the bound (host, port).

        Raises:
            ListenerBindError: the port can't be bound. This is fatal.
        """
        if self._socket is not None:
            return self._socket.getsockname()[:2]
        if not self._state.can_transition(ListenerEvent.BIND):
            raise RuntimeError(f"listener can't bind from state {self.state.name}")

        port = self._configuration.port
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        if not IS_WINDOWS:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        try:
            sock.bind((LISTEN_HOST, port))
            sock.listen()
        except OSError as e:
            sock.close()
            self._state.transition(ListenerEvent.BIND_FAILED)
            raise ListenerBindError(LISTEN_HOST, port, e) from e

        sock.settimeout(ACCEPT_POLL_INTERVAL)
        self._socket = sock
        self._state.transition(ListenerEvent.BIND)

        host, bound_port = sock.getsockname()[:2]
        logger.info("Listening on %s:%s", host, bound_port)
        return host, bound_port

    def run(self) -> None:
        """Bind if needed and accept connections until close() is called."""
        self.bind()
        sock = self._socket

        while self.state is ListenerState.LISTENING:
            try:
                conn, peer = sock.accept()
            except socket.timeout:
                continue
            except OSError as e:
                if self.state is not ListenerState.LISTENING:
                    break
                logger.error("Error initializing socket: %s", e)
                continue

            self._spawn_handler(conn, peer)

        logger.info("Listener stopped")

    def close(self) -> None:
        """Stop accepting connections. In-flight handlers run to completion."""
        self._state.transition(ListenerEvent.CLOSE)
        sock, self._socket = self._socket, None
        if sock is not None:
            sock.close()

    def _spawn_handler(self, conn: socket.socket, peer) -> None:
        # Each handler gets its own copy of the secret and addresses
        secret = self._configuration.secret
        expected = tuple(str(address) for address in self._configuration.addresses)
        thread = threading.Thread(
            target=self.handle_connection,
            args=(conn, peer, secret, expected),
            name=f"connection-{peer[0]}:{peer[1]}",
            daemon=True,
        )
        thread.start()

    def handle_connection(
        self,
        conn: socket.socket,
        peer,
        secret: str,
        expected_addresses: tuple[str, ...] = (),
    ) -> None:
        """Serve one connection: read to end-of-stream, compare, maybe shut down."""
        with conn:
            # No read timeout: a silent peer holds this handler until it closes
            conn.settimeout(None)
            logger.debug("New connection: %s:%s", peer[0], peer[1])
            _log_arrival(conn, expected_addresses)

            try:
                message = _read_to_end(conn).decode("utf-8")
            except (OSError, UnicodeDecodeError) as e:
                logger.error("An error occurred, terminating connection with %s: %s", peer[0], e)
                _abort(conn)
                return

            received = message.strip()
            logger.debug("Received message from %s: %r", peer[0], received)

            if received != secret:
                logger.info("Ignoring request from %s: secret does not match", peer[0])
                return

            logger.info("Valid shutdown request from %s", peer[0])
            try:
                self._trigger.shutdown()
            except ShutdownFailed as e:
                logger.error("Failed to shut down: %s", e)
                return
            logger.info("Shutting down.")


def _read_to_end(conn: socket.socket) -> bytes:
    chunks = []
    while True:
        chunk = conn.recv(BUFFER_SIZE)
        if not chunk:
            return b"".join(chunks)
        chunks.append(chunk)


def _abort(conn: socket.socket) -> None:
    try:
        conn.shutdown(socket.SHUT_RDWR)
    except OSError as e:
        # Peer already tore the connection down
        logger.debug("Socket shutdown failed: %s", e)


def _log_arrival(conn: socket.socket, expected_addresses: tuple[str, ...]) -> None:
    """Log which local interface the connection came in on (diagnostic only)."""
    try:
        local_address = conn.getsockname()[0]
        interface = interface_name_for(local_address)
    except OSError as e:
        logger.debug("Unable to resolve local interface: %s", e)
        return

    listed = local_address in expected_addresses
    logger.debug(
        "Connection arrived on %s (%s), %s configured addresses",
        local_address,
        interface or "unknown interface",
        "in" if listed else "not in",
    )
