"""
=============================================================================
CLIENT CONNECTION
=============================================================================

Wraps one accepted client socket for the single request/response exchange
it carries. HTTP/1.0 without keep-alive: one request in, one response out,
then the connection is closed.

=============================================================================
ONE CONNECTION, ONE EXCHANGE
=============================================================================

    ┌─────────────────────────────────────────────────────────────────┐
    │                                                                  │
    │   TCP Connect                                                    │
    │       │                                                          │
    │       ├── request line + headers (+ body)   ──►  server          │
    │       ├── status line + headers + body      ◄──  server          │
    │       │                                                          │
    │   TCP Close (server side, always)                                │
    │                                                                  │
    └─────────────────────────────────────────────────────────────────┘

=============================================================================
CONNECTION STATE MACHINE
=============================================================================

    READING ──────► PARSED ──────► RESOLVING ──────► RESPONDING ──────► CLOSED
       │                               │                  ▲
       │          parse error          │  path or file    │
       └───────────────────────────────┴──────────────────┘
                                          error

Every path ends in RESPONDING (exactly one response is written) and then
CLOSED. The state is informational: it shows up in debug logs and tells a
test how far a connection got.

=============================================================================
READING
=============================================================================

`reader` is a buffered file over the socket (socket.makefile("rb")). The
request parser pulls lines and an exact-length body from it, so the
connection never has to look for \\r\\n\\r\\n in a raw recv() buffer.

=============================================================================
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import BinaryIO, Optional
import logging
import socket
import time
import uuid


logger = logging.getLogger(__name__)


class ConnectionState(Enum):
    """
    Connection lifecycle states.

    Used for logging and debugging; nothing branches on them.
    """
    READING = "reading"          # Waiting for / reading the request
    PARSED = "parsed"            # Request line and headers understood
    RESOLVING = "resolving"      # Mapping the path to a file and loading it
    RESPONDING = "responding"    # Writing the one response
    CLOSED = "closed"            # Socket released


@dataclass
class Connection:
    """
    Represents a client connection.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    Connection Responsibilities                       │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │  1. TIMEOUT                                                          │
    │     └── Applied to the socket once, before anything is read         │
    │     └── A client that stalls cannot hold the worker forever         │
    │                                                                      │
    │  2. BUFFERED READING                                                 │
    │     └── `reader` hands the parser whole lines                        │
    │                                                                      │
    │  3. WRITING                                                          │
    │     └── sendall() the serialized response                           │
    │                                                                      │
    │  4. GRACEFUL CLOSE                                                   │
    │     └── shutdown(SHUT_WR), drain, close                             │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

    Attributes:
        socket: The client socket.
        address: Client's (ip, port) tuple.
        id: Short connection identifier (for logging).
        state: Current connection state.
        created_at: Timestamp when the connection was accepted.
        timeout: Socket timeout in seconds; None blocks forever.
    """

    # Required parameters
    socket: socket.socket
    address: tuple[str, int]

    # Generated/default parameters
    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    state: ConnectionState = ConnectionState.READING
    created_at: float = field(default_factory=time.time)
    timeout: Optional[float] = 30.0

    _reader: Optional[BinaryIO] = field(default=None, repr=False)

    def __post_init__(self):
        self.socket.settimeout(self.timeout)

    # =========================================================================
    # PROPERTIES
    # =========================================================================

    @property
    def client_ip(self) -> str:
        return self.address[0] if self.address else ""

    @property
    def client_port(self) -> int:
        return self.address[1] if self.address else 0

    @property
    def age(self) -> float:
        """Connection age in seconds."""
        return time.time() - self.created_at

    @property
    def reader(self) -> BinaryIO:
        """
        Buffered binary stream over the socket.

        Created on first use. The socket's timeout applies to its reads: a
        stalled client surfaces as socket.timeout from readline()/read().
        """
        if self._reader is None:
            self._reader = self.socket.makefile("rb")
        return self._reader

    # =========================================================================
    # WRITING
    # =========================================================================

    def send_response(self, data: bytes) -> bool:
        """
        Send response bytes to the client.

        Uses sendall() so that ALL data is sent; plain send() may stop
        part way when the kernel buffer is full.

        Returns:
            True if the send succeeded, False if the client is gone.
        """
        self.state = ConnectionState.RESPONDING

        try:
            self.socket.sendall(data)
            return True
        except OSError as e:
            # Covers ConnectionResetError, BrokenPipeError and timeouts
            logger.warning(f"[{self.id}] Send failed: {e}")
            return False

    # =========================================================================
    # CLOSING
    # =========================================================================

    def close(self):
        """
        Half-close, drain, release. Safe to call twice.

            shutdown(SHUT_WR)   client sees EOF right after the response
            recv() until EOF    at most 0.5s, whatever is still in flight
            close()             reader file first, then the socket

        Draining before close() keeps unread request bytes (a body the
        parser never got to) from turning the close into a TCP reset, which
        could destroy the response before the client reads it.
        """
        if self.state == ConnectionState.CLOSED:
            return

        try:
            # Sends FIN: the response is complete
            self.socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass  # Already disconnected

        try:
            self.socket.settimeout(0.5)
            while self.socket.recv(1024):
                pass  # Discard whatever the client still sends
        except OSError:
            pass  # Timed out or reset, closing anyway

        if self._reader is not None:
            try:
                self._reader.close()
            except OSError:
                pass
            self._reader = None

        try:
            self.socket.close()
        except OSError:
            pass

        self.state = ConnectionState.CLOSED
        logger.debug(f"[{self.id}] Connection closed after {self.age:.3f}s")

    # =========================================================================
    # CONTEXT MANAGER
    # =========================================================================

    def __enter__(self):
        """
        Allows:

            with Connection(sock, addr) as conn:
                request = parser.parse(conn.reader)
                conn.send_response(response.to_bytes())
            # Connection closed here, whatever happened inside
        """
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False  # Don't suppress exceptions
