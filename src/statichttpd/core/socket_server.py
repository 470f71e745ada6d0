"""
=============================================================================
TCP LISTENER
=============================================================================

Binds the listening socket, accepts connections and starts one worker
thread per accepted connection.

=============================================================================
SOCKET LIFECYCLE (Server Side)
=============================================================================

    1. socket()    Create a socket file descriptor
    2. bind()      Associate the socket with an IP:PORT
    3. listen()    OS starts queueing incoming connections (backlog)
    4. accept()    Wait for a connection; returns a NEW socket for that
                   client while the original keeps listening
    5. close()     Release the listening socket

=============================================================================
THREAD PER CONNECTION
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   accept loop (one thread, the only sequential point)               │
    │       │                                                              │
    │       ├── accept() ──► Connection ──► Thread(handler, conn).start() │
    │       ├── accept() ──► Connection ──► Thread(handler, conn).start() │
    │       └── ...                                                        │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

There is no pool and no queue: every accepted connection gets its own
daemon thread immediately, and the loop goes straight back to accept().
A worker owns its socket, its request and its response; workers share
nothing except the read-only status and MIME tables.

=============================================================================
GRACEFUL SHUTDOWN
=============================================================================

SIGINT (2):   Sent when the user presses Ctrl+C
SIGTERM (15): Sent by docker stop, systemd stop, kill

Both set the running flag to False. The listening socket has a 1 second
accept() timeout, so the loop notices within a second and exits. Workers
already running finish their single exchange on their own; they are
daemon threads and never block interpreter exit.

Python only lets the main thread install signal handlers. When the server
runs on another thread (the test suite does this) handlers are skipped and
shutdown() is the way to stop it.

=============================================================================
"""

from typing import Callable, Optional
import logging
import signal
import socket
import threading

from ..config import ServerConfig
from .connection import Connection


logger = logging.getLogger(__name__)


class SocketServer:
    """
    Low-level TCP socket server.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                      SocketServer Internals                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │    start(handler)                                                    │
    │        ├──► _create_socket()   SO_REUSEADDR, TCP_NODELAY, 1s timeout │
    │        ├──► bind() / listen()                                        │
    │        ├──► _setup_signals()   (main thread only)                   │
    │        └──► _accept_loop()     BLOCKS until shutdown()              │
    │                                                                      │
    │    shutdown()                  _running = False                      │
    │    _cleanup()                  restore signals, close socket         │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

    Usage:
        def handle_connection(conn: Connection):
            ...

        server = SocketServer(config)
        server.start(handle_connection)  # Blocks until shutdown
    """

    def __init__(self, config: ServerConfig):
        """
        Args:
            config: Server configuration (host, port, backlog, timeout).

        The socket is not created here; start() does that.
        """
        self.config = config

        self._socket: Optional[socket.socket] = None
        self._running = False

        # Set once the socket is listening, cleared again on shutdown
        self._ready_event = threading.Event()

        self._original_handlers: dict = {}

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def address(self) -> tuple[str, int]:
        """
        The address actually bound.

        Differs from the configured one when port 0 asked the OS to pick
        a free port.
        """
        if self._socket is not None:
            host, port = self._socket.getsockname()[:2]
            return (host, port)
        return (self.config.host, self.config.port)

    def _create_socket(self) -> socket.socket:
        """
        Create and configure the listening socket.

        SO_REUSEADDR: restart without "Address already in use" while the
                      old socket sits in TIME_WAIT.
        TCP_NODELAY:  send the response as soon as it is written.
        timeout 1.0:  accept() wakes up every second to check _running.
        """
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
        sock.settimeout(1.0)
        return sock

    def _setup_signals(self):
        """
        Install SIGTERM/SIGINT handlers that trigger shutdown().

        Skipped off the main thread, where signal.signal() raises ValueError.
        """
        if threading.current_thread() is not threading.main_thread():
            logger.debug("Not on the main thread, signal handlers not installed")
            return

        def shutdown_handler(signum, frame):
            signal_name = signal.Signals(signum).name
            logger.info(f"Received {signal_name}, initiating shutdown...")
            self.shutdown()

        self._original_handlers[signal.SIGTERM] = signal.signal(signal.SIGTERM, shutdown_handler)
        self._original_handlers[signal.SIGINT] = signal.signal(signal.SIGINT, shutdown_handler)

    def _restore_signals(self):
        for sig, handler in self._original_handlers.items():
            signal.signal(sig, handler)
        self._original_handlers.clear()

    def start(self, connection_handler: Callable[[Connection], None]):
        """
        Bind, listen and accept connections until shutdown() is called.

        Args:
            connection_handler: Run on a fresh thread for every accepted
                                connection. It owns the connection and
                                must close it.

        Raises:
            OSError: The address could not be bound (already in use,
                     permission denied). Logged, then re-raised.
        """
        self._socket = self._create_socket()

        try:
            self._socket.bind((self.config.host, self.config.port))
            self._socket.listen(self.config.backlog)
        except OSError as e:
            logger.error(f"Failed to bind to {self.config.host}:{self.config.port}: {e}")
            self._socket.close()
            self._socket = None
            raise

        self._running = True
        self._setup_signals()

        host, port = self.address
        logger.info(f"Server listening on {host}:{port}")
        self._ready_event.set()

        try:
            self._accept_loop(connection_handler)
        finally:
            self._cleanup()

    def _accept_loop(self, connection_handler: Callable[[Connection], None]):
        """
        ┌─────────────────────────────────────────────────────────────────┐
        │   while self._running:                                           │
        │       accept()            (or time out after 1 second)          │
        │       Connection(...)     apply the per-connection timeout      │
        │       Thread(...).start() hand off, go straight back to accept  │
        └─────────────────────────────────────────────────────────────────┘
        """
        while self._running:
            try:
                client_socket, client_address = self._socket.accept()
            except socket.timeout:
                continue  # Check _running, loop again
            except OSError as e:
                if self._running:
                    logger.error(f"Accept error: {e}")
                break

            logger.debug(f"Accepted connection from {client_address[0]}:{client_address[1]}")

            conn = Connection(
                socket=client_socket,
                address=client_address,
                timeout=self.config.timeout,
            )

            worker = threading.Thread(
                target=connection_handler,
                args=(conn,),
                name=f"conn-{conn.id}",
                daemon=True,
            )
            worker.start()

    def shutdown(self):
        """
        Ask the accept loop to stop.

        Safe to call from a signal handler or another thread, and more than
        once.
        """
        if self._running:
            logger.info("Shutting down socket server...")
        self._running = False

    def _cleanup(self):
        self._restore_signals()

        if self._socket:
            try:
                self._socket.close()
            except OSError:
                pass  # Already closed
            self._socket = None

        self._ready_event.clear()
        logger.info("Socket server stopped")

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """Block until the socket is listening. False on timeout."""
        return self._ready_event.wait(timeout)
