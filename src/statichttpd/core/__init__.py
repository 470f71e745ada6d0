"""
=============================================================================
CORE SERVER COMPONENTS
=============================================================================

The networking plumbing under the HTTP layer.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                         SOCKET SERVER                                │
    │  ─────────────────────────────────────────────────────────────────  │
    │  • Creates, binds and listens on the TCP socket                     │
    │  • Runs the accept() loop                                           │
    │  • Starts one worker thread per accepted connection                 │
    │  • Handles graceful shutdown via signals (SIGTERM, SIGINT)         │
    └─────────────────────────────────────────────────────────────────────┘
                                    │
                                    │ One thread per connection
                                    ▼
    ┌─────────────────────────────────────────────────────────────────────┐
    │                          CONNECTION                                  │
    │  ─────────────────────────────────────────────────────────────────  │
    │  • Wraps a client socket: timeout, buffered reader, sendall         │
    │  • Tracks state (READING → PARSED → RESOLVING → RESPONDING → CLOSED)│
    │  • Closes gracefully (shutdown, drain, close)                       │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

from .socket_server import SocketServer
from .connection import Connection, ConnectionState

__all__ = [
    "SocketServer",     # TCP listener - accepts connections
    "Connection",       # Wrapper for client socket - handles I/O
    "ConnectionState",  # Enum for connection lifecycle states
]
