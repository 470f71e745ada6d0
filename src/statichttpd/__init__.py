"""
=============================================================================
STATICHTTPD - Minimal HTTP/1.0 Static File Server
=============================================================================

Serves the files under one directory over raw TCP sockets, speaking just
enough HTTP/1.0 to do it: one request per connection, hand-parsed request
line and headers, byte-exact responses.

=============================================================================
PROJECT OVERVIEW
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   1. RAW SOCKET PROGRAMMING                       core/             │
    │      - TCP socket creation and binding                              │
    │      - Accept loop, one thread per connection                       │
    │                                                                      │
    │   2. HTTP/1.0 PROTOCOL                            http/             │
    │      - Line-oriented request parsing                                │
    │      - Path resolution confined to the document root                │
    │      - Response building and serialization                          │
    │                                                                      │
    │   3. STATIC CONTENT                               handlers/         │
    │      - Directory → index.html                                       │
    │      - Extension → Content-Type                                     │
    │      - not-found.html for 404s                                      │
    │                                                                      │
    │   4. OPERATIONS                                                      │
    │      - Config from CLI and environment            config.py         │
    │      - Access log, text or JSON                   access_log.py     │
    │      - Probe client                               client.py         │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
QUICK START
=============================================================================

    from statichttpd import HTTPServer, ServerConfig

    server = HTTPServer(ServerConfig(port=8080, document_root="./public"))
    server.run()

or from the shell:

    python -m statichttpd --root ./public --port 8080

=============================================================================
"""

__version__ = "1.0.0"

from .server import HTTPServer
from .config import ServerConfig

__all__ = ["HTTPServer", "ServerConfig", "__version__"]
