"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

Centralized configuration for the static file server.

=============================================================================
CONFIGURATION SOURCES
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    CONFIGURATION HIERARCHY                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   Priority (highest to lowest):                                     │
    │                                                                      │
    │   1. Command-line arguments                                         │
    │      └── python -m statichttpd --port 3000                         │
    │                                                                      │
    │   2. Environment variables                                          │
    │      └── HTTP_PORT=3000 python -m statichttpd                      │
    │                                                                      │
    │   3. Default values (in this dataclass)                            │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Everything is validated once, at startup. A bad port or a document root
that does not exist stops the server before it binds, instead of showing up
as 404s on every request.

=============================================================================
"""

from dataclasses import dataclass
from typing import Optional
import logging
import os


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
LOG_FORMATS = ("text", "json")


@dataclass
class ServerConfig:
    """
    Configuration for the HTTP server.

    =========================================================================
    CONFIGURATION GROUPS
    =========================================================================

    NETWORK SETTINGS
    - host, port, backlog, timeout

    CONTENT
    - document_root, index_file, not_found_file

    LOGGING
    - log_level, log_format

    =========================================================================
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    host: str = "127.0.0.1"
    """
    The IP address to bind to.
    - "127.0.0.1" - Localhost only (development)
    - "0.0.0.0" - All network interfaces
    """

    port: int = 8080
    """
    The port number to listen on. 0 lets the OS pick a free port.
    """

    backlog: int = 128
    """
    Maximum number of queued connections waiting for accept().
    """

    timeout: Optional[float] = 30.0
    """
    Per-connection socket timeout in seconds, for reads and writes.
    None = block forever on a client that stops sending.
    """

    # ─────────────────────────────────────────────────────────────────────
    # CONTENT
    # ─────────────────────────────────────────────────────────────────────

    document_root: str = "./public"
    """
    Directory served to clients. Nothing outside it is ever read.
    """

    index_file: str = "index.html"
    """
    File served when a request names a directory.
    """

    not_found_file: str = "not-found.html"
    """
    Page at the document root served with 404 when present.
    """

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"
    """
    Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
    """

    log_format: str = "text"
    """
    Access log format: 'text' (common-log style) or 'json'.
    """

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        Create configuration from environment variables.

        =====================================================================
        ENVIRONMENT VARIABLES
        =====================================================================

        HTTP_HOST        Server host (default: 127.0.0.1)
        HTTP_PORT        Server port (default: 8080)
        HTTP_ROOT        Document root (default: ./public)
        HTTP_TIMEOUT     Socket timeout in seconds, 0 disables (default: 30)
        HTTP_LOG_LEVEL   Logging level (default: INFO)
        HTTP_LOG_FORMAT  text or json (default: text)

        =====================================================================

        Raises:
            ValueError: A numeric variable does not parse.
        """
        timeout = float(os.getenv("HTTP_TIMEOUT", "30"))

        return cls(
            host=os.getenv("HTTP_HOST", "127.0.0.1"),
            port=int(os.getenv("HTTP_PORT", "8080")),
            document_root=os.getenv("HTTP_ROOT", "./public"),
            timeout=timeout or None,
            log_level=os.getenv("HTTP_LOG_LEVEL", "INFO").upper(),
            log_format=os.getenv("HTTP_LOG_FORMAT", "text").lower(),
        )

    @property
    def numeric_log_level(self) -> int:
        return getattr(logging, self.log_level.upper())

    def validate(self) -> None:
        """
        Validate configuration values (fail fast, at startup).

        Raises:
            ValueError: Describing the first invalid value found.
        """
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.backlog < 1:
            raise ValueError("backlog must be >= 1")

        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be > 0 (or None to disable)")

        if self.log_level.upper() not in LOG_LEVELS:
            raise ValueError(
                f"Invalid log level: {self.log_level}. Must be one of {', '.join(LOG_LEVELS)}."
            )

        if self.log_format not in LOG_FORMATS:
            raise ValueError(
                f"Invalid log format: {self.log_format}. Must be one of {', '.join(LOG_FORMATS)}."
            )

        if not self.index_file or "/" in self.index_file:
            raise ValueError(f"index_file must be a plain file name: {self.index_file!r}")

        if not os.path.isdir(self.document_root):
            raise ValueError(f"Document root is not a directory: {self.document_root}")
