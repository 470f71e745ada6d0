"""
=============================================================================
STATICHTTPD CLI ENTRY POINT
=============================================================================

Command-line interface for running the static file server.

=============================================================================
USAGE
=============================================================================

    # Serve ./public on localhost:8080
    python -m statichttpd

    # Another directory and port
    python -m statichttpd --root /srv/www --port 3000

    # Listen on all interfaces (for containers)
    python -m statichttpd --host 0.0.0.0

    # No socket timeout, JSON access log
    python -m statichttpd --timeout 0 --log-format json

Every option falls back to its environment variable (HTTP_HOST, HTTP_PORT,
HTTP_ROOT, HTTP_TIMEOUT, HTTP_LOG_LEVEL, HTTP_LOG_FORMAT) and then to the
built-in default. See ServerConfig.from_env().

=============================================================================
EXIT STATUS
=============================================================================

    0   Server stopped normally (Ctrl+C / SIGTERM)
    1   The address could not be bound
    2   Invalid arguments or configuration

=============================================================================
"""

import argparse
import logging
import sys

from . import __version__
from .config import LOG_FORMATS, LOG_LEVELS, ServerConfig
from .server import HTTPServer


logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """
    Build the argument parser.

    Defaults are None so that an option the user did not give can fall back
    to the environment.
    """
    parser = argparse.ArgumentParser(
        prog="statichttpd",
        description="Minimal HTTP/1.0 static file server",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m statichttpd                        # ./public on 127.0.0.1:8080
  python -m statichttpd --root /srv/www        # Another document root
  python -m statichttpd --host 0.0.0.0 -p 80   # All interfaces, port 80
  python -m statichttpd --log-format json      # JSON access log
        """
    )

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--host", "-H",
        default=None,
        help="Host to bind to (default: 127.0.0.1, use 0.0.0.0 for containers)"
    )

    parser.add_argument(
        "--port", "-p",
        type=int,
        default=None,
        help="Port to listen on (default: 8080)"
    )

    parser.add_argument(
        "--timeout", "-t",
        type=float,
        default=None,
        help="Per-connection socket timeout in seconds, 0 disables (default: 30)"
    )

    # ─────────────────────────────────────────────────────────────────────
    # CONTENT ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--root", "-r",
        default=None,
        help="Document root to serve (default: ./public)"
    )

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--log-level", "-l",
        choices=LOG_LEVELS,
        type=str.upper,
        default=None,
        help="Logging level (default: INFO)"
    )

    parser.add_argument(
        "--log-format",
        choices=LOG_FORMATS,
        default=None,
        help="Access log format (default: text)"
    )

    # ─────────────────────────────────────────────────────────────────────
    # META ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"statichttpd {__version__}"
    )

    return parser


def build_config(args: argparse.Namespace) -> ServerConfig:
    """
    Merge CLI arguments over the environment.

    Raises:
        ValueError: An environment variable does not parse.
    """
    config = ServerConfig.from_env()

    if args.host is not None:
        config.host = args.host
    if args.port is not None:
        config.port = args.port
    if args.root is not None:
        config.document_root = args.root
    if args.timeout is not None:
        config.timeout = args.timeout or None  # 0 disables
    if args.log_level is not None:
        config.log_level = args.log_level
    if args.log_format is not None:
        config.log_format = args.log_format

    return config


def main(argv=None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        server = HTTPServer(build_config(args))
    except ValueError as e:
        parser.error(str(e))  # exits with status 2

    # This blocks until Ctrl+C is pressed
    try:
        server.run()
    except OSError as e:
        logger.error(f"Cannot start server: {e}")
        sys.exit(1)


# This allows running: python -m statichttpd
if __name__ == "__main__":
    main()
