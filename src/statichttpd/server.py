"""
=============================================================================
STATIC FILE SERVER
=============================================================================

Ties the pieces together: the listener hands each connection to a worker
thread, and the worker runs one request/response exchange start to finish.

=============================================================================
ARCHITECTURE OVERVIEW
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │                        ┌─────────────────┐                          │
    │                        │   HTTPServer    │                          │
    │                        └────────┬────────┘                          │
    │                                 │                                    │
    │            ┌────────────────────┼────────────────────┐              │
    │            ▼                    ▼                    ▼              │
    │    ┌──────────────┐    ┌──────────────┐    ┌──────────────┐        │
    │    │ SocketServer │    │RequestParser │    │  StaticSite  │        │
    │    │  (listener)  │    │  (protocol)  │    │   (files)    │        │
    │    └──────┬───────┘    └──────────────┘    └──────────────┘        │
    │           │ one thread per connection                               │
    │           ▼                                                          │
    │    ┌──────────────┐                                                 │
    │    │  Connection  │                                                 │
    │    └──────────────┘                                                 │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
REQUEST LIFECYCLE (one worker thread)
=============================================================================

    READING      parser reads request line, headers, body
    PARSED       HTTPRequest is available
    RESOLVING    resolve_path() → StaticSite.locate() → StaticSite.load()
    RESPONDING   build_response() → to_bytes() → sendall()
    CLOSED       shutdown, drain, close

=============================================================================
FAILURE → STATUS (the only place this mapping exists)
=============================================================================

    ┌────────────────────────────┬──────────────────────────────────────────┐
    │ Failure                    │ Response                                 │
    ├────────────────────────────┼──────────────────────────────────────────┤
    │ HTTPParseError             │ 400 text/plain "Bad Request"             │
    │ TraversalRejected          │ 403 text/plain "Forbidden"               │
    │ UnrepresentablePath        │ 400 text/plain "Bad Request"             │
    │ ResourceNotFound           │ 404 not-found.html, or "Not Found"       │
    │ ResourceUnreadable         │ 500 text/plain "Internal Server Error"   │
    │ anything else              │ 500 text/plain "Internal Server Error"   │
    └────────────────────────────┴──────────────────────────────────────────┘

Exactly one response per connection, then the connection is closed. A
client that disappears before the response is written is logged and the
worker simply ends.

=============================================================================
"""

from typing import Optional
import logging
import time

from .access_log import AccessLog, AccessLogger, format_timestamp
from .config import ServerConfig
from .core import Connection, ConnectionState, SocketServer
from .handlers import ResourceNotFound, ResourceUnreadable, StaticSite
from .http import (
    HTTPParseError,
    HTTPRequest,
    HTTPResponse,
    HTTPStatus,
    RequestParser,
    TraversalRejected,
    UnrepresentablePath,
    build_response,
    resolve_path,
    text_response,
)


logger = logging.getLogger(__name__)


class HTTPServer:
    """
    HTTP/1.0 static file server.

    =========================================================================
    USAGE
    =========================================================================

        server = HTTPServer(ServerConfig(port=8080, document_root="./public"))
        server.run()          # blocks until SIGINT/SIGTERM or shutdown()

    From another thread (tests):

        thread = threading.Thread(target=server.run, daemon=True)
        thread.start()
        server.wait_until_ready(5.0)
        ...
        server.shutdown()

    =========================================================================
    """

    def __init__(self, config: Optional[ServerConfig] = None):
        """
        Args:
            config: Server configuration. Defaults are used when omitted.

        Raises:
            ValueError: The configuration is invalid.
        """
        self.config = config or ServerConfig()
        self.config.validate()  # Fail fast, before anything binds

        self._socket_server = SocketServer(self.config)
        self._parser = RequestParser()
        self._site = StaticSite(
            self.config.document_root,
            index_file=self.config.index_file,
            not_found_file=self.config.not_found_file,
        )
        self._access = AccessLogger(log_format=self.config.log_format)

        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def address(self) -> tuple[str, int]:
        """Bound (host, port); the real port once the server listens."""
        return self._socket_server.address

    @property
    def site(self) -> StaticSite:
        return self._site

    # =========================================================================
    # SERVER LIFECYCLE
    # =========================================================================

    def run(self):
        """
        Start the server (blocking).

        Raises:
            OSError: The listening address could not be bound.
        """
        self._setup_logging()
        self._running = True

        logger.info(
            f"Serving {self._site.document_root} on {self.config.host}:{self.config.port}"
        )

        try:
            self._socket_server.start(self._process_connection)
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        finally:
            self._running = False
            logger.info("Server stopped")

    def shutdown(self):
        """Stop accepting connections. Workers finish their exchange."""
        self._socket_server.shutdown()

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        return self._socket_server.wait_until_ready(timeout)

    def _setup_logging(self):
        """Configure logging based on config."""
        level = self.config.numeric_log_level

        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

        logging.getLogger("statichttpd").setLevel(level)

    # =========================================================================
    # REQUEST HANDLING (runs in the connection's own thread)
    # =========================================================================

    def _process_connection(self, conn: Connection):
        """
        Run one request/response exchange on `conn`, then close it.

        Every exception is caught here and turned into a response; nothing
        escapes the worker thread.
        """
        start_time = time.time()
        request: Optional[HTTPRequest] = None

        with conn:  # Context manager ensures the connection is closed
            try:
                conn.state = ConnectionState.READING
                request = self._parser.parse(conn.reader, conn.address)
                conn.state = ConnectionState.PARSED

                response = self._serve(conn, request)

            except HTTPParseError as e:
                logger.info(f"[{conn.id}] Bad request: {e}")
                response = text_response(HTTPStatus.BAD_REQUEST)

            except TraversalRejected as e:
                logger.warning(f"[{conn.id}] {e}")
                response = text_response(HTTPStatus.FORBIDDEN)

            except UnrepresentablePath as e:
                logger.info(f"[{conn.id}] {e}")
                response = text_response(HTTPStatus.BAD_REQUEST)

            except ResourceNotFound as e:
                logger.debug(f"[{conn.id}] {e}")
                response = self._not_found(conn)

            except ResourceUnreadable as e:
                logger.error(f"[{conn.id}] {e}")
                response = text_response(HTTPStatus.INTERNAL_SERVER_ERROR)

            except ConnectionError as e:
                # Reset or closed mid-request: nobody is left to answer
                logger.warning(f"[{conn.id}] Client went away: {e}")
                return

            except Exception as e:
                logger.exception(f"[{conn.id}] Unexpected error: {e}")
                response = text_response(HTTPStatus.INTERNAL_SERVER_ERROR)

            # ─────────────────────────────────────────────────────────────
            # SEND THE ONE RESPONSE
            # ─────────────────────────────────────────────────────────────
            include_body = request is None or request.method != "HEAD"
            conn.send_response(response.to_bytes(include_body=include_body))

            self._log_access(conn, request, response, start_time)

    def _serve(self, conn: Connection, request: HTTPRequest) -> HTTPResponse:
        """
        Resolve, locate and load the requested file.

        Every method is served the same way; GET, POST and PUT all fetch
        the file. HEAD differs only at serialization time.
        """
        conn.state = ConnectionState.RESOLVING

        resolved = resolve_path(request.path, self._site.document_root)
        resource = self._site.locate(resolved)
        body = self._site.load(resource)

        logger.debug(f"[{conn.id}] {request.method} {request.path} -> {resource.path}")
        return build_response(resource.content_type, body, HTTPStatus.OK)

    def _not_found(self, conn: Connection) -> HTTPResponse:
        """404 with the custom page when there is one; 500 if it can't be read."""
        page = self._site.not_found_page()
        if page is None:
            return text_response(HTTPStatus.NOT_FOUND)

        try:
            body = self._site.load(page)
        except ResourceUnreadable as e:
            logger.error(f"[{conn.id}] {e}")
            return text_response(HTTPStatus.INTERNAL_SERVER_ERROR)

        return build_response(page.content_type, body, HTTPStatus.NOT_FOUND)

    def _log_access(
        self,
        conn: Connection,
        request: Optional[HTTPRequest],
        response: HTTPResponse,
        start_time: float,
    ):
        duration_ms = (time.time() - start_time) * 1000

        self._access.log(AccessLog(
            connection_id=conn.id,
            method=request.method if request else "-",
            path=request.path if request else "-",
            client_ip=conn.client_ip,
            user_agent=(request.user_agent if request else "") or "-",
            status_code=response.status,
            content_length=len(response.body),
            duration_ms=duration_ms,
            timestamp=format_timestamp(),
        ))
