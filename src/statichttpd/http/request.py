"""
=============================================================================
HTTP REQUEST PARSER
=============================================================================

Reads an HTTP/1.0 request off a buffered byte stream, one CRLF-terminated
line at a time, and turns it into a structured HTTPRequest.

=============================================================================
HTTP REQUEST ANATOMY
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                     HTTP REQUEST STRUCTURE                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │  ┌─ REQUEST LINE (line 0) ────────────────────────────────────────┐ │
    │  │    GET /images/cat.jpg HTTP/1.0\r\n                            │ │
    │  │    ─┬─ ───────┬─────── ────┬───                                │ │
    │  │   Method     Path       Version      (exactly three tokens)    │ │
    │  └─────────────────────────────────────────────────────────────────┘ │
    │                                                                      │
    │  ┌─ HEADERS (lines 1..n) ─────────────────────────────────────────┐ │
    │  │    User-Agent: curl/8.0\r\n       → "user-agent": "curl/8.0"   │ │
    │  │    Content-Length: 5\r\n          → "content-length": "5"      │ │
    │  └─────────────────────────────────────────────────────────────────┘ │
    │                                                                      │
    │  ┌─ BLANK LINE ───────────────────────────────────────────────────┐ │
    │  │    \r\n                           ← the literal two bytes      │ │
    │  └─────────────────────────────────────────────────────────────────┘ │
    │                                                                      │
    │  ┌─ BODY (only with a positive Content-Length) ───────────────────┐ │
    │  │    hello                          ← read with one exact read() │ │
    │  └─────────────────────────────────────────────────────────────────┘ │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
WHY LINE BY LINE?
=============================================================================

The parser consumes exactly the bytes that belong to the request and no
more. It never slurps the socket looking for \r\n\r\n: it calls readline()
until the blank separator, then read(n) for the body. A POST that is missing
its Content-Length is rejected the moment the blank line arrives, without
touching whatever the client sends next.

The blank line is recognised by comparing against the literal b"\r\n".
A bare b"\n" is NOT a separator; it is handled like any other line (and is
rejected as a malformed header).

=============================================================================
PARSE ERRORS
=============================================================================

    ┌──────────────────────────┬──────────────────────────────────────────┐
    │ Exception                │ Raised when                              │
    ├──────────────────────────┼──────────────────────────────────────────┤
    │ MalformedRequestLine     │ Request line is not three tokens         │
    │ MalformedHeader          │ Header line has no colon                 │
    │ MissingContentLength     │ POST without a Content-Length header     │
    │ InvalidContentLength     │ Content-Length not a 32-bit integer      │
    │ TruncatedBody            │ Stream ended before the declared length  │
    │ IncompleteRequest        │ Stream ended before the blank line       │
    └──────────────────────────┴──────────────────────────────────────────┘

All of them derive from HTTPParseError; the connection handler answers
every one with 400 Bad Request.

=============================================================================
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import BinaryIO, Mapping
import io
import re
import socket


# Request lines and headers are decoded byte-for-byte (every byte maps to
# exactly one character), so the path is kept exactly as it was sent.
HEADER_ENCODING = "iso-8859-1"

CRLF = b"\r\n"


# =============================================================================
# EXCEPTIONS
# =============================================================================

class HTTPParseError(Exception):
    """
    Raised when an HTTP request cannot be parsed.

    Base class for every parser failure. Callers that only care whether the
    request was well-formed catch this; the subclasses say why it was not.
    """


class MalformedRequestLine(HTTPParseError):
    """The request line does not split into method, path and version."""


class MalformedHeader(HTTPParseError):
    """A header line has no colon separator."""


class MissingContentLength(HTTPParseError):
    """A POST request arrived without a Content-Length header."""


class InvalidContentLength(HTTPParseError):
    """The Content-Length header is not an integer."""


class TruncatedBody(HTTPParseError):
    """The stream ended before the declared body length was read."""


class IncompleteRequest(HTTPParseError):
    """The stream ended (or timed out) before the blank separator line."""


# =============================================================================
# REQUEST
# =============================================================================

@dataclass(frozen=True)
class HTTPRequest:
    """
    A parsed HTTP request.

    Frozen: once the parser hands it over, nothing can change it. Headers
    are exposed through a read-only mapping for the same reason.

    Attributes:
        method:         Method token exactly as sent ("GET", "HEAD", ...).
        path:           Request target exactly as sent, NOT decoded or
                        sanitized. The path resolver does that.
        version:        Protocol version token ("HTTP/1.0").
        headers:        Lower-cased header name → trimmed value.
        body:           Body bytes; empty unless Content-Length was positive.
        client_address: (ip, port) of the peer, for logging.
    """

    method: str
    path: str
    version: str = "HTTP/1.0"
    headers: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    body: bytes = b""
    client_address: tuple[str, int] = ("", 0)

    @property
    def content_length(self) -> int:
        """Length of the body that was read."""
        return len(self.body)

    @property
    def user_agent(self) -> str:
        return self.headers.get("user-agent", "")

    def get_header(self, name: str, default: str = "") -> str:
        """
        Get a header value (case-insensitive lookup).

        Example:
            request.get_header("Content-Type")
            # Works because headers are stored lowercase
        """
        return self.headers.get(name.lower(), default)


# =============================================================================
# PARSER
# =============================================================================

class RequestParser:
    """
    Parses HTTP requests from a buffered binary stream.

    The stream needs two methods:

        readline() → bytes up to and including b"\\n" (b"" at end of stream)
        read(n)    → up to n bytes, fewer only at end of stream

    socket.makefile("rb") gives exactly that for a live connection, and
    io.BytesIO does for tests.

    ==========================================================================
    PARSER FLOW
    ==========================================================================

        readline() ──► line 0 ──► _parse_request_line() ──► method/path/version
            │
        readline() ──► line 1..n ──► _parse_header() ──► headers[name] = value
            │
        line == b"\\r\\n" ?
            │
            └──► _read_body() ──► HTTPRequest

    ==========================================================================
    """

    # Content-Length must be an optionally signed run of ASCII digits.
    # int() alone would also accept "1_000", " 5" or non-ASCII digits.
    CONTENT_LENGTH_PATTERN = re.compile(r"[+-]?[0-9]+")

    # Content-Length is a signed 32-bit value; anything wider is invalid
    MAX_CONTENT_LENGTH = 2**31 - 1

    # The body is read this many bytes at a time, so a large declared
    # length costs memory only as its bytes actually arrive.
    BODY_CHUNK_SIZE = 64 * 1024

    def parse(
        self,
        stream: BinaryIO,
        client_address: tuple[str, int] = ("", 0),
    ) -> HTTPRequest:
        """
        Read and parse one request from `stream`.

        Args:
            stream: Buffered binary stream positioned at the request line.
            client_address: Peer (ip, port), stored on the request.

        Returns:
            The parsed HTTPRequest.

        Raises:
            HTTPParseError: One of its subclasses, see the module docstring.
        """
        method = path = version = ""
        headers: dict[str, str] = {}
        line_number = 0

        while True:
            line = self._readline(stream)

            # ─────────────────────────────────────────────────────────────
            # BLANK LINE: headers are done
            # ─────────────────────────────────────────────────────────────
            if line == CRLF:
                if line_number == 0:
                    raise MalformedRequestLine("Empty request line")
                break

            content = _strip_line_ending(line)

            if line_number == 0:
                method, path, version = self._parse_request_line(content)
            else:
                name, value = self._parse_header(content.decode(HEADER_ENCODING))
                headers[name] = value  # a repeated header overwrites

            line_number += 1

        body = self._read_body(stream, method, headers)

        return HTTPRequest(
            method=method,
            path=path,
            version=version,
            headers=MappingProxyType(headers),
            body=body,
            client_address=client_address,
        )

    def _readline(self, stream: BinaryIO) -> bytes:
        """Read one line; end of stream or a timeout means the request is incomplete."""
        try:
            line = stream.readline()
        except (socket.timeout, TimeoutError) as e:
            raise IncompleteRequest(f"Timed out reading request headers: {e}")

        # A line without its "\n" only comes back at end of stream
        if not line.endswith(b"\n"):
            raise IncompleteRequest("Connection closed before end of headers")
        return line

    def _parse_request_line(self, line: bytes) -> tuple[str, str, str]:
        """
        Split the request line into (method, path, version).

            b"GET /index.html HTTP/1.0" → ("GET", "/index.html", "HTTP/1.0")

        Any run of ASCII whitespace separates tokens. Splitting happens on
        the raw bytes so a decoded 0xA0 inside the path is not mistaken for
        a separator. The tokens are returned exactly as sent; the version
        is not validated here.
        """
        parts = line.split()
        if len(parts) != 3:
            raise MalformedRequestLine(f"Malformed request line: {line!r}")

        method, path, version = (part.decode(HEADER_ENCODING) for part in parts)
        return method, path, version

    def _parse_header(self, line: str) -> tuple[str, str]:
        """
        Split a header line once on the first colon.

            "Content-Type:  text/html" → ("content-type", "text/html")
            "Host: example.com:8080"   → ("host", "example.com:8080")
        """
        name, sep, value = line.partition(":")
        if not sep:
            raise MalformedHeader(f"Malformed header line: {line!r}")
        return name.lower(), value.strip()

    def _read_body(
        self,
        stream: BinaryIO,
        method: str,
        headers: dict[str, str],
    ) -> bytes:
        """
        Read the body declared by Content-Length.

        ┌─────────────────────────────┬──────────────────────────────────┐
        │ Content-Length              │ Result                           │
        ├─────────────────────────────┼──────────────────────────────────┤
        │ absent, method POST         │ MissingContentLength             │
        │ absent, any other method    │ b"" (request complete)           │
        │ not an integer              │ InvalidContentLength             │
        │ outside signed 32 bits      │ InvalidContentLength             │
        │ zero or negative            │ b""                              │
        │ positive N                  │ exactly N bytes, or TruncatedBody│
        └─────────────────────────────┴──────────────────────────────────┘
        """
        raw_length = headers.get("content-length")

        if raw_length is None:
            if method == "POST":
                raise MissingContentLength("POST request without Content-Length")
            return b""

        if not self.CONTENT_LENGTH_PATTERN.fullmatch(raw_length):
            raise InvalidContentLength(f"Invalid Content-Length: {raw_length!r}")

        length = int(raw_length)
        if not -self.MAX_CONTENT_LENGTH - 1 <= length <= self.MAX_CONTENT_LENGTH:
            raise InvalidContentLength(f"Content-Length out of range: {raw_length!r}")
        if length <= 0:
            return b""

        chunks = []
        received = 0
        try:
            while received < length:
                chunk = stream.read(min(length - received, self.BODY_CHUNK_SIZE))
                if not chunk:
                    break
                chunks.append(chunk)
                received += len(chunk)
        except (socket.timeout, TimeoutError) as e:
            raise TruncatedBody(f"Timed out reading body: {e}")

        if received < length:
            raise TruncatedBody(
                f"Incomplete body: expected {length} bytes, got {received}"
            )
        return b"".join(chunks)


def _strip_line_ending(line: bytes) -> bytes:
    if line.endswith(CRLF):
        return line[:-2]
    return line[:-1]


# =============================================================================
# CONVENIENCE FUNCTION
# =============================================================================

def parse_request(
    data: bytes,
    client_address: tuple[str, int] = ("", 0),
) -> HTTPRequest:
    """
    Parse a complete request held in memory.

    Wraps `data` in io.BytesIO and runs RequestParser over it. Bytes after
    the declared body are ignored.

    Example:
        request = parse_request(b"GET / HTTP/1.0\\r\\n\\r\\n")
        request.path  # "/"
    """
    return RequestParser().parse(io.BytesIO(data), client_address)
