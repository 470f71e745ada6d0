"""
=============================================================================
HTTP RESPONSE BUILDER AND SERIALIZER
=============================================================================

Builds HTTP/1.0 responses and turns them into the exact bytes written to
the socket.

=============================================================================
HTTP RESPONSE ANATOMY
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                     HTTP RESPONSE STRUCTURE                         │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │  ┌─ STATUS LINE ──────────────────────────────────────────────────┐ │
    │  │    HTTP/1.0 200 OK\r\n                                         │ │
    │  │    ────┬─── ─┬─ ─┬─                                            │ │
    │  │    Version  Code Reason                                        │ │
    │  └─────────────────────────────────────────────────────────────────┘ │
    │                                                                      │
    │  ┌─ HEADERS (always these three, always in this order) ───────────┐ │
    │  │    Content-Type: image/jpeg\r\n                                │ │
    │  │    Content-Length: 5120\r\n                                    │ │
    │  │    Date: Sun, 18 Oct 2026 12:00:00 GMT\r\n                     │ │
    │  └─────────────────────────────────────────────────────────────────┘ │
    │                                                                      │
    │  ┌─ EMPTY LINE ───────────────────────────────────────────────────┐ │
    │  │    \r\n                                                         │ │
    │  └─────────────────────────────────────────────────────────────────┘ │
    │                                                                      │
    │  ┌─ BODY ─────────────────────────────────────────────────────────┐ │
    │  │    <raw file bytes, never decoded or re-encoded>               │ │
    │  └─────────────────────────────────────────────────────────────────┘ │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
TEXT HEAD, BINARY BODY
=============================================================================

Only the status line and headers are text. They are encoded ISO-8859-1 and
the body is concatenated afterwards as opaque bytes, so a JPEG goes out
exactly as it sits on disk:

    head = "HTTP/1.0 200 OK\r\n...\r\n\r\n".encode("iso-8859-1")
    wire = head + body

=============================================================================
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Mapping, Optional

from .mime_types import DEFAULT_MIME_TYPE
from .request import HEADER_ENCODING
from .status_codes import UNKNOWN_REASON, reason_phrase


# The only protocol version this server speaks
VERSION = "HTTP/1.0"


@dataclass(frozen=True)
class HTTPResponse:
    """
    An HTTP response, ready to be serialized.

    Built once by build_response() and never changed afterwards. The
    headers mapping is read-only and keeps insertion order, which is the
    order the headers appear on the wire.

    =========================================================================
    RESPONSE LIFECYCLE
    =========================================================================

        build_response()          to_bytes()              sendall()
        ─────────────────►  HTTPResponse  ─────────►  bytes  ─────────►  client

    =========================================================================
    """

    status: str
    reason: str = UNKNOWN_REASON
    headers: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    body: bytes = b""
    version: str = VERSION

    @property
    def status_line(self) -> str:
        """
        Format: HTTP-VERSION SP STATUS-CODE SP REASON-PHRASE
        Example: "HTTP/1.0 404 Not Found"
        """
        return f"{self.version} {self.status} {self.reason}"

    @property
    def content_type(self) -> str:
        return self.headers.get("Content-Type", "")

    def to_bytes(self, include_body: bool = True) -> bytes:
        """
        Serialize the response to bytes for sending over a socket.

        =====================================================================
        SERIALIZATION FORMAT
        =====================================================================

            HTTP/1.0 200 OK\\r\\n              ← Status line
            Content-Type: text/html\\r\\n
            Content-Length: 2\\r\\n
            Date: Sun, 18 Oct 2026 ...\\r\\n
            \\r\\n                             ← Empty line (separator)
            hi                                 ← Body bytes

        =====================================================================

        The output is deterministic: the same response always serializes to
        the same bytes.

        Args:
            include_body: False leaves the body off (HEAD requests). The
                          headers are unchanged, so Content-Length still
                          describes the entity.

        Returns:
            Complete HTTP response as bytes ready for socket.sendall()
        """
        lines = [self.status_line]
        for name, value in self.headers.items():
            lines.append(f"{name}: {value}")

        # Empty line separates headers from body
        lines.append("")
        head = ("\r\n".join(lines) + "\r\n").encode(HEADER_ENCODING)

        if not include_body:
            return head
        return head + self.body


# =============================================================================
# BUILDER
# =============================================================================

def build_response(
    content_type: str,
    body: bytes,
    status_code: str,
    now: Optional[datetime] = None,
) -> HTTPResponse:
    """
    Build a response with its computed headers.

    ┌────────────────┬─────────────────────────────────────────────────────┐
    │ Header         │ Value                                               │
    ├────────────────┼─────────────────────────────────────────────────────┤
    │ Content-Type   │ content_type, or application/octet-stream if empty │
    │ Content-Length │ len(body), exactly                                  │
    │ Date           │ now (default: current time), as an HTTP-date       │
    └────────────────┴─────────────────────────────────────────────────────┘

    The status code is not validated: an unknown code still gives a
    well-formed response with the reason "UNKNOWN".

    Args:
        content_type: Content type of the body ("" for the default).
        body: Body bytes.
        status_code: Status code token, e.g. "200" or HTTPStatus.OK.
        now: Time for the Date header; pinned by tests.

    Returns:
        A frozen HTTPResponse.
    """
    status = str(status_code)
    if now is None:
        now = datetime.now(timezone.utc)

    headers = {
        "Content-Type": content_type or DEFAULT_MIME_TYPE,
        "Content-Length": str(len(body)),
        "Date": format_http_date(now),
    }

    return HTTPResponse(
        status=status,
        reason=reason_phrase(status),
        headers=MappingProxyType(headers),
        body=body,
    )


def text_response(status_code: str, message: Optional[str] = None) -> HTTPResponse:
    """
    Plain-text response whose body is the message (default: the reason).

        text_response(HTTPStatus.FORBIDDEN)  →  403, text/plain, b"Forbidden"
    """
    if message is None:
        message = reason_phrase(str(status_code))
    return build_response("text/plain", message.encode("utf-8"), status_code)


def serialize_response(response: HTTPResponse, include_body: bool = True) -> bytes:
    """Module-level spelling of HTTPResponse.to_bytes()."""
    return response.to_bytes(include_body=include_body)


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================

def format_http_date(dt: datetime) -> str:
    """
    Format a datetime as an HTTP-date (RFC 7231).

    Format: Day, DD Mon YYYY HH:MM:SS GMT
    Example: Sun, 18 Oct 2026 12:00:00 GMT

    HTTP dates are ALWAYS in GMT. An aware datetime is converted to UTC
    first; a naive one is taken to be UTC already.

    Names are spelled out here rather than taken from strftime, whose %a and
    %b follow the process locale.
    """
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc)

    # Weekday names (0=Monday in Python's datetime)
    days = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]

    # Month names (1-indexed, so we subtract 1)
    months = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
              "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]

    return (
        f"{days[dt.weekday()]}, "
        f"{dt.day:02d} {months[dt.month - 1]} {dt.year:04d} "
        f"{dt.hour:02d}:{dt.minute:02d}:{dt.second:02d} GMT"
    )
