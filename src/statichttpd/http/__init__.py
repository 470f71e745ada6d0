"""
=============================================================================
HTTP PROTOCOL IMPLEMENTATION
=============================================================================

The protocol engine: everything between raw bytes from TCP and the bytes
written back. Nothing in this package touches a socket.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   bytes ──► request.py ──► HTTPRequest                              │
    │                               │ .path                               │
    │                               ▼                                      │
    │                           paths.py ──► absolute path inside root    │
    │                                                                      │
    │   (handlers/ turns the path into a file + content type)             │
    │                                                                      │
    │   body + type ──► response.py ──► HTTPResponse ──► bytes            │
    │                        ▲                                             │
    │          status_codes.py, mime_types.py (read-only tables)          │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

from .request import (
    HTTPRequest,
    RequestParser,
    HTTPParseError,
    MalformedRequestLine,
    MalformedHeader,
    MissingContentLength,
    InvalidContentLength,
    TruncatedBody,
    IncompleteRequest,
    parse_request,
)
from .response import (
    HTTPResponse,
    build_response,
    text_response,
    serialize_response,
    format_http_date,
)
from .paths import PathRejected, TraversalRejected, UnrepresentablePath, resolve_path
from .status_codes import HTTPStatus, STATUS_REASONS, reason_phrase
from .mime_types import MIME_TYPES, DEFAULT_MIME_TYPE, get_mime_type


__all__ = [
    # Request parsing
    "HTTPRequest",
    "RequestParser",
    "HTTPParseError",
    "MalformedRequestLine",
    "MalformedHeader",
    "MissingContentLength",
    "InvalidContentLength",
    "TruncatedBody",
    "IncompleteRequest",
    "parse_request",

    # Response building
    "HTTPResponse",
    "build_response",
    "text_response",
    "serialize_response",
    "format_http_date",

    # Path resolution
    "PathRejected",
    "TraversalRejected",
    "UnrepresentablePath",
    "resolve_path",

    # Tables
    "HTTPStatus",
    "STATUS_REASONS",
    "reason_phrase",
    "MIME_TYPES",
    "DEFAULT_MIME_TYPE",
    "get_mime_type",
]
