"""
=============================================================================
HTTP STATUS CODES
=============================================================================

The fixed set of status codes this server emits, with their reason phrases.

=============================================================================
STATUS LINE
=============================================================================

    HTTP/1.0 404 Not Found\r\n
    ───┬──── ─┬─ ────┬────
       │      │      │
    Version  Code  Reason phrase (looked up in STATUS_REASONS)

The status code travels through the server as a string token ("404"), the
same way it appears on the wire. The reason phrase is derived from the table
below; a code the table does not know still produces a valid status line
with the phrase "UNKNOWN".

    ┌────────┬───────────────────────────────────────────────────────────┐
    │  Code  │ Used for                                                  │
    ├────────┼───────────────────────────────────────────────────────────┤
    │  200   │ File or directory index served                            │
    │  400   │ Request could not be parsed, or path is unrepresentable   │
    │  401   │ Reserved (never produced by the static pipeline)          │
    │  403   │ Path traversal attempt                                    │
    │  404   │ Resource missing (not-found.html served when present)     │
    │  418   │ Reserved                                                  │
    │  500   │ Resource exists but could not be read                     │
    └────────┴───────────────────────────────────────────────────────────┘

=============================================================================
"""

from enum import Enum
from types import MappingProxyType


class HTTPStatus(str, Enum):
    """
    Status codes emitted by the server.

    A str-valued enum, so members compare equal to their wire token:

        >>> HTTPStatus.NOT_FOUND == "404"
        True
        >>> HTTPStatus.NOT_FOUND.phrase
        'Not Found'
    """

    OK = "200"
    BAD_REQUEST = "400"
    UNAUTHORIZED = "401"
    FORBIDDEN = "403"
    NOT_FOUND = "404"
    IM_A_TEAPOT = "418"                 # RFC 2324 April Fools joke :)
    INTERNAL_SERVER_ERROR = "500"

    def __str__(self) -> str:
        return self.value

    @property
    def phrase(self) -> str:
        """Reason phrase for this status code."""
        return reason_phrase(self.value)

    @property
    def is_error(self) -> bool:
        """True for 4xx and 5xx codes."""
        return int(self.value) >= 400


# =============================================================================
# REASON PHRASES
# =============================================================================
#
# Read-only for the life of the process. MappingProxyType makes any attempt
# to mutate the table raise TypeError, so every worker thread can share it
# without locking.
#
# =============================================================================

STATUS_REASONS = MappingProxyType({
    "200": "OK",
    "400": "Bad Request",
    "401": "Unauthorized",
    "403": "Forbidden",
    "404": "Not Found",
    "500": "Internal Server Error",
    "418": "I'm a teapot",
})

UNKNOWN_REASON = "UNKNOWN"


def reason_phrase(status_code: str) -> str:
    """
    Look up the reason phrase for a status code token.

    Args:
        status_code: Status code as it appears on the wire, e.g. "404".

    Returns:
        The reason phrase, or "UNKNOWN" if the code is not in the table.

    Examples:
        >>> reason_phrase("200")
        'OK'
        >>> reason_phrase("299")
        'UNKNOWN'
    """
    return STATUS_REASONS.get(str(status_code), UNKNOWN_REASON)
