"""
=============================================================================
PATH RESOLVER
=============================================================================

Turns the path a client sent into an absolute filesystem path that is
guaranteed to lie inside the document root, or rejects it.

=============================================================================
SECURITY: PATH TRAVERSAL ATTACK
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │  GET /../../etc/passwd HTTP/1.0                                     │
    │                                                                      │
    │  Joined naively onto /srv/public this becomes:                      │
    │  /srv/public/../../etc/passwd  →  /etc/passwd   (SECURITY BREACH!)  │
    └─────────────────────────────────────────────────────────────────────┘

The resolver applies two independent checks:

    1. The raw path (and its percent-decoded form) may not contain ".."
       anywhere. This happens before any normalization.

    2. After normalizing and joining, the absolute result must be the root
       itself or start with root + separator.

=============================================================================
WHY "root + separator" AND NOT A PLAIN PREFIX?
=============================================================================

    root     = /srv/public
    resolved = /srv/public2/secret.txt

    resolved.startswith(root)            → True   (WRONG!)
    resolved.startswith(root + "/")      → False  (correct)

A bare string-prefix test lets a sibling directory whose name merely
begins with the root's name pass as "inside". The separator-aware test
does not.

=============================================================================
"""

import os
import posixpath
from urllib.parse import unquote_to_bytes

from .request import HEADER_ENCODING


class PathRejected(Exception):
    """Base class for request paths that cannot be served."""


class TraversalRejected(PathRejected):
    """The path tries to escape the document root."""


class UnrepresentablePath(PathRejected):
    """The path cannot be turned into a filesystem path at all."""


def _contained(path: str, root: str) -> bool:
    """True if `path` is `root` or lies below it (separator-aware)."""
    if path == root:
        return True
    prefix = root if root.endswith(os.sep) else root + os.sep
    return path.startswith(prefix)


def resolve_path(request_path: str, document_root: str) -> str:
    """
    Resolve a client-supplied path against the document root.

    =========================================================================
    POLICY (in order)
    =========================================================================

        "/docs/a%20b.html?x=1"
              │
              ├──► drop "?query" and "#fragment"   → "/docs/a%20b.html"
              ├──► back to wire bytes, percent-decode,
              │    filesystem-decode               → "/docs/a b.html"
              ├──► ".." anywhere (raw or decoded)? → TraversalRejected
              ├──► NUL byte?                       → UnrepresentablePath
              ├──► normalize, strip leading "/"    → "docs/a b.html"
              ├──► join onto root, make absolute   → "/srv/public/docs/a b.html"
              └──► inside root (separator-aware)?  → return it
                                                     else TraversalRejected

    =========================================================================

    Pure function: the same (request_path, document_root) always gives the
    same answer. The filesystem is never touched, so symlinks are not
    followed here.

    Args:
        request_path: Path exactly as it appeared on the request line, each
                      byte decoded as ISO-8859-1 (how the parser decodes it).
        document_root: Directory that every servable file lives under.

    Returns:
        Absolute path equal to the root or below it.

    Raises:
        TraversalRejected: The path contains ".." or escapes the root.
        UnrepresentablePath: The path cannot name a file.
    """
    # ".." is refused before any normalization happens
    if ".." in request_path:
        raise TraversalRejected(f"Path traversal attempt: {request_path!r}")

    raw_path = request_path.split("#", 1)[0].split("?", 1)[0]
    # Raw and percent-encoded bytes get the same treatment: together they
    # form the file name, decoded the way the OS decodes file names.
    try:
        decoded = os.fsdecode(unquote_to_bytes(raw_path.encode(HEADER_ENCODING)))
    except UnicodeError as e:
        raise UnrepresentablePath(f"Cannot decode {request_path!r}: {e}")

    # "%2e%2e" only turns into ".." after decoding
    if ".." in decoded:
        raise TraversalRejected(f"Path traversal attempt: {request_path!r}")

    if "\x00" in decoded:
        raise UnrepresentablePath(f"NUL byte in path: {request_path!r}")

    # URL paths always use "/". On a platform with a different separator a
    # literal one in the URL would be a second way to spell a directory.
    if os.sep != "/" and os.sep in decoded:
        raise UnrepresentablePath(f"Separator {os.sep!r} in path: {request_path!r}")

    # ─────────────────────────────────────────────────────────────────
    # NORMALIZE AND JOIN
    # ─────────────────────────────────────────────────────────────────
    # posixpath.normpath collapses "." segments and repeated slashes.
    # The leading slash must go: os.path.join(root, "/x") returns "/x".
    relative = posixpath.normpath("/" + decoded).lstrip("/")

    try:
        absolute_root = os.path.abspath(document_root)
        if relative:
            absolute_path = os.path.abspath(
                os.path.join(absolute_root, *relative.split("/"))
            )
        else:
            absolute_path = absolute_root
    except (ValueError, OSError) as e:
        raise UnrepresentablePath(f"Cannot resolve {request_path!r}: {e}")

    if not _contained(absolute_path, absolute_root):
        raise TraversalRejected(
            f"Resolved path {absolute_path!r} escapes root {absolute_root!r}"
        )

    return absolute_path
