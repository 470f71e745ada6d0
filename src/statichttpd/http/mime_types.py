"""
=============================================================================
MIME TYPE DETECTION
=============================================================================

Maps file extensions to the Content-Type sent with a served file.

    ┌────────────────────────────────────────────────────────────────────┐
    │                    EXTENSION → CONTENT TYPE                        │
    ├────────────────────────────────────────────────────────────────────┤
    │                                                                     │
    │  index.html      → text/html                                       │
    │  style.css       → text/css                                        │
    │  images/cat.jpg  → image/jpeg                                      │
    │  README          → application/octet-stream   (no extension)       │
    │  archive.xyz     → application/octet-stream   (unknown extension)  │
    │                                                                     │
    └────────────────────────────────────────────────────────────────────┘

Lookup is by the LAST extension only, lower-cased, with its leading dot:
"photo.JPG" and "photo.jpg" both map to image/jpeg, "bundle.tar.gz" is
looked up as ".gz".

Content types are sent exactly as listed (no charset parameter is added);
the bytes of the file are served untouched.

=============================================================================
"""

import os
from types import MappingProxyType


# =============================================================================
# MIME TYPE DATABASE
# =============================================================================
#
# Keys are lower-case extensions including the dot. The table is wrapped in
# MappingProxyType: built once at import, read-only afterwards.
#
# =============================================================================

MIME_TYPES = MappingProxyType({
    # -------------------------------------------------------------------------
    # TEXT TYPES
    # -------------------------------------------------------------------------
    ".html": "text/html",
    ".htm": "text/html",
    ".css": "text/css",
    ".js": "text/javascript",
    ".mjs": "text/javascript",     # ES modules
    ".json": "application/json",
    ".xml": "application/xml",
    ".txt": "text/plain",
    ".md": "text/markdown",
    ".csv": "text/csv",
    ".php": "application/x-httpd-php",  # served as a file, never executed

    # -------------------------------------------------------------------------
    # IMAGE TYPES
    # -------------------------------------------------------------------------
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".webp": "image/webp",
    ".svg": "image/svg+xml",
    ".ico": "image/x-icon",

    # -------------------------------------------------------------------------
    # FONTS, DOCUMENTS, BINARY
    # -------------------------------------------------------------------------
    ".woff": "font/woff",
    ".woff2": "font/woff2",
    ".pdf": "application/pdf",
    ".bin": "application/octet-stream",
})

# "I don't know what this is, treat it as opaque bytes"
DEFAULT_MIME_TYPE = "application/octet-stream"


def get_extension(path: str) -> str:
    """
    Return the lower-cased extension of `path`, including the dot.

    Dotfiles such as ".htaccess" have no extension (os.path.splitext rule).

        >>> get_extension("/srv/public/images/Cat.JPG")
        '.jpg'
        >>> get_extension("Makefile")
        ''
    """
    return os.path.splitext(path)[1].lower()


def get_mime_type(path: str, default: str = DEFAULT_MIME_TYPE) -> str:
    """
    Get the MIME type for a file based on its extension.

    Args:
        path: File path or name.
        default: Returned when the extension is missing or unknown.

    Returns:
        The content type string.

    Examples:
        >>> get_mime_type("index.html")
        'text/html'
        >>> get_mime_type("unknown.xyz")
        'application/octet-stream'
    """
    return MIME_TYPES.get(get_extension(path), default)
