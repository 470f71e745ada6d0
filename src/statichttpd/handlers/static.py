"""
=============================================================================
STATIC RESOURCE RESOLUTION
=============================================================================

Turns a resolved filesystem path into the file that is actually served,
together with its content type.

=============================================================================
RESOLUTION POLICY
=============================================================================

The decision itself is a pure function of three facts about the target.
Probing the filesystem for those facts happens around it, in StaticSite.

    ┌────────┬────────┬──────────────┬──────────────────────────────────────┐
    │ exists │ is_dir │ index_exists │ decision                             │
    ├────────┼────────┼──────────────┼──────────────────────────────────────┤
    │ no     │   -    │      -       │ NOT_FOUND                            │
    │ yes    │ yes    │ no           │ NOT_FOUND   (no directory listings)  │
    │ yes    │ yes    │ yes          │ SERVE_INDEX (dir/index.html)         │
    │ yes    │ no     │      -       │ SERVE_FILE                           │
    └────────┴────────┴──────────────┴──────────────────────────────────────┘

    GET /              →  <root>            → dir → <root>/index.html
    GET /images/cat.jpg→  <root>/images/cat.jpg → file → image/jpeg
    GET /nope.txt      →  <root>/nope.txt   → missing → 404

=============================================================================
WHAT COUNTS AS "EXISTS"?
=============================================================================

Only directories and regular files. A FIFO, socket or device node inside the
document root counts as missing: opening a FIFO for reading blocks until a
writer shows up, and a request must never hang on that.

Nothing is cached. Every request stats the filesystem afresh, so a file
dropped into the document root is served on the very next request.

=============================================================================
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional
import logging
import os
import stat

from ..http.mime_types import get_mime_type


logger = logging.getLogger(__name__)


# =============================================================================
# EXCEPTIONS
# =============================================================================

class ResourceError(Exception):
    """Base class for failures while locating or loading a resource."""


class ResourceNotFound(ResourceError):
    """Nothing servable exists at the requested path."""


class ResourceUnreadable(ResourceError):
    """The resource exists but could not be read."""


# =============================================================================
# DECISION
# =============================================================================

class Decision(Enum):
    NOT_FOUND = "not_found"
    SERVE_INDEX = "serve_index"
    SERVE_FILE = "serve_file"


def decide(exists: bool, is_dir: bool, index_exists: bool) -> Decision:
    """
    Pick what to serve from three facts about the target.

    Pure: no I/O, same inputs give the same decision.

        >>> decide(exists=True, is_dir=True, index_exists=True)
        <Decision.SERVE_INDEX: 'serve_index'>
    """
    if not exists:
        return Decision.NOT_FOUND
    if is_dir:
        return Decision.SERVE_INDEX if index_exists else Decision.NOT_FOUND
    return Decision.SERVE_FILE


@dataclass(frozen=True)
class Resource:
    """
    The effective target of a request.

    Attributes:
        path: Absolute path of the file to send (after index substitution).
        content_type: MIME type derived from that file's extension.
    """

    path: str
    content_type: str


# =============================================================================
# STATIC SITE
# =============================================================================

class StaticSite:
    """
    A document root and the rules for serving files out of it.

    =========================================================================
    FLOW
    =========================================================================

        resolved path (already confined to the root by the path resolver)
            │
            ├──► locate()    stat target (+ index) → decide() → Resource
            │                                         or ResourceNotFound
            │
            └──► load()      read bytes            → bytes
                                                     or ResourceUnreadable

    =========================================================================
    USAGE
    =========================================================================

        site = StaticSite("/srv/public")
        resource = site.locate("/srv/public/images/cat.jpg")
        body = site.load(resource)

    =========================================================================
    """

    def __init__(
        self,
        document_root: str,
        index_file: str = "index.html",
        not_found_file: str = "not-found.html",
    ):
        """
        Args:
            document_root: Directory every servable file lives under.
            index_file: Served for a request that names a directory.
            not_found_file: Page at the document root served with 404.
        """
        self.document_root = os.path.abspath(document_root)
        self.index_file = index_file
        self.not_found_file = not_found_file

    def locate(self, resolved_path: str) -> Resource:
        """
        Find the effective target for a resolved path.

        Args:
            resolved_path: Output of resolve_path(), inside the document root.

        Returns:
            The Resource to serve.

        Raises:
            ResourceNotFound: decide() said NOT_FOUND.
            ResourceUnreadable: The filesystem refused to answer the stat.
        """
        target = Path(resolved_path)
        mode = self._stat_mode(target)

        exists = mode is not None and (stat.S_ISDIR(mode) or stat.S_ISREG(mode))
        is_dir = exists and stat.S_ISDIR(mode)

        index = target / self.index_file
        index_exists = False
        if is_dir:
            index_mode = self._stat_mode(index)
            index_exists = index_mode is not None and stat.S_ISREG(index_mode)

        decision = decide(exists, is_dir, index_exists)

        if decision is Decision.NOT_FOUND:
            raise ResourceNotFound(f"Nothing to serve at {resolved_path}")

        effective = index if decision is Decision.SERVE_INDEX else target
        return Resource(path=str(effective), content_type=get_mime_type(effective.name))

    def load(self, resource: Resource) -> bytes:
        """
        Read the whole file.

        Raises:
            ResourceUnreadable: Any OS error while opening or reading.
        """
        try:
            return Path(resource.path).read_bytes()
        except OSError as e:
            raise ResourceUnreadable(f"Cannot read {resource.path}: {e}") from e

    def not_found_page(self) -> Optional[Resource]:
        """
        The custom 404 page, if the document root has one.

        Returns:
            A Resource for <root>/not-found.html, or None when it is missing
            or not a regular file.
        """
        page = Path(self.document_root) / self.not_found_file
        try:
            mode = self._stat_mode(page)
        except ResourceUnreadable:
            logger.warning(f"Cannot stat not-found page {page}")
            return None

        if mode is None or not stat.S_ISREG(mode):
            return None
        return Resource(path=str(page), content_type=get_mime_type(page.name))

    @staticmethod
    def _stat_mode(path: Path) -> Optional[int]:
        """
        st_mode of `path`, or None when nothing is there.

        A missing file and a path running through a regular file
        ("index.html/x") both mean "nothing there". Any other OS error
        (permission denied on a parent directory, I/O error) is reported.
        """
        try:
            return path.stat().st_mode
        except (FileNotFoundError, NotADirectoryError):
            return None
        except OSError as e:
            raise ResourceUnreadable(f"Cannot stat {path}: {e}") from e
