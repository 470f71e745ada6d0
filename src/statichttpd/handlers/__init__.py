"""
=============================================================================
REQUEST HANDLERS
=============================================================================

The server has exactly one kind of content: files under the document root.
This package decides which file a request gets and reads it.

    resolved path ──► StaticSite.locate() ──► Resource(path, content_type)
                                                   │
                      StaticSite.load()   ◄────────┘
                           │
                           ▼
                         bytes

=============================================================================
"""

from .static import (
    Decision,
    Resource,
    ResourceError,
    ResourceNotFound,
    ResourceUnreadable,
    StaticSite,
    decide,
)

__all__ = [
    "Decision",
    "Resource",
    "ResourceError",
    "ResourceNotFound",
    "ResourceUnreadable",
    "StaticSite",
    "decide",
]
