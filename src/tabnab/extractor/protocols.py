"""
Protocols for pluggable extraction strategies.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from tabnab.documents import Document

from .models import Content, ContentKind


@runtime_checkable
class ExtractionStrategy(Protocol):
    """Produces one piece of content from one document."""

    name: str
    kind: ContentKind

    async def extract(self, document: Document) -> Content:
        """Extract content from a document.

        May suspend while the document fetches or parses its HTML. Returns
        ``None`` when nothing was found; raises on failure.
        """
        ...
