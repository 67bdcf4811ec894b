"""
Raw HTML source extraction.
"""

from __future__ import annotations

from tabnab.documents import Document

from .models import ContentKind


class SourceExtractor:
    """Return the document's HTML verbatim, or re-serialized through the parsed tree."""

    name = "source"
    kind = ContentKind.TEXT

    def __init__(self, pretty: bool = False) -> None:
        self.pretty = pretty

    async def extract(self, document: Document) -> str:
        if self.pretty:
            tree = await document.load_tree()
            return tree.prettify()
        return await document.get_html_source()
