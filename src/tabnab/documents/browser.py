"""
Enumerate Chrome tabs as Documents.
"""

from __future__ import annotations

from typing import List, Optional

import structlog

from tabnab.exceptions import NoDocumentsError

from .applescript import TAB_LIST_SCRIPT, TAB_SEPARATOR, AppleScriptRunner
from .document import Document
from .fetcher import HtmlFetcher

logger = structlog.get_logger(__name__)


def parse_tab_listing(raw: str, fetcher: Optional[HtmlFetcher] = None) -> List[Document]:
    """
    Turn ``url || title || active`` lines into Documents, in listing order.

    Titles may themselves contain the separator; the first field is the URL
    and the last is the active flag. Malformed lines are skipped.
    """
    documents: List[Document] = []
    for line in raw.splitlines():
        if not line.strip():
            continue

        parts = line.split(TAB_SEPARATOR)
        if len(parts) < 3:
            logger.warning("Skipping malformed tab line", line=line)
            continue

        url = parts[0].strip()
        title = TAB_SEPARATOR.join(parts[1:-1])
        active = parts[-1].strip() == "true"
        try:
            documents.append(Document(title, url, active, fetcher=fetcher))
        except ValueError as e:
            logger.warning("Skipping tab with invalid URL", url=url, error=str(e))

    return documents


class ChromeBrowser:
    """Source of Documents backed by the running Chrome instance."""

    def __init__(self, fetcher: Optional[HtmlFetcher] = None, runner: Optional[AppleScriptRunner] = None) -> None:
        self.fetcher = fetcher
        self.runner = runner or AppleScriptRunner()

    async def enumerate(self) -> List[Document]:
        raw = await self.runner.run(TAB_LIST_SCRIPT)
        documents = parse_tab_listing(raw, self.fetcher)
        logger.debug("Enumerated tabs", count=len(documents))
        return documents

    async def active(self) -> Document:
        for document in await self.enumerate():
            if document.is_active:
                return document
        raise NoDocumentsError("No active Chrome tab found")
