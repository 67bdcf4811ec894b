"""
Link extraction with internal/external classification.
"""

from __future__ import annotations

from typing import List, Optional, Pattern
from urllib.parse import urljoin, urlsplit, urlunsplit

import structlog

from tabnab.documents import Document
from tabnab.exceptions import ConfigError

from .models import ContentKind, Link

logger = structlog.get_logger(__name__)

HIERARCHICAL_SCHEMES = ("http", "https")


def resolve_link(base_url: str, href: str) -> Optional[str]:
    """
    Resolve ``href`` against the page URL.

    Returns ``None`` for references that do not form a valid absolute URL.
    """
    try:
        resolved = urljoin(base_url, href.strip())
        parts = urlsplit(resolved)
        parts.port  # raises ValueError on a malformed port
    except ValueError:
        return None

    if not parts.scheme:
        return None
    if parts.scheme in HIERARCHICAL_SCHEMES:
        if not parts.hostname or any(ch.isspace() for ch in parts.netloc):
            return None
        if not parts.path:
            resolved = urlunsplit(parts._replace(path="/"))
    return resolved


class LinkExtractor:
    """Collect every ``a[href]`` on the page, in document order, duplicates included."""

    name = "links"
    kind = ContentKind.LINKS

    def __init__(
        self,
        internal_only: bool = False,
        external_only: bool = False,
        pattern: Optional[Pattern[str]] = None,
    ) -> None:
        if internal_only and external_only:
            raise ConfigError("internal-only and external-only link filters are mutually exclusive")
        self.internal_only = internal_only
        self.external_only = external_only
        self.pattern = pattern

    def _keep(self, resolved: str, is_internal: bool) -> bool:
        if self.internal_only and not is_internal:
            return False
        if self.external_only and is_internal:
            return False
        if self.pattern is not None and not self.pattern.search(resolved):
            return False
        return True

    async def extract(self, document: Document) -> List[Link]:
        tree = await document.load_tree()
        domain = document.hostname

        links: List[Link] = []
        skipped = 0
        for anchor in tree.select("a[href]"):
            href = anchor.get("href")
            if not href:
                continue

            resolved = resolve_link(document.url, str(href))
            if resolved is None:
                skipped += 1
                continue

            is_internal = urlsplit(resolved).hostname == domain
            if not self._keep(resolved, is_internal):
                continue

            text = anchor.get_text().strip()
            links.append(Link(href=resolved, text=text or str(href)))

        logger.debug("Links extracted", url=document.url, count=len(links), skipped=skipped)
        return links
