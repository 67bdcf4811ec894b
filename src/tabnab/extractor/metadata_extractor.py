"""
Metadata Extractor - Open Graph, Twitter Card and HTML meta scraping.

Each field is resolved from an ordered list of candidate selectors; the
first non-empty value wins. Missing fields are reported as ``None``.
"""

from __future__ import annotations

import asyncio
import re
from datetime import timezone
from typing import Callable, Dict, List, Optional, Tuple
from urllib.parse import urljoin

import structlog
from bs4 import BeautifulSoup
from dateutil import parser as date_parser

from tabnab.documents import Document
from tabnab.exceptions import UpstreamError

from .models import ContentKind

logger = structlog.get_logger(__name__)

# (css selector, attribute) - attribute None means element text
Candidate = Tuple[str, Optional[str]]

_URL_LIKE = re.compile(r"^(https?:)?//", re.IGNORECASE)


class MetadataScraper:
    """Pure ``(html, url) -> metadata`` scraper."""

    RULES: Dict[str, List[Candidate]] = {
        "author": [
            ('meta[name="author"]', "content"),
            ('meta[property="article:author"]', "content"),
            ('meta[name="twitter:creator"]', "content"),
            ('[itemprop="author"] [itemprop="name"]', None),
            ('[itemprop="author"]', None),
            ('[rel="author"]', None),
            (".byline", None),
        ],
        "date": [
            ('meta[property="article:published_time"]', "content"),
            ('meta[name="date"]', "content"),
            ('meta[itemprop="datePublished"]', "content"),
            ("time[datetime]", "datetime"),
            ('meta[property="article:modified_time"]', "content"),
            ('meta[property="og:updated_time"]', "content"),
        ],
        "description": [
            ('meta[property="og:description"]', "content"),
            ('meta[name="twitter:description"]', "content"),
            ('meta[name="description"]', "content"),
            ('[itemprop="description"]', "content"),
        ],
        "image": [
            ('meta[property="og:image:secure_url"]', "content"),
            ('meta[property="og:image:url"]', "content"),
            ('meta[property="og:image"]', "content"),
            ('meta[name="twitter:image"]', "content"),
            ('meta[name="twitter:image:src"]', "content"),
            ('meta[itemprop="image"]', "content"),
        ],
        "logo": [
            ('meta[property="og:logo"]', "content"),
            ('meta[itemprop="logo"]', "content"),
            ('img[itemprop="logo"]', "src"),
            ('link[rel~="apple-touch-icon"]', "href"),
            ('link[rel~="icon"]', "href"),
        ],
        "publisher": [
            ('meta[property="og:site_name"]', "content"),
            ('meta[name="application-name"]', "content"),
            ('meta[name="publisher"]', "content"),
            ('meta[name="twitter:app:name:iphone"]', "content"),
        ],
        "title": [
            ('meta[property="og:title"]', "content"),
            ('meta[name="twitter:title"]', "content"),
            ("title", None),
            ("h1", None),
        ],
        "url": [
            ('meta[property="og:url"]', "content"),
            ('link[rel="canonical"]', "href"),
        ],
    }

    URL_FIELDS = ("image", "logo", "url")

    def scrape(self, html: str, url: str) -> Dict[str, Optional[str]]:
        soup = BeautifulSoup(html, "lxml", multi_valued_attributes=None)

        metadata: Dict[str, Optional[str]] = {}
        for field_name, candidates in self.RULES.items():
            accept = self._not_url if field_name == "author" else None
            value = self._first(soup, candidates, accept)
            if value is not None and field_name in self.URL_FIELDS:
                value = urljoin(url, value)
            if value is not None and field_name == "date":
                value = self._normalize_date(value)
            metadata[field_name] = value

        if metadata["url"] is None:
            metadata["url"] = url
        return metadata

    @staticmethod
    def _not_url(value: str) -> bool:
        return not _URL_LIKE.match(value)

    @staticmethod
    def _first(
        soup: BeautifulSoup,
        candidates: List[Candidate],
        accept: Optional[Callable[[str], bool]] = None,
    ) -> Optional[str]:
        for selector, attribute in candidates:
            for element in soup.select(selector):
                raw = element.get(attribute) if attribute else element.get_text(" ")
                if not raw:
                    continue
                value = " ".join(str(raw).split())
                if value and (accept is None or accept(value)):
                    return value
        return None

    @staticmethod
    def _normalize_date(value: str) -> Optional[str]:
        """Normalize to an ISO 8601 UTC timestamp; unparseable dates are dropped."""
        try:
            parsed = date_parser.parse(value)
        except (ValueError, OverflowError, TypeError) as e:
            logger.debug("Date normalization failed", date_str=value, error=str(e))
            return None
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z"


class MetadataExtractor:
    """Run the metadata scraper over a document's HTML."""

    name = "metadata"
    kind = ContentKind.METADATA

    def __init__(self, scraper: Optional[MetadataScraper] = None) -> None:
        self.scraper = scraper or MetadataScraper()

    async def extract(self, document: Document) -> Dict[str, Optional[str]]:
        html = await document.get_html_source()
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(None, self.scraper.scrape, html, document.url)
        except Exception as e:
            raise UpstreamError(f"Metadata extraction failed: {e}") from e
