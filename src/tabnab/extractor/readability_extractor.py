"""
Readability-based article extractor.
"""

from __future__ import annotations

import asyncio
from typing import Optional

import lxml.html
import structlog
from bs4 import BeautifulSoup
from readability import Document as ReadabilityDocument
from readability.readability import Unparseable

from tabnab.documents import Document
from tabnab.exceptions import ParseError

from .models import Article, ContentKind

logger = structlog.get_logger(__name__)

BYLINE_SELECTORS = (
    ('meta[name="author"]', "content"),
    ('meta[property="article:author"]', "content"),
    ('[rel="author"]', None),
    ('[itemprop="author"]', None),
    (".byline", None),
)


def find_byline(tree: BeautifulSoup) -> Optional[str]:
    for selector, attribute in BYLINE_SELECTORS:
        element = tree.select_one(selector)
        if element is None:
            continue
        raw = element.get(attribute) if attribute else element.get_text(" ")
        value = " ".join(str(raw).split()) if raw else ""
        if value and not value.startswith(("http://", "https://")):
            return value
    return None


def html_to_text(html: str) -> str:
    """Flatten article HTML to text, one non-empty line per block."""
    if not html or not html.strip():
        return ""
    fragment = lxml.html.fromstring(html)
    for br in fragment.iter("br"):
        br.tail = "\n" + (br.tail or "")
    for block in fragment.iter("p", "div", "h1", "h2", "h3", "h4", "h5", "h6", "li", "pre", "blockquote", "tr"):
        block.tail = "\n" + (block.tail or "")
    lines = (" ".join(line.split()) for line in fragment.text_content().splitlines())
    return "\n".join(line for line in lines if line)


def parse_article(tree: BeautifulSoup, url: Optional[str] = None) -> Optional[Article]:
    """
    Identify the main article of a parsed page.

    Returns ``None`` when no article body can be identified.
    """
    try:
        doc = ReadabilityDocument(str(tree), url=url)
        content_html = doc.summary(html_partial=True)
        title = doc.short_title() or doc.title()
    except Unparseable as e:
        logger.debug("Readability could not identify content", url=url, error=str(e))
        return None

    text = html_to_text(content_html)
    if not text:
        return None

    return Article(title=title or "", author=find_byline(tree), text=text)


class ReadabilityExtractor:
    """Extract the readable article from a document."""

    name = "readability"
    kind = ContentKind.ARTICLE

    async def extract(self, document: Document) -> Optional[Article]:
        tree = await document.load_tree()
        loop = asyncio.get_running_loop()
        try:
            article = await loop.run_in_executor(None, parse_article, tree, document.url)
        except Exception as e:
            raise ParseError(f"Article extraction failed: {e}") from e

        if article is None:
            logger.debug("No article content found", url=document.url)
            return article

        if not article.title:
            article = Article(title=document.title, author=article.author, text=article.text)
        return article
