"""
Document model: one browser tab with lazily fetched HTML and parsed tree.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from functools import cached_property
from typing import Generic, Optional, TypeVar, Union
from urllib.parse import SplitResult, urlsplit

import structlog
from bs4 import BeautifulSoup

from tabnab.exceptions import FetchError

from .fetcher import HtmlFetcher, parse_tree

logger = structlog.get_logger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Unfetched:
    """Cache slot that has not been filled yet."""


@dataclass(frozen=True)
class Fetched(Generic[T]):
    """Cache slot holding its computed value."""

    value: T


UNFETCHED = Unfetched()

CacheState = Union[Unfetched, Fetched[T]]


@dataclass(frozen=True)
class DocumentRef:
    """Identity of a document, carried on every result."""

    title: str
    url: str


class Document:
    """
    A browser tab.

    ``get_html_source`` and ``load_tree`` each transition their cache from
    ``Unfetched`` to ``Fetched`` at most once per instance. A failed fetch
    leaves the cache ``Unfetched``.
    """

    def __init__(
        self,
        title: str,
        url: str,
        is_active: bool = False,
        *,
        fetcher: Optional[HtmlFetcher] = None,
    ) -> None:
        self.title = title
        self.url = url
        self.is_active = is_active
        self.parsed_url: SplitResult = urlsplit(url)
        self._fetcher = fetcher

        self._source: CacheState[str] = UNFETCHED
        self._tree: CacheState[BeautifulSoup] = UNFETCHED
        self._source_lock = asyncio.Lock()
        self._tree_lock = asyncio.Lock()

    def __repr__(self) -> str:
        return f"Document(title={self.title!r}, url={self.url!r}, is_active={self.is_active!r})"

    @property
    def hostname(self) -> Optional[str]:
        return self.parsed_url.hostname

    @property
    def is_view_source(self) -> bool:
        return self.url.startswith("view-source:")

    @property
    def is_devtools(self) -> bool:
        return self.url.startswith("chrome-devtools:")

    @cached_property
    def ref(self) -> DocumentRef:
        return DocumentRef(title=self.title, url=self.url)

    @property
    def source_state(self) -> CacheState[str]:
        return self._source

    @property
    def tree_state(self) -> CacheState[BeautifulSoup]:
        return self._tree

    async def get_html_source(self) -> str:
        """Return the tab's HTML, fetching it on first use."""
        async with self._source_lock:
            if isinstance(self._source, Unfetched):
                if self._fetcher is None:
                    raise FetchError(f"No fetcher configured for {self.url}")
                html = await self._fetcher.fetch(self)
                self._source = Fetched(html)
                logger.debug("Document source cached", url=self.url, length=len(html))
            return self._source.value

    async def load_tree(self) -> BeautifulSoup:
        """Return the parsed tree, parsing the HTML on first use."""
        async with self._tree_lock:
            if isinstance(self._tree, Unfetched):
                html = await self.get_html_source()
                loop = asyncio.get_running_loop()
                tree = await loop.run_in_executor(None, parse_tree, html)
                self._tree = Fetched(tree)
            return self._tree.value
