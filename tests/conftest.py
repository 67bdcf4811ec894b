"""
Shared fixtures for tabnab tests.

Documents are backed by an in-memory fetcher, and the browser is a stub that
returns a fixed tab list, so nothing here talks to Chrome or the network.
"""

from __future__ import annotations

import asyncio
from collections import Counter
from pathlib import Path
from typing import Callable, Dict, List, Optional, Union

import pytest

from tabnab.config import AIConfig, Config, FetchConfig
from tabnab.documents import Document
from tabnab.exceptions import NoDocumentsError

ARTICLE_HTML = """
<html>
<head>
    <title>Understanding Async Python</title>
    <meta name="author" content="Jane Doe">
    <meta property="og:title" content="Understanding Async Python">
    <meta property="og:description" content="A practical tour of asyncio.">
    <meta property="og:image" content="/images/cover.png">
    <meta property="og:site_name" content="Example Blog">
    <meta property="article:published_time" content="2024-03-01T10:00:00+02:00">
    <link rel="canonical" href="https://example.com/posts/async">
</head>
<body>
    <nav><a href="/">Home</a> <a href="/about">About</a></nav>
    <article>
        <h1 id="headline" class="title main">Understanding Async Python</h1>
        <p>Asynchronous programming in Python lets a single thread juggle many waiting operations,
        which makes it a natural fit for network clients, crawlers, and services that spend most
        of their time waiting on sockets rather than computing.</p>
        <p>The event loop schedules coroutines, and every await is a point where control can move
        to another task. Understanding where those suspension points are is the key to reasoning
        about ordering, cancellation, and timeouts in real programs.</p>
        <p>Tasks created with create_task start running at the next opportunity, while gather
        collects their results in the order the awaitables were passed, regardless of which one
        finished first, and that property is what makes fan-out and fan-in so pleasant.</p>
        <p>Read more at <a href="https://docs.python.org/3/library/asyncio.html">the asyncio docs</a>.</p>
    </article>
</body>
</html>
"""

NO_HEADING_HTML = "<html><head><title>Plain</title></head><body><p>No heading here.</p></body></html>"

PageValue = Union[str, BaseException]


class StubFetcher:
    """In-memory fetcher keyed by URL; exceptions are raised instead of returned."""

    def __init__(self, pages: Optional[Dict[str, PageValue]] = None, delays: Optional[Dict[str, float]] = None):
        self.pages: Dict[str, PageValue] = dict(pages or {})
        self.delays = dict(delays or {})
        self.calls: Counter[str] = Counter()

    async def fetch(self, document: Document) -> str:
        self.calls[document.url] += 1
        delay = self.delays.get(document.url)
        if delay:
            await asyncio.sleep(delay)
        page = self.pages.get(document.url, "<html><body></body></html>")
        if isinstance(page, BaseException):
            raise page
        return page


class StubBrowser:
    """Stand-in for ChromeBrowser returning a fixed tab list."""

    def __init__(self, documents: List[Document]):
        self.documents = documents

    async def enumerate(self) -> List[Document]:
        return list(self.documents)

    async def active(self) -> Document:
        for document in self.documents:
            if document.is_active:
                return document
        raise NoDocumentsError("No active Chrome tab found")


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Keep real credentials and user configuration out of every test."""
    for name in ("ANTHROPIC_API_KEY", "CLAUDE_API_KEY"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr("tabnab.config.config.DEFAULT_CONFIG_PATH", tmp_path / "missing-config.yaml")


@pytest.fixture
def stub_fetcher() -> StubFetcher:
    return StubFetcher()


@pytest.fixture
def make_document(stub_fetcher: StubFetcher) -> Callable[..., Document]:
    """Build a Document whose HTML is served by ``stub_fetcher``."""

    def factory(title: str, url: str, html: Optional[PageValue] = None, active: bool = False) -> Document:
        if html is not None:
            stub_fetcher.pages[url] = html
        return Document(title, url, active, fetcher=stub_fetcher)

    return factory


@pytest.fixture
def article_document(make_document: Callable[..., Document]) -> Document:
    return make_document("Async Python", "https://example.com/posts/async?utm_source=feed", ARTICLE_HTML, True)


@pytest.fixture
def test_config(tmp_path: Path) -> Config:
    """Configuration with fast deadlines and an isolated prompts directory."""
    return Config(
        ai=AIConfig(api_key="sk-ant-test-key-1234567890"),
        fetch=FetchConfig(task_timeout=5.0, max_concurrency=4, retries=1),
        prompts_dir=tmp_path / "prompts",
    )


@pytest.fixture
def article_html() -> str:
    return ARTICLE_HTML


@pytest.fixture
def make_browser() -> Callable[[List[Document]], StubBrowser]:
    return StubBrowser
