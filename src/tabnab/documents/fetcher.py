"""
HTML retrieval and tree parsing for documents.

Two fetchers are available: one reads the rendered DOM straight out of the
live Chrome tab, the other re-requests the URL over HTTP.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Optional, Protocol, runtime_checkable

import aiohttp
import structlog
from bs4 import BeautifulSoup
from tenacity import AsyncRetrying, RetryError, retry_if_exception_type, stop_after_attempt, wait_exponential

from tabnab.config.config import FetchConfig
from tabnab.exceptions import BrowserError, FetchError, ParseError

from .applescript import TAB_SOURCE_SCRIPT, AppleScriptRunner, render_script

if TYPE_CHECKING:
    from .document import Document

logger = structlog.get_logger(__name__)

FETCHABLE_SCHEMES = ("http", "https")


@runtime_checkable
class HtmlFetcher(Protocol):
    """Retrieves the HTML for one document."""

    async def fetch(self, document: Document) -> str:
        ...


def parse_tree(html: str) -> BeautifulSoup:
    """Parse HTML into a selector-queryable tree.

    Attribute values are kept as plain strings (``class`` included) so that
    attribute maps serialize the way the page wrote them.
    """
    try:
        return BeautifulSoup(html, "lxml", multi_valued_attributes=None)
    except Exception as e:
        raise ParseError(f"Could not parse HTML: {e}") from e


def _ensure_fetchable(document: Document) -> None:
    if document.is_devtools or document.is_view_source:
        raise FetchError(f"Cannot fetch source of {document.url}")
    if document.parsed_url.scheme not in FETCHABLE_SCHEMES:
        raise FetchError(f"Unsupported URL scheme '{document.parsed_url.scheme}' for {document.url}")


class BrowserSourceFetcher:
    """Reads ``document.documentElement.outerHTML`` from the open Chrome tab."""

    def __init__(self, runner: Optional[AppleScriptRunner] = None) -> None:
        self.runner = runner or AppleScriptRunner()

    async def fetch(self, document: Document) -> str:
        _ensure_fetchable(document)
        script = render_script(TAB_SOURCE_SCRIPT, {"target_url": document.url})
        try:
            html = await self.runner.run(script)
        except BrowserError as e:
            raise FetchError(f"Failed to read source of {document.url}: {e}") from e

        logger.debug("Fetched tab source", url=document.url, length=len(html))
        return html


class HttpFetcher:
    """Requests the document URL with aiohttp, retrying transient failures."""

    def __init__(self, config: Optional[FetchConfig] = None) -> None:
        self.config = config or FetchConfig()
        self._session: Optional[aiohttp.ClientSession] = None

    async def initialize(self) -> None:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.config.timeout),
                headers={"User-Agent": self.config.user_agent},
            )

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    async def fetch(self, document: Document) -> str:
        _ensure_fetchable(document)
        await self.initialize()
        assert self._session is not None

        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.config.retries),
                wait=wait_exponential(multiplier=0.5, min=0.5, max=4),
                retry=retry_if_exception_type((aiohttp.ClientConnectionError, asyncio.TimeoutError)),
                reraise=True,
            ):
                with attempt:
                    async with self._session.get(document.url) as response:
                        response.raise_for_status()
                        html = await response.text(errors="replace")
        except aiohttp.ClientResponseError as e:
            raise FetchError(f"Failed to fetch {document.url}: HTTP {e.status} {e.message}") from e
        except (aiohttp.ClientError, asyncio.TimeoutError, RetryError) as e:
            raise FetchError(f"Failed to fetch {document.url}: {str(e) or type(e).__name__}") from e

        logger.debug("Fetched over HTTP", url=document.url, length=len(html))
        return html
