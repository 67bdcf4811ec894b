"""
Integration tests for the pipeline: selection, fan-out, rendering and sinks.
"""

from __future__ import annotations

import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from langchain_core.messages import AIMessage

from tabnab.config import AIConfig, Config
from tabnab.container import DependencyContainer
from tabnab.documents import BrowserSourceFetcher, HttpFetcher
from tabnab.exceptions import ConfigError, FetchError, MissingCredentialError, NoDocumentsError
from tabnab.extractor import LinksRequest, PromptRequest, SelectorRequest
from tabnab.filters import FilterSpec
from tabnab.formatter import CitationStyle, OutputFormat
from tabnab.pipeline import Pipeline, Selection


@pytest.fixture
def tabs(make_document, article_html):
    return [
        make_document("A", "https://url1.test/", "<h1>text1</h1><a href='/x'>X</a>"),
        make_document("B", "https://url2.test/", "<p>no heading</p>", active=True),
        make_document("C", "https://url3.test/", "<h1>text3</h1>"),
        make_document("Broken", "https://broken.test/", FetchError("Failed to fetch https://broken.test/: HTTP 503")),
        make_document("Article", "https://example.com/posts/async", article_html),
    ]


@pytest.fixture
def sink():
    return AsyncMock()


@pytest.fixture
def pipeline(test_config, tabs, sink, make_browser):
    container = DependencyContainer(test_config)
    container.get_browser = AsyncMock(return_value=make_browser(tabs))  # type: ignore[method-assign]
    container.get_sink = MagicMock(return_value=sink)  # type: ignore[method-assign]
    return Pipeline(container)


class TestPipeline:
    @pytest.mark.asyncio
    async def test_end_to_end_selector(self, pipeline, sink):
        selection = Selection(FilterSpec(url_pattern=r"url\d"))

        report = await pipeline.run(SelectorRequest("h1"), selection, OutputFormat.TEXT)

        assert [(r.title, r.content) for r in report.results] == [("A", "text1"), ("B", None), ("C", "text3")]
        assert report.output.count("(content not found)") == 1
        assert "B\nhttps://url2.test/\n(content not found)\n" in report.output
        sink.write.assert_awaited_once_with(report.output)

    @pytest.mark.asyncio
    async def test_failures_are_inline(self, pipeline, sink):
        selection = Selection(FilterSpec(title_search="broken"))

        report = await pipeline.run(SelectorRequest("h1"), selection, OutputFormat.JSON)

        assert json.loads(report.output) == [
            {
                "title": "Broken",
                "url": "https://broken.test/",
                "content": None,
                "error": "Failed to fetch https://broken.test/: HTTP 503",
            }
        ]
        assert report.failed_count == 1

    @pytest.mark.asyncio
    async def test_active_only(self, pipeline):
        results = await pipeline.extract(SelectorRequest("h1"), Selection(active_only=True))
        assert [r.title for r in results] == ["B"]

    @pytest.mark.asyncio
    async def test_no_match_is_fatal_and_writes_nothing(self, pipeline, sink):
        with pytest.raises(NoDocumentsError):
            await pipeline.run(SelectorRequest("h1"), Selection(FilterSpec(title_search="zzz")))
        sink.write.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_invalid_regex_is_fatal_before_enumeration(self, pipeline, sink):
        with pytest.raises(ConfigError):
            await pipeline.run(SelectorRequest("h1"), Selection(FilterSpec(url_pattern="(")))
        pipeline.container.get_browser.assert_not_called()
        sink.write.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_links(self, pipeline):
        results = await pipeline.extract(LinksRequest(internal_only=True), Selection(FilterSpec(title_search="A")))
        assert [link.href for link in results[0].content] == ["https://url1.test/x"]

    @pytest.mark.asyncio
    async def test_list_tabs_allows_empty(self, pipeline, sink):
        report = await pipeline.list_tabs(Selection(FilterSpec(title_search="zzz")), OutputFormat.JSON)
        assert report.output == "[]"
        sink.write.assert_awaited_once_with("[]")

    @pytest.mark.asyncio
    async def test_cite_active(self, pipeline):
        report = await pipeline.cite(Selection(active_only=True), CitationStyle.MARKDOWN)
        assert report.output == "[B](https://url2.test)"

    @pytest.mark.asyncio
    async def test_summarize(self, pipeline):
        with patch("tabnab.ai.client.ChatAnthropic") as chat_class:
            chat_class.return_value.ainvoke = AsyncMock(return_value=AIMessage(content="- async is neat"))
            report = await pipeline.run(
                PromptRequest(), Selection(FilterSpec(title_search="article")), OutputFormat.MARKDOWN
            )

        assert report.output == (
            "# Understanding Async Python\n\n- async is neat\n\nSource: https://example.com/posts/async"
        )

    @pytest.mark.asyncio
    async def test_missing_credential_is_fatal(self, tabs, sink, tmp_path, make_browser):
        container = DependencyContainer(Config(ai=AIConfig(), prompts_dir=tmp_path))
        container.get_browser = AsyncMock(return_value=make_browser(tabs))  # type: ignore[method-assign]
        container.get_sink = MagicMock(return_value=sink)  # type: ignore[method-assign]

        with pytest.raises(MissingCredentialError):
            await Pipeline(container).run(PromptRequest(), Selection(active_only=True))
        container.get_browser.assert_not_called()
        sink.write.assert_not_awaited()


class TestContainer:
    @pytest.mark.asyncio
    async def test_fetcher_follows_mode(self, test_config):
        async with DependencyContainer(test_config).lifecycle() as container:
            assert isinstance(await container.get_fetcher(), BrowserSourceFetcher)

        test_config.fetch.mode = "http"
        container = DependencyContainer(test_config)
        async with container.lifecycle():
            fetcher = await container.get_fetcher()
            assert isinstance(fetcher, HttpFetcher)
            assert await container.get_fetcher() is fetcher
        assert fetcher._session is None
