"""
Unit tests for tab enumeration and the AppleScript runner.
"""

from __future__ import annotations

import os
from unittest.mock import AsyncMock

import pytest

from tabnab.aggregator import Aggregator
from tabnab.documents import AppleScriptRunner, BrowserSourceFetcher, ChromeBrowser, Document, parse_tab_listing
from tabnab.documents.applescript import TAB_SOURCE_SCRIPT, render_script
from tabnab.exceptions import BrowserError, NoDocumentsError
from tabnab.extractor import SourceExtractor

LISTING = "\n".join(
    [
        "https://a.test/ || Alpha || false",
        "https://b.test/x || Beta || With || Bars || true",
        "garbage line",
        "",
        "https://c.test/ || Gamma || false",
    ]
)


class TestParseTabListing:
    def test_order_titles_and_active_flag(self):
        documents = parse_tab_listing(LISTING)

        assert [doc.url for doc in documents] == ["https://a.test/", "https://b.test/x", "https://c.test/"]
        assert documents[1].title == "Beta || With || Bars"
        assert [doc.is_active for doc in documents] == [False, True, False]

    def test_empty_listing(self):
        assert parse_tab_listing("") == []


class TestChromeBrowser:
    @pytest.mark.asyncio
    async def test_enumerate_and_active(self):
        runner = AppleScriptRunner()
        runner.run = AsyncMock(return_value=LISTING)  # type: ignore[method-assign]
        browser = ChromeBrowser(runner=runner)

        documents = await browser.enumerate()
        active = await browser.active()

        assert len(documents) == 3
        assert active.title == "Beta || With || Bars"

    @pytest.mark.asyncio
    async def test_no_active_tab(self):
        runner = AppleScriptRunner()
        runner.run = AsyncMock(return_value="https://a.test/ || Alpha || false")  # type: ignore[method-assign]

        with pytest.raises(NoDocumentsError, match="No active Chrome tab found"):
            await ChromeBrowser(runner=runner).active()


class TestAppleScriptRunner:
    def test_render_script_escapes_quotes(self):
        script = render_script(TAB_SOURCE_SCRIPT, {"target_url": 'https://a.test/?q="x"\\y'})
        assert 'is "https://a.test/?q=\\"x\\"\\\\y" then' in script

    @pytest.mark.asyncio
    async def test_runs_script_on_stdin(self):
        # Any interpreter that reads its program from stdin behaves like osascript here.
        runner = AppleScriptRunner(executable="sh")
        assert await runner.run("echo hello") == "hello"

    @pytest.mark.asyncio
    async def test_nonzero_exit_is_browser_error(self):
        runner = AppleScriptRunner(executable="sh")
        with pytest.raises(BrowserError, match="oops"):
            await runner.run("echo oops >&2; exit 3")

    @pytest.mark.asyncio
    async def test_missing_executable(self):
        runner = AppleScriptRunner(executable="tabnab-no-such-osascript")
        with pytest.raises(BrowserError, match="not available"):
            await runner.run("return 1")

    @pytest.mark.asyncio
    async def test_timed_out_fetch_kills_child(self, tmp_path):
        pid_file = tmp_path / "pid"
        hanging = tmp_path / "hanging-osascript"
        hanging.write_text(f"#!/bin/sh\necho $$ > {pid_file}\nexec sleep 30\n")
        hanging.chmod(0o755)

        fetcher = BrowserSourceFetcher(AppleScriptRunner(executable=str(hanging)))
        document = Document("Hung", "https://hung.test/", fetcher=fetcher)
        [result] = await Aggregator(task_timeout=1.0).run([document], SourceExtractor())

        assert result.error == "Extraction timed out after 1 seconds"
        with pytest.raises(ProcessLookupError):
            os.kill(int(pid_file.read_text()), 0)
