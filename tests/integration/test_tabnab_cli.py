"""
Integration tests for the command-line interface.
"""

from __future__ import annotations

import json
from unittest.mock import AsyncMock, patch

import pytest
import yaml
from click.testing import CliRunner
from langchain_core.messages import AIMessage

from tabnab.cli import cli
from tabnab.container import DependencyContainer


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        yaml.safe_dump(
            {
                "ai": {"api_key": "sk-ant-test-key-1234567890"},
                "fetch": {"task_timeout": 5, "retries": 1},
                "prompts_dir": str(tmp_path / "prompts"),
                "sink": {"clipboard_command": ["sh", "-c", f"cat > {tmp_path / 'clipboard.txt'}"]},
                "monitoring": {"log_file": str(tmp_path / "logs" / "tabnab.log"), "log_level": "DEBUG"},
            }
        )
    )
    return path


@pytest.fixture
def tabs(make_document, article_html):
    return [
        make_document("A", "https://url1.test/", "<h1>text1</h1><a href='https://ext.test/'>Ext</a>"),
        make_document("B", "https://url2.test/?utm_source=x", "<p>none</p>", active=True),
        make_document("C", "https://url3.test/", "<h1>text3</h1>"),
        make_document("Article", "https://example.com/posts/async", article_html),
    ]


@pytest.fixture
def invoke(config_file, tabs, make_browser):
    runner = CliRunner()

    def run(*args):
        with patch.object(DependencyContainer, "get_browser", AsyncMock(return_value=make_browser(tabs))):
            return runner.invoke(cli, ["--config", str(config_file), *args], obj={})

    return run


class TestTabCommands:
    def test_list(self, invoke):
        result = invoke("list", "--filter", "url[12]")
        assert result.exit_code == 0
        assert "A - https://url1.test/\nB - https://url2.test/?utm_source=x" in result.output

    def test_list_json(self, invoke):
        result = invoke("list", "-f", "json", "--search", "article")
        assert json.loads(result.output) == [
            {"title": "Article", "url": "https://example.com/posts/async", "isActive": False}
        ]

    def test_active_markdown(self, invoke):
        result = invoke("active", "-f", "markdown")
        assert result.output.strip() == "- [B](https://url2.test/?utm_source=x) (active)"

    def test_cite(self, invoke):
        result = invoke("cite", "-f", "url")
        assert result.output.strip() == "https://url2.test"

    def test_clipboard_confirmation(self, invoke, config_file):
        result = invoke("list", "-c")
        assert result.exit_code == 0
        assert "✓ Copied 4 tab(s) to clipboard" in result.output
        clipboard = (config_file.parent / "clipboard.txt").read_text(encoding="utf-8")
        assert clipboard.startswith("A - https://url1.test/")


class TestExtractionCommands:
    def test_extract_text(self, invoke, config_file):
        result = invoke("extract", "h1", "--filter", "url")
        assert result.exit_code == 0
        assert "Run completed" in (config_file.parent / "logs" / "tabnab.log").read_text()
        assert result.output == (
            "A\nhttps://url1.test/\ntext1\n"
            "\n---\n\n"
            "B\nhttps://url2.test/?utm_source=x\n(content not found)\n"
            "\n---\n\n"
            "C\nhttps://url3.test/\ntext3\n\n"
        )

    def test_extract_json_active(self, invoke):
        result = invoke("extract", "p", "-a", "-f", "json")
        assert json.loads(result.output) == [
            {"title": "B", "url": "https://url2.test/?utm_source=x", "content": "none"}
        ]

    def test_links_external(self, invoke):
        result = invoke("links", "--external-only", "--search", "A", "-f", "markdown")
        assert "## A\n\n- [Ext](https://ext.test/)\n" in result.output

    def test_metadata_defaults_to_json(self, invoke):
        result = invoke("metadata", "--search", "article")
        data = json.loads(result.output)
        assert data[0]["content"]["publisher"] == "Example Blog"

    def test_readability(self, invoke):
        result = invoke("readability", "--search", "article", "-f", "markdown")
        assert result.output.startswith("# Understanding Async Python\n\n**Author:** Jane Doe\n")

    def test_source_raw(self, invoke):
        result = invoke("source")
        assert result.output == "<p>none</p>\n"

    def test_invalid_regex(self, invoke):
        result = invoke("extract", "h1", "--filter", "(")
        assert result.exit_code == 1
        assert "Error: Invalid URL filter pattern" in result.output

    def test_no_matching_tabs(self, invoke):
        result = invoke("extract", "h1", "--search", "zzz")
        assert result.exit_code == 1
        assert "Error: No tabs matched the given filters" in result.output

    def test_conflicting_link_flags(self, invoke):
        result = invoke("links", "--internal-only", "--external-only")
        assert result.exit_code == 1
        assert "mutually exclusive" in result.output


class TestAICommands:
    @pytest.fixture
    def chat(self):
        with patch("tabnab.ai.client.ChatAnthropic") as chat_class:
            chat_class.return_value.ainvoke = AsyncMock(return_value=AIMessage(content="Because asyncio."))
            yield chat_class

    def test_ask(self, invoke, chat):
        result = invoke("ask", "Why async?", "--all-tabs", "--search", "article", "--temperature", "0.2")
        assert result.exit_code == 0
        assert "Question: Why async?\n\nBecause asyncio.\n\nSource: https://example.com/posts/async" in result.output
        assert chat.call_args.kwargs["temperature"] == 0.2

    def test_prompt_template(self, invoke, chat):
        assert invoke("config", "init-prompts").exit_code == 0

        result = invoke("prompt", "key-points", "--all-tabs", "--search", "article")

        assert result.exit_code == 0
        assert "Because asyncio.\n\nSource: https://example.com/posts/async" in result.output
        assert "# Understanding" not in result.output

    def test_unknown_template(self, invoke, chat):
        result = invoke("prompt", "nope")
        assert result.exit_code == 1
        assert "Error: Prompt template 'nope' not found" in result.output

    def test_missing_credential(self, tmp_path, tabs, make_browser):
        empty_config = tmp_path / "no-key.yaml"
        empty_config.write_text(yaml.safe_dump({"monitoring": {"log_file": str(tmp_path / "tabnab.log")}}))
        with patch.object(DependencyContainer, "get_browser", AsyncMock(return_value=make_browser(tabs))):
            result = CliRunner().invoke(cli, ["--config", str(empty_config), "summarize"], obj={})
        assert result.exit_code == 1
        assert "No Anthropic API key found" in result.output


class TestConfigCommands:
    def test_set_and_get_api_key(self, invoke, config_file):
        assert invoke("config", "set-api-key", "sk-ant-brand-new-key-9999").output.strip() == "✓ API key saved"
        assert yaml.safe_load(config_file.read_text())["ai"]["api_key"] == "sk-ant-brand-new-key-9999"

        result = invoke("config", "get-api-key")
        assert result.output.strip() == "Current API key: sk-ant-b...9999"

    def test_prompt_management(self, invoke):
        assert "No prompts found" in invoke("config", "list-prompts").output

        assert "✓ Initialized default prompts" in invoke("config", "init-prompts").output
        listing = invoke("config", "list-prompts").output
        assert "  summarize\n    Summarize page in 3-5 bullet points\n" in listing

        shown = json.loads(invoke("config", "show-prompt", "simplify").output)
        assert shown["name"] == "simplify"

        assert invoke("config", "delete-prompt", "simplify").output.strip() == "✓ Deleted prompt 'simplify'"
        missing = invoke("config", "delete-prompt", "simplify")
        assert missing.exit_code == 1
        assert "Error: Prompt template 'simplify' not found" in missing.output
