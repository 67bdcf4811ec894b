"""
Rendering of extraction results, tab listings and citations.

Every function here is pure: the same input always renders the same string.
Rendering never raises for empty input, missing content or failed results.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from tabnab.citation import normalize_url
from tabnab.documents import Document
from tabnab.extractor import Article, Completion, ContentKind, ExtractionResult, Link


class OutputFormat(str, Enum):
    JSON = "json"
    MARKDOWN = "markdown"
    TEXT = "text"


class CitationStyle(str, Enum):
    MARKDOWN = "markdown"
    TEXT = "text"
    URL = "url"


@dataclass(frozen=True)
class RenderOptions:
    include_url: bool = True
    include_title: bool = True


DEFAULT_OPTIONS = RenderOptions()

BlockRenderer = Callable[[ExtractionResult, RenderOptions], str]


def _underline(title: str) -> str:
    return f"{title}\n{'=' * len(title)}\n"


def _display(value: Any) -> str:
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False)
    return str(value)


# --- Text (selector and source) ---


def _text_markdown(result: ExtractionResult, options: RenderOptions) -> str:
    md = f"## {result.title}\n\n" if options.include_title else ""
    if options.include_url:
        md += f"**URL:** {result.url}\n\n"
    if result.error is not None:
        md += f"**Error:** {result.error}\n\n"
    elif result.content:
        md += f"**Content:**\n```\n{result.content}\n```\n\n"
    else:
        md += "**Content:** (not found)\n\n"
    return md


def _text_plain(result: ExtractionResult, options: RenderOptions) -> str:
    text = f"{result.title}\n" if options.include_title else ""
    if options.include_url:
        text += f"{result.url}\n"
    if result.error is not None:
        text += f"Error: {result.error}\n"
    elif result.content:
        text += f"{result.content}\n"
    else:
        text += "(content not found)\n"
    return text


# --- Links ---


def _links(result: ExtractionResult) -> List[Link]:
    return list(result.content) if isinstance(result.content, list) else []


def _links_markdown(result: ExtractionResult, options: RenderOptions) -> str:
    md = f"## {result.title}\n\n"
    if result.error is not None:
        return md + f"**Error:** {result.error}\n"
    for link in _links(result):
        md += f"- [{link.text}]({link.href})\n"
    return md


def _links_plain(result: ExtractionResult, options: RenderOptions) -> str:
    text = _underline(result.title)
    if result.error is not None:
        return text + f"Error: {result.error}\n"
    for link in _links(result):
        text += f"{link.text}\n{link.href}\n\n"
    return text


# --- Metadata ---


def _metadata_items(result: ExtractionResult) -> List[Tuple[str, Any]]:
    if not isinstance(result.content, dict):
        return []
    return [(key, value) for key, value in result.content.items() if value is not None]


def _metadata_markdown(result: ExtractionResult, options: RenderOptions) -> str:
    md = f"## {result.title}\n\n" if options.include_title else ""
    if options.include_url:
        md += f"**URL:** {result.url}\n\n"
    if result.error is not None:
        return md + f"**Error:** {result.error}\n\n"
    items = _metadata_items(result)
    if not items:
        return md + "**Metadata:** (not found)\n\n"
    for key, value in items:
        md += f"- **{key}:** {_display(value)}\n"
    return md + "\n"


def _metadata_plain(result: ExtractionResult, options: RenderOptions) -> str:
    text = f"{result.title}\n" if options.include_title else ""
    if options.include_url:
        text += f"{result.url}\n"
    if result.error is not None:
        return text + f"Error: {result.error}\n"
    items = _metadata_items(result)
    if not items:
        return text + "(metadata not found)\n"
    for key, value in items:
        text += f"{key}: {_display(value)}\n"
    return text


# --- Articles ---


def _article_markdown(result: ExtractionResult, options: RenderOptions) -> str:
    if result.error is not None:
        return f"## {result.title}\n\n**Error:** {result.error}\n\n"
    article = result.content
    if not isinstance(article, Article):
        return f"## {result.title}\n\n*Could not extract article content*\n\n"
    md = f"# {article.title}\n\n"
    md += f"**Author:** {article.author or 'Unknown'}\n"
    md += f"**URL:** {result.url}\n\n"
    return md + article.text


def _article_plain(result: ExtractionResult, options: RenderOptions) -> str:
    if result.error is not None:
        return f"{result.title}\n\nError: {result.error}\n\n"
    article = result.content
    if not isinstance(article, Article):
        return f"{result.title}\n\nCould not extract article content\n\n"
    text = _underline(article.title)
    if article.author:
        text += f"By {article.author}\n"
    return text + f"\n{article.text}\n"


# --- AI completions ---


def _completion_heading(result: ExtractionResult, markdown: bool) -> Optional[str]:
    completion = result.content
    if not isinstance(completion, Completion):
        return f"# {result.title}" if markdown else _underline(result.title).rstrip("\n")
    if completion.question is not None:
        return f"Question: {completion.question}"
    if completion.template is not None:
        return None
    return f"# {completion.title}" if markdown else _underline(completion.title).rstrip("\n")


def _completion(result: ExtractionResult, options: RenderOptions, markdown: bool) -> str:
    parts: List[str] = []
    heading = _completion_heading(result, markdown)
    if heading is not None:
        parts.append(heading)
    if result.error is not None:
        parts.append(f"**Error:** {result.error}" if markdown else f"Error: {result.error}")
    elif isinstance(result.content, Completion):
        parts.append(result.content.text)
    if options.include_url:
        parts.append(f"Source: {result.url}")
    return "\n\n".join(parts)


def _completion_markdown(result: ExtractionResult, options: RenderOptions) -> str:
    return _completion(result, options, markdown=True)


def _completion_plain(result: ExtractionResult, options: RenderOptions) -> str:
    return _completion(result, options, markdown=False)


# (format, kind) -> (block renderer, separator)
_RULES: Dict[Tuple[OutputFormat, ContentKind], Tuple[BlockRenderer, str]] = {
    (OutputFormat.MARKDOWN, ContentKind.TEXT): (_text_markdown, "---\n\n"),
    (OutputFormat.TEXT, ContentKind.TEXT): (_text_plain, "\n---\n\n"),
    (OutputFormat.MARKDOWN, ContentKind.LINKS): (_links_markdown, "\n"),
    (OutputFormat.TEXT, ContentKind.LINKS): (_links_plain, "\n"),
    (OutputFormat.MARKDOWN, ContentKind.METADATA): (_metadata_markdown, "---\n\n"),
    (OutputFormat.TEXT, ContentKind.METADATA): (_metadata_plain, "\n---\n\n"),
    (OutputFormat.MARKDOWN, ContentKind.ARTICLE): (_article_markdown, "\n\n---\n\n"),
    (OutputFormat.TEXT, ContentKind.ARTICLE): (_article_plain, "\n---\n\n"),
    (OutputFormat.MARKDOWN, ContentKind.COMPLETION): (_completion_markdown, "\n\n---\n\n"),
    (OutputFormat.TEXT, ContentKind.COMPLETION): (_completion_plain, "\n\n---\n\n"),
}


def render(
    results: Sequence[ExtractionResult],
    fmt: OutputFormat,
    options: RenderOptions = DEFAULT_OPTIONS,
) -> str:
    """
    Render results as one string.

    JSON serializes every result as ``{title, url, content, error?}``. The
    markdown and text layouts depend on the kind of content, which is shared
    by every result of one run.
    """
    fmt = OutputFormat(fmt)
    if fmt is OutputFormat.JSON:
        return json.dumps([result.to_dict() for result in results], indent=2, ensure_ascii=False)
    if not results:
        return ""

    block, separator = _RULES[(fmt, results[0].kind)]
    return separator.join(block(result, options) for result in results)


def render_tabs(
    documents: Sequence[Document],
    fmt: OutputFormat,
    options: RenderOptions = DEFAULT_OPTIONS,
) -> str:
    """Render a plain tab listing, without extraction."""
    fmt = OutputFormat(fmt)
    if fmt is OutputFormat.JSON:
        listing = [{"title": doc.title, "url": doc.url, "isActive": doc.is_active} for doc in documents]
        return json.dumps(listing, indent=2, ensure_ascii=False)

    lines: List[str] = []
    for doc in documents:
        if fmt is OutputFormat.MARKDOWN:
            active = " (active)" if doc.is_active else ""
            if options.include_title and options.include_url:
                lines.append(f"- [{doc.title}]({doc.url}){active}")
            elif options.include_title:
                lines.append(f"- {doc.title}{active}")
            else:
                lines.append(f"- {doc.url}{active}")
        else:
            parts = []
            if options.include_title:
                parts.append(doc.title)
            if options.include_url:
                parts.append(doc.url)
            lines.append(" - ".join(parts))
    return "\n".join(lines)


def render_citation(documents: Sequence[Document], style: CitationStyle = CitationStyle.MARKDOWN) -> str:
    style = CitationStyle(style)
    citations = []
    for doc in documents:
        url = normalize_url(doc.url)
        if style is CitationStyle.MARKDOWN:
            citations.append(f"[{doc.title}]({url})")
        elif style is CitationStyle.URL:
            citations.append(url)
        else:
            citations.append(f"{doc.title}\n{url}")
    return "\n".join(citations)
