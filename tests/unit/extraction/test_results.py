"""
Unit tests for ExtractionResult.
"""

from __future__ import annotations

import pytest

from tabnab.documents import DocumentRef
from tabnab.extractor import Article, ContentKind, ExtractionResult, Link

REF = DocumentRef("Title", "https://a.test/")


def test_success_and_failure():
    ok = ExtractionResult.success(REF, ContentKind.TEXT, "hello")
    failed = ExtractionResult.failure(REF, ContentKind.TEXT, "boom")

    assert ok.ok and ok.error is None
    assert not failed.ok and failed.content is None
    assert failed.title == "Title" and failed.url == "https://a.test/"


def test_not_found_is_success():
    result = ExtractionResult.success(REF, ContentKind.TEXT, None)
    assert result.ok
    assert result.to_dict() == {"title": "Title", "url": "https://a.test/", "content": None}


def test_content_and_error_are_exclusive():
    with pytest.raises(ValueError):
        ExtractionResult(REF, ContentKind.TEXT, content="x", error="y")
    with pytest.raises(ValueError):
        ExtractionResult.failure(REF, ContentKind.TEXT, "")


def test_to_dict_shapes():
    links = ExtractionResult.success(REF, ContentKind.LINKS, [Link("https://b.test/", "B")])
    article = ExtractionResult.success(REF, ContentKind.ARTICLE, Article("T", None, "body"))
    failed = ExtractionResult.failure(REF, ContentKind.LINKS, "boom")

    assert links.to_dict()["content"] == [{"href": "https://b.test/", "text": "B"}]
    assert article.to_dict()["content"] == {"title": "T", "author": None, "text": "body"}
    assert failed.to_dict() == {"title": "Title", "url": "https://a.test/", "content": None, "error": "boom"}
