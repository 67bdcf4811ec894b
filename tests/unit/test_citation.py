"""
Unit tests for citation URL normalization.
"""

from __future__ import annotations

import pytest

from tabnab.citation import normalize_url


@pytest.mark.parametrize(
    "url, expected",
    [
        ("https://www.example.com/", "https://example.com"),
        ("HTTPS://EXAMPLE.com:443/Path/", "https://example.com/Path"),
        ("http://example.com:8080/a", "http://example.com:8080/a"),
        ("https://example.com/a?utm_source=x&UTM_Medium=y&id=3", "https://example.com/a?id=3"),
        ("https://example.com/a?ref=hn&source=tw&fbclid=1&gclid=2", "https://example.com/a"),
        ("https://example.com/a?z=1&a=2", "https://example.com/a?a=2&z=1"),
        ("https://example.com/a#section", "https://example.com/a#section"),
        ("https://example.com/a#:~:text=hello", "https://example.com/a"),
        ("https://example.com//double//slash", "https://example.com/double/slash"),
    ],
)
def test_normalize_url(url, expected):
    assert normalize_url(url) == expected


def test_non_http_urls_are_untouched():
    assert normalize_url("chrome://settings/") == "chrome://settings/"
