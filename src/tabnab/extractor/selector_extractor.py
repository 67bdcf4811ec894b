"""
CSS selector extraction.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Optional, Union

import structlog
from bs4 import BeautifulSoup, Tag
from soupsieve import SelectorSyntaxError

from tabnab.documents import Document
from tabnab.exceptions import ParseError

from .models import ContentKind

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class TextProperty:
    """Trimmed text content of the first match."""


@dataclass(frozen=True)
class HtmlProperty:
    """Inner HTML of the first match."""


@dataclass(frozen=True)
class AllAttributes:
    """Every attribute of the first match, as a JSON object string."""


@dataclass(frozen=True)
class NamedAttribute:
    """A single attribute of the first match."""

    name: str


SelectorProperty = Union[TextProperty, HtmlProperty, AllAttributes, NamedAttribute]

ATTR_PREFIX = "attr:"


def parse_property(raw: Optional[str]) -> SelectorProperty:
    """Map ``text``/``html``/``attr``/``attr:<name>`` to a property; anything else means text."""
    if raw == "html":
        return HtmlProperty()
    if raw == "attr":
        return AllAttributes()
    if raw is not None and raw.startswith(ATTR_PREFIX):
        return NamedAttribute(raw[len(ATTR_PREFIX) :])
    return TextProperty()


def read_property(element: Tag, prop: SelectorProperty) -> Optional[str]:
    if isinstance(prop, HtmlProperty):
        return element.decode_contents()
    if isinstance(prop, AllAttributes):
        return json.dumps(dict(element.attrs), ensure_ascii=False, separators=(",", ":"))
    if isinstance(prop, NamedAttribute):
        value = element.get(prop.name)
        return str(value) if value else None
    return element.get_text().strip()


def select_content(tree: BeautifulSoup, selector: str, prop: SelectorProperty) -> Optional[str]:
    """Evaluate the selector against a tree. No match yields ``None``."""
    try:
        element = tree.select_one(selector)
    except SelectorSyntaxError as e:
        raise ParseError(f"Invalid selector '{selector}': {e}") from e

    if element is None:
        return None
    return read_property(element, prop)


class SelectorExtractor:
    """Extract one value from the first element matching a CSS selector."""

    name = "selector"
    kind = ContentKind.TEXT

    def __init__(self, selector: str, prop: Optional[SelectorProperty] = None) -> None:
        self.selector = selector
        self.prop = prop or TextProperty()

    async def extract(self, document: Document) -> Optional[str]:
        tree = await document.load_tree()
        content = select_content(tree, self.selector, self.prop)
        if content is None:
            logger.debug("Selector matched nothing", url=document.url, selector=self.selector)
        return content
