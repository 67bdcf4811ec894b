"""
Data models for extraction results.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from tabnab.documents.document import DocumentRef


class ContentKind(Enum):
    """Shape of a strategy's successful content."""

    TEXT = "text"
    LINKS = "links"
    METADATA = "metadata"
    ARTICLE = "article"
    COMPLETION = "completion"


@dataclass(slots=True, frozen=True)
class Link:
    href: str
    text: str


@dataclass(slots=True, frozen=True)
class Article:
    """Readable article body as identified by the readability extractor."""

    title: str
    author: Optional[str]
    text: str


@dataclass(slots=True, frozen=True)
class Completion:
    """AI output for one document, carried with the article it was derived from."""

    title: str
    author: Optional[str]
    text: str
    question: Optional[str] = None
    template: Optional[str] = None


Content = Union[str, List[Link], Dict[str, Any], Article, Completion, None]


def content_to_json(content: Content) -> Any:
    """Convert content to plain JSON-serializable values."""
    if isinstance(content, (Article, Completion)):
        data: Dict[str, Any] = {"title": content.title, "author": content.author, "text": content.text}
        if isinstance(content, Completion):
            if content.question is not None:
                data["question"] = content.question
            if content.template is not None:
                data["template"] = content.template
        return data
    if isinstance(content, list):
        return [{"href": link.href, "text": link.text} if isinstance(link, Link) else link for link in content]
    return content


@dataclass(frozen=True)
class ExtractionResult:
    """
    Outcome of one strategy applied to one document.

    Exactly one of ``content`` and ``error`` is meaningful: a failure has an
    error message and no content, a success has no error. Success with
    ``content=None`` means the strategy found nothing, which is not an error.
    """

    document: DocumentRef
    kind: ContentKind
    content: Content = None
    error: Optional[str] = None

    def __post_init__(self) -> None:
        if self.error is not None and self.content is not None:
            raise ValueError("A failed result cannot carry content")
        if self.error == "":
            raise ValueError("A failed result needs an error message")

    @classmethod
    def success(cls, document: DocumentRef, kind: ContentKind, content: Content) -> ExtractionResult:
        return cls(document=document, kind=kind, content=content)

    @classmethod
    def failure(cls, document: DocumentRef, kind: ContentKind, error: str) -> ExtractionResult:
        return cls(document=document, kind=kind, error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def title(self) -> str:
        return self.document.title

    @property
    def url(self) -> str:
        return self.document.url

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "title": self.title,
            "url": self.url,
            "content": content_to_json(self.content),
        }
        if self.error is not None:
            data["error"] = self.error
        return data
