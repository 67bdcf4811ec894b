"""
FilterStage: reduce a document sequence by URL pattern and title search.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional, Pattern, Sequence

from tabnab.documents import Document
from tabnab.exceptions import ConfigError


def compile_pattern(pattern: str, what: str = "filter") -> Pattern[str]:
    """Compile a case-insensitive pattern; an invalid one is fatal."""
    try:
        return re.compile(pattern, re.IGNORECASE)
    except re.error as e:
        raise ConfigError(f"Invalid {what} pattern '{pattern}': {e}") from e


@dataclass(frozen=True)
class FilterSpec:
    """Both predicates are optional; an absent predicate matches everything."""

    url_pattern: Optional[str] = None
    title_search: Optional[str] = None

    def compile(self) -> CompiledFilter:
        return CompiledFilter(
            url_regex=compile_pattern(self.url_pattern, "URL filter") if self.url_pattern else None,
            title_search=self.title_search.lower() if self.title_search else None,
        )


@dataclass(frozen=True)
class CompiledFilter:
    url_regex: Optional[Pattern[str]]
    title_search: Optional[str]

    def matches(self, document: Document) -> bool:
        if self.url_regex is not None and not self.url_regex.search(document.url):
            return False
        if self.title_search is not None and self.title_search not in document.title.lower():
            return False
        return True


def apply_filter(documents: Sequence[Document], spec: FilterSpec) -> List[Document]:
    """Return the matching documents in their original relative order."""
    compiled = spec.compile()
    return [document for document in documents if compiled.matches(document)]
