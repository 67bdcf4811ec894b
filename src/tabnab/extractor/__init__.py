"""
Extraction strategies for tabnab.

Each strategy turns one Document into one piece of content:
1. selector: first element matching a CSS selector (text, HTML or attributes)
2. links: resolved anchors, classified internal or external
3. metadata: Open Graph / Twitter Card / meta tag fields
4. readability: main article title, byline and text
5. source: raw or re-serialized HTML
6. prompt: article text run through a Claude prompt template
"""

from .factory import (
    ExtractionRequest,
    LinksRequest,
    MetadataRequest,
    PromptRequest,
    ReadabilityRequest,
    SelectorRequest,
    SourceRequest,
    StrategyFactory,
)
from .link_extractor import LinkExtractor, resolve_link
from .metadata_extractor import MetadataExtractor, MetadataScraper
from .models import Article, Completion, Content, ContentKind, ExtractionResult, Link
from .prompt_extractor import PromptExtractor
from .protocols import ExtractionStrategy
from .readability_extractor import ReadabilityExtractor, parse_article
from .selector_extractor import (
    AllAttributes,
    HtmlProperty,
    NamedAttribute,
    SelectorExtractor,
    TextProperty,
    parse_property,
)
from .source_extractor import SourceExtractor

__all__ = [
    "AllAttributes",
    "Article",
    "Completion",
    "Content",
    "ContentKind",
    "ExtractionRequest",
    "ExtractionResult",
    "ExtractionStrategy",
    "HtmlProperty",
    "Link",
    "LinkExtractor",
    "LinksRequest",
    "MetadataExtractor",
    "MetadataRequest",
    "MetadataScraper",
    "NamedAttribute",
    "PromptExtractor",
    "PromptRequest",
    "ReadabilityExtractor",
    "ReadabilityRequest",
    "SelectorExtractor",
    "SelectorRequest",
    "SourceExtractor",
    "SourceRequest",
    "StrategyFactory",
    "TextProperty",
    "parse_article",
    "parse_property",
    "resolve_link",
]
