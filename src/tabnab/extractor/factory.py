"""
Extraction requests and their one-time mapping to strategies.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Optional, Type, Union

from tabnab.ai import SUMMARIZE_PROMPT, AIClient, CompletionOptions, PromptStore, question_prompt
from tabnab.exceptions import ConfigError
from tabnab.filters import compile_pattern

from .link_extractor import LinkExtractor
from .metadata_extractor import MetadataExtractor
from .prompt_extractor import PromptExtractor
from .protocols import ExtractionStrategy
from .readability_extractor import ReadabilityExtractor
from .selector_extractor import SelectorExtractor, parse_property
from .source_extractor import SourceExtractor


@dataclass(frozen=True)
class SelectorRequest:
    selector: str
    property: Optional[str] = None


@dataclass(frozen=True)
class LinksRequest:
    internal_only: bool = False
    external_only: bool = False
    pattern: Optional[str] = None


@dataclass(frozen=True)
class MetadataRequest:
    pass


@dataclass(frozen=True)
class ReadabilityRequest:
    pass


@dataclass(frozen=True)
class SourceRequest:
    pretty: bool = False


@dataclass(frozen=True)
class PromptRequest:
    """
    AI request. ``question`` asks about the page, ``template_name`` applies a
    stored template, neither summarizes. Explicit overrides beat the
    template's own settings, which beat configured defaults.
    """

    template_name: Optional[str] = None
    question: Optional[str] = None
    model: Optional[str] = None
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None

    @property
    def overrides(self) -> CompletionOptions:
        return CompletionOptions(model=self.model, temperature=self.temperature, max_tokens=self.max_tokens)


ExtractionRequest = Union[
    SelectorRequest, LinksRequest, MetadataRequest, ReadabilityRequest, SourceRequest, PromptRequest
]


class StrategyFactory:
    """
    Builds the strategy for a request.

    Everything that can be rejected up front (bad patterns, conflicting
    flags, missing credential, unknown template) raises here, before any
    document is touched.
    """

    def __init__(self, ai_client: Optional[AIClient] = None, prompt_store: Optional[PromptStore] = None) -> None:
        self.ai_client = ai_client
        self.prompt_store = prompt_store
        self._builders: Dict[Type, Callable[..., ExtractionStrategy]] = {
            SelectorRequest: self._selector,
            LinksRequest: self._links,
            MetadataRequest: self._metadata,
            ReadabilityRequest: self._readability,
            SourceRequest: self._source,
            PromptRequest: self._prompt,
        }

    def build(self, request: ExtractionRequest) -> ExtractionStrategy:
        builder = self._builders.get(type(request))
        if builder is None:
            raise ConfigError(f"Unsupported extraction request: {type(request).__name__}")
        return builder(request)

    def _selector(self, request: SelectorRequest) -> ExtractionStrategy:
        if not request.selector.strip():
            raise ConfigError("A CSS selector is required")
        return SelectorExtractor(request.selector, parse_property(request.property))

    def _links(self, request: LinksRequest) -> ExtractionStrategy:
        pattern = compile_pattern(request.pattern, "link filter") if request.pattern else None
        return LinkExtractor(request.internal_only, request.external_only, pattern)

    def _metadata(self, request: MetadataRequest) -> ExtractionStrategy:
        return MetadataExtractor()

    def _readability(self, request: ReadabilityRequest) -> ExtractionStrategy:
        return ReadabilityExtractor()

    def _source(self, request: SourceRequest) -> ExtractionStrategy:
        return SourceExtractor(pretty=request.pretty)

    def _prompt(self, request: PromptRequest) -> ExtractionStrategy:
        if self.ai_client is None:
            raise ConfigError("AI extraction requires an AI client")
        self.ai_client.ensure_credential()

        options = request.overrides
        if request.question is not None:
            template = question_prompt(request.question)
        elif request.template_name is not None:
            if self.prompt_store is None:
                raise ConfigError("Prompt templates require a prompt store")
            stored = self.prompt_store.require(request.template_name)
            template = stored.prompt
            options = options.merged_over(stored.completion_options())
        else:
            template = SUMMARIZE_PROMPT

        return PromptExtractor(
            self.ai_client,
            template,
            options,
            question=request.question,
            template_name=request.template_name if request.question is None else None,
        )
