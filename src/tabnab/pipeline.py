"""
Pipeline orchestration for tabnab.

One run: select documents (enumerate, active-only, filter), build the
strategy, fan out through the aggregator, render, then hand the string to
the sink. Everything that can fail fatally does so before the sink is
touched.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import structlog

from tabnab.container import DependencyContainer
from tabnab.documents import Document
from tabnab.exceptions import NoDocumentsError
from tabnab.extractor import ExtractionRequest, ExtractionResult
from tabnab.filters import CompiledFilter, FilterSpec
from tabnab.formatter import (
    DEFAULT_OPTIONS,
    CitationStyle,
    OutputFormat,
    RenderOptions,
    render,
    render_citation,
    render_tabs,
)


@dataclass(frozen=True)
class Selection:
    """Which documents a run operates on."""

    filter: FilterSpec = field(default_factory=FilterSpec)
    active_only: bool = False


@dataclass
class RunReport:
    documents: List[Document]
    results: List[ExtractionResult]
    output: str

    @property
    def failed_count(self) -> int:
        return sum(1 for result in self.results if not result.ok)


class Pipeline:
    def __init__(self, container: DependencyContainer) -> None:
        self.container = container
        self.logger = structlog.get_logger(self.__class__.__name__).bind(run_id=container.run_id)

    async def select(
        self,
        selection: Selection,
        allow_empty: bool = False,
        compiled: Optional[CompiledFilter] = None,
    ) -> List[Document]:
        """Enumerate tabs and apply the selection, keeping enumeration order."""
        compiled = compiled or selection.filter.compile()
        browser = await self.container.get_browser()

        documents = [await browser.active()] if selection.active_only else await browser.enumerate()
        selected = [document for document in documents if compiled.matches(document)]

        self.logger.debug("Documents selected", enumerated=len(documents), selected=len(selected))
        if not selected and not allow_empty:
            raise NoDocumentsError("No tabs matched the given filters")
        return selected

    async def extract(self, request: ExtractionRequest, selection: Selection) -> List[ExtractionResult]:
        _, results = await self._extract(request, selection)
        return results

    async def _extract(
        self, request: ExtractionRequest, selection: Selection
    ) -> Tuple[List[Document], List[ExtractionResult]]:
        compiled = selection.filter.compile()
        factory = await self.container.get_strategy_factory()
        strategy = factory.build(request)

        documents = await self.select(selection, compiled=compiled)
        self.logger.info("Starting extraction", strategy=strategy.name, documents=len(documents))
        results = await self.container.get_aggregator().run(documents, strategy)
        return documents, results

    async def run(
        self,
        request: ExtractionRequest,
        selection: Selection,
        fmt: OutputFormat = OutputFormat.TEXT,
        options: RenderOptions = DEFAULT_OPTIONS,
        clipboard: bool = False,
    ) -> RunReport:
        start_time = time.time()
        documents, results = await self._extract(request, selection)
        output = render(results, fmt, options)
        await self.container.get_sink(clipboard).write(output)

        report = RunReport(documents=documents, results=results, output=output)
        self.logger.info(
            "Run completed",
            documents=len(documents),
            failed=report.failed_count,
            duration=round(time.time() - start_time, 3),
        )
        return report

    async def list_tabs(
        self,
        selection: Selection,
        fmt: OutputFormat = OutputFormat.TEXT,
        options: RenderOptions = DEFAULT_OPTIONS,
        clipboard: bool = False,
    ) -> RunReport:
        documents = await self.select(selection, allow_empty=not selection.active_only)
        output = render_tabs(documents, fmt, options)
        await self.container.get_sink(clipboard).write(output)
        return RunReport(documents=documents, results=[], output=output)

    async def cite(
        self,
        selection: Selection,
        style: CitationStyle = CitationStyle.MARKDOWN,
        clipboard: bool = False,
    ) -> RunReport:
        documents = await self.select(selection)
        output = render_citation(documents, style)
        await self.container.get_sink(clipboard).write(output)
        return RunReport(documents=documents, results=[], output=output)
