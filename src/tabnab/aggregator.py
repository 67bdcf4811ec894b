"""
Fan a strategy out over documents and join the results in input order.
"""

from __future__ import annotations

import asyncio
import contextlib
import time
from typing import Any, List, Optional, Sequence

import structlog

from tabnab.config.config import FetchConfig
from tabnab.documents import Document
from tabnab.exceptions import FetchError
from tabnab.extractor import Content, ExtractionResult, ExtractionStrategy

logger = structlog.get_logger(__name__)


class ExtractionTimeout(FetchError):
    """A single document's extraction exceeded its deadline."""


class Aggregator:
    """
    Concurrent per-document extraction with failure isolation.

    Every document gets its own task up front; results are collected by
    index, so output order never depends on completion order. Any exception
    raised while extracting one document becomes that document's failure
    result and does not disturb its siblings.
    """

    def __init__(self, task_timeout: Optional[float] = None, max_concurrency: Optional[int] = None) -> None:
        self.task_timeout = task_timeout
        self.max_concurrency = max_concurrency
        self.logger = logger.bind(component="Aggregator")

    @classmethod
    def from_config(cls, config: FetchConfig) -> Aggregator:
        return cls(task_timeout=config.task_timeout, max_concurrency=config.max_concurrency)

    async def run(self, documents: Sequence[Document], strategy: ExtractionStrategy) -> List[ExtractionResult]:
        semaphore = asyncio.Semaphore(self.max_concurrency) if self.max_concurrency else None
        start_time = time.time()

        tasks = [
            asyncio.create_task(self._extract_one(document, strategy, semaphore), name=f"extract-{index}")
            for index, document in enumerate(documents)
        ]
        try:
            results = await asyncio.gather(*tasks)
        finally:
            for task in tasks:
                if not task.done():
                    task.cancel()

        failed = sum(1 for result in results if not result.ok)
        self.logger.info(
            "Extraction batch completed",
            strategy=strategy.name,
            documents=len(results),
            failed=failed,
            duration=round(time.time() - start_time, 3),
        )
        return list(results)

    async def _extract_one(
        self,
        document: Document,
        strategy: ExtractionStrategy,
        semaphore: Optional[asyncio.Semaphore],
    ) -> ExtractionResult:
        guard: Any = semaphore if semaphore is not None else contextlib.nullcontext()
        try:
            async with guard:
                content = await self._with_deadline(strategy.extract(document))
        except asyncio.CancelledError:
            raise
        except Exception as e:
            message = str(e) or type(e).__name__
            self.logger.warning(
                "Extraction failed",
                url=document.url,
                strategy=strategy.name,
                error=message,
                error_type=type(e).__name__,
            )
            return ExtractionResult.failure(document.ref, strategy.kind, message)

        return ExtractionResult.success(document.ref, strategy.kind, content)

    async def _with_deadline(self, extraction: Any) -> Content:
        if self.task_timeout is None:
            return await extraction
        try:
            return await asyncio.wait_for(extraction, timeout=self.task_timeout)
        except asyncio.TimeoutError as e:
            raise ExtractionTimeout(f"Extraction timed out after {self.task_timeout:g} seconds") from e
