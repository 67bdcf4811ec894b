"""
Dependency container owning the collaborators of one tabnab run.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Callable, Dict, Generic, Optional, TypeVar
from uuid import uuid4

import structlog

from tabnab.aggregator import Aggregator
from tabnab.ai import AIClient, PromptStore
from tabnab.config import Config
from tabnab.documents import AppleScriptRunner, BrowserSourceFetcher, ChromeBrowser, HtmlFetcher, HttpFetcher
from tabnab.extractor import StrategyFactory
from tabnab.sink import ClipboardSink, Sink, StdoutSink

T = TypeVar("T")


class LazyInstance(Generic[T]):
    """Lazily created instance with optional async ``initialize``/``close`` hooks."""

    def __init__(self, factory: Callable[..., T], *args: Any, **kwargs: Any) -> None:
        self._factory = factory
        self._args = args
        self._kwargs = kwargs
        self._instance: Optional[T] = None

    async def get(self) -> T:
        if self._instance is None:
            instance = self._factory(*self._args, **self._kwargs)
            initialize = getattr(instance, "initialize", None)
            if callable(initialize):
                await initialize()
            self._instance = instance
        return self._instance

    async def cleanup(self) -> None:
        close = getattr(self._instance, "close", None)
        if self._instance is not None and callable(close):
            await close()
        self._instance = None


class DependencyContainer:
    """
    Builds collaborators from one read-only Config on first use.

    The fetch mode decides the HTML fetcher: ``browser`` reads the live tab
    through AppleScript, ``http`` re-requests the URL with aiohttp.
    """

    def __init__(self, config: Config) -> None:
        self.config = config
        self.run_id = str(uuid4())
        self.logger = structlog.get_logger(self.__class__.__name__).bind(run_id=self.run_id)
        self.is_running = False

        self._runner = AppleScriptRunner()
        self._instances: Dict[str, LazyInstance[Any]] = {
            "fetcher": LazyInstance(self._create_fetcher),
            "ai_client": LazyInstance(AIClient, config.ai),
            "prompt_store": LazyInstance(PromptStore, config.prompts_dir),
        }

    def _create_fetcher(self) -> HtmlFetcher:
        if self.config.fetch.mode == "http":
            return HttpFetcher(self.config.fetch)
        return BrowserSourceFetcher(self._runner)

    async def get_fetcher(self) -> HtmlFetcher:
        return await self._instances["fetcher"].get()  # type: ignore[no-any-return]

    async def get_browser(self) -> ChromeBrowser:
        return ChromeBrowser(fetcher=await self.get_fetcher(), runner=self._runner)

    async def get_ai_client(self) -> AIClient:
        return await self._instances["ai_client"].get()  # type: ignore[no-any-return]

    async def get_prompt_store(self) -> PromptStore:
        return await self._instances["prompt_store"].get()  # type: ignore[no-any-return]

    async def get_strategy_factory(self) -> StrategyFactory:
        return StrategyFactory(ai_client=await self.get_ai_client(), prompt_store=await self.get_prompt_store())

    def get_aggregator(self) -> Aggregator:
        return Aggregator.from_config(self.config.fetch)

    def get_sink(self, clipboard: bool = False) -> Sink:
        if clipboard:
            return ClipboardSink(self.config.sink.clipboard_command)
        return StdoutSink()

    @asynccontextmanager
    async def lifecycle(self) -> AsyncIterator[DependencyContainer]:
        self.is_running = True
        try:
            yield self
        finally:
            await self.shutdown()

    async def shutdown(self) -> None:
        if not self.is_running:
            return
        for name, instance in self._instances.items():
            try:
                await instance.cleanup()
            except Exception as e:
                self.logger.error("Error cleaning up collaborator", collaborator=name, error=str(e))
        self.is_running = False
        self.logger.debug("Dependency container shut down")
