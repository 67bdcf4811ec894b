"""
Exception hierarchy for tabnab.

Per-document failures (fetch, parse, upstream) are captured into the
document's ExtractionResult by the aggregator. Everything else is fatal to
the run and is surfaced by the CLI before anything reaches the sink.
"""

from __future__ import annotations


class TabnabError(Exception):
    """Base class for all tabnab errors."""


class FetchError(TabnabError):
    """A document's HTML could not be retrieved."""


class ParseError(TabnabError):
    """Tree construction or selector evaluation failed."""


class UpstreamError(TabnabError):
    """The AI or metadata collaborator failed."""


class ConfigError(TabnabError):
    """Invalid or missing configuration detected before fan-out."""


class MissingCredentialError(ConfigError):
    """No Anthropic API key is configured."""

    def __init__(self) -> None:
        super().__init__(
            "No Anthropic API key found. Set ANTHROPIC_API_KEY environment variable "
            "or run: tabnab config set-api-key <key>"
        )


class TemplateNotFoundError(ConfigError):
    """A named prompt template does not exist."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Prompt template '{name}' not found")
        self.name = name


class NoDocumentsError(TabnabError):
    """Filtering left nothing to extract from."""


class BrowserError(TabnabError):
    """The browser could not be queried for its tabs."""


class SinkError(TabnabError):
    """Rendered output could not be delivered."""


__all__ = [
    "TabnabError",
    "FetchError",
    "ParseError",
    "UpstreamError",
    "ConfigError",
    "MissingCredentialError",
    "TemplateNotFoundError",
    "NoDocumentsError",
    "BrowserError",
    "SinkError",
]
