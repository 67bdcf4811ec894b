"""
Prompt templates: the built-in AI prompts and the on-disk template store.

Templates are JSON files named ``<name>.json``; field names follow the
``maxTokens`` spelling so existing template files stay readable.
"""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import List, Optional

import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from tabnab.exceptions import ConfigError, TemplateNotFoundError
from tabnab.utils import atomic_write_json

from .client import CompletionOptions

logger = structlog.get_logger(__name__)

SUMMARIZE_PROMPT = "Summarize this webpage in 3-5 concise bullet points:\n\n{content}"

_NAME_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.-]*$")


def question_prompt(question: str) -> str:
    return f"Answer this question about the following webpage content:\n\nQuestion: {question}\n\nContent:\n{{content}}"


class PromptTemplate(BaseModel):
    """A named prompt with optional completion overrides."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    description: str = ""
    prompt: str
    model: Optional[str] = None
    temperature: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    max_tokens: Optional[int] = Field(default=None, alias="maxTokens", gt=0)

    def completion_options(self) -> CompletionOptions:
        return CompletionOptions(model=self.model, temperature=self.temperature, max_tokens=self.max_tokens)

    def to_json(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


DEFAULT_TEMPLATES = [
    PromptTemplate(
        name="summarize",
        description="Summarize page in 3-5 bullet points",
        prompt=SUMMARIZE_PROMPT,
    ),
    PromptTemplate(
        name="extract-features",
        description="Extract product features as structured data",
        prompt=(
            "Extract key product features as a JSON array from this page. Return ONLY the JSON array.\n\n"
            '{content}\n\nReturn format: ["feature 1", "feature 2", ...]'
        ),
    ),
    PromptTemplate(
        name="simplify",
        description="Explain content in simple terms",
        prompt="Explain this content in simple terms that a beginner could understand:\n\n{content}",
    ),
    PromptTemplate(
        name="action-items",
        description="Extract action items and tasks",
        prompt="Extract all action items, tasks, or to-dos from this content:\n\n{content}",
    ),
    PromptTemplate(
        name="key-points",
        description="Extract key points and main ideas",
        prompt="Extract the key points and main ideas from this content:\n\n{content}",
    ),
]


class PromptStore:
    """Directory of prompt template JSON files."""

    def __init__(self, directory: Path) -> None:
        self.directory = Path(directory)

    def _path(self, name: str) -> Path:
        if not _NAME_PATTERN.match(name):
            raise ConfigError(f"Invalid prompt template name '{name}'")
        return self.directory / f"{name}.json"

    def _load(self, path: Path) -> PromptTemplate:
        try:
            return PromptTemplate.model_validate(json.loads(path.read_text(encoding="utf-8")))
        except (json.JSONDecodeError, ValidationError) as e:
            raise ConfigError(f"Prompt template file {path} is invalid: {e}") from e

    def list_prompts(self) -> List[PromptTemplate]:
        if not self.directory.is_dir():
            return []
        templates = []
        for path in sorted(self.directory.glob("*.json")):
            try:
                templates.append(self._load(path))
            except ConfigError as e:
                logger.warning("Skipping unreadable prompt template", path=str(path), error=str(e))
        return templates

    def get(self, name: str) -> Optional[PromptTemplate]:
        path = self._path(name)
        if not path.is_file():
            return None
        return self._load(path)

    def require(self, name: str) -> PromptTemplate:
        template = self.get(name)
        if template is None:
            raise TemplateNotFoundError(name)
        return template

    def save(self, template: PromptTemplate) -> Path:
        path = self._path(template.name)
        atomic_write_json(path, template.to_json())
        return path

    def delete(self, name: str) -> bool:
        path = self._path(name)
        if not path.is_file():
            return False
        path.unlink()
        return True

    def initialize_defaults(self) -> List[str]:
        """Write the stock templates that do not exist yet; returns the names written."""
        created = []
        for template in DEFAULT_TEMPLATES:
            if self.get(template.name) is None:
                self.save(template)
                created.append(template.name)
        return created
