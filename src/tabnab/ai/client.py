"""
AI completion collaborator backed by Anthropic chat models.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

import structlog
from langchain_anthropic import ChatAnthropic
from langchain_core.language_models import BaseChatModel
from langchain_core.messages import HumanMessage

from tabnab.config.config import AIConfig
from tabnab.exceptions import MissingCredentialError, UpstreamError

logger = structlog.get_logger(__name__)

CONTENT_PLACEHOLDER = "{content}"


@dataclass(frozen=True)
class CompletionOptions:
    """Per-call overrides; ``None`` falls back to the configured default."""

    model: Optional[str] = None
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None

    def merged_over(self, fallback: CompletionOptions) -> CompletionOptions:
        """Fill unset fields from ``fallback``."""
        return CompletionOptions(
            model=self.model or fallback.model,
            temperature=self.temperature if self.temperature is not None else fallback.temperature,
            max_tokens=self.max_tokens or fallback.max_tokens,
        )


def render_prompt(template: str, content: str) -> str:
    """Substitute the article text into the template's single placeholder."""
    return template.replace(CONTENT_PLACEHOLDER, content, 1)


def message_text(message: Any) -> str:
    """Text of a chat model reply; non-text content blocks are ignored."""
    content = getattr(message, "content", message)
    if isinstance(content, str):
        return content
    for block in content or []:
        if isinstance(block, str):
            return block
        if isinstance(block, dict) and block.get("type") == "text":
            return str(block.get("text", ""))
    return ""


class AIClient:
    """Sends one prompt per call to Claude and returns the reply text."""

    def __init__(self, config: AIConfig) -> None:
        self.config = config

    def has_credential(self) -> bool:
        return self.config.has_credential()

    def ensure_credential(self) -> str:
        api_key = self.config.resolve_api_key()
        if not api_key:
            raise MissingCredentialError()
        return api_key

    def create_chat_model(self, api_key: str, model: str, temperature: float, max_tokens: int) -> BaseChatModel:
        return ChatAnthropic(
            model=model,
            api_key=api_key,
            max_tokens=max_tokens,
            temperature=temperature,
        )

    async def complete(
        self,
        content: str,
        prompt_template: str,
        options: Optional[CompletionOptions] = None,
    ) -> str:
        api_key = self.ensure_credential()
        opts = options or CompletionOptions()

        model = opts.model or self.config.default_model
        temperature = opts.temperature if opts.temperature is not None else self.config.default_temperature
        max_tokens = opts.max_tokens or self.config.default_max_tokens

        llm = self.create_chat_model(api_key, model, temperature, max_tokens)
        prompt = render_prompt(prompt_template, content)

        logger.debug("Requesting completion", model=model, temperature=temperature, prompt_length=len(prompt))
        try:
            reply = await llm.ainvoke([HumanMessage(content=prompt)])
        except Exception as e:
            raise UpstreamError(f"Claude request failed: {e}") from e

        return message_text(reply)
