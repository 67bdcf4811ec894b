"""
AI prompt extraction: readability first, then the article text through Claude.
"""

from __future__ import annotations

from typing import Optional

import structlog

from tabnab.ai import AIClient, CompletionOptions
from tabnab.documents import Document
from tabnab.exceptions import ParseError

from .models import Completion, ContentKind
from .readability_extractor import ReadabilityExtractor

logger = structlog.get_logger(__name__)


class PromptExtractor:
    """Apply a prompt template to each document's article text."""

    name = "prompt"
    kind = ContentKind.COMPLETION

    def __init__(
        self,
        client: AIClient,
        prompt_template: str,
        options: Optional[CompletionOptions] = None,
        question: Optional[str] = None,
        template_name: Optional[str] = None,
        readability: Optional[ReadabilityExtractor] = None,
    ) -> None:
        client.ensure_credential()
        self.client = client
        self.prompt_template = prompt_template
        self.options = options or CompletionOptions()
        self.question = question
        self.template_name = template_name
        self.readability = readability or ReadabilityExtractor()

    async def extract(self, document: Document) -> Completion:
        article = await self.readability.extract(document)
        if article is None:
            raise ParseError("Could not extract article content from page")

        logger.info("Sending article to Claude", url=document.url, text_length=len(article.text))
        answer = await self.client.complete(article.text, self.prompt_template, self.options)
        return Completion(
            title=article.title,
            author=article.author,
            text=answer,
            question=self.question,
            template=self.template_name,
        )
