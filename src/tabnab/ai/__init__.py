"""AI completion and prompt templates."""

from .client import AIClient, CompletionOptions, render_prompt
from .prompts import DEFAULT_TEMPLATES, SUMMARIZE_PROMPT, PromptStore, PromptTemplate, question_prompt

__all__ = [
    "AIClient",
    "CompletionOptions",
    "DEFAULT_TEMPLATES",
    "PromptStore",
    "PromptTemplate",
    "SUMMARIZE_PROMPT",
    "question_prompt",
    "render_prompt",
]
