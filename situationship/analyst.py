"""
Relationship Analyst

The two external calls of a screenshot analysis, made against the Claude
API with the async Anthropic client:

1. analyze_group - one group of screenshots -> one section-template analysis
2. merge_results - ordered group analyses -> one combined analysis

An analyst owns its AsyncAnthropic client. Use it as an async context
manager so the client's connection pool is closed on the event loop that
used it.
"""

import os
import logging
from typing import Any, Optional, Sequence

import anthropic

from .uploads import UploadItem
from .prompts import (
    ANALYSIS_SYSTEM_PROMPT,
    ANALYSIS_TEMPLATE,
    MERGE_SYSTEM_PROMPT,
    format_merge_prompt,
)

logger = logging.getLogger(__name__)


MODELS = {
    "sonnet": {
        "id": "claude-sonnet-4-5-20250929",
        "name": "Claude Sonnet 4.5",
        "description": "Balanced vision analysis (default)",
    },
    "opus": {
        "id": "claude-opus-4-5-20251101",
        "name": "Claude Opus 4.5",
        "description": "Most capable model, slower",
    },
    "haiku": {
        "id": "claude-haiku-4-5-20251001",
        "name": "Claude Haiku 4.5",
        "description": "Fast and efficient",
    },
}

DEFAULT_MODEL = "sonnet"


class EmptyResponseError(Exception):
    """The model returned no text."""


def resolve_model(model_key: Optional[str]) -> str:
    """Map a MODELS key to a model id, falling back to the default."""
    if not model_key:
        return MODELS[DEFAULT_MODEL]["id"]
    if model_key not in MODELS:
        logger.warning(f"Unknown model '{model_key}', using {DEFAULT_MODEL}")
        model_key = DEFAULT_MODEL
    return MODELS[model_key]["id"]


class RelationshipAnalyst:
    """
    Makes the analysis and merge calls for one request.

    Usage:
        async with RelationshipAnalyst(api_key="...") as analyst:
            partial = await analyst.analyze_group(items)
            final = await analyst.merge_results([partial])
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = DEFAULT_MODEL,
        max_tokens: int = 1500,
        temperature: float = 0.7,
        client: Optional[Any] = None,
    ):
        """
        Initialize the analyst.

        Args:
            api_key: Anthropic API key (defaults to ANTHROPIC_API_KEY env var)
            model: MODELS key for the model to use
            max_tokens: Maximum tokens per response
            temperature: Sampling temperature
            client: Pre-built async client, mainly for tests
        """
        if client is None:
            api_key = api_key or os.environ.get("ANTHROPIC_API_KEY")
            if not api_key:
                raise ValueError("Anthropic API key required")
            client = anthropic.AsyncAnthropic(api_key=api_key)

        self.client = client
        self.model = resolve_model(model)
        self.max_tokens = max_tokens
        self.temperature = temperature

    async def __aenter__(self) -> "RelationshipAnalyst":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        close = getattr(self.client, "close", None)
        if close is not None:
            await close()

    async def _complete(self, system: str, content: Any) -> str:
        response = await self.client.messages.create(
            model=self.model,
            max_tokens=self.max_tokens,
            temperature=self.temperature,
            system=system,
            messages=[{"role": "user", "content": content}],
        )

        text = "".join(
            block.text for block in (response.content or [])
            if getattr(block, "type", None) == "text"
        )
        if not text.strip():
            raise EmptyResponseError(f"{self.model} returned no text")
        return text

    async def analyze_group(self, group: Sequence[UploadItem]) -> str:
        """Analyze one group of screenshots with the section template."""
        content = [{"type": "text", "text": ANALYSIS_TEMPLATE}]
        content.extend(item.content_block() for item in group)

        logger.info(f"Analyzing {len(group)} screenshot(s) with {self.model}")
        return await self._complete(ANALYSIS_SYSTEM_PROMPT, content)

    async def merge_results(self, partials: list[str]) -> str:
        """Fold ordered group analyses into one document."""
        if not partials:
            return ""

        logger.info(f"Merging {len(partials)} analysis(es) with {self.model}")
        return await self._complete(MERGE_SYSTEM_PROMPT, format_merge_prompt(partials))
