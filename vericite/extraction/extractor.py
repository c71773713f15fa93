"""Citation extraction from free text via Gemini structured output."""

from __future__ import annotations

import logging
from typing import List

from pydantic import TypeAdapter, ValidationError

from vericite.exceptions import ParsingError
from vericite.llm.gemini_client import GeminiClient
from vericite.models import CandidateCitation, RetryPolicyConfig
from vericite.utils.retry_strategies import RetryingInvoker

logger = logging.getLogger(__name__)

# Inputs shorter than this cannot hold a citation.
MIN_TEXT_LENGTH = 5

CITATION_LIST_SCHEMA: dict = {
    "type": "array",
    "items": {
        "type": "object",
        "properties": {
            "original_text": {"type": "string"},
            "title": {"type": "string"},
            "author": {"type": "string"},
            "year": {"type": "string"},
            "doi": {"type": "string"},
        },
        "required": ["original_text", "title"],
    },
}

_CANDIDATES = TypeAdapter(List[CandidateCitation])


def _build_extraction_prompt(text: str) -> str:
    return "\n".join([
        "You are an expert academic librarian. Analyze the following text and extract every",
        "formal academic citation (APA, MLA, Chicago, Harvard, or Vancouver styles).",
        "",
        "RULES:",
        "1. Only extract citations that refer to specific academic works (papers, books, journals).",
        "2. Ignore general mentions of authors without a specific work.",
        "3. For each citation, provide:",
        "   - original_text: The exact string as it appears in the input.",
        "   - title: The full title of the work.",
        "   - author: The primary author or editors.",
        "   - year: The publication year.",
        "   - doi: The DOI string if present (e.g., 10.1145/...).",
        "4. If a field is missing, use an empty string.",
        "",
        "Return a JSON array of objects.",
        "",
        "TEXT TO ANALYZE:",
        text,
    ])


def parse_candidates(raw: str) -> list[CandidateCitation]:
    """Validate the model's JSON array into candidate citations."""
    try:
        return _CANDIDATES.validate_json(raw)
    except ValidationError as exc:
        raise ParsingError(f"Extractor returned malformed citations: {exc}", service="Gemini") from exc


class CitationExtractor:
    def __init__(
        self,
        client: GeminiClient,
        invoker: RetryingInvoker,
        model: str = "gemini-2.5-pro",
        retry_policy: RetryPolicyConfig | None = None,
    ):
        self.client = client
        self.invoker = invoker
        self.model = model
        self.retry_policy = retry_policy or RetryPolicyConfig()

    async def extract(self, text: str) -> list[CandidateCitation]:
        if not text or len(text) < MIN_TEXT_LENGTH:
            return []
        raw = await self.invoker.invoke_with_policy(
            lambda: self.client.complete(
                _build_extraction_prompt(text),
                model=self.model,
                temperature=0.0,
                json_schema=CITATION_LIST_SCHEMA,
            ),
            self.retry_policy,
        )
        candidates = parse_candidates(raw)
        logger.info(f"Extracted {len(candidates)} candidate citations")
        return candidates
