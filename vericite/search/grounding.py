"""Open-web grounding connector backed by Gemini's Google Search tool."""

from __future__ import annotations

import logging
from typing import Any

from vericite.llm.gemini_client import GeminiClient
from vericite.models import CandidateCitation, GroundingSignal

logger = logging.getLogger(__name__)

GROUNDING_SNIPPET = (
    "Verified via real-time Google Search grounding and academic repository indexing."
)

GOOGLE_SEARCH_TOOL: dict[str, Any] = {"google_search": {}}


def build_grounding_prompt(candidate: CandidateCitation) -> str:
    return (
        "Does this specific academic work exist?\n"
        f'Title: "{candidate.title}"\n'
        f"Author: {candidate.author}\n"
        f"Year: {candidate.year}\n\n"
        "Search for a match in academic repositories (ResearchGate, PubMed, IEEE, "
        "JSTOR, Google Scholar). If a clear match is found, provide the URL and the "
        "canonical title."
    )


def grounding_chunks(response: dict[str, Any]) -> list[dict[str, Any]]:
    candidates = response.get("candidates") or []
    if not candidates:
        return []
    metadata = candidates[0].get("groundingMetadata") or {}
    chunks = metadata.get("groundingChunks") or []
    return [c for c in chunks if isinstance(c, dict)]


def signal_from_response(response: dict[str, Any]) -> GroundingSignal:
    """The first chunk carrying a web URI confirms the work exists."""
    for chunk in grounding_chunks(response):
        web = chunk.get("web") or {}
        uri = web.get("uri")
        if uri:
            return GroundingSignal(
                verified=True,
                title=web.get("title") or None,
                url=str(uri),
                snippet=GROUNDING_SNIPPET,
            )
    return GroundingSignal(verified=False)


class WebGroundingConnector:
    name = "web_grounding"

    def __init__(self, client: GeminiClient, model: str = "gemini-2.5-flash"):
        self.client = client
        self.model = model

    async def check(self, candidate: CandidateCitation) -> GroundingSignal:
        response = await self.client.generate(
            build_grounding_prompt(candidate),
            model=self.model,
            temperature=0.0,
            tools=[GOOGLE_SEARCH_TOOL],
        )
        signal = signal_from_response(response)
        logger.debug(
            f"Grounding for '{candidate.title[:50]}': verified={signal.verified} url={signal.url}"
        )
        return signal
