"""Style reformatting of verified citations.

Only canonical metadata from a verified match is sent to the model, so the
formatted string cannot introduce details the sources did not confirm.
"""

from __future__ import annotations

import json

from vericite.llm.gemini_client import GeminiClient
from vericite.models import (
    CitationStyle,
    RetryPolicyConfig,
    VerificationStatus,
    VerifiedCitation,
)
from vericite.utils.retry_strategies import RetryingInvoker


def canonical_metadata(citation: VerifiedCitation) -> dict[str, str]:
    if citation.status != VerificationStatus.VERIFIED or citation.database_match is None:
        raise ValueError(f"Citation {citation.id} is not verified; refusing to reformat it")
    match = citation.database_match
    data = {
        "title": match.title or citation.extracted_title,
        "author": citation.extracted_author,
        "year": citation.extracted_year,
        "doi": match.doi or "",
        "url": match.url,
    }
    return {key: value for key, value in data.items() if value}


class CitationReformatter:
    def __init__(
        self,
        client: GeminiClient,
        invoker: RetryingInvoker,
        model: str = "gemini-2.5-flash",
        retry_policy: RetryPolicyConfig | None = None,
    ):
        self.client = client
        self.invoker = invoker
        self.model = model
        self.retry_policy = retry_policy or RetryPolicyConfig(max_retries=2, base_delay_ms=500)

    async def reformat(self, citation: VerifiedCitation, style: CitationStyle) -> str:
        metadata = canonical_metadata(citation)
        prompt = (
            f"Format this academic source into {style.value} style. Use the provided "
            "metadata strictly. Return ONLY the formatted string.\n"
            f"Metadata: {json.dumps(metadata, ensure_ascii=False)}"
        )
        text = await self.invoker.invoke_with_policy(
            lambda: self.client.complete(prompt, model=self.model, temperature=0.0),
            self.retry_policy,
        )
        return text.strip()
