"""Per-candidate evidence gathering from the metadata index and web grounding."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional, Tuple

from vericite.models import CandidateCitation, GroundingSignal, MetadataSignal, RetryPolicyConfig
from vericite.search.base import GroundingService, MetadataIndex
from vericite.search.crossref import extract_doi
from vericite.utils.retry_strategies import RetryingInvoker

logger = logging.getLogger(__name__)

# Titles this short are too generic for a free-text search to be meaningful.
MIN_SEARCHABLE_TITLE_LENGTH = 10


class SourceVerifier:
    """Fetches both verification signals for a candidate concurrently.

    Each upstream call runs under the invoker's retry policy; errors that
    survive it propagate to the caller.
    """

    def __init__(
        self,
        metadata_index: MetadataIndex,
        grounding: GroundingService,
        invoker: RetryingInvoker,
        retry_policy: RetryPolicyConfig | None = None,
    ):
        self.metadata_index = metadata_index
        self.grounding = grounding
        self.invoker = invoker
        self.retry_policy = retry_policy or RetryPolicyConfig()

    async def verify(
        self, candidate: CandidateCitation
    ) -> Tuple[Optional[MetadataSignal], GroundingSignal]:
        tasks = [
            asyncio.ensure_future(self.metadata_signal(candidate)),
            asyncio.ensure_future(self.grounding_signal(candidate)),
        ]
        try:
            metadata, grounding = await asyncio.gather(*tasks)
        except BaseException:
            # A failed path must not leave its sibling retrying in the background
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise
        return metadata, grounding

    async def metadata_signal(self, candidate: CandidateCitation) -> Optional[MetadataSignal]:
        doi = extract_doi(candidate.doi)
        if doi:
            match = await self.invoker.invoke_with_policy(
                lambda: self.metadata_index.lookup_doi(doi), self.retry_policy
            )
            if match is not None:
                return match
            logger.debug(f"No direct DOI match for {doi}; falling back to title search")

        if len(candidate.title) <= MIN_SEARCHABLE_TITLE_LENGTH:
            return None

        query = f"{candidate.title} {candidate.author}".strip()
        return await self.invoker.invoke_with_policy(
            lambda: self.metadata_index.search_bibliographic(query, rows=1), self.retry_policy
        )

    async def grounding_signal(self, candidate: CandidateCitation) -> GroundingSignal:
        return await self.invoker.invoke_with_policy(
            lambda: self.grounding.check(candidate), self.retry_policy
        )
