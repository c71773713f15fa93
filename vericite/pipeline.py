"""Pipeline entry points: candidates (or raw text) in, AnalysisReport out."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable, Sequence
from typing import Optional

from vericite.exceptions import NoCitationsFoundError, VeriCiteError
from vericite.extraction.extractor import CitationExtractor
from vericite.llm.gemini_client import GeminiClient
from vericite.models import AnalysisReport, CandidateCitation, SettingsConfig
from vericite.search.base import GroundingService, MetadataIndex
from vericite.search.crossref import CrossrefConnector
from vericite.search.grounding import WebGroundingConnector
from vericite.utils.ids import IdFactory, random_id, report_id
from vericite.utils.retry_strategies import RetryingInvoker
from vericite.verification.batch import BatchScheduler
from vericite.verification.reconciler import ResultReconciler
from vericite.verification.report import ReportAggregator
from vericite.verification.source_verifier import SourceVerifier

logger = logging.getLogger(__name__)


class VerificationPipeline:
    """Drives one run: optional extraction, batched verification, aggregation."""

    def __init__(
        self,
        scheduler: BatchScheduler,
        aggregator: ReportAggregator,
        extractor: Optional[CitationExtractor] = None,
    ):
        self.scheduler = scheduler
        self.aggregator = aggregator
        self.extractor = extractor

    @classmethod
    def from_settings(
        cls,
        settings: SettingsConfig | None = None,
        *,
        metadata_index: MetadataIndex | None = None,
        grounding: GroundingService | None = None,
        gemini_client: GeminiClient | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        jitter: Callable[[], float] | None = None,
        citation_ids: IdFactory = random_id,
        report_ids: IdFactory = report_id,
        clock: Callable[[], float] | None = None,
        on_group_done: Callable[[int, int], None] | None = None,
    ) -> "VerificationPipeline":
        settings = settings or SettingsConfig()
        client = gemini_client or GeminiClient(timeout_seconds=settings.http.timeout_seconds)
        invoker = RetryingInvoker(sleep=sleep, jitter=jitter, jitter_ms=settings.retry.jitter_ms)
        verifier = SourceVerifier(
            metadata_index=metadata_index
            or CrossrefConnector(
                contact_email=settings.http.crossref_email,
                timeout_seconds=settings.http.timeout_seconds,
            ),
            grounding=grounding or WebGroundingConnector(client, model=settings.models.grounding),
            invoker=invoker,
            retry_policy=settings.retry.verification,
        )
        reconciler = ResultReconciler(
            similarity_threshold=settings.verification.similarity_threshold,
            grounding_confidence=settings.verification.grounding_confidence,
            id_factory=citation_ids,
        )
        scheduler = BatchScheduler(
            verifier,
            reconciler,
            group_size=settings.batch.group_size,
            group_delay_seconds=settings.batch.group_delay_seconds,
            isolate_members=settings.batch.isolate_members,
            sleep=sleep,
            on_group_done=on_group_done,
        )
        aggregator = ReportAggregator(id_factory=report_ids, clock=clock or time.time)
        extractor = CitationExtractor(
            client,
            invoker,
            model=settings.models.extraction,
            retry_policy=settings.retry.extraction,
        )
        return cls(scheduler, aggregator, extractor)

    async def run(
        self,
        candidates: Sequence[CandidateCitation],
        cancel_event: Optional[asyncio.Event] = None,
    ) -> AnalysisReport:
        logger.info(f"Verifying {len(candidates)} citations")
        results = await self.scheduler.run(candidates, cancel_event=cancel_event)
        report = self.aggregator.aggregate(results)
        logger.info(
            f"Report {report.id}: {report.verified_count} verified, "
            f"{report.hallucinated_count} hallucinated, {report.ambiguous_count} ambiguous "
            f"(trust score {report.overall_trust_score})"
        )
        return report

    async def extract(self, text: str) -> list[CandidateCitation]:
        """Extract candidates, converting every failure into NoCitationsFoundError."""
        if self.extractor is None:
            raise NoCitationsFoundError("No citation extractor configured")
        try:
            candidates = await self.extractor.extract(text)
        except VeriCiteError as exc:
            logger.error(f"Citation extraction failed: {exc}")
            raise NoCitationsFoundError("No citations were found in the provided text.") from exc
        if not candidates:
            raise NoCitationsFoundError("No citations were found in the provided text.")
        return candidates

    async def analyze_text(
        self, text: str, cancel_event: Optional[asyncio.Event] = None
    ) -> AnalysisReport:
        candidates = await self.extract(text)
        return await self.run(candidates, cancel_event=cancel_event)


async def run_pipeline(
    candidates: Sequence[CandidateCitation],
    settings: SettingsConfig | None = None,
) -> AnalysisReport:
    return await VerificationPipeline.from_settings(settings).run(candidates)


async def analyze_text(text: str, settings: SettingsConfig | None = None) -> AnalysisReport:
    return await VerificationPipeline.from_settings(settings).analyze_text(text)
