"""Verdict decision logic for a single candidate."""

from __future__ import annotations

from typing import Optional

from vericite.models import (
    CandidateCitation,
    DatabaseMatch,
    GroundingSignal,
    MatchSource,
    MetadataSignal,
    VerificationStatus,
    VerifiedCitation,
)
from vericite.utils.ids import IdFactory, random_id
from vericite.verification.report import round_half_up
from vericite.verification.similarity import score as title_similarity

DOI_RESOLVER = "https://doi.org/"

NOTES_METADATA = "Verified against canonical Crossref metadata (title similarity {score:.2f})."
NOTES_GROUNDING = "Verified via real-time web grounding. {snippet}"
NOTES_HALLUCINATED = (
    "UNVERIFIED. Zero positive signals across the Crossref academic index and "
    "web grounding; this citation is likely fabricated."
)
NOTES_NETWORK_FAILURE = (
    "AMBIGUOUS. Verification was interrupted by a network error ({error}); "
    "the citation could not be checked."
)


class ResultReconciler:
    """Turns raw source signals into a final VerifiedCitation.

    Decision order, first match wins:

    1. A metadata record whose title similarity exceeds the threshold.
    2. A positive grounding signal, at a fixed confidence.
    3. Otherwise the citation is hallucinated.
    """

    def __init__(
        self,
        similarity_threshold: float = 0.85,
        grounding_confidence: int = 95,
        id_factory: IdFactory = random_id,
    ):
        self.similarity_threshold = similarity_threshold
        self.grounding_confidence = grounding_confidence
        self.id_factory = id_factory

    def _build(
        self,
        candidate: CandidateCitation,
        status: VerificationStatus,
        confidence: int,
        match: Optional[DatabaseMatch],
        notes: str,
    ) -> VerifiedCitation:
        return VerifiedCitation(
            id=self.id_factory(),
            original_text=candidate.original_text,
            extracted_title=candidate.title,
            extracted_author=candidate.author,
            extracted_year=candidate.year,
            status=status,
            confidence_score=confidence,
            database_match=match,
            analysis_notes=notes,
        )

    def reconcile(
        self,
        candidate: CandidateCitation,
        metadata: Optional[MetadataSignal],
        grounding: Optional[GroundingSignal],
    ) -> VerifiedCitation:
        if metadata is not None:
            title_score = title_similarity(candidate.title, metadata.title)
            if title_score > self.similarity_threshold:
                match = DatabaseMatch(
                    source=MatchSource.METADATA_INDEX,
                    doi=metadata.doi or None,
                    title=metadata.title,
                    url=metadata.url or f"{DOI_RESOLVER}{metadata.doi}",
                    published_date=metadata.published_date or "Unknown",
                )
                return self._build(
                    candidate,
                    VerificationStatus.VERIFIED,
                    round_half_up(title_score * 100),
                    match,
                    NOTES_METADATA.format(score=title_score),
                )

        if grounding is not None and grounding.verified:
            match = DatabaseMatch(
                source=MatchSource.WEB_GROUNDING,
                title=grounding.title or candidate.title,
                url=grounding.url or "",
                published_date="Verified Existing",
            )
            return self._build(
                candidate,
                VerificationStatus.VERIFIED,
                self.grounding_confidence,
                match,
                NOTES_GROUNDING.format(snippet=grounding.snippet or "").strip(),
            )

        return self._build(
            candidate, VerificationStatus.HALLUCINATED, 0, None, NOTES_HALLUCINATED
        )

    def ambiguous(self, candidate: CandidateCitation, error: BaseException) -> VerifiedCitation:
        """Fallback record for a candidate whose verification failed outright."""
        return self._build(
            candidate,
            VerificationStatus.AMBIGUOUS,
            0,
            None,
            NOTES_NETWORK_FAILURE.format(error=f"{type(error).__name__}: {error}"),
        )
