"""Citation, signal and report models."""

from __future__ import annotations

import uuid
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from vericite.models.enums import MatchSource, VerificationStatus


class CandidateCitation(BaseModel):
    """An unverified reference as produced by the extractor.

    Every field may be an empty string when the extractor could not
    determine it. Loosely-typed upstream values (None, numbers) are
    coerced to strings on ingress.
    """

    model_config = ConfigDict(frozen=True)

    original_text: str = ""
    title: str = ""
    author: str = ""
    year: str = ""
    doi: str = ""

    @field_validator("original_text", "title", "author", "year", "doi", mode="before")
    @classmethod
    def _coerce_to_str(cls, value: object) -> str:
        if value is None:
            return ""
        return str(value).strip()


class MetadataSignal(BaseModel):
    """Best metadata-index record for a candidate."""

    model_config = ConfigDict(frozen=True)

    title: str
    doi: str = ""
    url: Optional[str] = None
    published_date: Optional[str] = None


class GroundingSignal(BaseModel):
    """Outcome of an open-web grounding query."""

    model_config = ConfigDict(frozen=True)

    verified: bool
    title: Optional[str] = None
    url: Optional[str] = None
    snippet: Optional[str] = None


class DatabaseMatch(BaseModel):
    model_config = ConfigDict(frozen=True)

    source: MatchSource
    doi: Optional[str] = None
    title: str = ""
    url: str = ""
    published_date: str = ""


class VerifiedCitation(BaseModel):
    """Final per-candidate record. Created once, never mutated."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: uuid.uuid4().hex[:9])
    original_text: str
    extracted_title: str = ""
    extracted_author: str = ""
    extracted_year: str = ""
    status: VerificationStatus
    confidence_score: int = Field(ge=0, le=100)
    database_match: Optional[DatabaseMatch] = None
    analysis_notes: str = ""

    @model_validator(mode="after")
    def _check_verdict_invariants(self) -> "VerifiedCitation":
        if self.status == VerificationStatus.HALLUCINATED and self.confidence_score != 0:
            raise ValueError("HALLUCINATED citations must have confidence_score 0")
        if (self.database_match is not None) != (self.status == VerificationStatus.VERIFIED):
            raise ValueError("database_match must be present iff status is VERIFIED")
        return self


class AnalysisReport(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    timestamp: int
    total_citations: int = Field(ge=0)
    verified_count: int = Field(ge=0)
    hallucinated_count: int = Field(ge=0)
    overall_trust_score: int = Field(ge=0, le=100)
    citations: List[VerifiedCitation] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_counts(self) -> "AnalysisReport":
        if self.verified_count + self.hallucinated_count > self.total_citations:
            raise ValueError("verified_count + hallucinated_count exceeds total_citations")
        return self

    @property
    def ambiguous_count(self) -> int:
        return self.total_citations - self.verified_count - self.hallucinated_count
