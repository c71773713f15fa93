"""Source connector protocols."""

from __future__ import annotations

from typing import Optional, Protocol

from vericite.models import CandidateCitation, GroundingSignal, MetadataSignal


class MetadataIndex(Protocol):
    name: str

    async def lookup_doi(self, doi: str) -> Optional[MetadataSignal]:
        """Exact-identifier lookup; None when the index has no such record."""

    async def search_bibliographic(self, query: str, rows: int = 1) -> Optional[MetadataSignal]:
        """Ranked free-text search; returns the top record or None."""


class GroundingService(Protocol):
    name: str

    async def check(self, candidate: CandidateCitation) -> GroundingSignal:
        """Return whether a resolvable web resource exists for the candidate."""
