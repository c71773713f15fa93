"""Report aggregation over reconciled citations."""

from __future__ import annotations

import math
import time
from collections.abc import Callable, Sequence

from vericite.models import AnalysisReport, VerificationStatus, VerifiedCitation
from vericite.utils.ids import IdFactory, report_id


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def trust_score(verified: int, total: int) -> int:
    """Percentage of citations verified, rounded half-up; 0 for an empty run."""
    if total <= 0:
        return 0
    return round_half_up(verified / total * 100)


class ReportAggregator:
    def __init__(
        self,
        id_factory: IdFactory = report_id,
        clock: Callable[[], float] = time.time,
    ):
        self.id_factory = id_factory
        self.clock = clock

    def aggregate(self, results: Sequence[VerifiedCitation]) -> AnalysisReport:
        verified = 0
        hallucinated = 0
        for citation in results:
            if citation.status == VerificationStatus.VERIFIED:
                verified += 1
            elif citation.status == VerificationStatus.HALLUCINATED:
                hallucinated += 1
        total = len(results)
        return AnalysisReport(
            id=self.id_factory(),
            timestamp=int(self.clock() * 1000),
            total_citations=total,
            verified_count=verified,
            hallucinated_count=hallucinated,
            overall_trust_score=trust_score(verified, total),
            citations=list(results),
        )
