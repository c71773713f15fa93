"""Citation verification core."""

from vericite.verification.batch import BatchScheduler
from vericite.verification.reconciler import ResultReconciler
from vericite.verification.report import ReportAggregator
from vericite.verification.similarity import score
from vericite.verification.source_verifier import SourceVerifier

__all__ = [
    "BatchScheduler",
    "ReportAggregator",
    "ResultReconciler",
    "SourceVerifier",
    "score",
]
