"""VeriCite: multi-source verification of academic citations."""

from vericite.models import AnalysisReport, CandidateCitation, VerifiedCitation
from vericite.pipeline import VerificationPipeline, analyze_text, run_pipeline

__version__ = "0.1.0"

__all__ = [
    "AnalysisReport",
    "CandidateCitation",
    "VerificationPipeline",
    "VerifiedCitation",
    "analyze_text",
    "run_pipeline",
]
