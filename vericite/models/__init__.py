"""Model exports for pipeline boundaries."""

from vericite.models.citations import (
    AnalysisReport,
    CandidateCitation,
    DatabaseMatch,
    GroundingSignal,
    MetadataSignal,
    VerifiedCitation,
)
from vericite.models.config import (
    BatchConfig,
    HttpConfig,
    ModelsConfig,
    RetryConfig,
    RetryPolicyConfig,
    SettingsConfig,
    VerificationConfig,
)
from vericite.models.enums import CitationStyle, MatchSource, VerificationStatus

__all__ = [
    "AnalysisReport",
    "BatchConfig",
    "CandidateCitation",
    "CitationStyle",
    "DatabaseMatch",
    "GroundingSignal",
    "HttpConfig",
    "MatchSource",
    "MetadataSignal",
    "ModelsConfig",
    "RetryConfig",
    "RetryPolicyConfig",
    "SettingsConfig",
    "VerificationConfig",
    "VerificationStatus",
    "VerifiedCitation",
]
