"""Enum definitions for typed pipeline boundaries."""

from enum import Enum


class VerificationStatus(str, Enum):
    VERIFIED = "VERIFIED"
    HALLUCINATED = "HALLUCINATED"
    AMBIGUOUS = "AMBIGUOUS"


class MatchSource(str, Enum):
    METADATA_INDEX = "metadata-index"
    WEB_GROUNDING = "web-grounding"
    NONE = "none"


class CitationStyle(str, Enum):
    APA7 = "APA 7"
    MLA9 = "MLA 9"
    CHICAGO = "Chicago"
    HARVARD = "Harvard"
