"""Metadata-index and web-grounding connectors."""

from vericite.search.crossref import CrossrefConnector, extract_doi
from vericite.search.grounding import WebGroundingConnector

__all__ = ["CrossrefConnector", "WebGroundingConnector", "extract_doi"]
