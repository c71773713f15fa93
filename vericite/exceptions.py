"""
Custom exceptions for citation verification.
"""

from __future__ import annotations

from typing import Any, List, Optional


class VeriCiteError(Exception):
    """Base exception for the verification pipeline."""

    pass


class UpstreamServiceError(VeriCiteError):
    """Raised when an external service call fails."""

    def __init__(self, message: str, status: Optional[int] = None, service: str = ""):
        super().__init__(message)
        self.status = status
        self.service = service


class RateLimitError(UpstreamServiceError):
    """Raised on HTTP 429 or quota exhaustion. Retried with a longer backoff."""

    pass


class ServiceOverloadedError(UpstreamServiceError):
    """Raised on HTTP 503 or overload responses. Retried."""

    pass


class APIKeyError(UpstreamServiceError):
    """Raised when an API key is missing or rejected. Does not trigger retries."""

    pass


class NetworkError(UpstreamServiceError):
    """Raised when the request itself fails (connection reset, timeout)."""

    pass


class ParsingError(UpstreamServiceError):
    """Raised when an upstream response cannot be parsed."""

    pass


class NoCitationsFoundError(VeriCiteError):
    """Raised when extraction yields no candidate citations."""

    pass


class BatchCancelledError(VeriCiteError):
    """Raised when a batch run is stopped between groups.

    ``partial_results`` holds the records of every group that finished.
    """

    def __init__(self, partial_results: List[Any]):
        super().__init__(
            f"Batch run cancelled after {len(partial_results)} verified citations"
        )
        self.partial_results = partial_results


def raise_for_status(status: int, body: str, service: str) -> None:
    """Translate a non-success HTTP status into the matching exception."""
    snippet = body[:300]
    if status == 429:
        raise RateLimitError(f"{service} rate limit (429): {snippet}", status, service)
    if status == 503:
        raise ServiceOverloadedError(f"{service} overloaded (503): {snippet}", status, service)
    if status in (401, 403):
        raise APIKeyError(f"{service} rejected credentials ({status}): {snippet}", status, service)
    raise UpstreamServiceError(f"{service} API error {status}: {snippet}", status, service)
