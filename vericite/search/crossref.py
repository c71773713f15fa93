"""Crossref connector (metadata index)."""

from __future__ import annotations

import asyncio
import logging
import re
from typing import Any, Optional
from urllib.parse import quote

import aiohttp

from vericite.exceptions import NetworkError, ParsingError, raise_for_status
from vericite.models import MetadataSignal
from vericite.utils.http import upstream_session

logger = logging.getLogger(__name__)

DOI_PATTERN = re.compile(r"10\.\d{4,9}/[-._;()/:a-zA-Z0-9]+")


def extract_doi(raw: str) -> Optional[str]:
    """Return the canonical DOI inside ``raw`` (URL prefixes, trailing text), or None."""
    if not raw or "10." not in raw:
        return None
    match = DOI_PATTERN.search(raw)
    return match.group(0) if match else None


def _format_date_parts(block: Any) -> Optional[str]:
    if not isinstance(block, dict):
        return None
    date_time = block.get("date-time")
    if isinstance(date_time, str) and date_time:
        return date_time[:10]
    parts = block.get("date-parts") or []
    if parts and parts[0] and all(isinstance(p, int) for p in parts[0]):
        return "-".join(f"{p:02d}" if i else str(p) for i, p in enumerate(parts[0]))
    return None


class CrossrefConnector:
    name = "crossref"
    base_url = "https://api.crossref.org/works"

    def __init__(self, contact_email: str = "", timeout_seconds: float = 30.0):
        self.contact_email = contact_email or "unknown@example.com"
        self.timeout_seconds = timeout_seconds

    @staticmethod
    def _to_signal(item: dict) -> Optional[MetadataSignal]:
        if not isinstance(item, dict):
            return None
        titles = item.get("title") or []
        title = str(titles[0]) if isinstance(titles, list) and titles else str(titles or "")
        doi = str(item.get("DOI") or "")
        if not title and not doi:
            return None
        published = _format_date_parts(item.get("created")) or _format_date_parts(
            item.get("issued")
        )
        return MetadataSignal(
            title=title,
            doi=doi,
            url=item.get("URL") or None,
            published_date=published,
        )

    def _headers(self) -> dict[str, str]:
        return {
            "User-Agent": f"vericite/0.1 (mailto:{quote(self.contact_email)})",
        }

    async def _get(self, url: str, params: dict[str, str] | None = None) -> Optional[dict]:
        """GET ``url`` and return the decoded ``message`` object; None on 404."""
        try:
            async with upstream_session(self.timeout_seconds, self._headers()) as session:
                async with session.get(url, params=params) as response:
                    if response.status == 404:
                        return None
                    if response.status != 200:
                        body = await response.text()
                        raise_for_status(response.status, body, "Crossref")
                    try:
                        payload = await response.json()
                    except (aiohttp.ContentTypeError, ValueError) as exc:
                        raise ParsingError(f"Crossref returned invalid JSON: {exc}", service="Crossref") from exc
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise NetworkError(f"Crossref request failed: {type(exc).__name__}: {exc}", service="Crossref") from exc
        message = payload.get("message") if isinstance(payload, dict) else None
        return message if isinstance(message, dict) else None

    async def lookup_doi(self, doi: str) -> Optional[MetadataSignal]:
        """Exact lookup of a single work by DOI."""
        message = await self._get(f"{self.base_url}/{doi}", params={"mailto": self.contact_email})
        if message is None:
            logger.debug(f"Crossref has no record for DOI {doi}")
            return None
        return self._to_signal(message)

    async def search_bibliographic(self, query: str, rows: int = 1) -> Optional[MetadataSignal]:
        """Free-text bibliographic search; returns the top-ranked record only."""
        params = {
            "query.bibliographic": query,
            "rows": str(rows),
            "mailto": self.contact_email,
            "select": "DOI,title,URL,created,issued",
        }
        message = await self._get(self.base_url, params=params)
        items = (message or {}).get("items") or []
        if not items:
            return None
        return self._to_signal(items[0])
