"""aiohttp session factory shared by the Crossref and Gemini connectors.

Every upstream request goes through a fresh session carrying the certifi
CA bundle and a total-request timeout. Setting VERICITE_SSL_SKIP_VERIFY
turns certificate verification off (corporate proxies).
"""

from __future__ import annotations

import logging
import os
import ssl
from typing import Mapping, Optional

import aiohttp
import certifi

logger = logging.getLogger(__name__)

SSL_SKIP_VERIFY_ENV = "VERICITE_SSL_SKIP_VERIFY"


def ssl_verification_enabled() -> bool:
    return os.getenv(SSL_SKIP_VERIFY_ENV, "").lower() not in ("1", "true", "yes")


def upstream_ssl() -> ssl.SSLContext | bool:
    if not ssl_verification_enabled():
        logger.warning(f"{SSL_SKIP_VERIFY_ENV} is set; TLS certificates are not verified")
        return False
    return ssl.create_default_context(cafile=certifi.where())


def upstream_session(
    timeout_seconds: float, headers: Optional[Mapping[str, str]] = None
) -> aiohttp.ClientSession:
    """Open a session for one upstream call; use as ``async with``."""
    return aiohttp.ClientSession(
        headers=dict(headers or {}),
        connector=aiohttp.TCPConnector(ssl=upstream_ssl()),
        timeout=aiohttp.ClientTimeout(total=timeout_seconds),
    )
