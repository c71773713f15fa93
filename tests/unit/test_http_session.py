"""Unit tests for the upstream aiohttp session factory."""

from __future__ import annotations

import ssl

import pytest

from vericite.utils import http


def test_verification_enabled_by_default(monkeypatch) -> None:
    monkeypatch.delenv(http.SSL_SKIP_VERIFY_ENV, raising=False)
    assert http.ssl_verification_enabled() is True
    assert isinstance(http.upstream_ssl(), ssl.SSLContext)


@pytest.mark.parametrize("value", ["1", "true", "YES"])
def test_skip_verify_env_disables_tls_checks(monkeypatch, value) -> None:
    monkeypatch.setenv(http.SSL_SKIP_VERIFY_ENV, value)
    assert http.ssl_verification_enabled() is False
    assert http.upstream_ssl() is False


@pytest.mark.asyncio
async def test_session_carries_timeout_and_headers(monkeypatch) -> None:
    monkeypatch.delenv(http.SSL_SKIP_VERIFY_ENV, raising=False)
    captured = {}
    monkeypatch.setattr(http.aiohttp, "ClientSession", lambda **kwargs: captured.update(kwargs) or "session")

    session = http.upstream_session(12.5, {"User-Agent": "vericite-test"})

    assert session == "session"
    assert captured["timeout"].total == 12.5
    assert captured["headers"] == {"User-Agent": "vericite-test"}
    await captured["connector"].close()
