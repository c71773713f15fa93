"""Unit tests for the Crossref connector with aiohttp mocked out."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import aiohttp
import pytest

from vericite.exceptions import (
    APIKeyError,
    NetworkError,
    ParsingError,
    RateLimitError,
    ServiceOverloadedError,
    UpstreamServiceError,
)
from vericite.search.crossref import CrossrefConnector, _format_date_parts, extract_doi

from tests.fixtures.recorded_responses import (
    CROSSREF_SEARCH_BERT,
    CROSSREF_SEARCH_EMPTY,
    CROSSREF_WORK_ATTENTION,
)


def _mock_session(monkeypatch, status=200, payload=None, text="{}"):
    mock_response = MagicMock()
    mock_response.status = status
    mock_response.json = AsyncMock(return_value=payload or {})
    mock_response.text = AsyncMock(return_value=text)
    mock_response.__aenter__ = AsyncMock(return_value=mock_response)
    mock_response.__aexit__ = AsyncMock(return_value=None)

    mock_session = MagicMock()
    mock_session.get = MagicMock(return_value=mock_response)

    mock_client = MagicMock()
    mock_client.__aenter__ = AsyncMock(return_value=mock_session)
    mock_client.__aexit__ = AsyncMock(return_value=None)

    monkeypatch.setattr("vericite.search.crossref.upstream_session", lambda *args, **kwargs: mock_client)
    return mock_session, mock_response


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("10.48550/arXiv.1706.03762", "10.48550/arXiv.1706.03762"),
        ("https://doi.org/10.1109/CVPR.2016.90", "10.1109/CVPR.2016.90"),
        ("doi:10.18653/v1/N19-1423 (accessed 2024)", "10.18653/v1/N19-1423"),
        ("", None),
        ("not a doi", None),
        ("10.12/too-short-prefix", None),
    ],
)
def test_extract_doi(raw, expected) -> None:
    assert extract_doi(raw) == expected


def test_date_parts_formatting() -> None:
    assert _format_date_parts({"date-time": "2017-06-13T01:32:17Z"}) == "2017-06-13"
    assert _format_date_parts({"date-parts": [[2019, 6]]}) == "2019-06"
    assert _format_date_parts({"date-parts": [[2019, 6, 2]]}) == "2019-06-02"
    assert _format_date_parts({"date-parts": [[None]]}) is None
    assert _format_date_parts(None) is None


@pytest.mark.asyncio
async def test_lookup_doi_parses_work(monkeypatch) -> None:
    session, _ = _mock_session(monkeypatch, payload=CROSSREF_WORK_ATTENTION)
    connector = CrossrefConnector(contact_email="team@example.org")

    signal = await connector.lookup_doi("10.48550/arXiv.1706.03762")

    assert signal.title == "Attention Is All You Need"
    assert signal.doi == "10.48550/arXiv.1706.03762"
    assert signal.url == "https://doi.org/10.48550/arXiv.1706.03762"
    assert signal.published_date == "2017-06-13"
    url = session.get.call_args.args[0]
    assert url == "https://api.crossref.org/works/10.48550/arXiv.1706.03762"
    assert session.get.call_args.kwargs["params"] == {"mailto": "team@example.org"}


@pytest.mark.asyncio
async def test_lookup_doi_404_means_no_record(monkeypatch) -> None:
    _mock_session(monkeypatch, status=404, text="Resource not found.")
    assert await CrossrefConnector().lookup_doi("10.9999/missing") is None


@pytest.mark.asyncio
async def test_search_returns_top_item_with_issued_date_fallback(monkeypatch) -> None:
    session, _ = _mock_session(monkeypatch, payload=CROSSREF_SEARCH_BERT)

    signal = await CrossrefConnector().search_bibliographic("BERT Devlin", rows=1)

    assert signal.doi == "10.18653/v1/N19-1423"
    assert signal.title.startswith("BERT: Pre-training")
    assert signal.url is None
    assert signal.published_date == "2019-06"
    params = session.get.call_args.kwargs["params"]
    assert params["query.bibliographic"] == "BERT Devlin"
    assert params["rows"] == "1"
    assert params["select"] == "DOI,title,URL,created,issued"


@pytest.mark.asyncio
async def test_search_without_items_returns_none(monkeypatch) -> None:
    _mock_session(monkeypatch, payload=CROSSREF_SEARCH_EMPTY)
    assert await CrossrefConnector().search_bibliographic("quantum sourdough") is None


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "status,error",
    [
        (429, RateLimitError),
        (503, ServiceOverloadedError),
        (401, APIKeyError),
        (500, UpstreamServiceError),
    ],
)
async def test_error_statuses_raise_typed_errors(monkeypatch, status, error) -> None:
    _mock_session(monkeypatch, status=status, text="upstream said no")
    with pytest.raises(error) as exc_info:
        await CrossrefConnector().search_bibliographic("anything")
    assert exc_info.value.status == status
    assert exc_info.value.service == "Crossref"


@pytest.mark.asyncio
async def test_invalid_json_raises_parsing_error(monkeypatch) -> None:
    _, response = _mock_session(monkeypatch)
    response.json = AsyncMock(side_effect=ValueError("Expecting value"))
    with pytest.raises(ParsingError):
        await CrossrefConnector().lookup_doi("10.1/x")


@pytest.mark.asyncio
async def test_connection_failures_become_network_errors(monkeypatch) -> None:
    session, _ = _mock_session(monkeypatch)
    session.get = MagicMock(side_effect=aiohttp.ClientConnectionError("connection reset"))
    with pytest.raises(NetworkError) as exc_info:
        await CrossrefConnector().lookup_doi("10.1/x")
    assert "ClientConnectionError" in str(exc_info.value)

