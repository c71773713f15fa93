"""
End-to-end pipeline runs with upstream services replaced by recorded responses.
"""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from vericite.exceptions import BatchCancelledError, NoCitationsFoundError, ParsingError
from vericite.models import MatchSource, MetadataSignal, SettingsConfig, VerificationStatus
from vericite.pipeline import VerificationPipeline
from vericite.search.crossref import CrossrefConnector
from vericite.utils.ids import SequentialIds

from tests.fixtures.mock_sources import (
    RecordingSleep,
    StubGeminiClient,
    StubGrounding,
    StubMetadataIndex,
    make_candidate,
    text_response,
)
from tests.fixtures.recorded_responses import (
    CROSSREF_WORK_ATTENTION,
    GEMINI_EXTRACTION_RESPONSE,
    GEMINI_UNGROUNDED_RESPONSE,
)


def _pipeline(settings=None, *, index=None, grounding=None, gemini=None, sleep=None, **kwargs):
    return VerificationPipeline.from_settings(
        settings or SettingsConfig(),
        metadata_index=index or StubMetadataIndex(),
        grounding=grounding or StubGrounding(),
        gemini_client=gemini or StubGeminiClient(),
        sleep=sleep or RecordingSleep(),
        jitter=lambda: 0.0,
        citation_ids=SequentialIds("cit"),
        report_ids=lambda: "REPORT",
        clock=lambda: 1700000000.0,
        **kwargs,
    )


@pytest.mark.asyncio
async def test_exact_metadata_match_is_verified(attention_candidate, attention_signal) -> None:
    index = StubMetadataIndex(by_doi={attention_signal.doi: attention_signal})

    report = await _pipeline(index=index).run([attention_candidate])

    citation = report.citations[0]
    assert citation.status == VerificationStatus.VERIFIED
    assert citation.confidence_score == 100
    assert citation.database_match.source == MatchSource.METADATA_INDEX
    assert report.overall_trust_score == 100
    assert report.id == "REPORT"
    assert report.timestamp == 1700000000000


@pytest.mark.asyncio
async def test_fabricated_citation_is_hallucinated(fabricated_candidate) -> None:
    index = StubMetadataIndex()
    grounding = StubGrounding()

    report = await _pipeline(index=index, grounding=grounding).run([fabricated_candidate])

    citation = report.citations[0]
    assert citation.status == VerificationStatus.HALLUCINATED
    assert citation.confidence_score == 0
    assert citation.database_match is None
    assert index.search_calls == [f"{fabricated_candidate.title} Smith"]
    assert grounding.calls == [fabricated_candidate.title]
    assert report.hallucinated_count == 1
    assert report.overall_trust_score == 0


@pytest.mark.asyncio
async def test_five_candidates_are_paced_in_three_groups(sample_candidates) -> None:
    sleep = RecordingSleep()
    groups = []

    report = await _pipeline(sleep=sleep, on_group_done=lambda i, n: groups.append(i)).run(sample_candidates)

    assert groups == [1, 2, 3]
    assert sleep.delays == [2.0, 2.0]
    assert report.total_citations == 5
    assert [c.extracted_title for c in report.citations] == [c.title for c in sample_candidates]
    assert [c.id for c in report.citations] == [f"cit-{i}" for i in range(1, 6)]


@pytest.mark.asyncio
async def test_grounding_rescues_citation_missing_from_index() -> None:
    title = "A Survey of Large Language Models"
    grounding = StubGrounding({title: "https://arxiv.org/abs/2303.18223"})

    report = await _pipeline(grounding=grounding).run([make_candidate(title, author="Zhao")])

    citation = report.citations[0]
    assert citation.status == VerificationStatus.VERIFIED
    assert citation.confidence_score == 95
    assert citation.database_match.source == MatchSource.WEB_GROUNDING


@pytest.mark.asyncio
async def test_mixed_run_with_outage_reports_ambiguous_group(attention_candidate, attention_signal) -> None:
    candidates = [
        attention_candidate,
        make_candidate("Another Real Paper Title", author="Doe"),
        make_candidate("Paper Hit By The Outage", author="Roe"),
    ]
    index = StubMetadataIndex(
        by_doi={attention_signal.doi: attention_signal},
        by_title={"Another Real Paper Title": MetadataSignal(title="Another Real Paper Title", doi="10.1/real")},
        failing_titles={"Paper Hit By The Outage"},
        error=ConnectionResetError("connection reset by peer"),
    )

    report = await _pipeline(index=index).run(candidates)

    assert [c.status for c in report.citations] == [
        VerificationStatus.VERIFIED,
        VerificationStatus.VERIFIED,
        VerificationStatus.AMBIGUOUS,
    ]
    assert report.verified_count == 2
    assert report.hallucinated_count == 0
    assert report.ambiguous_count == 1
    assert report.overall_trust_score == 67


@pytest.mark.asyncio
async def test_cancelled_run_keeps_finished_groups(sample_candidates) -> None:
    cancel = asyncio.Event()
    pipeline = _pipeline(on_group_done=lambda i, n: cancel.set() if i == 2 else None)

    with pytest.raises(BatchCancelledError) as exc_info:
        await pipeline.run(sample_candidates, cancel_event=cancel)

    assert len(exc_info.value.partial_results) == 4


@pytest.mark.asyncio
async def test_analyze_text_extracts_then_verifies(attention_signal) -> None:
    gemini = StubGeminiClient(GEMINI_EXTRACTION_RESPONSE)
    index = StubMetadataIndex(by_doi={attention_signal.doi: attention_signal})

    report = await _pipeline(index=index, gemini=gemini).analyze_text("Transformers (Vaswani, 2017) ...")

    assert [c.status for c in report.citations] == [
        VerificationStatus.VERIFIED,
        VerificationStatus.HALLUCINATED,
    ]
    assert report.overall_trust_score == 50
    assert gemini.requests[0]["model"] == "gemini-2.5-pro"


@pytest.mark.asyncio
@pytest.mark.parametrize("response", [text_response("[]"), text_response("not json")])
async def test_analyze_text_without_citations_raises(response) -> None:
    pipeline = _pipeline(gemini=StubGeminiClient(response))
    with pytest.raises(NoCitationsFoundError) as exc_info:
        await pipeline.analyze_text("Plain prose with no references.")
    if "not json" in str(response):
        assert isinstance(exc_info.value.__cause__, ParsingError)


@pytest.mark.asyncio
async def test_crossref_and_web_grounding_connectors_end_to_end(monkeypatch, attention_candidate) -> None:
    mock_response = MagicMock()
    mock_response.status = 200
    mock_response.json = AsyncMock(return_value=CROSSREF_WORK_ATTENTION)
    mock_response.__aenter__ = AsyncMock(return_value=mock_response)
    mock_response.__aexit__ = AsyncMock(return_value=None)
    mock_session = MagicMock()
    mock_session.get = MagicMock(return_value=mock_response)
    mock_client = MagicMock()
    mock_client.__aenter__ = AsyncMock(return_value=mock_session)
    mock_client.__aexit__ = AsyncMock(return_value=None)
    monkeypatch.setattr("vericite.search.crossref.upstream_session", lambda *args, **kwargs: mock_client)

    gemini = StubGeminiClient(GEMINI_UNGROUNDED_RESPONSE)
    pipeline = VerificationPipeline.from_settings(
        SettingsConfig(),
        metadata_index=CrossrefConnector(contact_email="team@example.org"),
        gemini_client=gemini,
        sleep=RecordingSleep(),
        jitter=lambda: 0.0,
    )

    report = await pipeline.run([attention_candidate])

    citation = report.citations[0]
    assert citation.status == VerificationStatus.VERIFIED
    assert citation.database_match.published_date == "2017-06-13"
    assert gemini.requests[0]["tools"] == [{"google_search": {}}]
