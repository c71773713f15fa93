"""
Pytest configuration and fixtures.
"""

from typing import List

import pytest

from vericite.models import CandidateCitation, MetadataSignal, SettingsConfig
from vericite.utils.ids import SequentialIds
from vericite.utils.retry_strategies import RetryingInvoker
from vericite.verification.reconciler import ResultReconciler

from tests.fixtures.mock_sources import RecordingSleep, make_candidate


@pytest.fixture
def attention_candidate() -> CandidateCitation:
    return make_candidate(
        "Attention Is All You Need",
        author="Vaswani",
        year="2017",
        doi="10.48550/arXiv.1706.03762",
    )


@pytest.fixture
def attention_signal() -> MetadataSignal:
    return MetadataSignal(
        title="Attention Is All You Need",
        doi="10.48550/arXiv.1706.03762",
        url="https://doi.org/10.48550/arXiv.1706.03762",
        published_date="2017-06-13",
    )


@pytest.fixture
def fabricated_candidate() -> CandidateCitation:
    # 40-character title, no DOI
    title = "Quantum Sourdough Fermentation Dynamics!"
    assert len(title) == 40
    return make_candidate(title, author="Smith", year="2021")


@pytest.fixture
def sample_candidates() -> List[CandidateCitation]:
    return [make_candidate(f"Distinct Study Title Number {i}", author=f"Author{i}") for i in range(5)]


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def invoker(recording_sleep: RecordingSleep) -> RetryingInvoker:
    return RetryingInvoker(sleep=recording_sleep, jitter=lambda: 0.0)


@pytest.fixture
def reconciler() -> ResultReconciler:
    return ResultReconciler(id_factory=SequentialIds("cit"))


@pytest.fixture
def settings() -> SettingsConfig:
    return SettingsConfig()
