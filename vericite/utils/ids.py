"""Record identifier factories.

Components take an ``id_factory`` callable so tests can swap in a
deterministic sequence.
"""

from __future__ import annotations

import itertools
import uuid
from collections.abc import Callable

IdFactory = Callable[[], str]


def random_id(length: int = 9) -> str:
    return uuid.uuid4().hex[:length]


def report_id() -> str:
    return random_id().upper()


class SequentialIds:
    """Monotonic ids: ``prefix-1``, ``prefix-2``, ..."""

    def __init__(self, prefix: str = "id"):
        self.prefix = prefix
        self._counter = itertools.count(1)

    def __call__(self) -> str:
        return f"{self.prefix}-{next(self._counter)}"
