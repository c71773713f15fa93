"""Grouped, paced verification of a candidate list."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import List, Optional

from vericite.exceptions import BatchCancelledError
from vericite.models import CandidateCitation, VerifiedCitation
from vericite.verification.reconciler import ResultReconciler
from vericite.verification.source_verifier import SourceVerifier

logger = logging.getLogger(__name__)


def partition(items: Sequence, size: int) -> list[tuple[int, list]]:
    """Split items into consecutive groups, keeping each group's start offset."""
    if size < 1:
        raise ValueError("group size must be at least 1")
    return [(start, list(items[start : start + size])) for start in range(0, len(items), size)]


class BatchScheduler:
    """Verifies candidates in fixed-size groups with a pacing delay between groups.

    Members of a group run concurrently; groups run one after another. A
    failure inside a group turns every member of that group AMBIGUOUS (or
    just the failing member when ``isolate_members`` is set) so the run
    always returns one record per candidate, in input order.
    """

    def __init__(
        self,
        verifier: SourceVerifier,
        reconciler: ResultReconciler,
        group_size: int = 2,
        group_delay_seconds: float = 2.0,
        isolate_members: bool = False,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        on_group_done: Callable[[int, int], None] | None = None,
    ):
        if group_size < 1:
            raise ValueError("group_size must be at least 1")
        self.verifier = verifier
        self.reconciler = reconciler
        self.group_size = group_size
        self.group_delay_seconds = group_delay_seconds
        self.isolate_members = isolate_members
        self._sleep = sleep
        self.on_group_done = on_group_done

    async def verify_one(self, candidate: CandidateCitation) -> VerifiedCitation:
        metadata, grounding = await self.verifier.verify(candidate)
        return self.reconciler.reconcile(candidate, metadata, grounding)

    async def _run_group(self, group: List[CandidateCitation]) -> List[VerifiedCitation]:
        tasks = [asyncio.ensure_future(self.verify_one(c)) for c in group]
        if self.isolate_members:
            outcomes = await asyncio.gather(*tasks, return_exceptions=True)
            results: List[VerifiedCitation] = []
            for candidate, outcome in zip(group, outcomes):
                if isinstance(outcome, Exception):
                    logger.warning(f"Verification failed for '{candidate.title[:50]}': {outcome}")
                    results.append(self.reconciler.ambiguous(candidate, outcome))
                elif isinstance(outcome, BaseException):
                    raise outcome
                else:
                    results.append(outcome)
            return results
        try:
            return list(await asyncio.gather(*tasks))
        except Exception as exc:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            logger.warning(
                f"Group of {len(group)} citations failed ({type(exc).__name__}: {exc}); "
                "marking the whole group AMBIGUOUS"
            )
            return [self.reconciler.ambiguous(c, exc) for c in group]

    async def run(
        self,
        candidates: Sequence[CandidateCitation],
        cancel_event: Optional[asyncio.Event] = None,
    ) -> List[VerifiedCitation]:
        groups = partition(candidates, self.group_size)
        results: List[Optional[VerifiedCitation]] = [None] * len(candidates)
        for index, (start, group) in enumerate(groups):
            if cancel_event is not None and cancel_event.is_set():
                logger.info(f"Batch cancelled before group {index + 1}/{len(groups)}")
                raise BatchCancelledError([r for r in results[:start] if r is not None])
            group_results = await self._run_group(group)
            for offset, record in enumerate(group_results):
                results[start + offset] = record
            logger.debug(f"Group {index + 1}/{len(groups)} done ({len(group)} citations)")
            if self.on_group_done:
                self.on_group_done(index + 1, len(groups))
            if index < len(groups) - 1:
                await self._sleep(self.group_delay_seconds)
        return [r for r in results if r is not None]
