"""Title similarity scoring."""

from __future__ import annotations

import re

_NON_WORD = re.compile(r"[^A-Za-z0-9_\s]")
_WHITESPACE = re.compile(r"\s+")

# Returned when neither title contains the other: unknown, lean permissive.
UNRELATED_SCORE = 0.5


def normalize_title(text: str) -> str:
    lowered = (text or "").lower()
    return _WHITESPACE.sub(" ", _NON_WORD.sub("", lowered)).strip()


def score(a: str, b: str) -> float:
    """Return a similarity in [0, 1] between two titles.

    Identical normalized titles score 1.0; if one contains the other the
    score is the length ratio; anything else scores UNRELATED_SCORE.
    """
    left = normalize_title(a)
    right = normalize_title(b)
    if left == right:
        return 1.0
    shorter, longer = (left, right) if len(left) <= len(right) else (right, left)
    if not longer:
        return 1.0
    if shorter in longer:
        return len(shorter) / len(longer)
    return UNRELATED_SCORE
