"""Accent-insensitive name search with relevance ranking.

Used by the product picker and the order-item listing.  Matching is a
plain substring test on *normalised* text: Unicode NFD decomposition,
combining marks removed, NFC recomposition, lower-case.  So "cafe"
finds "Café" and "OLLA" finds "olla".

Ranking, best first:

1. names that start with the term,
2. earlier match position,
3. smaller length difference between name and term,
4. primary key (stable tie-break).

With an empty term every row is kept and ordered by ``(name, id)``.
"""

from __future__ import annotations

import sys
import unicodedata
from typing import Callable, Iterable, List, Tuple, TypeVar

T = TypeVar("T")


def normalize_text(text: str | None) -> str:
    """Strip diacritics and lower-case ``text``; blank input gives ``""``."""
    if text is None or not text.strip():
        return ""
    decomposed = unicodedata.normalize("NFD", text)
    stripped = "".join(c for c in decomposed if unicodedata.category(c) != "Mn")
    return unicodedata.normalize("NFC", stripped).lower()


def relevance(name: str, term: str) -> Tuple[int, int, int]:
    """Sort key for an already-normalised ``name`` against ``term``."""
    starts = 0 if name.startswith(term) else 1
    index = name.find(term)
    if index < 0:
        index = sys.maxsize
    return starts, index, abs(len(name) - len(term))


def rank_by_name(
    rows: Iterable[T],
    query: str | None,
    name_of: Callable[[T], str],
    key_of: Callable[[T], object] = lambda row: str(getattr(row, "id")),
) -> List[T]:
    """Filter ``rows`` whose name contains ``query`` and sort them by relevance."""
    term = normalize_text((query or "").strip())
    if not term:
        return sorted(rows, key=lambda row: (name_of(row) or "", key_of(row)))

    scored = []
    for row in rows:
        name = normalize_text(name_of(row) or "")
        if term in name:
            scored.append((relevance(name, term), key_of(row), row))
    scored.sort(key=lambda entry: (entry[0], entry[1]))
    return [row for _, _, row in scored]
