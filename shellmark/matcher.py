"""
Fuzzy ranking of bookmarks against a query.

Pure functions: no I/O and no state, so the same query over the same
candidates always yields the same order.

A candidate matches when every query character appears in its display text
in order. Match quality is lexicographic: an exact match (the whole display
text or its final path component) beats a contiguous substring, which beats
a scattered subsequence. Within a tier the best alignment score decides,
then the bookmark's usage score, then its path.
"""
import os
from typing import List, Optional, Sequence, Tuple

from shellmark.models import Bookmark
from shellmark.store import default_order_key

# Alignment scoring
SCORE_MATCH = 16
BONUS_BOUNDARY = 8
BONUS_FIRST_CHAR = 4
BONUS_CONSECUTIVE = 12
PENALTY_GAP = 1

# Match tiers
TIER_FUZZY = 0
TIER_SUBSTRING = 1
TIER_EXACT = 2
TIER_WEIGHT = 100000

BOUNDARY_CHARS = set("/\\-_. ")


def _smart_case(query: str, text: str) -> Tuple[str, str]:
    """Case-insensitive unless the query has an uppercase character."""
    if any(c.isupper() for c in query):
        return query, text
    return query, text.lower()


def _is_boundary(text: str, i: int) -> bool:
    return i == 0 or text[i - 1] in BOUNDARY_CHARS


def fuzzy_score(query: str, text: str) -> Optional[int]:
    """
    Best alignment score of ``query`` as a subsequence of ``text``.

    Returns:
        Score, or None if ``query`` is not a subsequence of ``text``
    """
    query, text = _smart_case(query, text)
    if not query:
        return 0

    n = len(text)
    neg = None
    prev: List[Optional[int]] = []

    for qi, qc in enumerate(query):
        row: List[Optional[int]] = [neg] * n
        # best of prev[k] + PENALTY_GAP * k over k <= j - 2
        best_gapped = neg
        for j in range(n):
            if qi > 0 and j >= 2:
                k = j - 2
                if prev[k] is not None:
                    candidate = prev[k] + PENALTY_GAP * k
                    if best_gapped is None or candidate > best_gapped:
                        best_gapped = candidate

            if text[j] != qc:
                continue

            base = SCORE_MATCH
            if _is_boundary(text, j):
                base += BONUS_BOUNDARY
            if j == 0:
                base += BONUS_FIRST_CHAR

            if qi == 0:
                row[j] = base
                continue

            best = None
            if j >= 1 and prev[j - 1] is not None:
                best = prev[j - 1] + BONUS_CONSECUTIVE
            if best_gapped is not None:
                gapped = best_gapped - PENALTY_GAP * (j - 1)
                if best is None or gapped > best:
                    best = gapped
            if best is not None:
                row[j] = best + base

        prev = row

    scores = [s for s in prev if s is not None]
    return max(scores) if scores else None


def match_tier(query: str, text: str) -> int:
    """Classify a match as exact, substring or fuzzy."""
    query, text = _smart_case(query, text)
    basename = os.path.basename(text.rstrip("/\\"))
    if query == text or query == basename:
        return TIER_EXACT
    if query in text:
        return TIER_SUBSTRING
    return TIER_FUZZY


def match_positions(query: str, text: str) -> List[int]:
    """Indices of the leftmost greedy subsequence match, for highlighting."""
    query, folded = _smart_case(query, text)
    positions = []
    qi = 0
    for i, c in enumerate(folded):
        if qi < len(query) and c == query[qi]:
            positions.append(i)
            qi += 1
    return positions if qi == len(query) else []


def rank(query: str, candidates: Sequence[Bookmark]) -> List[Tuple[Bookmark, int]]:
    """
    Rank bookmarks against a query.

    Args:
        query: Search text; blank means no filtering
        candidates: Bookmarks to rank

    Returns:
        (bookmark, match score) pairs, best first. Non-matching bookmarks
        are excluded. A blank query returns every candidate in the store's
        default order with score 0.
    """
    query = query.strip()
    if not query:
        return [(b, 0) for b in sorted(candidates, key=default_order_key)]

    ranked = []
    for bookmark in candidates:
        text = bookmark.display_text
        fuzzy = fuzzy_score(query, text)
        if fuzzy is None:
            continue
        tier = match_tier(query, text)
        ranked.append((tier, fuzzy, bookmark))

    ranked.sort(key=lambda item: (-item[0], -item[1], -item[2].score, item[2].path))
    return [(bookmark, tier * TIER_WEIGHT + fuzzy) for tier, fuzzy, bookmark in ranked]
