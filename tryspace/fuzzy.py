"""Fuzzy subsequence scoring and ranking of workspace names.

Scoring is case-insensitive and order-preserving. Contiguous runs, matches at
word boundaries, and short candidates score higher. All functions are pure.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from .workspace_index import WorkspaceEntry

SEPARATORS = frozenset("-_/")

RUN_BASE_BONUS = 20
RUN_STEP_BONUS = 4
RUN_MAX_BONUS = 16
BOUNDARY_BONUS = 35
GAP_PENALTY_PER_CHAR = 2
GAP_MAX_PENALTY = 40
LENGTH_PENALTY_DIVISOR = 5


@dataclass(frozen=True)
class RankedEntry:
    """One surviving entry with its score and matched character indices."""

    entry: WorkspaceEntry
    score: int
    positions: tuple[int, ...] = ()


def match_positions(query: str, candidate: str) -> tuple[int, ...] | None:
    """Return indices of ``query`` chars found in order inside ``candidate``.

    Matching is greedy leftmost per character with case folding applied
    character by character, so indices always point into ``candidate``.
    Returns ``None`` when ``query`` is not a subsequence.
    """
    if not query:
        return ()
    folded = [ch.casefold() for ch in candidate]
    positions: list[int] = []
    cursor = 0
    for needle in query:
        needle_folded = needle.casefold()
        while cursor < len(folded) and folded[cursor] != needle_folded:
            cursor += 1
        if cursor >= len(folded):
            return None
        positions.append(cursor)
        cursor += 1
    return tuple(positions)


def _score_positions(candidate: str, positions: tuple[int, ...]) -> int:
    score = 0
    prev_idx = -1
    run = 0
    for idx in positions:
        if idx == prev_idx + 1:
            run += 1
            score += RUN_BASE_BONUS + min(RUN_MAX_BONUS, run * RUN_STEP_BONUS)
        else:
            run = 0
            score -= min(GAP_MAX_PENALTY, (idx - prev_idx - 1) * GAP_PENALTY_PER_CHAR)
        if idx == 0 or candidate[idx - 1] in SEPARATORS:
            score += BOUNDARY_BONUS
        prev_idx = idx
    return score - len(candidate) // LENGTH_PENALTY_DIVISOR


def score(query: str, candidate: str) -> int | None:
    """Score ``candidate`` against ``query``; ``None`` when it does not match."""
    if not query:
        return 0
    positions = match_positions(query, candidate)
    if positions is None:
        return None
    return _score_positions(candidate, positions)


def rank(entries: Sequence[WorkspaceEntry], query: str) -> list[RankedEntry]:
    """Filter and order ``entries`` by how well their names match ``query``.

    An empty query keeps the incoming order untouched. Otherwise results sort
    by score descending, then most recently modified, then name.
    """
    if not query:
        return [RankedEntry(entry=entry, score=0) for entry in entries]

    ranked: list[RankedEntry] = []
    for entry in entries:
        positions = match_positions(query, entry.name)
        if positions is None:
            continue
        ranked.append(RankedEntry(entry=entry, score=_score_positions(entry.name, positions), positions=positions))
    ranked.sort(key=lambda item: (-item.score, -item.entry.modified_at.timestamp(), item.entry.name))
    return ranked


__all__ = [
    "RankedEntry",
    "SEPARATORS",
    "match_positions",
    "rank",
    "score",
]
