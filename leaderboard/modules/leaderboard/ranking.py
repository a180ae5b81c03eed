"""
Dense ranking over score rows.

Entries sharing a score share a rank; each lower distinct score gets the
previous rank plus one, with no gaps. ``[100, 100, 90]`` ranks ``[1, 1, 2]``.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from itertools import groupby
from operator import attrgetter
from typing import Any, Dict, Iterable, List, Optional


@dataclass(frozen=True, slots=True)
class ScoreRow:
    """A stored entry as read back for ranking; ``id`` orders ties."""

    id: int
    name: str
    score: int


@dataclass(frozen=True, slots=True)
class RankedEntry:
    """A derived, never-persisted view of one entry with its dense rank."""

    name: str
    score: int
    rank: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def dense_rank(
    rows: Iterable[ScoreRow],
    max_groups: Optional[int] = None,
) -> List[RankedEntry]:
    """
    Rank ``rows`` densely by descending score.

    Rows are sorted by score (descending) then id (ascending), grouped by
    score, and each group is numbered from 1 upwards. When ``max_groups``
    is given, only the first ``max_groups`` score groups are kept, each in
    full, so ties at the cut-off are never truncated.
    """
    if max_groups is not None and max_groups <= 0:
        return []

    ordered = sorted(rows, key=lambda row: (-row.score, row.id))

    ranked: List[RankedEntry] = []
    for rank, (score, group) in enumerate(groupby(ordered, key=attrgetter("score")), start=1):
        if max_groups is not None and rank > max_groups:
            break
        ranked.extend(RankedEntry(name=row.name, score=score, rank=rank) for row in group)

    return ranked
