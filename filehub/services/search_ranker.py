"""Relevance scoring and term highlighting for search results.

Scoring is a pluggable strategy: anything with ``score(query, file) -> int``
can replace ``SubstringScorer`` without touching pagination or highlighting.
Re-ordering by score only happens within the page already fetched; the store
never sees the score.
"""

import re
from dataclasses import dataclass
from typing import List, Optional, Protocol, Sequence, Tuple

from ..models import File

HIGHLIGHT_MARKER: Tuple[str, str] = ("<mark>", "</mark>")


class RelevanceScorer(Protocol):
    def score(self, query: str, file: File) -> int: ...


@dataclass(frozen=True)
class SubstringScorer:
    """Additive weights for case-insensitive substring hits on the whole query."""

    name_weight: int = 10
    description_weight: int = 5
    tag_weight: int = 3

    def score(self, query: str, file: File) -> int:
        needle = query.strip().lower()
        if not needle:
            return 0
        total = 0
        if needle in file.original_name.lower():
            total += self.name_weight
        if file.description and needle in file.description.lower():
            total += self.description_weight
        if any(needle in tag.name.lower() for tag in file.tags):
            total += self.tag_weight
        return total


def highlight(
    text: Optional[str],
    terms: Sequence[str],
    marker: Tuple[str, str] = HIGHLIGHT_MARKER,
) -> Optional[str]:
    """Wrap every case-insensitive occurrence of any term in *marker*.

    All terms are matched in a single pass (longest first), so a marker
    inserted for one term is never matched by another.
    """
    if text is None:
        return None
    words = sorted({t for t in terms if t}, key=len, reverse=True)
    if not words:
        return text
    pattern = re.compile("|".join(re.escape(w) for w in words), re.IGNORECASE)
    opening, closing = marker
    return pattern.sub(lambda m: f"{opening}{m.group(0)}{closing}", text)


@dataclass
class RankedFile:
    file: File
    relevance_score: int
    highlighted_name: str
    highlighted_description: Optional[str]


def rank_page(
    files: Sequence[File],
    query: str,
    by_relevance: bool,
    scorer: Optional[RelevanceScorer] = None,
) -> List[RankedFile]:
    """Score and highlight one page of results.

    When *by_relevance* is set, the page is stable-sorted by descending
    score, so equal scores keep the store order.
    """
    scorer = scorer or SubstringScorer()
    terms = query.lower().split()
    ranked = [
        RankedFile(
            file=f,
            relevance_score=scorer.score(query, f) if query else 0,
            highlighted_name=highlight(f.original_name, terms),
            highlighted_description=highlight(f.description, terms),
        )
        for f in files
    ]
    if by_relevance:
        ranked.sort(key=lambda r: r.relevance_score, reverse=True)
    return ranked
