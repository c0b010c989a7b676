import logging
from enum import Enum
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Union

from .schemas import CatalogItem, ScoredItem
from .scoring import ParsedQuery, parse_query, score_breakdown

logger = logging.getLogger(__name__)


class SortMode(str, Enum):
    SCORE = "score"
    LENGTH = "length"
    LEVEL = "level"

    @classmethod
    def parse(cls, value: Union["SortMode", str, None]) -> "SortMode":
        """Unknown or missing modes fall back to best-match ordering."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return cls.SCORE


# Python's sort is stable, so equal keys keep catalog order
_SORT_KEYS: Dict[SortMode, Callable[[ScoredItem], object]] = {
    SortMode.SCORE: lambda scored: -scored.score,
    SortMode.LENGTH: lambda scored: scored.item.length_min or 0,
    SortMode.LEVEL: lambda scored: scored.item.level or "",
}


def searchable_text(item: CatalogItem) -> str:
    """Tags, level and title joined into the lowercased text the list filter searches."""
    parts = [*item.focuses, *item.intents, *item.vibe, *item.equipment]
    if item.level:
        parts.append(item.level)
    parts.append(item.title)
    return " ".join(parts).lower()


def matches_filter(item: CatalogItem, filter_text: Optional[str]) -> bool:
    if not filter_text:
        return True
    return filter_text.lower() in searchable_text(item)


def score_catalog(
    query: Union[ParsedQuery, str, None],
    catalog: Sequence[CatalogItem],
    transcripts: Optional[Mapping[str, str]] = None,
    explain: bool = False,
) -> List[ScoredItem]:
    """Score every item in catalog order. An empty query scores everything 0 without running any rule."""
    parsed = query if isinstance(query, ParsedQuery) else parse_query(query)
    transcripts = transcripts or {}
    scored = []
    for position, item in enumerate(catalog):
        if parsed.is_empty:
            contributions: Dict[str, int] = {}
        else:
            contributions = score_breakdown(parsed, item, transcripts.get(item.id))
        scored.append(
            ScoredItem(
                item=item,
                score=sum(contributions.values()),
                breakdown=contributions if explain else None,
                position=position,
            )
        )
    return scored


def rank(
    query: Union[ParsedQuery, str, None],
    catalog: Sequence[CatalogItem],
    transcripts: Optional[Mapping[str, str]] = None,
    filter_text: Optional[str] = "",
    sort_mode: Union[SortMode, str, None] = SortMode.SCORE,
    explain: bool = False,
) -> List[ScoredItem]:
    """
    Score, filter and sort the catalog for one query.

    Args:
        query: Free-text query; it is trimmed before tokenizing.
        catalog: Items in catalog order. Never mutated.
        transcripts: Item id -> lowercased transcript text. Missing ids just skip
            transcript boosting.
        filter_text: Case-insensitive substring filter over tags, level and title.
        sort_mode: "score" (default), "length" or "level".
        explain: Attach each item's per-rule breakdown.

    Returns:
        The visible items in display order.
    """
    mode = SortMode.parse(sort_mode)
    scored = score_catalog(query, catalog, transcripts, explain=explain)
    visible = [entry for entry in scored if matches_filter(entry.item, filter_text)]
    ranked = sorted(visible, key=_SORT_KEYS[mode])
    logger.debug(f"Ranked {len(ranked)} of {len(catalog)} items (sort={mode.value})")
    return ranked


def recommend(ranked: Sequence[ScoredItem], limit: int = 2) -> List[ScoredItem]:
    """Top ``limit`` positive-score items, best first; empty when nothing scored above zero.

    Ties go to the item earlier in the catalog, whatever order ``ranked`` is displayed in.
    """
    if limit <= 0:
        return []
    positive = [entry for entry in ranked if entry.score > 0]
    return sorted(positive, key=lambda entry: (-entry.score, entry.position))[:limit]
