"""
Relevance scoring for a single catalog item.

Every rule adds (or subtracts) a fixed integer amount and none of them
short-circuits, so an item's score is the sum of its rule contributions:

    - tag matches: focuses x3, intents x2, vibe x1 per matching token
    - keyword-category heuristics (travel, desk, energy, relax/stiff)
    - knee contraindication penalty
    - duration preference parsed from "<n> min"
    - quick/short preference for sessions of 10 minutes or less
    - transcript boosting, capped

``score_breakdown`` keeps the per-rule contributions so a ranking can be
explained; ``score`` is their sum.
"""

from dataclasses import dataclass, field
from typing import AbstractSet, Dict, FrozenSet, Iterable, Optional, Union

from .constants import (
    CONTRAINDICATION_PENALTY,
    DURATION_MAX_BONUS,
    DURATION_PATTERN,
    DURATION_STEP_MIN,
    HEURISTIC_BONUSES,
    KNEE_CONTRAINDICATION,
    QUICK_BONUS,
    QUICK_MAX_LENGTH_MIN,
    QUICK_WORDS,
    TAG_WEIGHTS,
    TRANSCRIPT_BOOST_CAP,
    Category,
)
from .schemas import CatalogItem, round_half_up
from .tokenizer import tokenize


def fold_plural(token: str) -> str:
    """Strip a single trailing plural "s" so "knees" and "knee" compare equal."""
    if len(token) > 3 and token.endswith("s") and not token.endswith("ss"):
        return token[:-1]
    return token


@dataclass(frozen=True)
class ParsedQuery:
    """A trimmed query with its token set and requested minutes, parsed once per ranking pass."""

    text: str
    tokens: FrozenSet[str]
    minutes: Optional[int] = None
    stems: FrozenSet[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "stems", frozenset(fold_plural(t) for t in self.tokens))

    @property
    def is_empty(self) -> bool:
        return not self.text


def parse_query(text: Optional[str]) -> ParsedQuery:
    text = (text or "").strip()
    match = DURATION_PATTERN.search(text)
    minutes = int(match.group(1)) if match else None
    return ParsedQuery(text=text, tokens=frozenset(tokenize(text)), minutes=minutes)


def count_tag_matches(tags: Iterable[str], stems: AbstractSet[str]) -> int:
    # Counted per matching token, so one tag can match several times
    return sum(1 for tag in tags for token in tokenize(tag) if fold_plural(token) in stems)


def duration_bonus(length_min: float, wanted_min: int) -> int:
    """Triangular bonus: 4 at an exact match, 0 once the gap reaches ~20 minutes."""
    diff = abs((length_min or 0) - wanted_min)
    steps = round_half_up(diff / DURATION_STEP_MIN)
    return max(0, DURATION_MAX_BONUS - min(DURATION_MAX_BONUS, steps))


def transcript_boost(tokens: AbstractSet[str], transcript: str) -> int:
    hits = sum(1 for token in tokens if token in transcript)
    return min(hits, TRANSCRIPT_BOOST_CAP)


def score_breakdown(
    query: Union[ParsedQuery, str],
    item: CatalogItem,
    transcript: Optional[str] = None,
) -> Dict[str, int]:
    """Return ``{rule name: contribution}`` for every rule that contributed."""
    if not isinstance(query, ParsedQuery):
        query = parse_query(query)
    contributions: Dict[str, int] = {}

    def add(rule: str, amount: int) -> None:
        if amount:
            contributions[rule] = contributions.get(rule, 0) + amount

    for field_name, weight in TAG_WEIGHTS:
        add(field_name, weight * count_tag_matches(getattr(item, field_name), query.stems))

    for heuristic in HEURISTIC_BONUSES:
        if heuristic.applies(query.tokens):
            add(heuristic.name, heuristic.bonus)

    if Category.KNEES.hit(query.tokens) and KNEE_CONTRAINDICATION in item.contraindications:
        add("contraindication", -CONTRAINDICATION_PENALTY)

    if query.minutes is not None:
        add("duration", duration_bonus(item.length_min, query.minutes))

    if not QUICK_WORDS.isdisjoint(query.tokens) and item.length_min <= QUICK_MAX_LENGTH_MIN:
        add("quick", QUICK_BONUS)

    if transcript:
        add("transcript", transcript_boost(query.tokens, transcript))

    return contributions


def score(query: Union[ParsedQuery, str], item: CatalogItem, transcript: Optional[str] = None) -> int:
    return sum(score_breakdown(query, item, transcript).values())
