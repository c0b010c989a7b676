"""
Scoring constants for the session recommender.

Organization:
    1. Keyword categories - fixed trigger-word sets matched against query tokens
    2. Heuristic bonuses - which categories award which bonus
    3. Tag weights - per-field weight for tag token matches
    4. Contraindications, duration, quick/short and transcript settings
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import AbstractSet, FrozenSet, Tuple

# =============================================================================
# Keyword Categories
# =============================================================================


class Category(Enum):
    KNEES = ("knee", "knees", "meniscus", "acl", "mcl")
    BACK = ("back", "spine", "sciatica", "low", "lumbar")
    TRAVEL = ("plane", "flight", "travel", "road", "jet", "lag")
    DESK = ("desk", "sitting", "chair", "office")
    STIFF = ("stiff", "tight", "sore", "achy")
    ENERGY = ("energize", "energy", "sweat", "work", "workout")
    RELAX = ("relax", "recover", "gentle", "restore", "recovery")

    @property
    def words(self) -> FrozenSet[str]:
        return frozenset(self.value)

    def hit(self, tokens: AbstractSet[str]) -> bool:
        """Whole-token membership, never substring."""
        return not self.words.isdisjoint(tokens)


# =============================================================================
# Heuristic Bonuses
# =============================================================================


@dataclass(frozen=True)
class HeuristicBonus:
    name: str
    categories: Tuple[Category, ...]
    bonus: int
    # Alternative trigger: every one of these words present in the query
    all_of: FrozenSet[str] = frozenset()

    def applies(self, tokens: AbstractSet[str]) -> bool:
        if any(category.hit(tokens) for category in self.categories):
            return True
        return bool(self.all_of) and self.all_of <= tokens


# Each bonus is independent; several may apply to the same query.
HEURISTIC_BONUSES: Tuple[HeuristicBonus, ...] = (
    HeuristicBonus("travel", (Category.TRAVEL,), 4, frozenset({"trip", "back"})),
    HeuristicBonus("desk", (Category.DESK,), 3),
    HeuristicBonus("energy", (Category.ENERGY,), 2),
    HeuristicBonus("relax", (Category.RELAX, Category.STIFF), 1),
)

# =============================================================================
# Tag Weights
# =============================================================================

# (item field, points per matching token)
TAG_WEIGHTS: Tuple[Tuple[str, int], ...] = (
    ("focuses", 3),
    ("intents", 2),
    ("vibe", 1),
)

# =============================================================================
# Contraindications
# =============================================================================

KNEE_CONTRAINDICATION = "acute knee pain"
CONTRAINDICATION_PENALTY = 2

# =============================================================================
# Duration Preference
# =============================================================================

# First "<1-2 digits><optional space>min" in the query, e.g. "15 min", "3min"
DURATION_PATTERN = re.compile(r"([0-9]{1,2})\s*min")
DURATION_MAX_BONUS = 4
DURATION_STEP_MIN = 5

# =============================================================================
# Quick / Short Preference
# =============================================================================

QUICK_WORDS = frozenset({"quick", "short"})
QUICK_MAX_LENGTH_MIN = 10
QUICK_BONUS = 2

# =============================================================================
# Transcript Boosting
# =============================================================================

TRANSCRIPT_BOOST_CAP = 6
