"""
YogaTools Session Recommender

Ranks a catalog of instructional yoga sessions against a free-text check-in
("back stiff from a long flight, want 3 min") using transparent additive
scoring rules, and recommends the best one or two matches.
"""

__version__ = "0.1.0"

from .tokenizer import tokenize
from .scoring import ParsedQuery, parse_query, score, score_breakdown
from .ranking import SortMode, rank, recommend
from .schemas import CatalogItem, ScoredItem, StreamInfo, RankResponse, \
    RecommendationRequest, RecommendationResponse, ImportRequest, ImportResponse, \
    CheckIn, ErrorResponse, HealthCheck
