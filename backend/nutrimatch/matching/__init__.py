"""
Candidate scoring: weighted exact + fuzzy token overlap with bonuses.
"""
from .matching_service import (
    MatchConfig,
    MatchingService,
    fuzzy_token_match,
    levenshtein_distance,
    tokenize,
    tokenize_with_weights,
)

__all__ = [
    "MatchConfig",
    "MatchingService",
    "fuzzy_token_match",
    "levenshtein_distance",
    "tokenize",
    "tokenize_with_weights",
]
