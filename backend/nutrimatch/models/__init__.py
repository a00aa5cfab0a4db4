"""
Nutrition lookup data model.
"""
from .nutrition import (
    CandidateRecord,
    LookupRequest,
    MatchResult,
    NutrientSample,
    NutritionFacts,
    Origin,
    SourceType,
    WeightedToken,
)

__all__ = [
    "CandidateRecord",
    "LookupRequest",
    "MatchResult",
    "NutrientSample",
    "NutritionFacts",
    "Origin",
    "SourceType",
    "WeightedToken",
]
