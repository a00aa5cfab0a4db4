"""
External food DB connector (USDA FoodData Central) with rate limiting and retries.
"""
from .base import FoodSearchClient
from .nutrient_mapper import candidate_to_facts, extract_macros
from .rate_limiter import TokenBucketLimiter
from .usda_fdc import UsdaFdcClient, food_to_candidate

__all__ = [
    "FoodSearchClient",
    "TokenBucketLimiter",
    "UsdaFdcClient",
    "candidate_to_facts",
    "extract_macros",
    "food_to_candidate",
]
