"""
Query cleaning and cache-key normalization.
"""
from .normalizer import build_cache_key, normalize_key_part
from .query_preprocessor import extract_food_keywords, preprocess_query

__all__ = [
    "build_cache_key",
    "normalize_key_part",
    "extract_food_keywords",
    "preprocess_query",
]
