"""
nutrimatch: retail product description -> nutrition facts.
Cache-first lookup against USDA FoodData Central with weighted fuzzy matching.
"""
from nutrimatch.lookup_service import LookupConfig, NutritionLookupService
from nutrimatch.models.nutrition import LookupRequest, NutritionFacts

__all__ = ["LookupConfig", "LookupRequest", "NutritionFacts", "NutritionLookupService"]
