"""
Candidate record -> NutritionFacts. FDC values are per 100 g.
"""
from typing import Iterable

from nutrimatch.models.nutrition import CandidateRecord, NutrientSample, NutritionFacts, Origin

# FDC nutrient ids
NUTRIENT_ENERGY_KCAL = 1008
NUTRIENT_PROTEIN = 1003
NUTRIENT_TOTAL_FAT = 1004
NUTRIENT_CARBOHYDRATE = 1005

_FIELD_BY_CODE = {
    NUTRIENT_ENERGY_KCAL: "calories",
    NUTRIENT_PROTEIN: "protein_g",
    NUTRIENT_CARBOHYDRATE: "carbohydrate_g",
    NUTRIENT_TOTAL_FAT: "total_fat_g",
}


def extract_macros(samples: Iterable[NutrientSample]) -> dict:
    """Macronutrients by field name; unknown codes ignored, missing ones 0."""
    macros = {name: 0.0 for name in _FIELD_BY_CODE.values()}
    for sample in samples:
        name = _FIELD_BY_CODE.get(sample.nutrient_code)
        if name is not None:
            macros[name] = sample.value
    return macros


def candidate_to_facts(candidate: CandidateRecord, confidence: float) -> NutritionFacts:
    return NutritionFacts(
        external_id=candidate.external_id,
        product_name=candidate.description,
        serving_size="100",
        serving_size_unit="g",
        confidence=confidence,
        origin=Origin.EXTERNAL_DB,
        **extract_macros(candidate.nutrient_samples),
    )
