"""
Data contracts for a product lookup: request in, candidates from the external
database, match result, and the nutrition facts handed to the delivery layer.
JSON shapes use camelCase keys to match the wire format.
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional


class SourceType(str, Enum):
    BRANDED = "Branded"
    SURVEY = "Survey"
    FOUNDATION = "Foundation"
    OTHER = "Other"

    @classmethod
    def from_data_type(cls, data_type: Optional[str]) -> "SourceType":
        """Map the provider's dataType tag ("Survey (FNDDS)", "SR Legacy", ...)."""
        t = (data_type or "").strip().lower()
        if t == "branded":
            return cls.BRANDED
        if t.startswith("survey"):
            return cls.SURVEY
        if t == "foundation":
            return cls.FOUNDATION
        return cls.OTHER


class Origin(str, Enum):
    EXTERNAL_DB = "ExternalDB"
    CACHE = "Cache"


@dataclass(frozen=True)
class LookupRequest:
    product_name: str
    brand: Optional[str] = None
    size: Optional[str] = None

    @classmethod
    def from_dict(cls, d: dict) -> "LookupRequest":
        return cls(
            product_name=d.get("productName") or "",
            brand=d.get("brand"),
            size=d.get("size"),
        )


@dataclass(frozen=True)
class NutrientSample:
    nutrient_code: int
    value: float


@dataclass(frozen=True)
class CandidateRecord:
    external_id: str
    description: str
    source_type: SourceType = SourceType.OTHER
    nutrient_samples: tuple[NutrientSample, ...] = ()


@dataclass(frozen=True)
class WeightedToken:
    text: str
    weight: float


@dataclass
class MatchResult:
    external_id: str
    description: str
    score: float
    matched_tokens: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "externalId": self.external_id,
            "description": self.description,
            "score": self.score,
            "matchedTokens": list(self.matched_tokens),
        }


@dataclass
class NutritionFacts:
    external_id: str
    product_name: str
    serving_size: str = "100"
    serving_size_unit: str = "g"
    calories: float = 0.0
    protein_g: float = 0.0
    carbohydrate_g: float = 0.0
    total_fat_g: float = 0.0
    # Always the MatchResult.score that produced these facts
    confidence: float = 0.0
    origin: Origin = Origin.EXTERNAL_DB
    cached_at: Optional[datetime] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "externalId": self.external_id,
            "productName": self.product_name,
            "servingSize": self.serving_size,
            "servingSizeUnit": self.serving_size_unit,
            "nutrients": {
                "calories": self.calories,
                "protein": self.protein_g,
                "carbohydrates": self.carbohydrate_g,
                "totalFat": self.total_fat_g,
            },
            "confidence": self.confidence,
            "origin": self.origin.value,
            "cachedAt": self.cached_at.isoformat() if self.cached_at else None,
        }

    @classmethod
    def from_dict(cls, d: dict) -> "NutritionFacts":
        nutrients = d.get("nutrients") or {}
        cached_at = d.get("cachedAt")
        return cls(
            external_id=str(d.get("externalId", "")),
            product_name=d.get("productName", ""),
            serving_size=d.get("servingSize", "100"),
            serving_size_unit=d.get("servingSizeUnit", "g"),
            calories=float(nutrients.get("calories", 0.0)),
            protein_g=float(nutrients.get("protein", 0.0)),
            carbohydrate_g=float(nutrients.get("carbohydrates", 0.0)),
            total_fat_g=float(nutrients.get("totalFat", 0.0)),
            confidence=float(d.get("confidence", 0.0)),
            origin=Origin(d.get("origin", Origin.EXTERNAL_DB.value)),
            cached_at=datetime.fromisoformat(cached_at) if cached_at else None,
        )
