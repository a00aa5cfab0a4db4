"""
Product -> nutrition facts orchestration.

Flow: cache key -> cache get -> (miss) preprocess -> external search ->
match -> map nutrients -> cache set -> return.
Low-confidence results are returned through LowConfidenceError and never
cached. Cache failures are logged and never fail a lookup.
"""
import dataclasses
import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from nutrimatch.caching.base import CacheBackend
from nutrimatch.errors import (
    CacheMissError,
    ExternalServiceError,
    InvalidRequestError,
    LookupCancelledError,
    LowConfidenceError,
    NotFoundError,
)
from nutrimatch.external_apis.base import FoodSearchClient
from nutrimatch.external_apis.nutrient_mapper import candidate_to_facts
from nutrimatch.matching.matching_service import DEFAULT_MIN_CONFIDENCE, MatchConfig, MatchingService
from nutrimatch.models.nutrition import LookupRequest, NutritionFacts, Origin
from nutrimatch.normalization.normalizer import build_cache_key
from nutrimatch.normalization.query_preprocessor import preprocess_query

logger = logging.getLogger(__name__)

DEFAULT_CACHE_TTL_SECONDS = 30 * 24 * 3600


@dataclass
class LookupConfig:
    cache_ttl: float = DEFAULT_CACHE_TTL_SECONDS
    min_confidence_threshold: float = DEFAULT_MIN_CONFIDENCE
    enable_fuzzy_matching: bool = True
    enable_debug_logging: bool = False


class NutritionLookupService:
    def __init__(
        self,
        cache: CacheBackend,
        client: FoodSearchClient,
        config: Optional[LookupConfig] = None,
        matcher: Optional[MatchingService] = None,
    ):
        config = config or LookupConfig()
        self.cache = cache
        self.client = client
        self.cache_ttl = config.cache_ttl if config.cache_ttl > 0 else DEFAULT_CACHE_TTL_SECONDS
        self.matcher = matcher or MatchingService(
            MatchConfig(
                min_confidence_threshold=config.min_confidence_threshold,
                enable_fuzzy_matching=config.enable_fuzzy_matching,
                enable_debug_logging=config.enable_debug_logging,
            )
        )

    @staticmethod
    def cache_key_for(request: LookupRequest) -> str:
        return build_cache_key(request.product_name, request.brand)

    def lookup(
        self,
        request: Optional[LookupRequest],
        cancel: Optional[threading.Event] = None,
    ) -> NutritionFacts:
        """
        Resolve a product to nutrition facts.

        Raises InvalidRequestError, NotFoundError, LowConfidenceError (with
        .match and .facts), ExternalServiceError or LookupCancelledError.
        """
        if request is None or not (request.product_name or "").strip():
            raise InvalidRequestError("product name is required")

        key = self.cache_key_for(request)
        try:
            return self._from_cache(key)
        except CacheMissError:
            pass

        query = preprocess_query(request.product_name, request.brand)
        logger.info("LOOKUP cache miss key=%s query=%r", key, query)
        if not query:
            raise NotFoundError(f"no searchable terms in {request.product_name!r}")

        try:
            candidates = self.client.search(query, cancel=cancel)
        except (NotFoundError, LookupCancelledError, ExternalServiceError):
            raise
        except Exception as e:
            logger.error("LOOKUP search failed query=%r error=%s", query, e)
            raise ExternalServiceError(f"food database search failed: {e}") from e

        if not candidates:
            raise NotFoundError(f"no foods found for {query!r}")

        # Raw product name is scored, not the preprocessed query
        try:
            match = self.matcher.find_best_match(request, candidates, cancel=cancel)
        except LowConfidenceError as e:
            winner = self._candidate_by_id(candidates, e.match.external_id)
            e.facts = candidate_to_facts(winner, e.match.score)
            logger.warning(
                "LOOKUP low confidence product=%r match=%r score=%.1f (not cached)",
                request.product_name, e.match.description, e.match.score,
            )
            raise

        winner = self._candidate_by_id(candidates, match.external_id)
        facts = candidate_to_facts(winner, match.score)
        facts.cached_at = datetime.now(timezone.utc)
        self._store(key, facts)
        logger.info(
            "LOOKUP resolved product=%r match=%r score=%.1f",
            request.product_name, match.description, match.score,
        )
        return facts

    def evict(self, request: LookupRequest) -> None:
        key = self.cache_key_for(request)
        try:
            self.cache.delete(key)
            logger.info("LOOKUP evicted key=%s", key)
        except Exception as e:
            logger.warning("LOOKUP cache delete failed key=%s error=%s", key, e)

    def _from_cache(self, key: str) -> NutritionFacts:
        try:
            cached = self.cache.get(key)
        except Exception as e:
            logger.warning("LOOKUP cache read failed key=%s error=%s", key, e)
            raise CacheMissError(key) from e
        if cached is None:
            raise CacheMissError(key)
        try:
            facts = NutritionFacts.from_dict(cached) if isinstance(cached, dict) else cached
        except (TypeError, ValueError, KeyError) as e:
            logger.warning("LOOKUP cache entry unreadable key=%s error=%s", key, e)
            raise CacheMissError(key) from e
        logger.info("LOOKUP cache hit key=%s", key)
        return dataclasses.replace(facts, origin=Origin.CACHE)

    def _store(self, key: str, facts: NutritionFacts) -> None:
        try:
            self.cache.set(key, facts, self.cache_ttl)
        except Exception as e:
            logger.warning("LOOKUP cache write failed key=%s error=%s", key, e)

    @staticmethod
    def _candidate_by_id(candidates, external_id: str):
        for c in candidates:
            if c.external_id == external_id:
                return c
        return candidates[0]
