"""
Unit tests for the cache-first nutrition lookup (fake client, real memory cache).
Run from backend: python -m pytest tests/test_lookup_service.py -v
"""
import pytest
from unittest.mock import MagicMock

from nutrimatch.models.nutrition import CandidateRecord, LookupRequest, NutrientSample, Origin, SourceType

WHOLE_MILK = CandidateRecord(
    external_id="746782",
    description="Milk, whole, 3.25% milkfat",
    source_type=SourceType.SURVEY,
    nutrient_samples=(
        NutrientSample(1008, 61.0),
        NutrientSample(1003, 3.2),
        NutrientSample(1005, 4.8),
        NutrientSample(1004, 3.3),
    ),
)
CHICKEN = CandidateRecord(
    external_id="171477",
    description="Grilled Chicken Breast",
    source_type=SourceType.FOUNDATION,
    nutrient_samples=(NutrientSample(1008, 165.0), NutrientSample(1003, 31.0)),
)


def _service(candidates=None, cache=None, **config):
    from nutrimatch.caching import MemoryCache
    from nutrimatch.external_apis.base import FoodSearchClient
    from nutrimatch.lookup_service import LookupConfig, NutritionLookupService
    client = MagicMock(spec=FoodSearchClient)
    client.search.return_value = list(candidates or [WHOLE_MILK])
    cache = cache if cache is not None else MemoryCache(sweep_interval=0)
    return NutritionLookupService(cache, client, LookupConfig(**config)), client, cache


def test_lookup_miss_then_hit():
    """First lookup hits the database and caches; second is served from cache."""
    service, client, cache = _service()
    request = LookupRequest("Whole Milk", size="1 gal")

    first = service.lookup(request)
    assert first.origin == Origin.EXTERNAL_DB
    assert first.external_id == "746782"
    assert first.calories == 61.0
    assert first.total_fat_g == 3.3
    assert first.confidence == pytest.approx(75.0)
    assert first.cached_at is not None
    assert cache.exists(service.cache_key_for(request))
    client.search.assert_called_once_with("whole milk", cancel=None)

    second = service.lookup(request)
    assert second.origin == Origin.CACHE
    assert client.search.call_count == 1
    first.origin = Origin.CACHE
    assert second == first


def test_cache_key_shared_across_spellings():
    service, client, _ = _service()
    service.lookup(LookupRequest("Coca-Cola Whole Milk", brand="Great Value"))
    again = service.lookup(LookupRequest("coca cola whole milk", brand="great value"))
    assert again.origin == Origin.CACHE
    assert client.search.call_count == 1


def test_low_confidence_not_cached():
    """Below-threshold result is returned through the exception, never cached."""
    from nutrimatch.errors import LowConfidenceError
    service, _, cache = _service([CHICKEN], min_confidence_threshold=80)
    with pytest.raises(LowConfidenceError) as exc:
        service.lookup(LookupRequest("chocolate cake"))
    assert exc.value.facts is not None
    assert exc.value.facts.external_id == "171477"
    assert exc.value.facts.confidence == exc.value.match.score
    assert cache.size() == 0


def test_invalid_request():
    from nutrimatch.errors import InvalidRequestError
    service, client, _ = _service()
    with pytest.raises(InvalidRequestError):
        service.lookup(None)
    with pytest.raises(InvalidRequestError):
        service.lookup(LookupRequest("   "))
    client.search.assert_not_called()


def test_empty_query_skips_search():
    from nutrimatch.errors import NotFoundError
    service, client, _ = _service()
    with pytest.raises(NotFoundError):
        service.lookup(LookupRequest("Great Value Family Size"))
    client.search.assert_not_called()


def test_empty_candidates_not_found():
    from nutrimatch.errors import NotFoundError
    service, client, _ = _service()
    client.search.return_value = []
    with pytest.raises(NotFoundError):
        service.lookup(LookupRequest("whole milk"))


def test_client_not_found_propagates():
    from nutrimatch.errors import NotFoundError
    service, client, _ = _service()
    client.search.side_effect = NotFoundError("no foods")
    with pytest.raises(NotFoundError):
        service.lookup(LookupRequest("whole milk"))


def test_client_external_error_propagates():
    from nutrimatch.errors import ExternalServiceError, RateLimitedError
    service, client, _ = _service()
    client.search.side_effect = RateLimitedError("slow down", status_code=429)
    with pytest.raises(RateLimitedError):
        service.lookup(LookupRequest("whole milk"))
    client.search.side_effect = ExternalServiceError("bad gateway", status_code=502)
    with pytest.raises(ExternalServiceError) as exc:
        service.lookup(LookupRequest("whole milk"))
    assert exc.value.status_code == 502


def test_unexpected_client_error_wrapped():
    from nutrimatch.errors import ExternalServiceError
    service, client, _ = _service()
    cause = RuntimeError("socket closed")
    client.search.side_effect = cause
    with pytest.raises(ExternalServiceError) as exc:
        service.lookup(LookupRequest("whole milk"))
    assert exc.value.__cause__ is cause


def test_cache_write_failure_does_not_fail_lookup():
    from nutrimatch.caching import CacheBackend
    from nutrimatch.errors import CacheError
    cache = MagicMock(spec=CacheBackend)
    cache.get.return_value = None
    cache.set.side_effect = CacheError("disk full")
    service, _, _ = _service(cache=cache)
    facts = service.lookup(LookupRequest("whole milk"))
    assert facts.origin == Origin.EXTERNAL_DB
    cache.set.assert_called_once()


def test_cache_read_failure_falls_back_to_search():
    from nutrimatch.caching import CacheBackend
    cache = MagicMock(spec=CacheBackend)
    cache.get.side_effect = RuntimeError("backend down")
    service, client, _ = _service(cache=cache)
    facts = service.lookup(LookupRequest("whole milk"))
    assert facts.external_id == "746782"
    client.search.assert_called_once()


def test_cache_ttl_passed_through():
    from nutrimatch.caching import CacheBackend
    cache = MagicMock(spec=CacheBackend)
    cache.get.return_value = None
    service, _, _ = _service(cache=cache, cache_ttl=60)
    service.lookup(LookupRequest("whole milk"))
    key, _value, ttl = cache.set.call_args[0]
    assert key == "nutrition:whole milk:"
    assert ttl == 60


def test_zero_ttl_defaults_to_thirty_days():
    service, _, _ = _service(cache_ttl=0)
    assert service.cache_ttl == 30 * 24 * 3600


def test_evict():
    service, client, cache = _service()
    request = LookupRequest("whole milk")
    service.lookup(request)
    service.evict(request)
    assert cache.size() == 0
    assert service.lookup(request).origin == Origin.EXTERNAL_DB
    assert client.search.call_count == 2
