"""
Centralized configuration, read lazily from the environment.
All variables use the NUTRIMATCH_ prefix. The app and scripts load .env
with python-dotenv before calling in here.
"""
import logging
import os
from typing import List

logger = logging.getLogger(__name__)

_PREFIX = "NUTRIMATCH_"
_TRUE = ("1", "true", "yes")


def _env(name: str, default: str = "") -> str:
    return os.environ.get(_PREFIX + name, default).strip()


def _env_float(name: str, default: float) -> float:
    raw = _env(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("CONFIG invalid %s%s=%r, using %s", _PREFIX, name, raw, default)
        return default


def _env_int(name: str, default: int) -> int:
    return int(_env_float(name, default))


def _env_bool(name: str, default: bool) -> bool:
    raw = _env(name)
    if not raw:
        return default
    return raw.lower() in _TRUE


# --- External API ---
def get_usda_api_key() -> str:
    return _env("USDA_API_KEY")

def get_usda_base_url() -> str:
    return _env("USDA_BASE_URL", "https://api.nal.usda.gov/fdc") or "https://api.nal.usda.gov/fdc"

def get_usda_rate_per_hour() -> float:
    return _env_float("USDA_RATE_PER_HOUR", 1000.0)

def get_usda_burst() -> int:
    return _env_int("USDA_BURST", 10)

# --- Cache ---
def get_cache_ttl_seconds() -> float:
    return _env_float("CACHE_TTL_SECONDS", 30 * 24 * 3600.0)

def get_cache_sweep_interval_seconds() -> float:
    return _env_float("CACHE_SWEEP_INTERVAL_SECONDS", 600.0)

# --- Matching ---
def get_min_confidence() -> float:
    return _env_float("MIN_CONFIDENCE", 40.0)

def get_enable_fuzzy() -> bool:
    return _env_bool("ENABLE_FUZZY", True)

def get_fuzzy_edit_distance() -> int:
    return _env_int("FUZZY_EDIT_DISTANCE", 1)

def get_match_debug() -> bool:
    return _env_bool("MATCH_DEBUG", False)

# --- HTTP delivery ---
def get_allowed_origins() -> List[str]:
    raw = _env("ALLOWED_ORIGINS", "*") or "*"
    return [o.strip() for o in raw.split(",") if o.strip()]


def log_config() -> None:
    logger.info(
        "CONFIG: usda_key=%s usda_base_url=%s rate_per_hour=%s burst=%s cache_ttl=%ss "
        "sweep_interval=%ss min_confidence=%s fuzzy=%s fuzzy_distance=%s match_debug=%s",
        bool(get_usda_api_key()), get_usda_base_url(),
        get_usda_rate_per_hour(), get_usda_burst(),
        get_cache_ttl_seconds(), get_cache_sweep_interval_seconds(),
        get_min_confidence(), get_enable_fuzzy(), get_fuzzy_edit_distance(),
        get_match_debug(),
    )


def build_lookup_service():
    """Wire cache, rate-limited client and matcher from the environment."""
    from nutrimatch.caching.memory import MemoryCache
    from nutrimatch.external_apis.rate_limiter import TokenBucketLimiter
    from nutrimatch.external_apis.usda_fdc import UsdaFdcClient
    from nutrimatch.lookup_service import LookupConfig, NutritionLookupService
    from nutrimatch.matching.matching_service import MatchConfig, MatchingService

    api_key = get_usda_api_key()
    if not api_key:
        logger.warning("CONFIG %sUSDA_API_KEY not set; external lookups will be rejected", _PREFIX)

    rate = get_usda_rate_per_hour()
    if rate <= 0:
        logger.warning("CONFIG invalid rate_per_hour=%s, using 1000", rate)
        rate = 1000.0
    limiter = TokenBucketLimiter.per_hour(rate, burst=get_usda_burst())
    client = UsdaFdcClient(api_key, base_url=get_usda_base_url(), limiter=limiter)
    cache = MemoryCache(sweep_interval=get_cache_sweep_interval_seconds())
    matcher = MatchingService(
        MatchConfig(
            min_confidence_threshold=get_min_confidence(),
            enable_fuzzy_matching=get_enable_fuzzy(),
            fuzzy_edit_distance=get_fuzzy_edit_distance(),
            enable_debug_logging=get_match_debug(),
        )
    )
    config = LookupConfig(
        cache_ttl=get_cache_ttl_seconds(),
        min_confidence_threshold=get_min_confidence(),
        enable_fuzzy_matching=get_enable_fuzzy(),
        enable_debug_logging=get_match_debug(),
    )
    return NutritionLookupService(cache, client, config, matcher=matcher)
