"""
USDA FoodData Central API connector.
Free API key: https://fdc.nal.usda.gov/api-key-signup
Search: GET {base}/v1/foods/search?api_key=KEY&query=...
Detail: GET {base}/v1/food/{fdcId}?api_key=KEY
"""
import logging
import threading
from typing import Any, List, Optional

from nutrimatch.errors import ExternalServiceError, NotFoundError
from nutrimatch.external_apis.http_retry import (
    DEFAULT_INITIAL_BACKOFF,
    DEFAULT_MAX_RETRIES,
    DEFAULT_TIMEOUT,
    get_with_retries,
)
from nutrimatch.external_apis.base import FoodSearchClient
from nutrimatch.external_apis.rate_limiter import TokenBucketLimiter
from nutrimatch.models.nutrition import CandidateRecord, NutrientSample, SourceType

logger = logging.getLogger(__name__)

USDA_BASE_URL = "https://api.nal.usda.gov/fdc"
USER_AGENT = "nutrimatch/1.0"
SEARCH_DATA_TYPES = "Survey (FNDDS),Foundation,Branded"
SEARCH_PAGE_SIZE = 10


def _nutrient_sample(entry: dict) -> Optional[NutrientSample]:
    """
    Search results carry nutrientId/value; detail results nest
    nutrient.id and use amount.
    """
    code = entry.get("nutrientId")
    if code is None and isinstance(entry.get("nutrient"), dict):
        code = entry["nutrient"].get("id")
    if code is None:
        return None
    value = entry.get("value")
    if value is None:
        value = entry.get("amount", 0.0)
    try:
        return NutrientSample(nutrient_code=int(code), value=float(value or 0.0))
    except (TypeError, ValueError):
        return None


def food_to_candidate(food: dict) -> CandidateRecord:
    """Map one FDC food item to a CandidateRecord."""
    samples = []
    for entry in food.get("foodNutrients") or []:
        sample = _nutrient_sample(entry)
        if sample is not None:
            samples.append(sample)
    return CandidateRecord(
        external_id=str(food.get("fdcId", "")),
        description=(food.get("description") or "").strip(),
        source_type=SourceType.from_data_type(food.get("dataType")),
        nutrient_samples=tuple(samples),
    )


class UsdaFdcClient(FoodSearchClient):
    """
    Rate-limited, retried client for FoodData Central.
    One limiter per client; share the client across lookups so all outbound
    calls queue on the same bucket.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = USDA_BASE_URL,
        limiter: Optional[TokenBucketLimiter] = None,
        timeout: int = DEFAULT_TIMEOUT,
        max_retries: int = DEFAULT_MAX_RETRIES,
        initial_backoff: float = DEFAULT_INITIAL_BACKOFF,
    ):
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._limiter = limiter or TokenBucketLimiter()
        self._timeout = timeout
        self._max_retries = max_retries
        self._initial_backoff = initial_backoff

    def _get_json(self, url: str, params: dict, cancel: Optional[threading.Event]) -> Any:
        resp = get_with_retries(
            url,
            params={"api_key": self._api_key, **params},
            headers={"User-Agent": USER_AGENT},
            timeout=self._timeout,
            max_retries=self._max_retries,
            initial_backoff=self._initial_backoff,
            limiter=self._limiter,
            cancel=cancel,
        )
        try:
            return resp.json()
        except ValueError as e:
            logger.warning("USDA_FDC invalid JSON url=%s error=%s", url[:60], e)
            raise ExternalServiceError("failed to decode external database response") from e
        finally:
            resp.close()

    def search(self, query: str, cancel: Optional[threading.Event] = None) -> List[CandidateRecord]:
        """
        Search foods. Raises NotFoundError on zero results (never returns []),
        ExternalServiceError when the service keeps failing.
        """
        logger.info("USDA_FDC search query=%r", query)
        data = self._get_json(
            f"{self._base_url}/v1/foods/search",
            {"query": query, "dataType": SEARCH_DATA_TYPES, "pageSize": SEARCH_PAGE_SIZE},
            cancel,
        )
        foods = (data or {}).get("foods") or []
        if not foods:
            logger.info("USDA_FDC no results query=%r", query)
            raise NotFoundError(f"no foods found for query {query!r}")

        candidates = [food_to_candidate(f) for f in foods]
        logger.info("USDA_FDC found=%d query=%r", len(candidates), query)
        return candidates

    def get_food_details(
        self, external_id: str, cancel: Optional[threading.Event] = None
    ) -> CandidateRecord:
        """Fetch one food by FDC id."""
        data = self._get_json(f"{self._base_url}/v1/food/{external_id}", {}, cancel)
        if not data:
            raise NotFoundError(f"food {external_id} not found")
        return food_to_candidate(data)
