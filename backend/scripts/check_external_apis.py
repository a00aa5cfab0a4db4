#!/usr/bin/env python3
"""
Check if the USDA FoodData Central API is reachable with the configured key.
Run from backend: python scripts/check_external_apis.py
Exit 0 if a search for "milk" returns foods; 1 otherwise.
"""
import sys
from pathlib import Path
from typing import Tuple

# Add backend to path when run as script
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from dotenv import load_dotenv
load_dotenv(Path(__file__).resolve().parent.parent / ".env")

# Short timeout for health check
HEALTH_TIMEOUT = 8
HEALTH_QUERY = "milk"


def check_usda(api_key: str, base_url: str) -> Tuple[bool, str]:
    """Return (success, message)."""
    if not (api_key or "").strip():
        return False, "no API key (set NUTRIMATCH_USDA_API_KEY)"
    from nutrimatch.errors import ExternalServiceError, NotFoundError, RateLimitedError
    from nutrimatch.external_apis.usda_fdc import UsdaFdcClient

    client = UsdaFdcClient(api_key.strip(), base_url=base_url, timeout=HEALTH_TIMEOUT)
    try:
        foods = client.search(HEALTH_QUERY)
    except NotFoundError:
        return False, f"no results for {HEALTH_QUERY!r}"
    except RateLimitedError as e:
        return False, f"rate limited ({e})"
    except ExternalServiceError as e:
        if e.status_code in (401, 403):
            return False, f"API key rejected (status {e.status_code})"
        return False, str(e)
    return True, f"ok ({len(foods)} foods, first={foods[0].description!r})"


def main() -> int:
    from nutrimatch.config import get_usda_api_key, get_usda_base_url
    print("Checking external food API...")
    ok, msg = check_usda(get_usda_api_key(), get_usda_base_url())
    print(f"  USDA FDC: {'OK' if ok else 'FAIL'} - {msg}")
    return 0 if ok else 1


if __name__ == "__main__":
    sys.exit(main())
