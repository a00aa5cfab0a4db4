"""
Deterministic normalization for cache keys. No fuzzy matching here.
Lossy on purpose: "Coca-Cola", "Coca Cola" and "coca cola" share a key.
"""
import re
import logging
from typing import Optional

logger = logging.getLogger(__name__)

CACHE_KEY_PREFIX = "nutrition"

_JOINERS = re.compile(r"[\-_/–—]+")
_NON_ALNUM = re.compile(r"[^a-z0-9\s]")
_WHITESPACE = re.compile(r"\s+")


def normalize_key_part(text: Optional[str]) -> str:
    """
    Normalize one cache key component.
    - Lowercase; hyphen/slash/underscore/dash become spaces.
    - Delete every other character outside [a-z0-9 whitespace].
    - Collapse whitespace and trim.
    """
    if not text or not isinstance(text, str):
        return ""
    t = text.lower()
    t = _JOINERS.sub(" ", t)
    t = _NON_ALNUM.sub("", t)
    t = _WHITESPACE.sub(" ", t)
    return t.strip()


def build_cache_key(product_name: Optional[str], brand: Optional[str] = None) -> str:
    """nutrition:{normalized product name}:{normalized brand}"""
    key = f"{CACHE_KEY_PREFIX}:{normalize_key_part(product_name)}:{normalize_key_part(brand)}"
    logger.debug("NORMALIZE cache key raw=%s brand=%s -> %s", product_name, brand, key)
    return key
