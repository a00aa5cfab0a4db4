"""
Turns a noisy retail product title into a focused search query for the
external food database: drops sizes, pack counts and marketing words,
prepends the brand, and bounds the length.
"""
import logging
import re
from typing import List, Optional

from nutrimatch.matching.matching_service import tokenize
from nutrimatch.matching.vocabulary import DESCRIPTIVE_TERMS, FOOD_TERMS, QUERY_NOISE_WORDS

logger = logging.getLogger(__name__)

MAX_QUERY_LENGTH = 100
MIN_WORD_BOUNDARY_CUT = 50

_NUM = r"\d+\.?\d*"

# "128 fl oz", "12 oz", "1.5 liter", "2 lb", "500g"
_SIZE_QUANTITY = re.compile(
    r"|".join(
        rf"\b{_NUM}\s*{unit}\b"
        for unit in (
            r"(?:fl\s*)?oz",
            r"(?:fl\s*)?ounces?",
            r"lbs?",
            r"pounds?",
            r"ml",
            r"liters?",
            r"gallons?",
            r"quarts?",
            r"pints?",
            r"kg",
            r"grams?",
            r"g",
        )
    ),
    re.IGNORECASE,
)

# "12 pack", "6-pack", "24 count", "6 ct", "12 pack cans", "pack of 6", "2 bottles"
_PACK_COUNT = re.compile(
    r"\b\d+[-\s]*(?:pack|pk|count|ct)(?:\s+(?:cans?|bottles?|pouch(?:es)?|bars?|pieces?|packs?))?\b"
    r"|\bpack\s*of\s*\d+\b"
    r"|\b\d+\s*cans?\b"
    r"|\b\d+\s*bottles?\b"
    r"|\b\d+\s*pouch(?:es)?\b"
    r"|\b\d+\s*bars?\b"
    r"|\b\d+\s*pieces?\b",
    re.IGNORECASE,
)

# Numbers left dangling at a comma/hyphen boundary: ", 128" or "12 -"
_STANDALONE_NUMBER = re.compile(rf"[,\-]\s*{_NUM}\s*$|^{_NUM}\s*[,\-]")

_LONE_PUNCT = re.compile(r"\s+[,\-;:]+\s+")
_TRAILING_PUNCT = re.compile(r"[,\-;:]+\s*$")
_LEADING_PUNCT = re.compile(r"^\s*[,\-;:]+")
_WHITESPACE = re.compile(r"\s+")

_WORD_STRIP = ",.!?;:-'\""


def _remove_noise_words(text: str) -> str:
    kept = []
    for word in text.lower().split():
        if word.strip(_WORD_STRIP) not in QUERY_NOISE_WORDS:
            kept.append(word)
    return " ".join(kept)


def _clean_orphaned_punctuation(text: str) -> str:
    text = _LONE_PUNCT.sub(" ", text)
    text = _TRAILING_PUNCT.sub("", text)
    return _LEADING_PUNCT.sub("", text)


def _truncate(text: str) -> str:
    if len(text) <= MAX_QUERY_LENGTH:
        return text
    cut = text[:MAX_QUERY_LENGTH]
    last_space = cut.rfind(" ")
    if last_space > MIN_WORD_BOUNDARY_CUT:
        cut = cut[:last_space]
    return cut


def preprocess_query(product_name: Optional[str], brand: Optional[str] = None) -> str:
    """
    Clean a product title for search. Never raises; returns "" when nothing
    usable is left (caller treats that as "no usable query").

    Example:
        preprocess_query("Whole Milk, Vitamin D, Gallon, 128 fl oz", "Great Value")
        -> "Great Value whole milk, vitamin d, gallon"
    """
    if not product_name:
        return ""

    cleaned = _SIZE_QUANTITY.sub(" ", product_name)
    cleaned = _PACK_COUNT.sub(" ", cleaned)
    cleaned = _STANDALONE_NUMBER.sub(" ", cleaned)
    cleaned = _remove_noise_words(cleaned)
    cleaned = _clean_orphaned_punctuation(cleaned)
    cleaned = _WHITESPACE.sub(" ", cleaned).strip()

    if brand and brand.strip() and brand.lower() not in cleaned.lower():
        cleaned = f"{brand.strip()} {cleaned}".strip()

    cleaned = _truncate(cleaned)
    logger.debug("PREPROCESS input=%r -> query=%r", product_name, cleaned)
    return cleaned


def extract_food_keywords(text: str) -> List[str]:
    """Tokens of `text` ordered food terms, then descriptive terms, then the rest."""
    high, medium, low = [], [], []
    for token in tokenize(text):
        if token in FOOD_TERMS:
            high.append(token)
        elif token in DESCRIPTIVE_TERMS:
            medium.append(token)
        else:
            low.append(token)
    return high + medium + low
