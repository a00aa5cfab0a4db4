"""
Weighted token matching of a retail product name against external database
descriptions.

Score (0-100) per candidate:
- base: share of the query's token weight found in the description, scaled to 70.
  Exact token hits count max(query weight, candidate weight); fuzzy hits
  (bounded edit distance) count 80% of that.
- bonuses: brand found in description (+25), source type (Branded +10,
  Survey +5, Foundation +3), whole query found in description (+10).
- capped at 100.
"""
import logging
import re
import threading
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from nutrimatch.errors import (
    InvalidRequestError,
    LookupCancelledError,
    LowConfidenceError,
    NotFoundError,
)
from nutrimatch.matching.vocabulary import STOP_WORDS, token_weight
from nutrimatch.models.nutrition import (
    CandidateRecord,
    LookupRequest,
    MatchResult,
    SourceType,
    WeightedToken,
)

logger = logging.getLogger(__name__)

DEFAULT_MIN_CONFIDENCE = 40.0
DEFAULT_FUZZY_EDIT_DISTANCE = 1

FUZZY_WEIGHT_FACTOR = 0.8
FUZZY_MIN_TOKEN_LENGTH = 4
BASE_SCORE_MULTIPLIER = 70.0
MAX_SCORE = 100.0

BRAND_MATCH_BONUS = 25.0
SUBSTRING_MATCH_BONUS = 10.0
SUBSTRING_MIN_LENGTH = 5
SOURCE_TYPE_BONUS = {
    SourceType.BRANDED: 10.0,
    SourceType.SURVEY: 5.0,
    SourceType.FOUNDATION: 3.0,
    SourceType.OTHER: 0.0,
}

_PUNCTUATION = re.compile(r"[^\w\s]")


def tokenize(text: str) -> List[str]:
    """
    Lowercase, replace punctuation with spaces, split.
    Drops 1-char tokens, stop words (units, packaging, retail noise) and pure numbers.
    """
    if not text:
        return []
    cleaned = _PUNCTUATION.sub(" ", text.lower())
    tokens = []
    for word in cleaned.split():
        if len(word) <= 1:
            continue
        if word in STOP_WORDS:
            continue
        if word.isdigit():
            continue
        tokens.append(word)
    return tokens


def tokenize_with_weights(text: str) -> List[WeightedToken]:
    return [WeightedToken(t, token_weight(t)) for t in tokenize(text)]


def levenshtein_distance(s1: str, s2: str) -> int:
    """Classic DP edit distance with two rolling rows over the shorter string."""
    if len(s1) < len(s2):
        s1, s2 = s2, s1
    if not s2:
        return len(s1)

    prev = list(range(len(s2) + 1))
    curr = [0] * (len(s2) + 1)
    for i, c1 in enumerate(s1, start=1):
        curr[0] = i
        for j, c2 in enumerate(s2, start=1):
            cost = 0 if c1 == c2 else 1
            curr[j] = min(
                prev[j] + 1,         # deletion
                curr[j - 1] + 1,     # insertion
                prev[j - 1] + cost,  # substitution
            )
        prev, curr = curr, prev
    return prev[len(s2)]


def fuzzy_token_match(token1: str, token2: str, threshold: int) -> bool:
    """True when both tokens are long enough and within `threshold` edits."""
    if token1 == token2:
        return True
    if len(token1) < FUZZY_MIN_TOKEN_LENGTH or len(token2) < FUZZY_MIN_TOKEN_LENGTH:
        return False
    if abs(len(token1) - len(token2)) > threshold:
        return False
    return levenshtein_distance(token1, token2) <= threshold


@dataclass
class MatchConfig:
    min_confidence_threshold: float = DEFAULT_MIN_CONFIDENCE
    enable_fuzzy_matching: bool = True
    fuzzy_edit_distance: int = DEFAULT_FUZZY_EDIT_DISTANCE
    enable_debug_logging: bool = False


class MatchingService:
    """
    Picks the candidate record that best matches a lookup request.
    Stateless across calls; safe to share between threads.
    """

    def __init__(self, config: Optional[MatchConfig] = None):
        config = config or MatchConfig()
        self.min_confidence_threshold = (
            config.min_confidence_threshold
            if config.min_confidence_threshold > 0
            else DEFAULT_MIN_CONFIDENCE
        )
        self.enable_fuzzy_matching = config.enable_fuzzy_matching
        self.fuzzy_edit_distance = (
            config.fuzzy_edit_distance
            if config.fuzzy_edit_distance > 0
            else DEFAULT_FUZZY_EDIT_DISTANCE
        )
        self.enable_debug_logging = config.enable_debug_logging

    def find_best_match(
        self,
        request: Optional[LookupRequest],
        candidates: Sequence[CandidateRecord],
        cancel: Optional[threading.Event] = None,
    ) -> MatchResult:
        """
        Score every candidate and return the highest scorer (first wins ties).
        Raises LowConfidenceError (carrying the match) when the best score is
        below the threshold.
        """
        if request is None or not request.product_name:
            raise InvalidRequestError("product name is required")
        if not candidates:
            raise NotFoundError("no candidate records to match")

        if self.enable_debug_logging:
            logger.debug("MATCH searching product=%r brand=%r", request.product_name, request.brand)

        best: Optional[MatchResult] = None
        for candidate in candidates:
            if cancel is not None and cancel.is_set():
                raise LookupCancelledError("matching cancelled")
            score, matched = self.score_candidate(
                request.product_name, request.brand, candidate
            )
            if self.enable_debug_logging:
                logger.debug(
                    "MATCH candidate=%r source=%s score=%.1f matched=%s",
                    candidate.description, candidate.source_type.value, score, matched,
                )
            if best is None or score > best.score:
                best = MatchResult(
                    external_id=candidate.external_id,
                    description=candidate.description,
                    score=score,
                    matched_tokens=matched,
                )

        logger.info(
            "MATCH best description=%r score=%.1f threshold=%.1f",
            best.description, best.score, self.min_confidence_threshold,
        )
        if best.score < self.min_confidence_threshold:
            raise LowConfidenceError(best, self.min_confidence_threshold)
        return best

    def score_candidate(
        self,
        product_name: str,
        brand: Optional[str],
        candidate: CandidateRecord,
    ) -> Tuple[float, List[str]]:
        """Return (score 0-100, matched tokens) for one candidate."""
        query_tokens = tokenize_with_weights(product_name)
        candidate_tokens = tokenize_with_weights(candidate.description)
        if not query_tokens or not candidate_tokens:
            return 0.0, []

        base, matched = self._weighted_similarity(query_tokens, candidate_tokens)
        score = base + self._bonuses(product_name, brand, candidate)
        return min(MAX_SCORE, score), matched

    def _weighted_similarity(
        self,
        query_tokens: List[WeightedToken],
        candidate_tokens: List[WeightedToken],
    ) -> Tuple[float, List[str]]:
        by_text = {t.text: t for t in candidate_tokens}
        total_weight = 0.0
        matched_weight = 0.0
        matched: List[str] = []
        exact: set[str] = set()

        for qt in query_tokens:
            total_weight += qt.weight
            ct = by_text.get(qt.text)
            if ct is not None:
                matched_weight += max(qt.weight, ct.weight)
                matched.append(qt.text)
                exact.add(qt.text)

        if self.enable_fuzzy_matching:
            for qt in query_tokens:
                if qt.text in exact:
                    continue
                for ct in candidate_tokens:
                    if fuzzy_token_match(qt.text, ct.text, self.fuzzy_edit_distance):
                        matched_weight += max(qt.weight, ct.weight) * FUZZY_WEIGHT_FACTOR
                        matched.append(f"{qt.text}~{ct.text}")
                        break

        if total_weight == 0:
            return 0.0, []
        return (matched_weight / total_weight) * BASE_SCORE_MULTIPLIER, matched

    def _bonuses(self, product_name: str, brand: Optional[str], candidate: CandidateRecord) -> float:
        bonus = 0.0
        description = candidate.description.lower()
        brand = (brand or "").strip()

        if brand and brand.lower() in description:
            bonus += BRAND_MATCH_BONUS
            if self.enable_debug_logging:
                logger.debug("MATCH brand bonus +%.0f brand=%r", BRAND_MATCH_BONUS, brand)

        source_bonus = SOURCE_TYPE_BONUS.get(candidate.source_type, 0.0)
        if source_bonus and self.enable_debug_logging:
            logger.debug("MATCH source bonus +%.0f source=%s", source_bonus, candidate.source_type.value)
        bonus += source_bonus

        query = product_name.lower().strip()
        if len(query) > SUBSTRING_MIN_LENGTH and query in description:
            bonus += SUBSTRING_MATCH_BONUS
            if self.enable_debug_logging:
                logger.debug("MATCH substring bonus +%.0f", SUBSTRING_MATCH_BONUS)

        return bonus
