"""
Typed failures for the nutrition lookup engine.
InvalidRequest / NotFound mean "no usable answer"; LowConfidence means
"an answer exists, treat it with suspicion" and carries the data.
"""
from typing import Any, Optional


class NutritionLookupError(Exception):
    """Base class for every failure the engine surfaces."""


class InvalidRequestError(NutritionLookupError):
    """Malformed input (e.g. empty product name). Never retried."""


class NotFoundError(NutritionLookupError):
    """No candidate records exist for the query. Terminal."""


class LowConfidenceError(NutritionLookupError):
    """
    Best candidate scored below the acceptance threshold.
    `match` is the MatchResult; `facts` is filled in by the lookup service
    once the winning candidate has been mapped to NutritionFacts.
    """

    def __init__(self, match: Any, threshold: float, facts: Any = None):
        self.match = match
        self.threshold = threshold
        self.facts = facts
        score = getattr(match, "score", 0.0)
        super().__init__(
            f"match confidence {score:.1f} below threshold {threshold:.1f}"
        )


class ExternalServiceError(NutritionLookupError):
    """External food database unreachable, erroring, or rejecting the request."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class RateLimitedError(ExternalServiceError):
    """Outbound rate limiter could not grant a token in time."""


class LookupCancelledError(NutritionLookupError):
    """Caller cancellation interrupted a rate-limit wait or a retry backoff."""


class CacheMissError(NutritionLookupError):
    """Internal signal only; never raised past the lookup service."""


class CacheError(NutritionLookupError):
    """Cache backend failure (e.g. value not serializable)."""
