"""
HTTP GET with rate limiting, retries and exponential backoff for the
external food database.

Retried: connection errors/timeouts, 5xx, 429, and a 400 coming from the
API gateway rather than the service. 404 -> NotFoundError at once. Any other
4xx is a permanent client error. Error bodies are read up to 4 KB.
"""
import logging
import threading
import time
from typing import Optional

import requests

from nutrimatch.errors import (
    ExternalServiceError,
    LookupCancelledError,
    NotFoundError,
    RateLimitedError,
)
from nutrimatch.external_apis.rate_limiter import TokenBucketLimiter

logger = logging.getLogger(__name__)

DEFAULT_MAX_RETRIES = 3
DEFAULT_INITIAL_BACKOFF = 0.5
DEFAULT_TIMEOUT = 30
MAX_ERROR_BODY_BYTES = 4096

# Markers of a 400 produced by the api.data.gov proxy under load
_TRANSIENT_PROXY_MARKERS = ("upstream", "gateway", "proxy", "timed out", "temporarily")


def read_capped_body(resp: requests.Response, limit: int = MAX_ERROR_BODY_BYTES) -> str:
    """Read at most `limit` bytes of a streamed response body."""
    chunks = []
    total = 0
    for chunk in resp.iter_content(chunk_size=1024):
        if not chunk:
            continue
        take = chunk[: limit - total]
        chunks.append(take)
        total += len(take)
        if total >= limit:
            break
    return b"".join(chunks).decode("utf-8", errors="replace")


def is_retryable_status(status_code: int, body: str = "") -> bool:
    if status_code == 429 or status_code >= 500:
        return True
    if status_code == 400:
        lowered = body.lower()
        return any(marker in lowered for marker in _TRANSIENT_PROXY_MARKERS)
    return False


def _backoff(delay: float, cancel: Optional[threading.Event]) -> None:
    if cancel is None:
        time.sleep(delay)
    elif cancel.wait(delay):
        raise LookupCancelledError("cancelled during retry backoff")


def get_with_retries(
    url: str,
    params: Optional[dict] = None,
    headers: Optional[dict] = None,
    timeout: int = DEFAULT_TIMEOUT,
    max_retries: int = DEFAULT_MAX_RETRIES,
    initial_backoff: float = DEFAULT_INITIAL_BACKOFF,
    limiter: Optional[TokenBucketLimiter] = None,
    cancel: Optional[threading.Event] = None,
) -> requests.Response:
    """
    GET with up to `max_retries` attempts; backoff doubles from `initial_backoff`.
    Every attempt first waits on `limiter`. Returns the 200 response, otherwise
    raises NotFoundError, ExternalServiceError or LookupCancelledError.
    """
    params = params or {}
    last_error: Optional[Exception] = None
    last_status: Optional[int] = None

    for attempt in range(max_retries):
        if limiter is not None:
            limiter.wait(cancel=cancel)
        elif cancel is not None and cancel.is_set():
            raise LookupCancelledError("cancelled before request")

        try:
            resp = requests.get(url, params=params, headers=headers, timeout=timeout, stream=True)
        except requests.RequestException as e:
            last_error = e
            last_status = None
            logger.warning(
                "EXTERNAL_API retry attempt=%s/%s url=%s error=%s",
                attempt + 1, max_retries, url[:60], f"{type(e).__name__}: {e}",
            )
        else:
            if resp.status_code == 200:
                return resp

            body = read_capped_body(resp)
            resp.close()
            last_status = resp.status_code
            logger.warning(
                "EXTERNAL_API error attempt=%s/%s url=%s status=%s body=%s",
                attempt + 1, max_retries, url[:60], resp.status_code, body[:200],
            )
            if resp.status_code == 404:
                raise NotFoundError(f"external database returned 404 for {url[:60]}")
            if not is_retryable_status(resp.status_code, body):
                raise ExternalServiceError(
                    f"external database rejected request: status {resp.status_code}",
                    status_code=resp.status_code,
                )
            last_error = ExternalServiceError(
                f"external database error: status {resp.status_code}",
                status_code=resp.status_code,
            )

        if attempt < max_retries - 1:
            delay = initial_backoff * (2 ** attempt)
            logger.info("EXTERNAL_API backoff %.1fs before retry", delay)
            _backoff(delay, cancel)

    logger.error("EXTERNAL_API all %s attempts failed url=%s", max_retries, url[:60])
    error_cls = RateLimitedError if last_status == 429 else ExternalServiceError
    raise error_cls(
        f"external database request failed after {max_retries} attempts: {last_error}",
        status_code=last_status,
    ) from last_error
