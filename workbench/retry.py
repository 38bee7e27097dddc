"""
Resilient call client for rate-limited generative-AI endpoints.

The free tier of the upstream API allows only tens of requests per day,
so throttled calls back off aggressively: 3^attempt seconds between
attempts (1s, 3s, 9s, 27s, 81s with the default six attempts).

Only two outcomes are retried:
  - HTTP 429 (rate limited)
  - transport failures (connection errors, timeouts)

Every other status is handed back to the caller untouched.
"""
import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Optional

import httpx

from workbench.errors import QuotaExceeded, RateLimited

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 6
BACKOFF_BASE = 3
RATE_LIMIT_STATUS = 429

_QUOTA_MARKERS = ("resource_exhausted", "quota")

Sleeper = Callable[[float], Awaitable[Any]]


def backoff_delay(attempt: int) -> int:
    """Seconds to wait after a failed attempt (attempt numbering starts at 0)."""
    return BACKOFF_BASE ** attempt


def _rate_limit_error(response: httpx.Response) -> RateLimited:
    body = response.text or ""
    if any(marker in body.lower() for marker in _QUOTA_MARKERS):
        return QuotaExceeded(detail=f"Quota exhausted: {body[:200]}")
    return RateLimited()


async def post_with_retry(
    client: httpx.AsyncClient,
    url: str,
    payload: Any,
    headers: Optional[Dict[str, str]] = None,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    sleep: Sleeper = asyncio.sleep,
    raise_on_rate_limit: bool = True,
) -> httpx.Response:
    """
    POST ``payload`` as JSON, retrying throttled and failed calls.

    With ``raise_on_rate_limit=False`` a 429 on the final attempt is returned
    like any other status, for callers that report upstream errors themselves.

    Raises:
        RateLimited / QuotaExceeded: still throttled on the final attempt
        httpx.TransportError: transport still failing on the final attempt
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    for attempt in range(max_attempts):
        is_final = attempt == max_attempts - 1
        try:
            response = await client.post(url, json=payload, headers=headers)
        except httpx.TransportError as e:
            if is_final:
                raise
            wait = backoff_delay(attempt)
            logger.warning(
                f"Request failed ({e.__class__.__name__}). "
                f"Waiting {wait}s before retry {attempt + 1}/{max_attempts - 1}"
            )
            await sleep(wait)
            continue

        if response.status_code == RATE_LIMIT_STATUS:
            if is_final:
                if not raise_on_rate_limit:
                    return response
                raise _rate_limit_error(response)
            wait = backoff_delay(attempt)
            logger.warning(
                f"Rate limited. Waiting {wait}s before retry {attempt + 1}/{max_attempts - 1}"
            )
            await sleep(wait)
            continue

        return response

    # unreachable: the final attempt either returns or raises
    raise RuntimeError("retry loop exited without a result")
