# addonhub/http/client.py
from __future__ import annotations
import asyncio
import json
import logging
import random
from dataclasses import dataclass
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any

import httpx

from addonhub.core.errors import CatalogError, CatalogNotFoundError, CatalogUnavailableError

logger = logging.getLogger(__name__)

__all__ = ["HTTPError", "RetryPolicy", "fetch", "getJson"]


# Statuses that mean "this resource does not exist"; retrying cannot help.
TERMINAL_STATUSES = frozenset({404, 410})



class HTTPError(Exception):
    """Non-success answer from the catalog, kept as the cause of CatalogUnavailableError."""
    def __init__(self, status: int, url: str, body: str = ""):
        super().__init__(f"{url} answered HTTP {status}" + (f": {body[:120]}" if body else ""))
        self.status = status
        self.url = url
        self.body = body



def _parseRetryAfter(value: str | None) -> float | None:
    """Seconds to wait according to a Retry-After header (delta-seconds or HTTP-date)."""
    if not value:
        return None
    text = value.strip()
    if text.isdigit() or text.replace(".", "", 1).isdigit():
        return float(text)
    try:
        when = parsedate_to_datetime(text)
    except (TypeError, ValueError):
        return None
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    return max(0.0, (when - datetime.now(timezone.utc)).total_seconds())



@dataclass(frozen=True, slots=True)
class RetryPolicy:
    """
    `retries` counts extra attempts after the first one, so retries=3 means
    at most four requests. Delays double from `backoffBaseMs` up to
    `backoffMaxMs`, with +-25% jitter.
    """
    retries: int = 3
    backoffBaseMs: int = 250
    backoffMaxMs: int = 4_000

    def delayMs(self, attempt: int, retryAfter: float | None = None) -> float:
        if retryAfter is not None:
            return retryAfter * 1000.0
        ceiling = min(self.backoffMaxMs, self.backoffBaseMs * 2 ** (attempt - 1))
        spread = ceiling * 0.25
        return max(0.0, ceiling + random.uniform(-spread, spread))



async def fetch(
    url: str,
    *,
    method: str = "GET",
    headers: dict[str, str] | None = None,
    params: dict[str, Any] | None = None,
    timeoutMs: int = 30_000,
    policy: RetryPolicy | None = None,
) -> httpx.Response:
    """
    Send one request, retrying transient failures.

    - 404/410 raise CatalogNotFoundError on the spot.
    - Other 4xx/5xx answers and transport errors are retried per `policy`;
      a Retry-After header overrides the computed delay.
    - Running out of retries raises CatalogUnavailableError, chained to the
      last HTTPError or httpx.HTTPError.
    """
    policy = policy or RetryPolicy()
    method = method.upper()
    timeout = httpx.Timeout(max(timeoutMs, 1) / 1000)
    failures = 0

    async with httpx.AsyncClient(timeout=timeout, http2=True, follow_redirects=True) as session:
        while True:
            retryAfter: float | None = None
            try:
                resp = await session.request(method, url, headers=headers, params=params)
            except httpx.HTTPError as err:
                failure: Exception = err
            else:
                if resp.status_code in TERMINAL_STATUSES:
                    logger.debug("%s %s -> %d, not retrying", method, url, resp.status_code)
                    raise CatalogNotFoundError(f"{method} {url} -> HTTP {resp.status_code}", url=url)
                if resp.status_code < 400:
                    logger.debug("%s %s -> %d after %d failure(s)", method, url, resp.status_code, failures)
                    return resp
                failure = HTTPError(resp.status_code, url, resp.text)
                retryAfter = _parseRetryAfter(resp.headers.get("Retry-After"))

            failures += 1
            if failures > max(0, policy.retries):
                logger.warning("%s %s gave up after %d attempt(s): %s", method, url, failures, failure)
                raise CatalogUnavailableError(f"{method} {url} failed: {failure}", url=url) from failure

            waitMs = policy.delayMs(failures, retryAfter)
            logger.debug("%s %s failed (%s); retry %d in %.0f ms", method, url, failure, failures, waitMs)
            await asyncio.sleep(waitMs / 1000.0)



async def getJson(
    url: str,
    *,
    retries: int = 3,
    backoffBaseMs: int = 250,
    backoffMaxMs: int = 4_000,
    timeoutMs: int = 30_000,
    headers: dict[str, str] | None = None,
) -> Any:
    """GET `url` and decode its body as JSON, whatever Content-Type the server claims."""
    resp = await fetch(
        url,
        headers=headers,
        timeoutMs=timeoutMs,
        policy=RetryPolicy(retries=retries, backoffBaseMs=backoffBaseMs, backoffMaxMs=backoffMaxMs),
    )
    try:
        return json.loads(resp.content)
    except ValueError as err:
        raise CatalogError(f"GET {url} returned a non-JSON body", url=url) from err
