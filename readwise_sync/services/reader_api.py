"""Readwise Reader list API client.

Pages are fetched strictly one at a time. Retry policy per request:

- 429 with a Retry-After hint: sleep exactly that long, retry, don't count it
- 5xx / timeouts / connection errors (and 429 without a hint): exponential
  backoff with jitter, up to ``max_retries`` retries, then give up
- any other 4xx: fail immediately
"""

from __future__ import annotations

import asyncio
import json
import math
import random
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import AsyncIterator, Awaitable, Callable, Dict, Optional

import httpx
from pydantic import ValidationError

from readwise_sync.config.logger import app_logger
from readwise_sync.config.settings import settings
from readwise_sync.schemas.reader import ReaderPage
from readwise_sync.utils.errors import (
    ConfigurationError,
    FatalClientError,
    MalformedResponseError,
    RateLimitedError,
    RetryBudgetExceeded,
    TransientAPIError,
)

Sleep = Callable[[float], Awaitable[None]]

UPDATED_AFTER_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


def format_updated_after(ts: datetime) -> str:
    """Render a checkpoint the way the list endpoint expects it (UTC, second precision)."""
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc).strftime(UPDATED_AFTER_FORMAT)


def build_params(cursor: Optional[str], updated_after: Optional[datetime]) -> Dict[str, str]:
    """Query parameters for one list request; absent values are omitted."""
    params: Dict[str, str] = {}
    if cursor:
        params["pageCursor"] = cursor
    if updated_after is not None:
        params["updatedAfter"] = format_updated_after(updated_after)
    return params


def parse_retry_after(value: Optional[str]) -> Optional[float]:
    """Parse a Retry-After header given as delta-seconds or an HTTP date."""
    if value is None or not value.strip():
        return None
    try:
        seconds = float(value)
    except ValueError:
        pass
    else:
        # "inf" and "nan" parse as floats but are not waits
        return max(0.0, seconds) if math.isfinite(seconds) else None
    try:
        when = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return None
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    return max(0.0, (when - datetime.now(timezone.utc)).total_seconds())


class ReaderClient:
    """Client for the Reader ``/api/v3/list/`` endpoint."""

    def __init__(
        self,
        access_token: str,
        base_url: Optional[str] = None,
        auth_scheme: Optional[str] = None,
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
        backoff_base: Optional[float] = None,
        backoff_max: Optional[float] = None,
        backoff_jitter: Optional[float] = None,
        sleep: Sleep = asyncio.sleep,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if not access_token:
            raise ConfigurationError("READWISE_ACCESS_TOKEN must be configured")

        self.base_url = base_url or settings.READWISE_API_URL
        self.max_retries = settings.READWISE_MAX_RETRIES if max_retries is None else max_retries
        self.backoff_base = (
            settings.READWISE_BACKOFF_BASE_SECONDS if backoff_base is None else backoff_base
        )
        self.backoff_max = settings.READWISE_BACKOFF_MAX_SECONDS if backoff_max is None else backoff_max
        self.backoff_jitter = (
            settings.READWISE_BACKOFF_JITTER_SECONDS if backoff_jitter is None else backoff_jitter
        )
        self._sleep = sleep

        scheme = auth_scheme or settings.READWISE_AUTH_SCHEME
        self._client = httpx.AsyncClient(
            headers={
                "Authorization": f"{scheme} {access_token}",
                "Content-Type": "application/json",
            },
            timeout=settings.READWISE_TIMEOUT_SECONDS if timeout is None else timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "ReaderClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    def backoff_delay(self, attempt: int) -> float:
        """Delay before transient retry number ``attempt`` (1-based)."""
        delay = min(self.backoff_max, self.backoff_base * (2 ** (attempt - 1)))
        return delay + random.uniform(0, self.backoff_jitter)

    async def fetch_page(
        self,
        cursor: Optional[str] = None,
        updated_after: Optional[datetime] = None,
    ) -> ReaderPage:
        """Fetch one page, retrying according to the policy in the module docstring.

        Raises:
            FatalClientError: non-retryable 4xx.
            RetryBudgetExceeded: transient failures outlasted ``max_retries``.
            MalformedResponseError: the body is not a page.
        """
        params = build_params(cursor, updated_after)
        transient_failures = 0

        while True:
            try:
                return await self._request_page(params)
            except RateLimitedError as e:
                if e.retry_after is not None:
                    app_logger.warning(f"Received HTTP 429, retrying after {e.retry_after}s")
                    await self._sleep(e.retry_after)
                    continue
                app_logger.warning("Missing or unparsable Retry-After header for HTTP 429")
                last_error: TransientAPIError = e
            except TransientAPIError as e:
                last_error = e

            transient_failures += 1
            if transient_failures > self.max_retries:
                raise RetryBudgetExceeded(transient_failures, last_error) from last_error

            delay = self.backoff_delay(transient_failures)
            app_logger.warning(
                f"{last_error}. Retry {transient_failures}/{self.max_retries} in {delay:.1f}s"
            )
            await self._sleep(delay)

    async def _request_page(self, params: Dict[str, str]) -> ReaderPage:
        """Single attempt. Maps every outcome onto the error taxonomy."""
        try:
            response = await self._client.get(self.base_url, params=params)
        except httpx.TransportError as e:
            # Timeouts are transport errors too
            raise TransientAPIError(f"Network transport error: {type(e).__name__}: {e}") from e

        code = response.status_code
        if code == 429:
            raise RateLimitedError(parse_retry_after(response.headers.get("Retry-After")))
        if code >= 500:
            raise TransientAPIError(f"Received HTTP {code}", status_code=code)
        if code >= 400:
            raise FatalClientError(code, f"Non-retryable HTTP error {code} from Readwise API")

        body = response.text
        try:
            return ReaderPage.model_validate(json.loads(body))
        except (json.JSONDecodeError, ValidationError) as e:
            app_logger.error(f"Failed to decode API response: {e}. Raw body: {body[:500]}")
            raise MalformedResponseError(f"Malformed page from Readwise API: {e}") from e

    async def iter_pages(self, updated_after: Optional[datetime] = None) -> AsyncIterator[ReaderPage]:
        """Yield pages in order until one comes back without a continuation cursor."""
        cursor: Optional[str] = None
        while True:
            app_logger.info("Requesting Readwise API...")
            page = await self.fetch_page(cursor, updated_after)
            yield page

            cursor = page.next_page_cursor
            if not cursor:
                return
