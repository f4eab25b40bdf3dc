"""Async HTTP client for the Keyman language catalog.

WHY: The language picker offers every language Keyman knows about, with
its BCP-47 tag. That list lives behind the Keyman API; the worker caches
it locally and refreshes it when it goes stale.

HOW: Uses httpx.AsyncClient. KeymanAPI can be used as an async context
manager to share a connection pool across calls; fetch_language_data()
also works outside one by opening a short-lived client for the call.
A custom transport can be injected for tests.

RULES:
- A single GET to KEYMAN_API_URL returns the whole catalog
- Non-200 responses raise KeymanAPIError with the status and body
- Network failures propagate as httpx.HTTPError
- No retries — the next freshness check tries again
"""

from __future__ import annotations

import logging
from typing import Optional

import httpx

from predictive_text_studio.api.models import KeymanAPIError, parse_language_list
from predictive_text_studio.config import KEYMAN_API_TIMEOUT_S, KEYMAN_API_URL
from predictive_text_studio.core.types import KeyboardData

logger = logging.getLogger(__name__)


class KeymanAPI:
    """Async client for the Keyman language catalog endpoint.

    RULES:
    - url defaults to KEYMAN_API_URL from config
    - timeout defaults to KEYMAN_API_TIMEOUT_S from config
    - transport is only for tests (httpx.MockTransport)
    """

    def __init__(
        self,
        url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._url = url or KEYMAN_API_URL
        self._timeout = timeout if timeout is not None else KEYMAN_API_TIMEOUT_S
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    def _new_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=httpx.Timeout(self._timeout),
            transport=self._transport,
            headers={"Accept": "application/json"},
        )

    async def __aenter__(self) -> KeymanAPI:
        self._client = self._new_client()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        if self._client:
            await self._client.aclose()
            self._client = None

    async def fetch_language_data(self) -> list[KeyboardData]:
        """Fetch the full language catalog.

        Returns:
            KeyboardData entries in response order.

        Raises:
            KeymanAPIError: On a non-200 response or an unusable body.
            httpx.HTTPError: On network failures.
        """
        if self._client is not None:
            resp = await self._client.get(self._url)
        else:
            async with self._new_client() as client:
                resp = await client.get(self._url)

        if resp.status_code != 200:
            raise KeymanAPIError(resp.status_code, resp.text)

        try:
            payload = resp.json()
        except ValueError as exc:
            raise KeymanAPIError(resp.status_code, "Response is not JSON") from exc

        languages = parse_language_list(payload)
        logger.info("Fetched %d languages from %s", len(languages), self._url)
        return languages
