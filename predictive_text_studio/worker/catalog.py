"""Keyboard catalog cache freshness policy.

WHY: The Keyman language list changes rarely, and fetching it on every
start is slow and needs the network. The catalog is cached in the
project store and only refetched when it is missing or older than the
expiry threshold.

HOW: refresh_if_stale() reads the cached catalog. Empty → fetch and
store. Non-empty → compare now with the first entry's timestamp (the
whole catalog shares one fetch time); older than the threshold → delete
everything, then fetch and store. Otherwise nothing happens.

RULES:
- Threshold defaults to KEYBOARD_DATA_EXPIRY_MS (seven days)
- Age exactly equal to the threshold is still fresh
- A fresh cache causes no network access and no deletion
- No background timer — stale data is served until the next check
- Fetch errors propagate; a cache deleted before a failed fetch stays empty
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional

from predictive_text_studio.api.client import KeymanAPI
from predictive_text_studio.config import KEYBOARD_DATA_EXPIRY_MS
from predictive_text_studio.storage.base import ProjectStore

logger = logging.getLogger(__name__)


class CatalogFreshnessManager:
    """Keeps the cached keyboard catalog within its freshness window."""

    def __init__(
        self,
        storage: ProjectStore,
        keyman_api: KeymanAPI,
        clock: Callable[[], float] = time.time,
        expiry_threshold_ms: Optional[int] = None,
    ) -> None:
        self._storage = storage
        self._keyman_api = keyman_api
        self._clock = clock
        self.expiry_threshold_ms = (
            expiry_threshold_ms if expiry_threshold_ms is not None else KEYBOARD_DATA_EXPIRY_MS
        )

    async def fetch_language_data_from_service(self) -> int:
        """Fetch the catalog from Keyman and store every entry. Returns the count."""
        languages = await self._keyman_api.fetch_language_data()
        for data in languages:
            await self._storage.add_keyboard_data(data.language, data.bcp47_tag)
        logger.info("Cached %d keyboard catalog entries", len(languages))
        return len(languages)

    async def refresh_if_stale(self) -> bool:
        """Refresh the cached catalog if it is empty or expired.

        Returns:
            True if the catalog was (re)fetched, False if the cache was fresh.
        """
        keyboard_data = await self._storage.fetch_keyboard_data()
        if keyboard_data:
            age_ms = (self._clock() - keyboard_data[0].timestamp) * 1000
            if age_ms <= self.expiry_threshold_ms:
                logger.debug("Keyboard catalog is fresh (%.0f ms old)", age_ms)
                return False
            logger.info("Keyboard catalog expired (%.1f days old); refreshing", age_ms / 86_400_000)
            await self._storage.delete_keyboard_data()
        else:
            logger.info("Keyboard catalog cache is empty; fetching")

        await self.fetch_language_data_from_service()
        return True
