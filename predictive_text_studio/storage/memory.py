"""In-memory project store.

WHY: The worker needs a ProjectStore that works out of the box — for the
CLI's one-shot builds, for the HTTP server of a single-user tool, and
for tests. Keeping everything in process memory is enough when nothing
has to survive a restart.

HOW: Sources live in an insertion-ordered dict keyed by name, metadata
in one ProjectMetadata record, the package as one bytes value and the
catalog as a list. Every public coroutine holds an asyncio.Lock so
interleaved callers on the same event loop see consistent state.

RULES:
- All public methods that touch state acquire self._lock
- Re-saving a source keeps its original enumeration position
- Returned word lists and records are copies, never live internals
- Catalog timestamps come from the injectable clock (epoch seconds)
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import replace
from typing import Callable, Dict, List, Optional

from predictive_text_studio.core.types import (
    KeyboardDataWithTime,
    Language,
    ProjectMetadata,
    ProjectMetadataPatch,
    WordList,
    WordListSource,
)
from predictive_text_studio.storage.base import ProjectStore

logger = logging.getLogger(__name__)


class InMemoryStorage(ProjectStore):
    """Process-local ProjectStore backed by plain Python containers."""

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._files: Dict[str, WordList] = {}
        self._metadata: Optional[ProjectMetadata] = None
        self._kmp: Optional[bytes] = None
        self._keyboard_data: List[KeyboardDataWithTime] = []
        self._lock = asyncio.Lock()
        self._clock = clock

    async def save_file(self, name: str, wordlist: WordList) -> None:
        async with self._lock:
            self._files[name] = list(wordlist)
        logger.info("Stored dictionary source %s (%d words)", name, len(wordlist))

    async def fetch_all_files(self) -> list[WordListSource]:
        async with self._lock:
            return [
                WordListSource(name=name, wordlist=list(wordlist))
                for name, wordlist in self._files.items()
            ]

    async def update_project_data(self, patch: ProjectMetadataPatch) -> ProjectMetadata:
        async with self._lock:
            self._metadata = ProjectMetadata.apply(self._metadata, patch)
            return replace(self._metadata)

    async def update_bcp47_tag(self, bcp47_tag: str) -> ProjectMetadata:
        async with self._lock:
            lang_name = self._metadata.lang_name if self._metadata is not None else ""
            self._metadata = ProjectMetadata.apply(
                self._metadata,
                ProjectMetadataPatch(languages=[Language(name=lang_name, id=bcp47_tag)]),
            )
            return replace(self._metadata)

    async def fetch_project_data(self) -> Optional[ProjectMetadata]:
        async with self._lock:
            if self._metadata is None:
                return None
            return replace(self._metadata)

    async def save_compiled_kmp_as_bytes(self, data: bytes) -> None:
        async with self._lock:
            self._kmp = bytes(data)

    async def fetch_compiled_kmp_file(self) -> Optional[bytes]:
        async with self._lock:
            return self._kmp

    async def fetch_keyboard_data(self) -> list[KeyboardDataWithTime]:
        async with self._lock:
            return [replace(entry) for entry in self._keyboard_data]

    async def add_keyboard_data(self, language: str, bcp47_tag: str) -> None:
        async with self._lock:
            self._keyboard_data.append(KeyboardDataWithTime(
                language=language,
                bcp47_tag=bcp47_tag,
                timestamp=self._clock(),
            ))

    async def delete_keyboard_data(self) -> None:
        async with self._lock:
            removed = len(self._keyboard_data)
            self._keyboard_data.clear()
        logger.info("Cleared %d cached keyboard catalog entries", removed)
