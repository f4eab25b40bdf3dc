"""Project store facade — the async persistence contract.

WHY: The worker needs somewhere to keep dictionary sources, project
metadata, the compiled package and the cached keyboard catalog, but it
should not care whether that is memory, a database or a browser store.
This ABC is the whole contract the worker relies on.

HOW: Every method is a coroutine. Implementations are the sole mutators
of durable state and must serialize their own underlying accesses.

RULES:
- save_file() upserts by name; fetch_all_files() keeps first-save order
- update_project_data() merges a patch (see ProjectMetadata.apply)
- fetch_project_data() returns None before the first metadata write
- One compiled package per project; saving overwrites it
- add_keyboard_data() stamps the entry with the store's clock
- delete_keyboard_data() clears the whole catalog
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from predictive_text_studio.core.types import (
    KeyboardDataWithTime,
    Language,
    ProjectMetadata,
    ProjectMetadataPatch,
    WordList,
    WordListSource,
)


class ProjectStore(ABC):
    """Abstract async store for one predictive text project."""

    # -- dictionary sources ------------------------------------------------

    @abstractmethod
    async def save_file(self, name: str, wordlist: WordList) -> None:
        """Insert or replace the dictionary source called ``name``."""

    @abstractmethod
    async def fetch_all_files(self) -> list[WordListSource]:
        """Return every stored dictionary source in enumeration order."""

    # -- project metadata --------------------------------------------------

    @abstractmethod
    async def update_project_data(self, patch: ProjectMetadataPatch) -> ProjectMetadata:
        """Merge ``patch`` into the stored metadata and return the result."""

    async def update_bcp47_tag(self, bcp47_tag: str) -> ProjectMetadata:
        """Set only the BCP-47 tag, keeping the stored language name."""
        current = await self.fetch_project_data()
        lang_name = current.lang_name if current is not None else ""
        return await self.update_project_data(
            ProjectMetadataPatch(languages=[Language(name=lang_name, id=bcp47_tag)])
        )

    @abstractmethod
    async def fetch_project_data(self) -> Optional[ProjectMetadata]:
        """Return the stored metadata, or None if it was never written."""

    # -- compiled package --------------------------------------------------

    @abstractmethod
    async def save_compiled_kmp_as_bytes(self, data: bytes) -> None:
        """Store the compiled .kmp, replacing any previous one."""

    @abstractmethod
    async def fetch_compiled_kmp_file(self) -> Optional[bytes]:
        """Return the compiled .kmp, or None if nothing has compiled yet."""

    # -- keyboard catalog cache -------------------------------------------

    @abstractmethod
    async def fetch_keyboard_data(self) -> list[KeyboardDataWithTime]:
        """Return the cached catalog in insertion order."""

    @abstractmethod
    async def add_keyboard_data(self, language: str, bcp47_tag: str) -> None:
        """Append one catalog entry stamped with the current time."""

    @abstractmethod
    async def delete_keyboard_data(self) -> None:
        """Remove every cached catalog entry."""
