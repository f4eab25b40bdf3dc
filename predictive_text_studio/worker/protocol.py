"""The operations a caller can invoke on the worker, and the events it emits.

WHY: The studio's front end (the HTTP server, the CLI, tests) drives the
pipeline through one asynchronous surface. Pinning that surface down as
an abstract class keeps the caller independent of how the worker stores,
compiles and caches things.

HOW: An ABC with coroutine methods for ingestion, metadata and cache
reads, plus three registration methods for compile lifecycle events.

RULES:
- Ingestion methods return how many words the source added
- Each lifecycle event has one slot; registering replaces the previous
  callback; passing None empties the slot
- An empty slot means the event is silently dropped
- Callbacks are plain (synchronous) callables invoked on the worker's loop
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Callable, Optional, Sequence

from predictive_text_studio.core.types import (
    DictionaryEntry,
    KeyboardDataWithTime,
    ProjectMetadata,
    ProjectMetadataPatch,
    WordListSource,
)

CompileStartCallback = Callable[[], None]
CompileErrorCallback = Callable[[Exception], None]
CompileSuccessCallback = Callable[[bytes], None]


class PredictiveTextStudioWorker(ABC):
    """Communication protocol between the caller and the worker."""

    # ------------------------------------------------------------------
    # Modify dictionary sources
    # ------------------------------------------------------------------

    @abstractmethod
    async def read_google_sheet(self, name: str, wordlist: Sequence[Sequence[Any]]) -> int:
        """Save word/count rows already read from a Google Sheet."""

    @abstractmethod
    async def add_dictionary_source_to_project(self, name: str, contents: bytes) -> int:
        """Parse an uploaded file and store it as a dictionary source.

        Args:
            name: The dictionary source name — typically the uploaded filename.
            contents: The raw file bytes.

        Returns:
            How many words were added by this source.
        """

    @abstractmethod
    async def add_manual_entry_dictionary_to_project(
        self,
        name: str,
        entries: Sequence[DictionaryEntry],
    ) -> int:
        """Store a manually entered table as a dictionary source."""

    # ------------------------------------------------------------------
    # Event handlers
    # ------------------------------------------------------------------

    @abstractmethod
    def on_package_compile_start(self, callback: Optional[CompileStartCallback]) -> None:
        """Register the callback run directly before the package is generated."""

    @abstractmethod
    def on_package_compile_error(self, callback: Optional[CompileErrorCallback]) -> None:
        """Register the callback run when compilation cannot proceed."""

    @abstractmethod
    def on_package_compile_success(self, callback: Optional[CompileSuccessCallback]) -> None:
        """Register the callback run with the .kmp bytes after a successful compile."""

    # ------------------------------------------------------------------
    # Project metadata
    # ------------------------------------------------------------------

    @abstractmethod
    async def set_project_data(self, metadata: ProjectMetadataPatch) -> None:
        """Merge optional and required metadata (BCP-47, language, author, ...).

        The package requires at least a BCP-47 tag before it can compile.
        """

    @abstractmethod
    async def update_bcp47_tag(self, bcp47_tag: str) -> None:
        """Set the project's BCP-47 tag and recompile the package."""

    @abstractmethod
    async def fetch_all_current_project_metadata(self) -> ProjectMetadata:
        """Return all of the current project's metadata."""

    # ------------------------------------------------------------------
    # Caches
    # ------------------------------------------------------------------

    @abstractmethod
    async def get_data_from_storage(self) -> list[KeyboardDataWithTime]:
        """Return the cached Keyman keyboard catalog."""

    @abstractmethod
    async def get_files_from_storage(self) -> list[WordListSource]:
        """Return the stored dictionary sources."""

    @abstractmethod
    async def get_kmp_package(self) -> Optional[bytes]:
        """Return the last compiled .kmp, or None."""
