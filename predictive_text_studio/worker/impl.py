"""The worker: ingestion, metadata, package compilation and catalog cache.

WHY: Someone has to sequence the pipeline — parse a source, store it,
recompile the package, tell the caller how that went — and own the
project store while doing it. Keeping that in one object gives callers
a single asynchronous surface (PredictiveTextStudioWorker) and keeps the
parsers, compiler and store ignorant of each other.

HOW: Ingestion methods parse with core.read_wordlist, save through the
store, then run the compile procedure. The compile procedure walks the
state machine IDLE → COMPILE_STARTED → COMPILE_SUCCEEDED | COMPILE_FAILED
→ IDLE, emitting one lifecycle event on entry to each of the three
active states. The catalog cache is delegated to CatalogFreshnessManager
and checked once by initialize().

RULES:
- The start event is emitted before storage is touched
- Storage fetch always precedes the compiler call
- No stored sources → compile-error event, stored package untouched
- No BCP-47 tag → compile-error event, stored package untouched
- Only the first stored source is compiled
- Compiler, manifest, archive and storage errors propagate to whoever
  triggered the compile; no retry, no compile-error event for them
- Nothing guards against overlapping compiles
"""

from __future__ import annotations

import enum
import logging
import time
from typing import Any, Callable, Optional, Sequence

from predictive_text_studio.api.client import KeymanAPI
from predictive_text_studio.core.package import generate_kmp_from_metadata
from predictive_text_studio.core.read_wordlist import (
    read_dictionary_source,
    read_google_sheet_data,
    read_manual_entry_data,
)
from predictive_text_studio.core.types import (
    DictionaryEntry,
    KeyboardDataWithTime,
    ProjectMetadata,
    ProjectMetadataPatch,
    WordListSource,
)
from predictive_text_studio.storage.base import ProjectStore
from predictive_text_studio.storage.memory import InMemoryStorage
from predictive_text_studio.worker.catalog import CatalogFreshnessManager
from predictive_text_studio.worker.protocol import (
    CompileErrorCallback,
    CompileStartCallback,
    CompileSuccessCallback,
    PredictiveTextStudioWorker,
)

logger = logging.getLogger(__name__)


class CompileState(str, enum.Enum):
    """States of one package compile attempt."""

    IDLE = "idle"
    COMPILE_STARTED = "compile_started"
    COMPILE_SUCCEEDED = "compile_succeeded"
    COMPILE_FAILED = "compile_failed"


class CompileError(Exception):
    """Base for compile failures reported through the compile-error event."""


class NoDictionarySourcesError(CompileError):
    """The project has no stored dictionary sources to compile."""


class MissingBCP47TagError(CompileError):
    """The project has no BCP-47 tag, which the package requires."""


class PredictiveTextStudioWorkerImpl(PredictiveTextStudioWorker):
    """Default worker implementation over a ProjectStore.

    RULES:
    - storage defaults to a fresh InMemoryStorage
    - keyman_api defaults to KeymanAPI() with config defaults
    - clock and expiry_threshold_ms are passed to the catalog manager
    - compile_state is IDLE whenever no compile is in flight
    - last_compile_state is the terminal state of the latest attempt
    """

    def __init__(
        self,
        storage: Optional[ProjectStore] = None,
        keyman_api: Optional[KeymanAPI] = None,
        clock: Callable[[], float] = time.time,
        expiry_threshold_ms: Optional[int] = None,
    ) -> None:
        self.storage = storage if storage is not None else InMemoryStorage()
        self.catalog = CatalogFreshnessManager(
            self.storage,
            keyman_api if keyman_api is not None else KeymanAPI(),
            clock=clock,
            expiry_threshold_ms=expiry_threshold_ms,
        )
        self.compile_state = CompileState.IDLE
        self.last_compile_state: Optional[CompileState] = None

        self._compile_start_callback: Optional[CompileStartCallback] = None
        self._compile_error_callback: Optional[CompileErrorCallback] = None
        self._compile_success_callback: Optional[CompileSuccessCallback] = None

    async def initialize(self) -> bool:
        """Run the keyboard catalog freshness check. Returns True if it refetched."""
        return await self.catalog.refresh_if_stale()

    # ------------------------------------------------------------------
    # Modify dictionary sources
    # ------------------------------------------------------------------

    async def read_google_sheet(self, name: str, wordlist: Sequence[Sequence[Any]]) -> int:
        normalized = read_google_sheet_data(wordlist)
        await self.storage.save_file(name, normalized)
        await self.generate_kmp_from_storage()
        return len(normalized)

    async def add_dictionary_source_to_project(self, name: str, contents: bytes) -> int:
        wordlist = await read_dictionary_source(name, contents)
        await self.storage.save_file(name, wordlist)
        await self.generate_kmp_from_storage()
        return len(wordlist)

    async def add_manual_entry_dictionary_to_project(
        self,
        name: str,
        entries: Sequence[DictionaryEntry],
    ) -> int:
        wordlist = read_manual_entry_data(entries)
        await self.storage.save_file(name, wordlist)
        await self.generate_kmp_from_storage()
        return len(wordlist)

    # ------------------------------------------------------------------
    # Event handlers
    # ------------------------------------------------------------------

    def on_package_compile_start(self, callback: Optional[CompileStartCallback]) -> None:
        self._compile_start_callback = callback

    def on_package_compile_error(self, callback: Optional[CompileErrorCallback]) -> None:
        self._compile_error_callback = callback

    def on_package_compile_success(self, callback: Optional[CompileSuccessCallback]) -> None:
        self._compile_success_callback = callback

    def _emit_package_compile_start(self) -> None:
        if self._compile_start_callback is not None:
            self._compile_start_callback()

    def _emit_package_compile_error(self, err: Exception) -> None:
        if self._compile_error_callback is not None:
            self._compile_error_callback(err)

    def _emit_package_compile_success(self, kmp: bytes) -> None:
        if self._compile_success_callback is not None:
            self._compile_success_callback(kmp)

    # ------------------------------------------------------------------
    # Compilation
    # ------------------------------------------------------------------

    def _settle(self, state: CompileState) -> None:
        self.last_compile_state = state
        self.compile_state = CompileState.IDLE

    def _fail_compile(self, err: CompileError) -> None:
        logger.warning("Package compile failed: %s", err)
        self.compile_state = CompileState.COMPILE_FAILED
        self._emit_package_compile_error(err)
        self._settle(CompileState.COMPILE_FAILED)

    async def generate_kmp_from_storage(self) -> Optional[bytes]:
        """Compile the stored sources into a .kmp and store it.

        Returns:
            The .kmp bytes, or None when the compile-error event fired.
        """
        self.compile_state = CompileState.COMPILE_STARTED
        logger.info("Package compile started")
        self._emit_package_compile_start()

        stored_files = await self.storage.fetch_all_files()
        if len(stored_files) < 1:
            self._fail_compile(NoDictionarySourcesError(
                "Cannot find any dictionary sources in the project store"
            ))
            return None

        metadata = await self.storage.fetch_project_data()
        if metadata is None or not metadata.bcp47_tag:
            self._fail_compile(MissingBCP47TagError(
                "A BCP-47 tag is required before the package can compile"
            ))
            return None

        # TODO: compile every stored source; only the first one is read for now
        try:
            kmp = generate_kmp_from_metadata(metadata, stored_files[:1])
            await self.storage.save_compiled_kmp_as_bytes(kmp)
        except Exception:
            logger.exception("Package compile for %s raised", metadata.model_id)
            self._settle(CompileState.COMPILE_FAILED)
            raise

        logger.info(
            "Package compile succeeded: %s from source %s (%d bytes)",
            metadata.model_id, stored_files[0].name, len(kmp),
        )
        self.compile_state = CompileState.COMPILE_SUCCEEDED
        self._emit_package_compile_success(kmp)
        self._settle(CompileState.COMPILE_SUCCEEDED)
        return kmp

    async def get_kmp_package(self) -> Optional[bytes]:
        return await self.storage.fetch_compiled_kmp_file()

    # ------------------------------------------------------------------
    # Project metadata
    # ------------------------------------------------------------------

    async def set_project_data(self, metadata: ProjectMetadataPatch) -> None:
        await self.storage.update_project_data(metadata)

    async def update_bcp47_tag(self, bcp47_tag: str) -> None:
        await self.storage.update_bcp47_tag(bcp47_tag)
        await self.generate_kmp_from_storage()

    async def fetch_all_current_project_metadata(self) -> ProjectMetadata:
        metadata = await self.storage.fetch_project_data()
        if metadata is None:
            return ProjectMetadata.apply(None, ProjectMetadataPatch())
        return metadata

    # ------------------------------------------------------------------
    # Caches
    # ------------------------------------------------------------------

    async def get_data_from_storage(self) -> list[KeyboardDataWithTime]:
        return await self.storage.fetch_keyboard_data()

    async def get_files_from_storage(self) -> list[WordListSource]:
        return await self.storage.fetch_all_files()
