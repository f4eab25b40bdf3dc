"""Tests for the worker: ingestion, the compile state machine and callbacks.

WHY: The worker is where parsing, storage, packaging and notifications
meet. The order of lifecycle events, which failures become error events
and which propagate, and what happens to a previously stored package are
all caller-visible contracts.

HOW: Each test builds a PredictiveTextStudioWorkerImpl over a fresh
InMemoryStorage with a mocked Keyman API, registers recording callbacks,
and drives coroutines with asyncio.run(). The package assembler is
patched where a test needs to observe or break it.

RULES:
- No network access (fake_keyman_api fixture)
- Event order is asserted through a shared ``events`` list
"""

from __future__ import annotations

import asyncio
import json
import zipfile
from io import BytesIO
from unittest.mock import patch

import pytest

from predictive_text_studio.compiler import ModelCompilerError
from predictive_text_studio.core.read_wordlist import WordListFormatError
from predictive_text_studio.core.types import DictionaryEntry, ProjectMetadataPatch
from predictive_text_studio.worker.impl import (
    CompileState,
    MissingBCP47TagError,
    NoDictionarySourcesError,
    PredictiveTextStudioWorkerImpl,
)

PACKAGE_FN = "predictive_text_studio.worker.impl.generate_kmp_from_metadata"


@pytest.fixture
def worker(storage, fake_keyman_api, clock):
    return PredictiveTextStudioWorkerImpl(storage=storage, keyman_api=fake_keyman_api, clock=clock)


@pytest.fixture
def events(worker):
    """Register recording callbacks for all three lifecycle events."""
    recorded = []
    worker.on_package_compile_start(lambda: recorded.append(("start", worker.compile_state)))
    worker.on_package_compile_error(lambda err: recorded.append(("error", err)))
    worker.on_package_compile_success(lambda kmp: recorded.append(("success", kmp)))
    return recorded


@pytest.fixture
def tagged_worker(worker, str_latn_patch):
    asyncio.run(worker.set_project_data(str_latn_patch))
    return worker


# ---------------------------------------------------------------------------
# Ingestion
# ---------------------------------------------------------------------------


class TestIngestion:

    def test_tsv_source_returns_word_count(self, tagged_worker, sample_tsv_bytes, events):
        added = asyncio.run(tagged_worker.add_dictionary_source_to_project("words.tsv", sample_tsv_bytes))
        assert added == 2
        sources = asyncio.run(tagged_worker.get_files_from_storage())
        assert [(s.name, s.wordlist) for s in sources] == [("words.tsv", [("hello", 3), ("world", 1)])]

    def test_spreadsheet_source(self, tagged_worker, make_xlsx, word_rows, events):
        data = make_xlsx([["Word", "Count"]] + word_rows)
        assert asyncio.run(tagged_worker.add_dictionary_source_to_project("words.xlsx", data)) == 3

    def test_manual_entry(self, tagged_worker, events):
        entries = [DictionaryEntry("a", 2), DictionaryEntry("b")]
        assert asyncio.run(tagged_worker.add_manual_entry_dictionary_to_project("manual", entries)) == 2
        (source,) = asyncio.run(tagged_worker.get_files_from_storage())
        assert source.wordlist == [("a", 2), ("b", 0)]

    def test_google_sheet(self, tagged_worker, events):
        rows = [["a", 4], ["b"]]
        assert asyncio.run(tagged_worker.read_google_sheet("Sheet1", rows)) == 2
        (source,) = asyncio.run(tagged_worker.get_files_from_storage())
        assert source.wordlist == [("a", 4), ("b", 1)]

    @pytest.mark.parametrize("ingest", ["file", "manual", "sheet"])
    def test_every_ingestion_path_compiles(self, tagged_worker, sample_tsv_bytes, events, ingest):
        if ingest == "file":
            coro = tagged_worker.add_dictionary_source_to_project("w.tsv", sample_tsv_bytes)
        elif ingest == "manual":
            coro = tagged_worker.add_manual_entry_dictionary_to_project("m", [DictionaryEntry("x", 1)])
        else:
            coro = tagged_worker.read_google_sheet("s", [["x", 1]])
        asyncio.run(coro)
        assert [name for name, _ in events] == ["start", "success"]

    def test_parse_failure_stores_nothing(self, tagged_worker, events):
        with pytest.raises(WordListFormatError):
            asyncio.run(tagged_worker.add_dictionary_source_to_project("bad.tsv", b"h\th\na\t-1\n"))
        assert asyncio.run(tagged_worker.get_files_from_storage()) == []
        assert events == []


# ---------------------------------------------------------------------------
# Compile state machine
# ---------------------------------------------------------------------------


class TestCompileLifecycle:

    def test_success_emits_start_then_success(self, tagged_worker, sample_tsv_bytes, events):
        asyncio.run(tagged_worker.add_dictionary_source_to_project("w.tsv", sample_tsv_bytes))
        assert events[0] == ("start", CompileState.COMPILE_STARTED)
        assert events[1][0] == "success"
        assert len(events) == 2

    def test_success_payload_is_stored_package(self, tagged_worker, sample_tsv_bytes, events):
        asyncio.run(tagged_worker.add_dictionary_source_to_project("w.tsv", sample_tsv_bytes))
        stored = asyncio.run(tagged_worker.get_kmp_package())
        assert events[1][1] == stored
        names = zipfile.ZipFile(BytesIO(stored)).namelist()
        assert "Eddie.str-Latn.SENĆOŦEN.model.js" in names

    def test_states_settle_after_success(self, tagged_worker, sample_tsv_bytes):
        asyncio.run(tagged_worker.add_dictionary_source_to_project("w.tsv", sample_tsv_bytes))
        assert tagged_worker.compile_state is CompileState.IDLE
        assert tagged_worker.last_compile_state is CompileState.COMPILE_SUCCEEDED

    def test_no_sources_emits_error(self, tagged_worker, events):
        result = asyncio.run(tagged_worker.generate_kmp_from_storage())
        assert result is None
        assert [name for name, _ in events] == ["start", "error"]
        assert isinstance(events[1][1], NoDictionarySourcesError)
        assert tagged_worker.last_compile_state is CompileState.COMPILE_FAILED
        assert tagged_worker.compile_state is CompileState.IDLE

    def test_missing_tag_emits_error(self, worker, sample_tsv_bytes, events):
        added = asyncio.run(worker.add_dictionary_source_to_project("w.tsv", sample_tsv_bytes))
        assert added == 2
        assert [name for name, _ in events] == ["start", "error"]
        assert isinstance(events[1][1], MissingBCP47TagError)
        assert asyncio.run(worker.get_kmp_package()) is None

    def test_failed_compile_leaves_previous_package(self, tagged_worker, storage, events):
        asyncio.run(storage.save_compiled_kmp_as_bytes(b"previous"))
        asyncio.run(tagged_worker.generate_kmp_from_storage())
        assert asyncio.run(tagged_worker.get_kmp_package()) == b"previous"

    def test_only_first_source_compiled(self, tagged_worker, sample_tsv_bytes):
        async def scenario():
            await tagged_worker.add_dictionary_source_to_project("first.tsv", sample_tsv_bytes)
            with patch(PACKAGE_FN, return_value=b"kmp") as package:
                await tagged_worker.add_manual_entry_dictionary_to_project(
                    "second", [DictionaryEntry("other", 1)]
                )
            return package

        package = asyncio.run(scenario())
        _, sources = package.call_args.args
        assert [s.name for s in sources] == ["first.tsv"]

    def test_compiler_error_propagates_without_error_event(self, tagged_worker, storage, events):
        async def scenario():
            await storage.save_file("w.tsv", [("x", 1)])
            await storage.save_compiled_kmp_as_bytes(b"previous")
            with patch(PACKAGE_FN, side_effect=ModelCompilerError("boom")):
                await tagged_worker.generate_kmp_from_storage()

        with pytest.raises(ModelCompilerError, match="boom"):
            asyncio.run(scenario())
        assert [name for name, _ in events] == ["start"]
        assert tagged_worker.last_compile_state is CompileState.COMPILE_FAILED
        assert tagged_worker.compile_state is CompileState.IDLE
        assert asyncio.run(tagged_worker.get_kmp_package()) == b"previous"

    def test_storage_is_read_before_compiling(self, tagged_worker, storage):
        calls = []
        original_fetch = storage.fetch_all_files

        async def recording_fetch():
            calls.append("fetch")
            return await original_fetch()

        def recording_package(metadata, sources):
            calls.append("package")
            return b"kmp"

        async def scenario():
            await storage.save_file("w.tsv", [("x", 1)])
            with patch.object(storage, "fetch_all_files", recording_fetch), \
                    patch(PACKAGE_FN, side_effect=recording_package):
                await tagged_worker.generate_kmp_from_storage()

        asyncio.run(scenario())
        assert calls == ["fetch", "package"]


# ---------------------------------------------------------------------------
# Callback registration
# ---------------------------------------------------------------------------


class TestCallbacks:

    def test_no_callbacks_registered(self, tagged_worker, sample_tsv_bytes):
        asyncio.run(tagged_worker.add_dictionary_source_to_project("w.tsv", sample_tsv_bytes))
        assert tagged_worker.last_compile_state is CompileState.COMPILE_SUCCEEDED

    def test_registering_replaces_previous(self, tagged_worker, sample_tsv_bytes):
        first, second = [], []
        tagged_worker.on_package_compile_success(first.append)
        tagged_worker.on_package_compile_success(second.append)
        asyncio.run(tagged_worker.add_dictionary_source_to_project("w.tsv", sample_tsv_bytes))
        assert first == []
        assert len(second) == 1

    def test_none_unregisters(self, tagged_worker, events):
        tagged_worker.on_package_compile_error(None)
        asyncio.run(tagged_worker.generate_kmp_from_storage())
        assert [name for name, _ in events] == ["start"]


# ---------------------------------------------------------------------------
# Metadata
# ---------------------------------------------------------------------------


class TestProjectMetadata:

    def test_defaults_before_any_write(self, worker):
        metadata = asyncio.run(worker.fetch_all_current_project_metadata())
        assert metadata.author_name == "UnknownAuthor"
        assert metadata.version == "1.0.0"
        assert metadata.bcp47_tag == ""

    def test_set_project_data_does_not_compile(self, worker, str_latn_patch, events):
        asyncio.run(worker.set_project_data(str_latn_patch))
        assert events == []

    def test_update_bcp47_tag_recompiles(self, worker, sample_tsv_bytes, events):
        asyncio.run(worker.add_dictionary_source_to_project("w.tsv", sample_tsv_bytes))
        events.clear()
        asyncio.run(worker.update_bcp47_tag("str-Latn"))
        assert [name for name, _ in events] == ["start", "success"]
        manifest = json.loads(
            zipfile.ZipFile(BytesIO(asyncio.run(worker.get_kmp_package()))).read("kmp.json")
        )
        assert manifest["lexicalModels"][0]["languages"][0]["id"] == "str-Latn"

    def test_metadata_change_used_by_next_compile(self, tagged_worker, sample_tsv_bytes):
        asyncio.run(tagged_worker.set_project_data(ProjectMetadataPatch(model_id="pinned.model")))
        asyncio.run(tagged_worker.add_dictionary_source_to_project("w.tsv", sample_tsv_bytes))
        names = zipfile.ZipFile(BytesIO(asyncio.run(tagged_worker.get_kmp_package()))).namelist()
        assert "pinned.model.model.js" in names


class TestInitialize:

    def test_initialize_fills_empty_catalog(self, worker, fake_keyman_api):
        assert asyncio.run(worker.initialize()) is True
        fake_keyman_api.fetch_language_data.assert_awaited_once()
        catalog = asyncio.run(worker.get_data_from_storage())
        assert [entry.bcp47_tag for entry in catalog] == ["str-Latn", "cr"]
