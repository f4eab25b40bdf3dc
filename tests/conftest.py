"""Shared test fixtures for the predictive_text_studio test suite.

WHY: Parser, worker, server and CLI tests all need real .xlsx bytes, small
TSV word lists and a Keyman API stand-in. Centralizing them here keeps
every test module on the same sample data.

HOW: make_xlsx builds workbooks in memory with openpyxl. fake_keyman_api
is an AsyncMock with the KeymanAPI interface returning two languages.
A controllable clock fixture drives timestamp-dependent tests.

RULES:
- No test touches the network
- Every fixture returns fresh objects (no shared mutable state)
"""

from __future__ import annotations

from io import BytesIO
from typing import Any, Callable, List, Sequence
from unittest.mock import AsyncMock

import pytest
from openpyxl import Workbook

from predictive_text_studio.api.client import KeymanAPI
from predictive_text_studio.core.types import KeyboardData, Language, ProjectMetadataPatch
from predictive_text_studio.storage.memory import InMemoryStorage

SAMPLE_TSV = "word\tcount\nhello\t3\nworld\t\nbroken line\n"

SAMPLE_CATALOG = [
    KeyboardData(language="SENĆOŦEN", bcp47_tag="str-Latn"),
    KeyboardData(language="Cree", bcp47_tag="cr"),
]


class FakeClock:
    """A settable time.time() replacement (epoch seconds)."""

    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def make_xlsx() -> Callable[..., bytes]:
    """Factory: rows (and optional extra sheets) → .xlsx bytes."""

    def _make(rows: Sequence[Sequence[Any]], *extra_sheets: Sequence[Sequence[Any]]) -> bytes:
        workbook = Workbook()
        sheet = workbook.active
        for row in rows:
            sheet.append(list(row))
        for extra in extra_sheets:
            other = workbook.create_sheet()
            for row in extra:
                other.append(list(row))
        buffer = BytesIO()
        workbook.save(buffer)
        return buffer.getvalue()

    return _make


@pytest.fixture
def sample_tsv_bytes() -> bytes:
    return SAMPLE_TSV.encode("utf-8")


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def storage(clock) -> InMemoryStorage:
    return InMemoryStorage(clock=clock)


@pytest.fixture
def fake_keyman_api() -> AsyncMock:
    """A KeymanAPI stand-in whose fetch_language_data returns SAMPLE_CATALOG."""
    api = AsyncMock(spec=KeymanAPI)
    api.fetch_language_data.return_value = list(SAMPLE_CATALOG)
    return api


@pytest.fixture
def str_latn_patch() -> ProjectMetadataPatch:
    return ProjectMetadataPatch(
        languages=[Language(name="SENĆOŦEN", id="str-Latn")],
        author_name="Eddie",
    )


@pytest.fixture
def word_rows() -> List[List[Any]]:
    return [["TŦE", 13644], ["E", 9134], ["SEN", 4816]]
