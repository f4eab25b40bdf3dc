"""Word-list parsers: spreadsheet, TSV, manual entry, and Google Sheet data.

WHY: Users bring word lists in whatever shape they have. Every shape has
to become the same canonical WordList before it is stored or compiled,
and a malformed count anywhere must reject the whole source rather than
quietly storing half of it.

HOW: Each parser walks its input in order, skips the rows its format
marks as non-data, and pushes (word, count) pairs into one list. Counts
go through as_non_negative_integer(), the single coercion rule shared by
every path. The list is returned only after the whole input has been
consumed.

RULES:
- Spreadsheet: first worksheet; column A = word, column B = optional count
- Spreadsheet: row 1 is skipped if its column B text contains "count"
  (case-insensitive); any row whose column A text is exactly "#" is skipped
- TSV: line 0 is always a header; lines without exactly two fields are skipped
- Missing count defaults to 1 (spreadsheet, TSV, Google Sheet) or 0 (manual)
- Counts are truncated toward zero; NaN, infinite or negative → error
- Any coercion failure raises WordListFormatError for the whole parse
"""

from __future__ import annotations

import asyncio
import logging
import math
import zipfile
from io import BytesIO
from pathlib import Path
from typing import Any, Iterable, Sequence, Union

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from predictive_text_studio.config import TSV_SOURCE_EXTENSIONS
from predictive_text_studio.core.types import DictionaryEntry, WordList

logger = logging.getLogger(__name__)

# 1-based spreadsheet columns
_WORD_COLUMN = 1
_COUNT_COLUMN = 2

_COMMENT_MARKER = "#"


class WordListFormatError(ValueError):
    """Raised when a word-list source cannot be turned into a WordList.

    WHY: Callers (the worker, the HTTP layer) need one typed error for
    "this file is not a usable word list" regardless of which parser or
    which row failed.

    RULES:
    - Covers unreadable workbooks, worksheets without columns, and counts
      that are not non-negative integers
    - Raised before anything is stored
    """


def as_non_negative_integer(x: Any) -> int:
    """Return x as a non-negative integer, or raise WordListFormatError.

    HOW: Numeric text is converted with float() (surrounding whitespace is
    allowed), then truncated toward zero.

    RULES:
    - "3.9" → 3, "-0.5" → 0 (truncation, not rounding)
    - Blank text ("" or whitespace only) → 0
    - Non-numeric, infinite and negative values all raise the same error
    - No 32-bit wrap-around: large counts are kept exactly
    """
    if isinstance(x, str) and not x.strip():
        return 0

    try:
        value = float(x)
    except (TypeError, ValueError):
        value = math.nan

    if math.isnan(value) or math.isinf(value) or math.trunc(value) < 0:
        raise WordListFormatError(
            "Cannot coerce {!r} into non-negative integer".format(x)
        )

    return int(math.trunc(value))


# ---------------------------------------------------------------------------
# Spreadsheets
# ---------------------------------------------------------------------------


def _cell_text(value: Any) -> str:
    """Render a cell value the way a spreadsheet displays it."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _should_row_be_converted(row_number: int, word_text: str, count_text: str) -> bool:
    """Return False for the header row and for commented-out rows."""
    is_header_row = row_number == 1 and "count" in count_text.lower()
    is_comment_row = word_text == _COMMENT_MARKER
    return not is_header_row and not is_comment_row


def _column_count(worksheet) -> int:
    """Number of populated columns; 0 for a worksheet without any values."""
    if worksheet.max_row == 1 and worksheet.max_column == 1:
        if worksheet.cell(row=1, column=1).value is None:
            return 0
    return worksheet.max_column


def _parse_workbook(excel_file: bytes) -> WordList:
    try:
        workbook = load_workbook(BytesIO(excel_file), data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError) as exc:
        raise WordListFormatError("cannot read spreadsheet: {}".format(exc)) from exc

    # We're making the following assumptions:
    #
    #  * The first worksheet contains the wordlist
    #  * The first column of the first sheet contains the words
    #  * The second column of the first sheet MAY contain the counts
    worksheet = workbook.worksheets[0]
    column_count = _column_count(worksheet)
    if column_count < 1:
        raise WordListFormatError(
            "cannot understand worksheet with {} columns".format(column_count)
        )

    wordlist: WordList = []
    for row_number, row in enumerate(worksheet.iter_rows(min_row=1, values_only=True), start=1):
        if all(value is None for value in row):
            continue

        word_text = _cell_text(row[_WORD_COLUMN - 1]) if len(row) >= _WORD_COLUMN else ""
        count_text = _cell_text(row[_COUNT_COLUMN - 1]) if len(row) >= _COUNT_COLUMN else ""

        if not _should_row_be_converted(row_number, word_text, count_text):
            logger.debug("Skipping spreadsheet row %d", row_number)
            continue

        wordlist.append((word_text, as_non_negative_integer(count_text or 1)))

    workbook.close()
    return wordlist


async def read_excel(excel_file: bytes) -> WordList:
    """Parse an .xlsx buffer into a WordList.

    WHY: Spreadsheets are the most common way people keep word lists.

    HOW: Loads the workbook with openpyxl in a worker thread (parsing is
    blocking I/O-style work) and walks the first worksheet's rows.

    RULES:
    - Only the first worksheet is read
    - A worksheet with no values fails with WordListFormatError
    - Fully empty rows are not visited
    - Output is in row order, header/comment rows excluded
    """
    return await asyncio.to_thread(_parse_workbook, excel_file)


# ---------------------------------------------------------------------------
# Tab-separated values
# ---------------------------------------------------------------------------


def _parse_tsv_text(text: str) -> WordList:
    wordlist: WordList = []
    rows = text.split("\n")
    # Row 0 is the header
    for row in rows[1:]:
        fields = row.split("\t")
        if len(fields) != 2:
            continue
        word = fields[0] or ""
        count = as_non_negative_integer(fields[1] or 1)
        wordlist.append((word, count))
    return wordlist


async def read_tsv(tsv_file: Union[bytes, str, Path]) -> WordList:
    """Parse a tab-separated word list into a WordList.

    WHY: TSV is what most corpus tools and spreadsheet exports produce.

    HOW: A Path is read in a worker thread; bytes are decoded as UTF-8
    (a leading BOM is dropped). All rows are accumulated into one list
    which is returned once the whole file is consumed.

    RULES:
    - Line 0 is skipped unconditionally (header)
    - Lines that don't split into exactly two tab-separated fields are skipped
    - Input that is not valid UTF-8 raises WordListFormatError
    - Completes once with the full list — [] when there are no data rows
    """
    try:
        if isinstance(tsv_file, Path):
            text = await asyncio.to_thread(tsv_file.read_text, encoding="utf-8-sig")
        elif isinstance(tsv_file, bytes):
            text = tsv_file.decode("utf-8-sig")
        else:
            text = tsv_file
    except UnicodeDecodeError as exc:
        raise WordListFormatError("cannot decode TSV file: {}".format(exc)) from exc
    return _parse_tsv_text(text)


# ---------------------------------------------------------------------------
# In-memory sources
# ---------------------------------------------------------------------------


def read_manual_entry_data(contents: Iterable[DictionaryEntry]) -> WordList:
    """Convert manually entered rows into a WordList.

    RULES:
    - Order is preserved; no rows are skipped
    - A missing count becomes 0
    """
    return [
        (entry.word, as_non_negative_integer(entry.count or 0))
        for entry in contents
    ]


def read_google_sheet_data(rows: Sequence[Sequence[Any]]) -> WordList:
    """Normalize pre-parsed Google Sheet rows into a WordList.

    WHY: The sheet is parsed on the caller's side, but the stored list
    must still satisfy the WordList invariant.

    RULES:
    - Each row is (word,) or (word, count); a missing count becomes 1
    - Counts go through the same coercion as every other source
    """
    wordlist: WordList = []
    for row in rows:
        word = row[0] if len(row) > 0 and row[0] is not None else ""
        count = row[1] if len(row) > 1 else None
        if count is None or count == "":
            count = 1
        wordlist.append((str(word), as_non_negative_integer(count)))
    return wordlist


async def read_dictionary_source(name: str, contents: bytes) -> WordList:
    """Parse an uploaded dictionary source, choosing the parser by file name.

    RULES:
    - .tsv and .txt go through read_tsv()
    - Everything else is treated as a spreadsheet
    """
    if Path(name).suffix.lower() in TSV_SOURCE_EXTENSIONS:
        return await read_tsv(contents)
    return await read_excel(contents)
