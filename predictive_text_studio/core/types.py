"""Canonical data types shared by parsers, storage, and packaging.

WHY: Word lists arrive as spreadsheets, TSV files, hand-typed tables and
pre-parsed Google Sheets. Everything downstream — the store, the model
compiler, the package assembler — should see exactly one shape. These
types are that shape, plus the project metadata and keyboard catalog
records that travel alongside it.

HOW: WordList is a plain list of (word, count) tuples. The records are
dataclasses. ProjectMetadataPatch describes a partial update; applying
it to a stored ProjectMetadata (or to nothing, on first write) yields the
next ProjectMetadata with defaults materialized once.

RULES:
- WordList order is source order; duplicates are kept
- Every count in a WordList is a non-negative int
- A patch field set to None means "leave the stored value alone"
- Defaults are filled in on first write, never re-derived on read
- model_id follows author/tag/name until a caller sets it explicitly
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import List, Optional, Sequence, Tuple, Union

from predictive_text_studio.config import (
    DEFAULT_AUTHOR_NAME,
    DEFAULT_COPYRIGHT,
    DEFAULT_VERSION,
)

WordList = List[Tuple[str, int]]
"""Ordered (word, count) pairs — the canonical word-list representation."""


@dataclass
class DictionaryEntry:
    """One row of a manually entered dictionary table.

    RULES:
    - word is taken verbatim
    - count may be missing, an int, a float or numeric text
    """

    word: str
    count: Optional[Union[int, float, str]] = None


@dataclass
class WordListSource:
    """A named, stored word list — one dictionary source of a project."""

    name: str
    wordlist: WordList = field(default_factory=list)


@dataclass(frozen=True)
class Language:
    """A language reference as it appears in kmp.json: display name and BCP-47 id."""

    name: str
    id: str


def derive_model_id(author_name: str, bcp47_tag: str, lang_name: str) -> str:
    """Build the default model identifier ``{author}.{bcp47}.{language}``."""
    return "{}.{}.{}".format(author_name, bcp47_tag, lang_name)


@dataclass
class ProjectMetadataPatch:
    """A partial update to the project metadata.

    WHY: Callers set metadata piecemeal — the language picker sends the
    languages, the settings form sends the author. A patch only carries
    what the caller supplied so nothing else is clobbered.

    HOW: Every field defaults to None. ProjectMetadata.apply() copies the
    non-None fields over the stored baseline.

    RULES:
    - languages: only the first entry is stored (name + BCP-47 id)
    - Any field left as None keeps its stored value
    """

    languages: Optional[Sequence[Language]] = None
    author_name: Optional[str] = None
    model_id: Optional[str] = None
    copyright: Optional[str] = None
    version: Optional[str] = None
    dictionary_name: Optional[str] = None


@dataclass
class ProjectMetadata:
    """The stored project metadata record.

    WHY: The kmp.json manifest and the model file name are built from
    these fields. The BCP-47 tag is required before a package can
    compile.

    HOW: Created by apply() from a patch. model_id_is_derived records
    whether model_id is the ``{author}.{bcp47}.{language}`` default, so a
    later change to author, tag or language name can refresh it.

    RULES:
    - author_name defaults to DEFAULT_AUTHOR_NAME
    - copyright defaults to DEFAULT_COPYRIGHT
    - version defaults to DEFAULT_VERSION
    - dictionary_name is optional (the model's human readable name)
    """

    lang_name: str = ""
    bcp47_tag: str = ""
    author_name: str = DEFAULT_AUTHOR_NAME
    model_id: str = ""
    copyright: str = DEFAULT_COPYRIGHT
    version: str = DEFAULT_VERSION
    dictionary_name: Optional[str] = None
    model_id_is_derived: bool = True

    @classmethod
    def apply(
        cls,
        baseline: Optional[ProjectMetadata],
        patch: ProjectMetadataPatch,
    ) -> ProjectMetadata:
        """Merge a patch over the stored baseline and return the new record.

        RULES:
        - baseline=None is the first write: defaults are materialized here
        - patch.languages=None keeps the stored language (empty on first write)
        - An explicit model_id pins the identifier from then on
        - A derived model_id is recomputed from the merged fields
        """
        current = baseline if baseline is not None else cls()
        updated = replace(current)

        if patch.languages is not None:
            if patch.languages:
                first = patch.languages[0]
                updated.lang_name = first.name
                updated.bcp47_tag = first.id
            else:
                updated.lang_name = ""
                updated.bcp47_tag = ""
        if patch.author_name:
            updated.author_name = patch.author_name
        if patch.copyright is not None:
            updated.copyright = patch.copyright
        if patch.version:
            updated.version = patch.version
        if patch.dictionary_name is not None:
            updated.dictionary_name = patch.dictionary_name or None

        if patch.model_id:
            updated.model_id = patch.model_id
            updated.model_id_is_derived = False
        elif updated.model_id_is_derived:
            updated.model_id = derive_model_id(
                updated.author_name, updated.bcp47_tag, updated.lang_name
            )

        return updated

    @property
    def languages(self) -> List[Language]:
        """The stored language as a single-element kmp.json language list."""
        return [Language(name=self.lang_name, id=self.bcp47_tag)]


@dataclass
class KeyboardData:
    """One (language, BCP-47 tag) pair from the remote Keyman catalog."""

    language: str
    bcp47_tag: str


@dataclass
class KeyboardDataWithTime:
    """A cached catalog entry plus the time the catalog was fetched.

    RULES:
    - timestamp is Unix epoch seconds
    - The whole catalog shares one fetch time; the first entry is authoritative
    """

    language: str
    bcp47_tag: str
    timestamp: float
