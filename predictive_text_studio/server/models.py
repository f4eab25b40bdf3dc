"""Pydantic request/response models for the HTTP API.

WHY: The FastAPI endpoints need typed schemas for request validation,
response serialization, and automatic OpenAPI documentation.

HOW: Each endpoint pair (request + response) has its own model. Models
convert to and from the core dataclasses with small helper methods so
the worker never sees pydantic objects.

RULES:
- All models use Field(description=...) for OpenAPI documentation
- Response models never expose internal implementation details
- No PEP 604 unions; use Optional from typing
"""

from __future__ import annotations

from typing import List, Optional, Union

from pydantic import BaseModel, Field

from predictive_text_studio.core.types import (
    DictionaryEntry,
    KeyboardDataWithTime,
    Language,
    ProjectMetadata,
    ProjectMetadataPatch,
    WordListSource,
)

CountValue = Union[int, float, str, None]


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class DictionaryEntryModel(BaseModel):
    """One manually entered row."""

    word: str = Field(description="The word.")
    count: CountValue = Field(
        default=None,
        description="Frequency count. Missing counts become 0.",
    )

    def to_entry(self) -> DictionaryEntry:
        return DictionaryEntry(word=self.word, count=self.count)


class ManualEntryRequest(BaseModel):
    """A manually entered dictionary table.

    RULES:
    - name is the dictionary source name; re-using a name replaces that source
    """

    name: str = Field(description="Dictionary source name.")
    data: List[DictionaryEntryModel] = Field(description="Rows in display order.")


class GoogleSheetRequest(BaseModel):
    """Rows already read from a Google Sheet by the caller."""

    name: str = Field(description="Dictionary source name, usually the sheet title.")
    wordlist: List[List[CountValue]] = Field(
        description="Rows of [word] or [word, count]. Missing counts become 1.",
    )


class LanguageModel(BaseModel):
    name: str = Field(description="Language display name.")
    id: str = Field(description="BCP-47 tag.")


class ProjectMetadataUpdate(BaseModel):
    """Partial update to the project metadata.

    RULES:
    - Omitted (or null) fields keep their stored values
    - Only the first language is stored
    """

    model_config = {"protected_namespaces": ()}

    languages: Optional[List[LanguageModel]] = Field(default=None, description="Languages served by the model.")
    author_name: Optional[str] = Field(default=None, description="Model author.")
    model_id: Optional[str] = Field(
        default=None,
        description="Model identifier. Defaults to {author}.{bcp47}.{language}.",
    )
    copyright: Optional[str] = Field(default=None, description="Copyright string.")
    version: Optional[str] = Field(default=None, description="Model version (default 1.0.0).")
    dictionary_name: Optional[str] = Field(default=None, description="Human-readable model name.")

    def to_patch(self) -> ProjectMetadataPatch:
        languages = None
        if self.languages is not None:
            languages = [Language(name=lang.name, id=lang.id) for lang in self.languages]
        return ProjectMetadataPatch(
            languages=languages,
            author_name=self.author_name,
            model_id=self.model_id,
            copyright=self.copyright,
            version=self.version,
            dictionary_name=self.dictionary_name,
        )


class BCP47Update(BaseModel):
    bcp47_tag: str = Field(description="BCP-47 tag, e.g. 'str-Latn'.", min_length=1)


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class CompileStatusResponse(BaseModel):
    """The most recent package compile lifecycle event seen by the server.

    RULES:
    - status is one of: idle, compile_started, compile_succeeded, compile_failed
    - error is only set when status is compile_failed
    - package_size is only set when status is compile_succeeded
    """

    status: str = Field(description="Latest compile lifecycle state.")
    error: Optional[str] = Field(default=None, description="Compile error message.")
    package_size: Optional[int] = Field(default=None, description="Size of the compiled .kmp in bytes.")
    updated_at: Optional[float] = Field(default=None, description="Unix epoch seconds of the last event.")


class SourceAddedResponse(BaseModel):
    name: str = Field(description="Dictionary source name.")
    words_added: int = Field(description="Number of words the source contributed.")
    compile: CompileStatusResponse = Field(description="Compile status after the source was stored.")


class SourceInfo(BaseModel):
    name: str = Field(description="Dictionary source name.")
    word_count: int = Field(description="Number of words in the source.")

    @classmethod
    def from_source(cls, source: WordListSource) -> SourceInfo:
        return cls(name=source.name, word_count=len(source.wordlist))


class ProjectMetadataResponse(BaseModel):
    model_config = {"protected_namespaces": ()}

    lang_name: str = Field(description="Language display name.")
    bcp47_tag: str = Field(description="BCP-47 tag.")
    author_name: str = Field(description="Model author.")
    model_id: str = Field(description="Model identifier.")
    copyright: str = Field(description="Copyright string.")
    version: str = Field(description="Model version.")
    dictionary_name: Optional[str] = Field(default=None, description="Human-readable model name.")

    @classmethod
    def from_metadata(cls, metadata: ProjectMetadata) -> ProjectMetadataResponse:
        return cls(
            lang_name=metadata.lang_name,
            bcp47_tag=metadata.bcp47_tag,
            author_name=metadata.author_name,
            model_id=metadata.model_id,
            copyright=metadata.copyright,
            version=metadata.version,
            dictionary_name=metadata.dictionary_name,
        )


class KeyboardDataResponse(BaseModel):
    language: str = Field(description="Language name.")
    bcp47_tag: str = Field(description="BCP-47 tag.")
    timestamp: float = Field(description="Catalog fetch time (Unix epoch seconds).")

    @classmethod
    def from_entry(cls, entry: KeyboardDataWithTime) -> KeyboardDataResponse:
        return cls(language=entry.language, bcp47_tag=entry.bcp47_tag, timestamp=entry.timestamp)


class ErrorResponse(BaseModel):
    """Standard error response body."""

    detail: str = Field(description="Human-readable error description.")


class HealthResponse(BaseModel):
    status: str = Field(description="Service health status.", json_schema_extra={"example": "ok"})
    version: str = Field(description="API version string.", json_schema_extra={"example": "0.1.0"})
