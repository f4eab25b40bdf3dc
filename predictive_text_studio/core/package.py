"""Keyman package (.kmp) assembly: compile, describe, zip.

WHY: A distributable lexical model is a zip containing the compiled
model file and its kmp.json manifest. The worker needs that as a single
call so its compile procedure stays about sequencing and notifications,
not file formats.

HOW: generate_kmp() builds the manifest from metadata, compiles the
sources with the configured model format, and hands both to
create_zip_with_files(), the archive writer.

RULES:
- Entry names are fixed and case-sensitive: {model_id}.model.js, kmp.json
- The manifest is generated (and validated) before the model is compiled
- Any compiler, manifest or archive error propagates to the caller
"""

from __future__ import annotations

import logging
import zipfile
from io import BytesIO
from typing import Mapping, Optional, Sequence, Union

from predictive_text_studio.compiler import (
    LexicalModelSource,
    compile_model_from_lexical_model_source,
)
from predictive_text_studio.config import (
    KMP_JSON_FILENAME,
    MODEL_FILENAME_TEMPLATE,
    MODEL_FORMAT,
)
from predictive_text_studio.core.kmp_json import KmpJsonOptions, generate_kmp_json
from predictive_text_studio.core.types import Language, ProjectMetadata, WordListSource

logger = logging.getLogger(__name__)


def create_zip_with_files(files: Mapping[str, Union[str, bytes]]) -> bytes:
    """Write the given entries into a zip archive and return its bytes.

    RULES:
    - Entries are written in mapping order
    - str content is encoded as UTF-8
    - Entries are deflate-compressed
    """
    buffer = BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        for name, content in files.items():
            if isinstance(content, str):
                content = content.encode("utf-8")
            archive.writestr(name, content)
    return buffer.getvalue()


def generate_kmp(
    lang_name: str,
    bcp47_tag: str,
    sources: Sequence[WordListSource],
    model_id: str,
    author_name: Optional[str] = None,
    copyright: Optional[str] = None,
    dictionary_name: Optional[str] = None,
    version: Optional[str] = None,
) -> bytes:
    """Generate kmp.json and the model file, then zip them into a .kmp.

    Args:
        lang_name: Language display name for the manifest.
        bcp47_tag: BCP-47 tag of the language.
        sources: Word lists to compile into the model.
        model_id: Model identifier; also names the model file.
        author_name: Author shown in the manifest.
        copyright: Copyright string shown in the manifest.
        dictionary_name: Optional human-readable model name.
        version: Model version shown in the manifest.

    Returns:
        The .kmp archive bytes.
    """
    kmp_json_file = generate_kmp_json(KmpJsonOptions(
        languages=[Language(name=lang_name, id=bcp47_tag)],
        model_id=model_id,
        author_name=author_name,
        copyright=copyright,
        model_user_readable_name=dictionary_name,
        version=version,
    ))
    model_file = compile_model_from_lexical_model_source(LexicalModelSource(
        format=MODEL_FORMAT,
        sources=list(sources),
    ))

    logger.debug("Packaging model %s (%d chars)", model_id, len(model_file))
    return create_zip_with_files({
        MODEL_FILENAME_TEMPLATE.format(model_id=model_id): model_file,
        KMP_JSON_FILENAME: kmp_json_file,
    })


def generate_kmp_from_metadata(
    metadata: ProjectMetadata,
    sources: Sequence[WordListSource],
) -> bytes:
    """Convenience wrapper: generate_kmp() with fields taken from stored metadata."""
    return generate_kmp(
        lang_name=metadata.lang_name,
        bcp47_tag=metadata.bcp47_tag,
        sources=sources,
        model_id=metadata.model_id,
        author_name=metadata.author_name,
        copyright=metadata.copyright,
        dictionary_name=metadata.dictionary_name,
        version=metadata.version,
    )
