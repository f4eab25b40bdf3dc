"""kmp.json manifest generation for Keyman lexical model packages.

WHY: A .kmp package is a zip with a kmp.json manifest describing what's
inside — which model file, which languages it serves, who wrote it.
Keyman refuses packages whose manifest is malformed, so we build the
document from project metadata and validate it before it is zipped.

HOW: generate_kmp_json() maps KmpJsonOptions onto the manifest layout
(system, options, info, files, lexicalModels), validates it against
KMP_JSON_SCHEMA with jsonschema, and serializes it.

RULES:
- Exactly one file entry: {model_id}.model.js
- Exactly one lexicalModels entry with the given id and languages
- languages=None produces one language with empty name and id
- info.name falls back to the model id when no readable name is given
- Schema validation is mandatory — raises on invalid output
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Optional, Sequence

import jsonschema

from predictive_text_studio.config import (
    DEFAULT_COPYRIGHT,
    DEFAULT_VERSION,
    MODEL_FILENAME_TEMPLATE,
)
from predictive_text_studio.core.types import Language

KMP_FILE_VERSION = "12.0"
KEYMAN_DEVELOPER_VERSION = "12.0.0.0"

_DESCRIBED = {
    "type": "object",
    "properties": {"description": {"type": "string"}},
    "required": ["description"],
}

_LANGUAGE = {
    "type": "object",
    "properties": {"name": {"type": "string"}, "id": {"type": "string"}},
    "required": ["name", "id"],
}

KMP_JSON_SCHEMA: dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "required": ["system", "options", "info", "files", "lexicalModels"],
    "properties": {
        "system": {
            "type": "object",
            "required": ["keymanDeveloperVersion", "fileVersion"],
            "properties": {
                "keymanDeveloperVersion": {"type": "string"},
                "fileVersion": {"type": "string"},
            },
        },
        "options": {"type": "object"},
        "info": {
            "type": "object",
            "required": ["author", "copyright", "name", "version"],
            "properties": {
                "author": _DESCRIBED,
                "copyright": _DESCRIBED,
                "name": _DESCRIBED,
                "version": _DESCRIBED,
            },
        },
        "files": {
            "type": "array",
            "minItems": 1,
            "items": {
                "type": "object",
                "required": ["name", "description"],
                "properties": {
                    "name": {"type": "string", "pattern": r"\.model\.js$"},
                    "description": {"type": "string"},
                },
            },
        },
        "lexicalModels": {
            "type": "array",
            "minItems": 1,
            "items": {
                "type": "object",
                "required": ["name", "id", "languages"],
                "properties": {
                    "name": {"type": "string"},
                    "id": {"type": "string", "minLength": 1},
                    "languages": {"type": "array", "minItems": 1, "items": _LANGUAGE},
                },
            },
        },
    },
}


@dataclass
class KmpJsonOptions:
    """The subset of project metadata that ends up in kmp.json.

    RULES:
    - model_id is required and names the model file
    - author_name, copyright and version fall back to the package defaults
    - model_user_readable_name is optional
    """

    model_id: str
    languages: Optional[Sequence[Language]] = None
    author_name: Optional[str] = None
    copyright: Optional[str] = None
    model_user_readable_name: Optional[str] = None
    version: Optional[str] = None


def _languages_block(languages: Optional[Sequence[Language]]) -> list[dict[str, str]]:
    if not languages:
        return [{"name": "", "id": ""}]
    return [{"name": lang.name or "", "id": lang.id or ""} for lang in languages]


def build_kmp_json(options: KmpJsonOptions) -> dict[str, Any]:
    """Build the kmp.json document as a dict (not yet validated)."""
    model_filename = MODEL_FILENAME_TEMPLATE.format(model_id=options.model_id)
    readable_name = options.model_user_readable_name or options.model_id

    return {
        "system": {
            "keymanDeveloperVersion": KEYMAN_DEVELOPER_VERSION,
            "fileVersion": KMP_FILE_VERSION,
        },
        "options": {},
        "info": {
            "author": {"description": options.author_name or ""},
            "copyright": {"description": options.copyright or DEFAULT_COPYRIGHT},
            "name": {"description": readable_name},
            "version": {"description": options.version or DEFAULT_VERSION},
        },
        "files": [
            {
                "name": model_filename,
                "description": "Lexical model {}".format(model_filename),
            }
        ],
        "lexicalModels": [
            {
                "name": readable_name,
                "id": options.model_id,
                "languages": _languages_block(options.languages),
            }
        ],
    }


def generate_kmp_json(options: KmpJsonOptions) -> str:
    """Return the serialized kmp.json manifest for a lexical model package.

    Raises:
        jsonschema.ValidationError: If the manifest does not conform to
            KMP_JSON_SCHEMA (e.g. an empty model id).
    """
    manifest = build_kmp_json(options)
    jsonschema.validate(instance=manifest, schema=KMP_JSON_SCHEMA)
    return json.dumps(manifest, indent=2, ensure_ascii=False)
