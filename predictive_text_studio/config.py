"""Configuration constants, package defaults, and .env loading.

WHY: Centralizes the numbers and strings that would otherwise be
scattered as literals — the default model version, the default author,
the keyboard catalog expiry threshold, the Keyman API URL. Keeping them
as named module-level values makes them easy to find and override.

HOW: python-dotenv loads the .env file on import. Each constant reads its
environment variable with a documented default.

RULES:
- DEFAULT_VERSION is "1.0.0" — the minimum model version Keyman publishes
- DEFAULT_AUTHOR_NAME is "UnknownAuthor"
- DEFAULT_COPYRIGHT is the empty string
- KEYBOARD_DATA_EXPIRY_MS is seven days in milliseconds (604,800,000)
- MODEL_FORMAT is the fixed format identifier passed to the model compiler
- All defaults can be overridden via environment variables
"""

from __future__ import annotations

import os

from dotenv import load_dotenv

# Load .env from the project root (where the script is run from)
load_dotenv()

# ---------------------------------------------------------------------------
# Project metadata defaults
# ---------------------------------------------------------------------------

DEFAULT_VERSION = os.getenv("PTS_DEFAULT_VERSION", "1.0.0")
"""Model version written on first save when none is supplied."""

DEFAULT_COPYRIGHT = os.getenv("PTS_DEFAULT_COPYRIGHT", "")

DEFAULT_AUTHOR_NAME = os.getenv("PTS_DEFAULT_AUTHOR", "UnknownAuthor")

# ---------------------------------------------------------------------------
# Keyboard catalog cache
# ---------------------------------------------------------------------------

KEYBOARD_DATA_EXPIRY_MS = int(os.getenv("PTS_KEYBOARD_DATA_EXPIRY_MS", "604800000"))
"""Cached catalog older than this (milliseconds) is discarded and refetched."""

KEYMAN_API_URL = os.getenv(
    "KEYMAN_API_URL",
    "https://api.keyman.com/cloud/4.0/languages",
)
KEYMAN_API_TIMEOUT_S = float(os.getenv("KEYMAN_API_TIMEOUT_S", "30"))

# ---------------------------------------------------------------------------
# Packaging
# ---------------------------------------------------------------------------

MODEL_FORMAT = "trie-1.0"
"""Lexical model format identifier handed to the compiler."""

KMP_JSON_FILENAME = "kmp.json"
MODEL_FILENAME_TEMPLATE = "{model_id}.model.js"

SUPPORTED_SOURCE_EXTENSIONS: set[str] = {".xlsx", ".tsv", ".txt"}
"""Dictionary source file extensions accepted by the upload paths."""

TSV_SOURCE_EXTENSIONS: set[str] = {".tsv", ".txt"}
"""Extensions routed to the tab-separated parser instead of the spreadsheet one."""

# ---------------------------------------------------------------------------
# HTTP server
# ---------------------------------------------------------------------------

SERVER_HOST = os.getenv("PTS_SERVER_HOST", "127.0.0.1")
SERVER_PORT = int(os.getenv("PTS_SERVER_PORT", "8000"))
