"""Predictive Text Studio — word lists in, Keyman lexical model packages out.

WHY: People building predictive text for their language usually have a
word list in a spreadsheet, a TSV export, or a handful of words typed by
hand. Keyman needs a compiled lexical model wrapped in a .kmp package
with a kmp.json manifest. This package bridges the two.

HOW: Three-stage pipeline — ingest (parsers normalize every source into
one canonical word list), store (an async project store facade holds
sources, metadata and the compiled package), assemble (compile the model,
generate the manifest, zip both). A worker object orchestrates the
pipeline and reports compile lifecycle events to a single registered
listener per event.

RULES:
- Every ingestion path produces the same canonical WordList
- Parsers fail atomically — never a partial word list
- Only the worker mutates durable state, and only through the store
- Archive entry names are fixed: {model_id}.model.js and kmp.json
"""

__version__ = "0.1.0"
