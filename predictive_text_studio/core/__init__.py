"""Core word-list types, parsers, and package assembly.

WHY: The core package holds the logic that doesn't care where it runs —
the canonical WordList and metadata types, the parsers that produce
them, the kmp.json generator and the .kmp assembler.

HOW: types.py defines the data structures, read_wordlist.py builds
WordLists from raw sources, kmp_json.py builds the manifest, package.py
compiles and zips.

RULES:
- Nothing in core touches the project store
- Parsers are pure apart from reading their input
"""
