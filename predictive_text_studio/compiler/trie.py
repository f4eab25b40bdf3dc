"""Trie lexical model compiler ("trie-1.0").

WHY: Keyman's predictive text engine loads a model file that calls
``LMLayerWorker.loadModel(new models.TrieModel(...))`` with a
weighted prefix trie. Given canonical word lists we can build that trie
directly.

HOW: Words are reduced to search keys (NFKD, lowercased, combining marks
removed), identical words across all sources have their counts summed,
and every entry is inserted into a character trie. Each node's weight is
the maximum weight below it so the engine can explore the most likely
branch first. Word ends hang off a sentinel child as leaf nodes.

RULES:
- Empty and whitespace-only words are ignored
- Duplicate words are merged by summing counts
- Children ("values") and leaf entries are ordered by weight, descending
- totalWeight is the sum of all entry weights
- Output is deterministic for a given input
"""

from __future__ import annotations

import json
import unicodedata
from typing import Any

from predictive_text_studio.compiler.base import (
    BaseModelCompiler,
    LexicalModelSource,
    ModelCompilerError,
)

# Marks the end of a word inside the trie (a Unicode noncharacter).
SENTINEL_CODE_UNIT = "\uFDD0"

_MODEL_TEMPLATE = """(function() {{
'use strict';
LMLayerWorker.loadModel(new models.TrieModel({trie}, {{
  wordBreaker: wordBreakers['default'],
}}));
}})();
"""


def search_term_to_key(term: str) -> str:
    """Reduce a word to the key the engine searches with."""
    decomposed = unicodedata.normalize("NFKD", term).lower()
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


class _Node:
    __slots__ = ("children", "entries", "weight")

    def __init__(self) -> None:
        self.children: dict[str, _Node] = {}
        self.entries: list[dict[str, Any]] = []
        self.weight = 0


def _insert(root: _Node, key: str, entry: dict[str, Any]) -> None:
    node = root
    node.weight = max(node.weight, entry["weight"])
    for char in key + SENTINEL_CODE_UNIT:
        node = node.children.setdefault(char, _Node())
        node.weight = max(node.weight, entry["weight"])
    node.entries.append(entry)


def _serialize(node: _Node) -> dict[str, Any]:
    if node.entries:
        entries = sorted(node.entries, key=lambda e: (-e["weight"], e["content"]))
        return {"type": "leaf", "weight": node.weight, "entries": entries}

    values = sorted(node.children, key=lambda c: (-node.children[c].weight, c))
    return {
        "type": "internal",
        "weight": node.weight,
        "values": values,
        "children": {char: _serialize(node.children[char]) for char in values},
    }


class TrieModelCompiler(BaseModelCompiler):
    """Compiles word lists into a Keyman TrieModel model file."""

    @property
    def format(self) -> str:
        return "trie-1.0"

    def compile(self, source: LexicalModelSource) -> str:
        counts: dict[str, int] = {}
        for wordlist_source in source.sources:
            for word, count in wordlist_source.wordlist:
                word = word.strip()
                if not word:
                    continue
                counts[word] = counts.get(word, 0) + count

        if not counts:
            raise ModelCompilerError("Cannot compile a model without any words")

        root = _Node()
        for word, weight in counts.items():
            _insert(root, search_term_to_key(word), {
                "key": search_term_to_key(word),
                "weight": weight,
                "content": word,
            })

        trie = {
            "totalWeight": sum(counts.values()),
            "root": _serialize(root),
        }
        return _MODEL_TEMPLATE.format(trie=json.dumps(trie, ensure_ascii=False))
