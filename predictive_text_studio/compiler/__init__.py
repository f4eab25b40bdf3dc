"""Lexical model compiler registry.

WHY: The package assembler asks for a model by format identifier. A
central dict makes adding a format trivial: write the compiler class,
import it here, add one line.

HOW: COMPILERS maps format identifiers to compiler *classes* (not
instances). compile_model_from_lexical_model_source() looks the format up
and runs it.

RULES:
- Keys are the format identifiers used in LexicalModelSource.format
- Unknown formats raise ModelCompilerError
"""

from __future__ import annotations

from predictive_text_studio.compiler.base import (
    BaseModelCompiler,
    LexicalModelSource,
    ModelCompilerError,
)
from predictive_text_studio.compiler.trie import TrieModelCompiler

COMPILERS: dict[str, type[BaseModelCompiler]] = {
    "trie-1.0": TrieModelCompiler,
}


def compile_model_from_lexical_model_source(source: LexicalModelSource) -> str:
    """Compile a lexical model source into model file text.

    Raises:
        ModelCompilerError: If the format is unknown or the sources
            cannot be compiled.
    """
    compiler_cls = COMPILERS.get(source.format)
    if compiler_cls is None:
        available = ", ".join(sorted(COMPILERS))
        raise ModelCompilerError(
            "Unknown model format '{}'. Available: {}".format(source.format, available)
        )
    return compiler_cls().compile(source)


__all__ = [
    "COMPILERS",
    "BaseModelCompiler",
    "LexicalModelSource",
    "ModelCompilerError",
    "TrieModelCompiler",
    "compile_model_from_lexical_model_source",
]
