"""Abstract base compiler and the compiler input container.

WHY: The package assembler only needs "turn these word lists into a
model file". Which algorithm does that is keyed by a format identifier
("trie-1.0"), so compilers plug in behind one interface and the
assembler never imports a concrete one.

HOW: LexicalModelSource bundles the format identifier with the named
word lists. BaseModelCompiler is an ABC with a ``format`` property and a
``compile()`` method returning the model file's text.

RULES:
- Subclasses MUST implement ``format`` and ``compile()``
- ``compile()`` returns JavaScript source for {model_id}.model.js
- Invalid input raises ModelCompilerError, never a bare exception

To add a new model format:
1. Create a new module in compiler/
2. Subclass BaseModelCompiler
3. Register it in COMPILERS in compiler/__init__.py
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from predictive_text_studio.core.types import WordListSource


class ModelCompilerError(Exception):
    """Raised when a lexical model cannot be compiled.

    RULES:
    - Unknown format identifiers raise this
    - A source set with no usable words raises this
    """


@dataclass
class LexicalModelSource:
    """Input to a lexical model compiler.

    Attributes:
        format: Model format identifier, e.g. ``"trie-1.0"``.
        sources: Named word lists to compile, in priority order.
    """

    format: str
    sources: list[WordListSource] = field(default_factory=list)


class BaseModelCompiler(ABC):
    """Abstract base for lexical model compilers."""

    @property
    @abstractmethod
    def format(self) -> str:
        """Format identifier this compiler produces, e.g. 'trie-1.0'."""

    @abstractmethod
    def compile(self, source: LexicalModelSource) -> str:
        """Compile the word lists into model file source code.

        Args:
            source: The format identifier and the named word lists.

        Returns:
            The text of the {model_id}.model.js file.

        Raises:
            ModelCompilerError: If the sources cannot be compiled.
        """
