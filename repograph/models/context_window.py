"""
Context window models returned by the context aggregator.

A ContextWindow is a token-budgeted, relevance-ranked subset of the
repository, handed to downstream consumers as an immutable snapshot.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from repograph.models.graph import SymbolTableEntry


@dataclass(frozen=True)
class FileRelationships:
    """Import specifiers, exported names and importing files of one file."""

    imports: tuple[str, ...] = ()
    exports: tuple[str, ...] = ()
    dependents: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "imports": list(self.imports),
            "exports": list(self.exports),
            "dependents": list(self.dependents),
        }


@dataclass(frozen=True)
class FileContext:
    """One whole file included in a context window."""

    path: str
    content: str
    relevance_score: float
    relationships: FileRelationships
    tokens: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "content": self.content,
            "relevance_score": self.relevance_score,
            "relationships": self.relationships.to_dict(),
            "tokens": self.tokens,
        }


@dataclass(frozen=True)
class ContextWindow:
    """
    Token-budgeted selection of files and symbols.

    ``truncated`` is True when at least one candidate file was left out
    because of the budget.
    """

    files: tuple[FileContext, ...] = ()
    total_tokens: int = 0
    relevant_symbols: tuple[SymbolTableEntry, ...] = ()
    dependencies: tuple[str, ...] = ()
    truncated: bool = False

    @property
    def paths(self) -> list[str]:
        return [f.path for f in self.files]

    def get_file(self, path: str) -> Optional[FileContext]:
        for file_context in self.files:
            if file_context.path == path:
                return file_context
        return None

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "files": [f.to_dict() for f in self.files],
            "total_tokens": self.total_tokens,
            "relevant_symbols": [s.to_dict() for s in self.relevant_symbols],
            "dependencies": list(self.dependencies),
            "truncated": self.truncated,
        }


@dataclass(frozen=True)
class ReferenceSite:
    """A line in an importing file whose text mentions a symbol."""

    file: str
    line: int
    context: str

    def to_dict(self) -> dict[str, Any]:
        return {"file": self.file, "line": self.line, "context": self.context}


@dataclass(frozen=True)
class CrossFileReferences:
    """Definition of a symbol plus its textual usages in importing files."""

    definition: Optional[SymbolTableEntry]
    usages: tuple[ReferenceSite, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "definition": self.definition.to_dict() if self.definition else None,
            "usages": [u.to_dict() for u in self.usages],
        }
