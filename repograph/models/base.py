"""
Core enums and base classes used throughout repograph.

This module defines the fundamental data types for:
- Symbol kinds and scopes
- Graph node and edge types
- Export kinds
- Parse strategies (grammar vs. heuristic front ends)
- Context window truncation policies
- Source code spans
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class SymbolKind(Enum):
    """Kinds of declared symbols."""

    FUNCTION = "function"
    CLASS = "class"
    VARIABLE = "variable"

    @classmethod
    def from_string(cls, value: str) -> "SymbolKind":
        """Create SymbolKind from string, case-insensitive."""
        return cls(value.lower())


class Scope(Enum):
    """Declaration scope of a symbol."""

    GLOBAL = "global"
    LOCAL = "local"


class NodeKind(Enum):
    """Kinds of vertices in the repository graph."""

    FILE = "file"
    FUNCTION = "function"
    CLASS = "class"
    VARIABLE = "variable"

    @classmethod
    def for_symbol(cls, kind: SymbolKind) -> "NodeKind":
        return cls(kind.value)


class EdgeType(Enum):
    """Relationship types in the repository graph."""

    IMPORTS = "imports"
    CALLS = "calls"
    EXTENDS = "extends"
    REFERENCES = "references"
    # File -> symbol edge meaning "defined in", not module-export semantics
    EXPORTS = "exports"


class ExportKind(Enum):
    """Module export kinds."""

    DEFAULT = "default"
    NAMED = "named"


class ParseStrategy(Enum):
    """Capability tag selecting a parser front end for a language."""

    GRAMMAR = "grammar"
    HEURISTIC = "heuristic"
    UNSUPPORTED = "unsupported"


class TruncationPolicy(Enum):
    """How a query-driven context window treats an oversized top result."""

    ALWAYS_INCLUDE_TOP = "always_include_top"
    STRICT = "strict"


@dataclass(frozen=True)
class CodeSpan:
    """
    Location of a declaration in source code.

    Lines are 1-indexed, columns 0-indexed.
    """

    line: int
    column: int = 0
    end_line: Optional[int] = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {"line": self.line, "column": self.column, "end_line": self.end_line}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CodeSpan":
        """Deserialize from dictionary."""
        return cls(
            line=data["line"],
            column=data.get("column", 0),
            end_line=data.get("end_line"),
        )


def make_node_id(kind: NodeKind, path: str, name: Optional[str] = None) -> str:
    """
    Build a deterministic graph node id of the form ``kind:path[:name]``.

    Args:
        kind: Node kind
        path: Repository-relative file path
        name: Symbol name (``Class.method`` for methods), omitted for files

    Returns:
        Node id string
    """
    if name is None:
        return f"{kind.value}:{path}"
    return f"{kind.value}:{path}:{name}"


def estimate_tokens(text: str, chars_per_token: int = 4) -> int:
    """Character-based token estimate: ``ceil(len(text) / chars_per_token)``."""
    return -(-len(text) // chars_per_token)
