"""
Repository graph models.

- GraphNode: typed vertex (file, function, class, variable)
- GraphEdge: typed, weighted relationship between two nodes
- UsageSite / SymbolTableEntry: global symbol registry records
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from repograph.models.base import EdgeType, NodeKind, Scope


@dataclass(frozen=True)
class GraphNode:
    """Vertex of the repository graph."""

    id: str
    kind: NodeKind
    name: str
    file: str
    metadata: dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "kind": self.kind.value,
            "name": self.name,
            "file": self.file,
            "metadata": dict(self.metadata),
        }


@dataclass(frozen=True)
class GraphEdge:
    """Directed relationship ``source --type--> target``."""

    source: str
    target: str
    type: EdgeType
    weight: int = 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "from": self.source,
            "to": self.target,
            "type": self.type.value,
            "weight": self.weight,
        }


@dataclass(frozen=True)
class UsageSite:
    """A line where a symbol is declared or used."""

    file: str
    line: int

    def to_dict(self) -> dict[str, Any]:
        return {"file": self.file, "line": self.line}


@dataclass(frozen=True)
class SymbolTableEntry:
    """
    Symbol table record keyed by ``(file, name)``.

    ``type`` is the symbol kind (function, class, variable) for declared
    symbols, or the export kind (named, default) for exported names that have
    no matching declaration.
    """

    name: str
    type: str
    file: str
    scope: Scope = Scope.GLOBAL
    line: int = 0
    exported: bool = False
    usages: tuple[UsageSite, ...] = ()
    imported_in: tuple[str, ...] = ()

    @property
    def key(self) -> tuple[str, str]:
        return (self.file, self.name)

    @property
    def node_kind(self) -> Optional[NodeKind]:
        """Graph node kind for declared symbols, None for bare exports."""
        try:
            return NodeKind(self.type)
        except ValueError:
            return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "type": self.type,
            "file": self.file,
            "scope": self.scope.value,
            "line": self.line,
            "exported": self.exported,
            "usages": [u.to_dict() for u in self.usages],
            "imported_in": list(self.imported_in),
        }
