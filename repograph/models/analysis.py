"""
Per-file analysis models produced by the source parser.

These models represent the structural summary of one source file:
- SourceFile: an input file of the analysis batch
- Symbol: a declared function, class, or variable
- ImportEdge / ExportEdge: module-level import and export declarations
- FileAnalysis: the normalized output of either parser front end

All models are frozen; collections are tuples so a FileAnalysis can be
shared between the graph builder and the context aggregator without copying.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from repograph.models.base import CodeSpan, ExportKind, ParseStrategy, Scope, SymbolKind


@dataclass(frozen=True)
class SourceFile:
    """A repository file as handed over by the fetch collaborator."""

    path: str
    content: str
    language: str = "unknown"

    @property
    def size(self) -> int:
        return len(self.content)

    @property
    def line_count(self) -> int:
        if not self.content:
            return 0
        return self.content.count("\n") + 1


@dataclass(frozen=True)
class PropertyInfo:
    """Class field declaration."""

    name: str
    span: CodeSpan
    is_static: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "span": self.span.to_dict(), "is_static": self.is_static}


@dataclass(frozen=True)
class Symbol:
    """
    Declared code symbol (function, class, or variable).

    Function symbols carry parameters, a complexity estimate and the
    unresolved callee and free-variable names found in their body. Class
    symbols carry an optional superclass name plus nested methods and
    properties.
    """

    name: str
    kind: SymbolKind
    file: str
    span: CodeSpan
    scope: Scope = Scope.GLOBAL
    parameters: tuple[str, ...] = ()
    complexity: int = 1
    calls: tuple[str, ...] = ()
    references: tuple[str, ...] = ()
    superclass: Optional[str] = None
    methods: tuple["Symbol", ...] = ()
    properties: tuple[PropertyInfo, ...] = ()
    parent_class: Optional[str] = None

    @property
    def line(self) -> int:
        return self.span.line

    @property
    def qualified_name(self) -> str:
        """Get name qualified by the owning class, if any."""
        if self.parent_class:
            return f"{self.parent_class}.{self.name}"
        return self.name

    @property
    def is_method(self) -> bool:
        return self.parent_class is not None

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        data: dict[str, Any] = {
            "name": self.name,
            "kind": self.kind.value,
            "file": self.file,
            "span": self.span.to_dict(),
            "scope": self.scope.value,
        }
        if self.kind == SymbolKind.FUNCTION:
            data["parameters"] = list(self.parameters)
            data["complexity"] = self.complexity
            data["calls"] = list(self.calls)
            data["references"] = list(self.references)
            if self.parent_class:
                data["parent_class"] = self.parent_class
        elif self.kind == SymbolKind.CLASS:
            data["superclass"] = self.superclass
            data["methods"] = [m.to_dict() for m in self.methods]
            data["properties"] = [p.to_dict() for p in self.properties]
        return data


@dataclass(frozen=True)
class ImportEdge:
    """An import declaration of one file."""

    file: str
    source: str
    specifiers: tuple[str, ...] = ()
    is_external: bool = False
    # Python ``import a.b``: binds the module itself, not names inside it
    is_module: bool = False

    @property
    def is_wildcard(self) -> bool:
        """True for side-effect, ``*`` and namespace imports that name no specific symbol."""
        return not self.specifiers or any(s == "*" or s.startswith("* as ") for s in self.specifiers)

    def to_dict(self) -> dict[str, Any]:
        return {
            "file": self.file,
            "source": self.source,
            "specifiers": list(self.specifiers),
            "is_external": self.is_external,
            "is_module": self.is_module,
        }


@dataclass(frozen=True)
class ExportEdge:
    """An export declaration of one file."""

    file: str
    name: str
    kind: ExportKind = ExportKind.NAMED

    def to_dict(self) -> dict[str, Any]:
        return {"file": self.file, "name": self.name, "kind": self.kind.value}


@dataclass(frozen=True)
class FileAnalysis:
    """
    Normalized structural summary of one source file.

    ``symbols`` holds the file's functions (at any nesting depth), classes
    (with their methods nested inside) and global variables in source order.
    ``parse_error`` is set when the front end failed and the analysis was
    degraded to an empty result.
    """

    path: str
    language: str = "unknown"
    strategy: ParseStrategy = ParseStrategy.UNSUPPORTED
    imports: tuple[ImportEdge, ...] = ()
    exports: tuple[ExportEdge, ...] = ()
    symbols: tuple[Symbol, ...] = ()
    function_bodies: tuple[str, ...] = ()
    calls: tuple[str, ...] = ()
    parse_error: Optional[str] = None

    @classmethod
    def empty(
        cls,
        path: str,
        language: str = "unknown",
        strategy: ParseStrategy = ParseStrategy.UNSUPPORTED,
        error: Optional[str] = None,
    ) -> "FileAnalysis":
        """Create an empty-but-valid analysis."""
        return cls(path=path, language=language, strategy=strategy, parse_error=error)

    @property
    def functions(self) -> list[Symbol]:
        """Get function symbols, excluding class methods."""
        return [s for s in self.symbols if s.kind == SymbolKind.FUNCTION]

    @property
    def classes(self) -> list[Symbol]:
        return [s for s in self.symbols if s.kind == SymbolKind.CLASS]

    @property
    def variables(self) -> list[Symbol]:
        return [s for s in self.symbols if s.kind == SymbolKind.VARIABLE]

    @property
    def methods(self) -> list[Symbol]:
        return [m for c in self.classes for m in c.methods]

    @property
    def callables(self) -> list[Symbol]:
        """Get functions followed by class methods."""
        return self.functions + self.methods

    @property
    def import_sources(self) -> list[str]:
        return [imp.source for imp in self.imports]

    @property
    def export_names(self) -> list[str]:
        return [exp.name for exp in self.exports]

    def get_symbol_by_name(self, name: str) -> Optional[Symbol]:
        """Find a top-level symbol (or method by qualified name)."""
        for symbol in self.symbols:
            if symbol.name == name:
                return symbol
        for method in self.methods:
            if method.qualified_name == name:
                return method
        return None

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "path": self.path,
            "language": self.language,
            "strategy": self.strategy.value,
            "imports": [i.to_dict() for i in self.imports],
            "exports": [e.to_dict() for e in self.exports],
            "symbols": [s.to_dict() for s in self.symbols],
            "function_bodies": list(self.function_bodies),
            "calls": list(self.calls),
            "parse_error": self.parse_error,
        }
