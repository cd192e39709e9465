"""
Import specifier and symbol name resolution.

ImportResolver maps import specifiers to files of the analysis batch.
SymbolResolver is the pluggable strategy used by the graph builder to bind
callee, reference and superclass names to symbol table entries;
NameBasedResolver is the default, purely name-based implementation.
"""

from __future__ import annotations

import posixpath
from abc import ABC, abstractmethod
from dataclasses import replace
from typing import Iterable, Mapping, Optional, Sequence

from repograph.context.symbol_table import SymbolTable
from repograph.core.config import GraphConfig
from repograph.models.analysis import ImportEdge
from repograph.models.graph import SymbolTableEntry

PYTHON_EXTENSIONS = (".py", ".pyi")


class ImportResolver:
    """Resolve import specifiers against the known file set."""

    def __init__(self, known_paths: Iterable[str], config: Optional[GraphConfig] = None) -> None:
        self.config = config or GraphConfig()
        self._known = set(known_paths)

    def resolve(self, source: str, from_file: str) -> Optional[str]:
        """
        Resolve an import specifier.

        Args:
            source: Specifier as written in the import
            from_file: Path of the importing file

        Returns:
            Path of the imported file, or None for externals and misses
        """
        if from_file.endswith(PYTHON_EXTENSIONS):
            return self._resolve_python(source, from_file)
        return self._resolve_path(source, from_file)

    def _resolve_path(self, source: str, from_file: str) -> Optional[str]:
        """
        Resolve a path-like specifier.

        Relative specifiers resolve against the importer's directory,
        ``/``-absolute ones against the repository root. The literal path is
        tried first, then each configured suffix.
        """
        if source.startswith("."):
            base = posixpath.normpath(posixpath.join(posixpath.dirname(from_file), source))
        elif source.startswith("/"):
            base = posixpath.normpath(source.lstrip("/"))
        else:
            return None
        return self._first_known(base, self.config.import_suffixes)

    def resolve_import(self, imp: ImportEdge, from_file: str) -> list[tuple[ImportEdge, str]]:
        """
        Resolve an import declaration to its target files.

        A Python ``from <package> import a, b`` may name submodules rather than
        symbols of the package. Each name that matches ``<package>/<name>.py``
        or ``<package>/<name>/__init__.py`` gets its own target, and the
        package ``__init__.py`` keeps only the remaining names.

        Returns:
            (import, target) pairs; the import's specifiers are narrowed to the
            names bound from that target
        """
        target = self.resolve(imp.source, from_file)
        if not from_file.endswith(PYTHON_EXTENSIONS) or imp.is_module or imp.is_wildcard:
            return [(imp, target)] if target else []

        package_dir = self._python_package_dir(imp.source, from_file, target)
        if package_dir is None:
            return [(imp, target)] if target else []

        resolved: list[tuple[ImportEdge, str]] = []
        remaining: list[str] = []
        for name in imp.specifiers:
            submodule = self._first_known(
                posixpath.join(package_dir, name), self.config.python_import_suffixes
            )
            if submodule is None or submodule == target:
                remaining.append(name)
            else:
                resolved.append((replace(imp, specifiers=(name,)), submodule))
        if target and remaining:
            resolved.insert(0, (replace(imp, specifiers=tuple(remaining)), target))
        return resolved

    def _python_package_dir(
        self, source: str, from_file: str, target: Optional[str]
    ) -> Optional[str]:
        """Directory of the package a ``from`` import reads from, if it is one."""
        if target is not None:
            if posixpath.basename(target) == "__init__.py":
                return posixpath.dirname(target)
            return None
        # ``from . import x`` in a namespace package without __init__.py
        if source and not source.strip("."):
            base = self._python_base(source, from_file)
            if base is not None and not base.startswith(".."):
                return "" if base == "." else base
        return None

    def _resolve_python(self, source: str, from_file: str) -> Optional[str]:
        """Resolve a dotted Python module name, relative (leading dots) or absolute."""
        base = self._python_base(source, from_file)
        if base is None:
            return None
        return self._first_known(base, self.config.python_import_suffixes)

    def _python_base(self, source: str, from_file: str) -> Optional[str]:
        """Repository path of a Python module without its suffix."""
        stripped = source.lstrip(".")
        dots = len(source) - len(stripped)
        module_path = stripped.replace(".", "/")

        if dots:
            base_dir = posixpath.dirname(from_file)
            for _ in range(dots - 1):
                base_dir = posixpath.dirname(base_dir)
            return posixpath.join(base_dir, module_path) if module_path else base_dir

        if not self.config.resolve_python_absolute_imports or not module_path:
            return None
        return module_path

    def _first_known(self, base: str, suffixes: Sequence[str]) -> Optional[str]:
        if base in (".", ""):
            base = ""
        elif base.startswith(".."):
            return None
        candidates = [base] + [(base + suffix).lstrip("/") for suffix in suffixes]
        for candidate in candidates:
            if candidate and candidate in self._known:
                return candidate
        return None


class SymbolResolver(ABC):
    """Strategy binding a symbol name used in a file to a symbol table entry."""

    @abstractmethod
    def resolve(self, name: str, from_file: str) -> Optional[SymbolTableEntry]:
        """
        Resolve a name.

        Args:
            name: Callee, reference or superclass name
            from_file: File in which the name is used

        Returns:
            Matching entry, or None when unresolved
        """


class NameBasedResolver(SymbolResolver):
    """
    Resolve names by lookup in the using file, then in its resolved imports.

    Shadowing, re-exports and dynamic dispatch are not modeled: a miss yields
    no edge, and same-named symbols in imported files can produce spurious ones.
    """

    def __init__(self, symbol_table: SymbolTable, imports: Mapping[str, Sequence[str]]) -> None:
        """
        Args:
            symbol_table: Populated symbol table
            imports: File path to its resolved import targets, in import order
        """
        self.symbol_table = symbol_table
        self.imports = imports

    def resolve(self, name: str, from_file: str) -> Optional[SymbolTableEntry]:
        entry = self.symbol_table.get(from_file, name)
        if entry is not None:
            return entry
        for target in self.imports.get(from_file, ()):
            entry = self.symbol_table.get(target, name)
            if entry is not None:
                return entry
        return None
