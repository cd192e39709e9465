"""
Global symbol registry keyed by ``(file, name)``.

Entries are frozen; recording an importer or a usage replaces the entry.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Any, Iterator, Optional

from repograph.models.graph import SymbolTableEntry, UsageSite


class SymbolTable:
    """Symbol table for one analysis session."""

    def __init__(self) -> None:
        self._entries: dict[tuple[str, str], SymbolTableEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[SymbolTableEntry]:
        return iter(list(self._entries.values()))

    def __contains__(self, key: tuple[str, str]) -> bool:
        return key in self._entries

    def add(self, entry: SymbolTableEntry) -> bool:
        """
        Register an entry; the first registration of a key wins.

        Returns:
            True if the entry was added
        """
        if entry.key in self._entries:
            return False
        self._entries[entry.key] = entry
        return True

    def get(self, file: str, name: str) -> Optional[SymbolTableEntry]:
        return self._entries.get((file, name))

    def find_by_name(self, name: str) -> Optional[SymbolTableEntry]:
        """Get the first registered entry with this name in any file."""
        for entry in self._entries.values():
            if entry.name == name:
                return entry
        return None

    def find_all(self, name: str) -> list[SymbolTableEntry]:
        return [e for e in self._entries.values() if e.name == name]

    def entries_for_file(self, file: str) -> list[SymbolTableEntry]:
        return [e for e in self._entries.values() if e.file == file]

    def mark_exported(self, file: str, name: str) -> None:
        entry = self._entries.get((file, name))
        if entry is not None and not entry.exported:
            self._entries[entry.key] = replace(entry, exported=True)

    def add_importer(self, file: str, name: str, importer: str) -> None:
        """Record that ``importer`` imports or uses the symbol ``name`` of ``file``."""
        entry = self._entries.get((file, name))
        if entry is None or importer in entry.imported_in:
            return
        self._entries[entry.key] = replace(entry, imported_in=entry.imported_in + (importer,))

    def add_usage(self, file: str, name: str, site: UsageSite) -> None:
        entry = self._entries.get((file, name))
        if entry is None or site in entry.usages:
            return
        self._entries[entry.key] = replace(entry, usages=entry.usages + (site,))

    def to_dict(self) -> dict[str, Any]:
        """Serialize with ``file:name`` keys."""
        return {f"{file}:{name}": entry.to_dict() for (file, name), entry in self._entries.items()}
