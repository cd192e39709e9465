"""
Analysis session: the caller-owned container for one repository analysis.

A session holds the input files, their analyses, the built graph and the
configuration used. It is rebuilt for every batch and discarded afterwards.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Optional, Union
from uuid import uuid4

from repograph.core.config import RepographConfig
from repograph.models.analysis import FileAnalysis, SourceFile

if TYPE_CHECKING:
    from repograph.context.dependency_graph import RepositoryGraph
    from repograph.context.symbol_table import SymbolTable

BatchEntry = Union[SourceFile, Mapping[str, Any]]


class InvalidBatchError(ValueError):
    """Input batch violates the ``[{path, content}]`` contract."""


def validate_batch(files: Any) -> list[SourceFile]:
    """
    Validate an input batch before any parsing.

    Args:
        files: Ordered sequence of ``{"path": str, "content": str}`` mappings
            or SourceFile objects

    Returns:
        SourceFile list in input order

    Raises:
        InvalidBatchError: If the batch is not a sequence, an entry lacks a
            string path or content, a path is empty or uses backslashes, or a
            path appears twice
    """
    if isinstance(files, (str, bytes, Mapping)) or not isinstance(files, Iterable):
        raise InvalidBatchError("batch must be a list of {path, content} entries")

    sources: list[SourceFile] = []
    seen: set[str] = set()
    for index, entry in enumerate(files):
        if isinstance(entry, SourceFile):
            path, content, language = entry.path, entry.content, entry.language
        elif isinstance(entry, Mapping):
            path, content = entry.get("path"), entry.get("content")
            language = entry.get("language", "unknown")
        else:
            raise InvalidBatchError(f"entry {index} is not a {{path, content}} mapping")

        if not isinstance(path, str):
            raise InvalidBatchError(f"entry {index} has no string 'path'")
        if not isinstance(content, str):
            raise InvalidBatchError(f"entry {index} ({path}) has no string 'content'")
        if not path:
            raise InvalidBatchError(f"entry {index} has an empty path")
        if "\\" in path:
            raise InvalidBatchError(f"path must use forward slashes: {path}")
        if path in seen:
            raise InvalidBatchError(f"duplicate path in batch: {path}")

        seen.add(path)
        sources.append(SourceFile(path=path, content=content, language=language))
    return sources


@dataclass
class AnalysisSession:
    """
    State of one repository analysis.

    ``files`` and ``analyses`` are keyed by path in batch order.
    """

    files: dict[str, SourceFile]
    analyses: dict[str, FileAnalysis]
    graph: "RepositoryGraph"
    config: RepographConfig = field(default_factory=RepographConfig)
    session_id: str = field(default_factory=lambda: uuid4().hex[:12])
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def paths(self) -> list[str]:
        return list(self.files)

    @property
    def symbol_table(self) -> "SymbolTable":
        return self.graph.symbol_table

    def __contains__(self, path: object) -> bool:
        return path in self.files

    def __len__(self) -> int:
        return len(self.files)

    def get_content(self, path: str) -> Optional[str]:
        source = self.files.get(path)
        return source.content if source else None

    def get_analysis(self, path: str) -> Optional[FileAnalysis]:
        return self.analyses.get(path)

    def to_dict(self) -> dict[str, Any]:
        """Serialize analyses, graph and symbol table (file contents excluded)."""
        return {
            "session_id": self.session_id,
            "created_at": self.created_at.isoformat(),
            "analyses": {path: a.to_dict() for path, a in self.analyses.items()},
            "graph": self.graph.to_dict(),
            "symbol_table": self.symbol_table.to_dict(),
        }
