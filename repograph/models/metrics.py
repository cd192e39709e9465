"""
Result models for graph analytics and architecture heuristics.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class ImpactAnalysis:
    """Files affected by a change to one file, split by import distance."""

    target: str
    direct_impact: tuple[str, ...] = ()
    indirect_impact: tuple[str, ...] = ()

    @property
    def total_impact(self) -> int:
        return len(self.direct_impact) + len(self.indirect_impact)

    def to_dict(self) -> dict[str, Any]:
        return {
            "target": self.target,
            "direct_impact": list(self.direct_impact),
            "indirect_impact": list(self.indirect_impact),
            "total_impact": self.total_impact,
        }


@dataclass(frozen=True)
class CouplingMetrics:
    """
    Coupling of one file.

    Instability is efferent / (afferent + efferent): 0 = stable, 1 = unstable.
    """

    path: str
    afferent: int = 0
    efferent: int = 0

    @property
    def instability(self) -> float:
        total = self.afferent + self.efferent
        if total == 0:
            return 0.0
        return self.efferent / total

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "afferent": self.afferent,
            "efferent": self.efferent,
            "instability": self.instability,
        }


@dataclass(frozen=True)
class ArchitectureMetrics:
    """Repository-wide structural totals."""

    total_files: int = 0
    total_functions: int = 0
    total_classes: int = 0
    average_complexity: float = 0.0
    max_depth: int = 0
    circular_dependencies: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_files": self.total_files,
            "total_functions": self.total_functions,
            "total_classes": self.total_classes,
            "average_complexity": self.average_complexity,
            "max_depth": self.max_depth,
            "circular_dependencies": self.circular_dependencies,
        }


@dataclass(frozen=True)
class ArchitecturePattern:
    """An architectural style suggested by file naming."""

    name: str
    confidence: float
    files: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "confidence": self.confidence, "files": list(self.files)}


@dataclass(frozen=True)
class DuplicationMatch:
    """Two files with highly similar vocabularies."""

    similarity: float
    files: tuple[str, str]
    fragment: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "similarity": self.similarity,
            "files": list(self.files),
            "fragment": self.fragment,
        }
