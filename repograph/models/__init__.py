"""Data models for repograph."""

from repograph.models.analysis import (
    ExportEdge,
    FileAnalysis,
    ImportEdge,
    PropertyInfo,
    SourceFile,
    Symbol,
)
from repograph.models.base import (
    CodeSpan,
    EdgeType,
    ExportKind,
    NodeKind,
    ParseStrategy,
    Scope,
    SymbolKind,
    TruncationPolicy,
    estimate_tokens,
    make_node_id,
)
from repograph.models.context_window import (
    ContextWindow,
    CrossFileReferences,
    FileContext,
    FileRelationships,
    ReferenceSite,
)
from repograph.models.graph import GraphEdge, GraphNode, SymbolTableEntry, UsageSite
from repograph.models.metrics import (
    ArchitectureMetrics,
    ArchitecturePattern,
    CouplingMetrics,
    DuplicationMatch,
    ImpactAnalysis,
)

__all__ = [
    # Base types
    "CodeSpan",
    "EdgeType",
    "ExportKind",
    "NodeKind",
    "ParseStrategy",
    "Scope",
    "SymbolKind",
    "TruncationPolicy",
    "estimate_tokens",
    "make_node_id",
    # Parser output
    "SourceFile",
    "Symbol",
    "PropertyInfo",
    "ImportEdge",
    "ExportEdge",
    "FileAnalysis",
    # Graph
    "GraphNode",
    "GraphEdge",
    "UsageSite",
    "SymbolTableEntry",
    # Context windows
    "FileRelationships",
    "FileContext",
    "ContextWindow",
    "ReferenceSite",
    "CrossFileReferences",
    # Analytics
    "ImpactAnalysis",
    "CouplingMetrics",
    "ArchitectureMetrics",
    "ArchitecturePattern",
    "DuplicationMatch",
]
