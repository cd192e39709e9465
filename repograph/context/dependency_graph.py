"""
Repository graph of files and symbols.

Builds a typed multigraph (file, function, class and variable nodes joined by
imports, calls, references, extends and exports edges) from per-file
analyses, in four ordered passes:

1. nodes for every file and declared symbol
2. import edges between files of the batch
3. call and reference edges from functions and methods to symbols
4. extends edges between classes

Each pass consumes the complete output of the previous one, and an edge is
only added when both endpoints exist.
"""

from __future__ import annotations

import posixpath
import time
from collections.abc import Iterable, Mapping
from typing import Any, Callable, Optional, Sequence, Union

import networkx as nx

from repograph.context.resolver import ImportResolver, NameBasedResolver, SymbolResolver
from repograph.context.symbol_table import SymbolTable
from repograph.core.config import GraphConfig
from repograph.models.analysis import FileAnalysis, ImportEdge, Symbol
from repograph.models.base import EdgeType, NodeKind, Scope, SymbolKind, make_node_id
from repograph.models.graph import GraphEdge, GraphNode, SymbolTableEntry, UsageSite
from repograph.utils.logging import ComponentLogger, SessionLogger

AnalysisBatch = Union[Mapping[str, FileAnalysis], Iterable[FileAnalysis]]
ResolverFactory = Callable[[SymbolTable, Mapping[str, Sequence[str]]], SymbolResolver]


class RepositoryGraph:
    """Directed multigraph of repository files and symbols."""

    def __init__(
        self,
        config: Optional[GraphConfig] = None,
        resolver_factory: ResolverFactory = NameBasedResolver,
    ) -> None:
        """
        Initialize an empty repository graph.

        Args:
            config: Import resolution settings
            resolver_factory: Builds the symbol resolution strategy from the
                symbol table and the resolved imports of each file
        """
        self.logger = ComponentLogger("dependency_graph")
        self.config = config or GraphConfig()
        self._resolver_factory = resolver_factory
        self._reset({})

    def _reset(self, analyses: Mapping[str, FileAnalysis]) -> None:
        self._graph: nx.MultiDiGraph = nx.MultiDiGraph()
        self._analyses: dict[str, FileAnalysis] = dict(analyses)
        self._symbol_table = SymbolTable()
        self._resolved_imports: dict[str, list[tuple[ImportEdge, str]]] = {}
        self._import_targets: dict[str, list[str]] = {}
        self.resolver: SymbolResolver = self._resolver_factory(
            self._symbol_table, self._import_targets
        )

    @property
    def node_count(self) -> int:
        return self._graph.number_of_nodes()

    @property
    def edge_count(self) -> int:
        return self._graph.number_of_edges()

    @property
    def symbol_table(self) -> SymbolTable:
        return self._symbol_table

    @property
    def analyses(self) -> dict[str, FileAnalysis]:
        return dict(self._analyses)

    # ========== Building ==========

    def build_graph(
        self,
        analyses: AnalysisBatch,
        session_logger: Optional[SessionLogger] = None,
    ) -> RepositoryGraph:
        """
        Build the graph from per-file analyses, replacing any previous state.

        Args:
            analyses: Mapping of path to FileAnalysis, or an iterable of analyses
            session_logger: Optional logger receiving per-pass timings

        Returns:
            This graph
        """
        self._load(analyses)

        passes = [
            ("nodes", self._add_nodes),
            ("symbol_table", self._populate_symbol_table),
            ("import_edges", self._add_import_edges),
            ("call_edges", self._add_call_and_reference_edges),
            ("inheritance_edges", self._add_inheritance_edges),
        ]
        for name, run in passes:
            if session_logger:
                session_logger.pass_start(name)
            started = time.perf_counter()
            run()
            if session_logger:
                session_logger.pass_complete(name, (time.perf_counter() - started) * 1000)

        self.logger.info(
            "Built repository graph",
            files=len(self._analyses),
            nodes=self.node_count,
            edges=self.edge_count,
            symbols=len(self._symbol_table),
        )
        return self

    def build_symbol_table(self, analyses: AnalysisBatch) -> SymbolTable:
        """
        Build only the symbol table from per-file analyses.

        Import resolution runs so that ``imported_in`` is populated; no graph
        nodes or edges are created.
        """
        self._load(analyses)
        self._populate_symbol_table()
        return self._symbol_table

    def _load(self, analyses: AnalysisBatch) -> None:
        """Reset state and resolve every import against the batch."""
        if isinstance(analyses, Mapping):
            batch = dict(analyses)
        else:
            batch = {analysis.path: analysis for analysis in analyses}
        self._reset(batch)

        import_resolver = ImportResolver(batch.keys(), self.config)
        for path, analysis in batch.items():
            resolved: list[tuple[ImportEdge, str]] = []
            targets: list[str] = []
            for imp in analysis.imports:
                for bound, target in import_resolver.resolve_import(imp, path):
                    if target == path:
                        continue
                    resolved.append((bound, target))
                    if target not in targets:
                        targets.append(target)
            self._resolved_imports[path] = resolved
            self._import_targets[path] = targets

    def _add_nodes(self) -> None:
        """Pass 1: file nodes and symbol nodes linked from their file."""
        for path, analysis in self._analyses.items():
            file_id = make_node_id(NodeKind.FILE, path)
            self._add_node(
                GraphNode(
                    id=file_id,
                    kind=NodeKind.FILE,
                    name=posixpath.basename(path),
                    file=path,
                    metadata={
                        "full_path": path,
                        "language": analysis.language,
                        "strategy": analysis.strategy.value,
                        "parse_error": analysis.parse_error,
                    },
                )
            )

            for function in analysis.functions:
                self._add_symbol_node(file_id, function)
            for cls in analysis.classes:
                self._add_symbol_node(file_id, cls)
                for method in cls.methods:
                    self._add_symbol_node(file_id, method)
            for variable in analysis.variables:
                if variable.scope == Scope.GLOBAL:
                    self._add_symbol_node(file_id, variable)

    def _add_symbol_node(self, file_id: str, symbol: Symbol) -> None:
        node_kind = NodeKind.for_symbol(symbol.kind)
        node_id = make_node_id(node_kind, symbol.file, symbol.qualified_name)
        metadata: dict[str, Any] = {"line": symbol.line, "scope": symbol.scope.value}
        if symbol.kind == SymbolKind.FUNCTION:
            metadata.update(
                {
                    "params": list(symbol.parameters),
                    "complexity": symbol.complexity,
                    "class_name": symbol.parent_class,
                }
            )
        elif symbol.kind == SymbolKind.CLASS:
            metadata.update(
                {
                    "superclass": symbol.superclass,
                    "method_count": len(symbol.methods),
                    "property_count": len(symbol.properties),
                }
            )

        if self._add_node(
            GraphNode(
                id=node_id,
                kind=node_kind,
                name=symbol.qualified_name,
                file=symbol.file,
                metadata=metadata,
            )
        ):
            self._add_edge(file_id, node_id, EdgeType.EXPORTS)

    def _populate_symbol_table(self) -> None:
        """Register declared symbols, then undeclared exports, then importers."""
        table = self._symbol_table
        for path, analysis in self._analyses.items():
            for symbol in analysis.symbols:
                if symbol.kind == SymbolKind.VARIABLE and symbol.scope != Scope.GLOBAL:
                    continue
                table.add(
                    SymbolTableEntry(
                        name=symbol.name,
                        type=symbol.kind.value,
                        file=path,
                        scope=symbol.scope,
                        line=symbol.line,
                        usages=(UsageSite(file=path, line=symbol.line),),
                    )
                )
            for export in analysis.exports:
                if (path, export.name) in table:
                    table.mark_exported(path, export.name)
                else:
                    table.add(
                        SymbolTableEntry(
                            name=export.name,
                            type=export.kind.value,
                            file=path,
                            exported=True,
                        )
                    )

        for path, resolved in self._resolved_imports.items():
            for imp, target in resolved:
                if imp.is_wildcard:
                    for entry in self._wildcard_entries(target):
                        table.add_importer(target, entry.name, path)
                else:
                    for name in imp.specifiers:
                        table.add_importer(target, name, path)

    def _wildcard_entries(self, target: str) -> list[SymbolTableEntry]:
        """Entries brought in by a name-less import: exported ones, else public globals."""
        entries = self._symbol_table.entries_for_file(target)
        exported = [e for e in entries if e.exported]
        if exported or self._analyses[target].exports:
            return exported
        return [e for e in entries if e.scope == Scope.GLOBAL and not e.name.startswith("_")]

    def _add_import_edges(self) -> None:
        """Pass 2: file-to-file import edges weighted by imported name count."""
        for path, resolved in self._resolved_imports.items():
            source_id = make_node_id(NodeKind.FILE, path)
            for imp, target in resolved:
                self._add_edge(
                    source_id,
                    make_node_id(NodeKind.FILE, target),
                    EdgeType.IMPORTS,
                    weight=max(1, len(imp.specifiers)),
                )

    def _add_call_and_reference_edges(self) -> None:
        """Pass 3: calls and references from functions and methods."""
        for path, analysis in self._analyses.items():
            for function in analysis.callables:
                source_id = make_node_id(NodeKind.FUNCTION, path, function.qualified_name)
                for name in function.calls:
                    self._link_name(source_id, name, path, function.line, EdgeType.CALLS)
                for name in function.references:
                    self._link_name(source_id, name, path, function.line, EdgeType.REFERENCES)

    def _add_inheritance_edges(self) -> None:
        """Pass 4: extends edges to resolved class targets."""
        for path, analysis in self._analyses.items():
            for cls in analysis.classes:
                if not cls.superclass:
                    continue
                entry = self.resolver.resolve(cls.superclass, path)
                if entry is None or entry.type != SymbolKind.CLASS.value:
                    continue
                source_id = make_node_id(NodeKind.CLASS, path, cls.name)
                target_id = make_node_id(NodeKind.CLASS, entry.file, entry.name)
                if self._add_edge(source_id, target_id, EdgeType.EXTENDS):
                    self._record_cross_file_use(entry, path, cls.line)

    def _link_name(
        self, source_id: str, name: str, path: str, line: int, edge_type: EdgeType
    ) -> None:
        entry = self.resolver.resolve(name, path)
        if entry is None:
            return
        node_kind = entry.node_kind
        if node_kind is None:
            return
        target_id = make_node_id(node_kind, entry.file, entry.name)
        if self._add_edge(source_id, target_id, edge_type):
            self._record_cross_file_use(entry, path, line)

    def _record_cross_file_use(self, entry: SymbolTableEntry, path: str, line: int) -> None:
        if entry.file == path:
            return
        self._symbol_table.add_importer(entry.file, entry.name, path)
        self._symbol_table.add_usage(entry.file, entry.name, UsageSite(file=path, line=line))

    def _add_node(self, node: GraphNode) -> bool:
        if node.id in self._graph:
            return False
        self._graph.add_node(node.id, data=node)
        return True

    def _add_edge(self, source: str, target: str, edge_type: EdgeType, weight: int = 1) -> bool:
        """
        Add an edge, accumulating weight on an existing (source, target, type).

        Returns:
            True if the edge exists after the call
        """
        if source not in self._graph or target not in self._graph:
            self.logger.debug(
                "Skipping edge with missing endpoint",
                source=source,
                target=target,
                type=edge_type.value,
            )
            return False
        key = edge_type.value
        if self._graph.has_edge(source, target, key=key):
            self._graph[source][target][key]["weight"] += weight
        else:
            self._graph.add_edge(source, target, key=key, weight=weight)
        return True

    # ========== Queries ==========

    def has_node(self, node_id: str) -> bool:
        return node_id in self._graph

    def get_node(self, node_id: str) -> Optional[GraphNode]:
        if node_id not in self._graph:
            return None
        return self._graph.nodes[node_id]["data"]

    @property
    def nodes(self) -> dict[str, GraphNode]:
        return {node_id: data["data"] for node_id, data in self._graph.nodes(data=True)}

    @property
    def edges(self) -> list[GraphEdge]:
        return [
            GraphEdge(source=u, target=v, type=EdgeType(key), weight=data["weight"])
            for u, v, key, data in self._graph.edges(keys=True, data=True)
        ]

    def file_node_ids(self) -> list[str]:
        return [
            node_id
            for node_id, data in self._graph.nodes(data=True)
            if data["data"].kind == NodeKind.FILE
        ]

    def nodes_of_kind(self, kind: NodeKind) -> list[GraphNode]:
        return [data["data"] for _, data in self._graph.nodes(data=True) if data["data"].kind == kind]

    def import_targets(self, node_id: str) -> list[str]:
        """Get node ids of files imported by a file node."""
        if node_id not in self._graph:
            return []
        return [
            target
            for _, target, key in self._graph.out_edges(node_id, keys=True)
            if key == EdgeType.IMPORTS.value
        ]

    def importers(self, node_id: str) -> list[str]:
        """Get node ids of files importing a file node."""
        if node_id not in self._graph:
            return []
        return [
            source
            for source, _, key in self._graph.in_edges(node_id, keys=True)
            if key == EdgeType.IMPORTS.value
        ]

    def get_file_dependencies(self, path: str) -> list[str]:
        """
        Get direct dependencies of a file (files it imports).

        Args:
            path: Repository-relative path

        Returns:
            Paths of imported files, empty for unknown paths
        """
        file_id = make_node_id(NodeKind.FILE, path)
        return [self._graph.nodes[n]["data"].file for n in self.import_targets(file_id)]

    def get_file_dependents(self, path: str) -> list[str]:
        """
        Get direct dependents of a file (files that import it).

        Args:
            path: Repository-relative path

        Returns:
            Paths of importing files, empty for unknown paths
        """
        file_id = make_node_id(NodeKind.FILE, path)
        return [self._graph.nodes[n]["data"].file for n in self.importers(file_id)]

    def get_symbol_usages(self, name: str) -> Optional[SymbolTableEntry]:
        """Get the first symbol table entry with this name, None if unknown."""
        return self._symbol_table.find_by_name(name)

    def to_dict(self) -> dict[str, Any]:
        """
        Serialize the graph.

        Returns:
            Dict with ``nodes`` (id to node), ``edges`` and ``adjacency`` (id to successor ids)
        """
        adjacency: dict[str, list[str]] = {}
        for node_id in self._graph.nodes:
            successors: list[str] = []
            for _, target in self._graph.out_edges(node_id):
                if target not in successors:
                    successors.append(target)
            adjacency[node_id] = successors
        return {
            "nodes": {node_id: node.to_dict() for node_id, node in self.nodes.items()},
            "edges": [edge.to_dict() for edge in self.edges],
            "adjacency": adjacency,
        }
