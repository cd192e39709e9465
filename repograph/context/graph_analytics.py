"""
Structural analytics over the file import graph.

All traversals are iterative, so import chains of any length are handled
without hitting the interpreter recursion limit.
"""

from __future__ import annotations

from collections import deque
from typing import Callable

from repograph.context.dependency_graph import RepositoryGraph
from repograph.models.base import NodeKind, make_node_id
from repograph.models.metrics import ArchitectureMetrics, CouplingMetrics, ImpactAnalysis
from repograph.utils.logging import ComponentLogger


class GraphAnalytics:
    """Cycle, impact, coupling and architecture metrics for a repository graph."""

    def __init__(self, graph: RepositoryGraph) -> None:
        self.logger = ComponentLogger("graph_analytics")
        self.graph = graph

    def _file_of(self, node_id: str) -> str:
        node = self.graph.get_node(node_id)
        return node.file if node else node_id

    def find_circular_dependencies(self) -> list[list[str]]:
        """
        Find import cycles with a single depth-first pass.

        Reaching a file that is still on the traversal stack records the
        stack suffix starting at that file as one cycle. Files finished under
        an earlier root are not revisited, so the result is advisory: some
        cycles sharing files with an earlier one may not be reported.

        Returns:
            Cycles as lists of file node ids, in discovery order
        """
        cycles: list[list[str]] = []
        visited: set[str] = set()
        on_stack: set[str] = set()

        for root in self.graph.file_node_ids():
            if root in visited:
                continue
            visited.add(root)
            on_stack.add(root)
            path = [root]
            iterators = [iter(self.graph.import_targets(root))]

            while iterators:
                advanced = False
                for neighbor in iterators[-1]:
                    if neighbor not in visited:
                        visited.add(neighbor)
                        on_stack.add(neighbor)
                        path.append(neighbor)
                        iterators.append(iter(self.graph.import_targets(neighbor)))
                        advanced = True
                        break
                    if neighbor in on_stack:
                        cycles.append(path[path.index(neighbor):])
                if not advanced:
                    iterators.pop()
                    on_stack.discard(path.pop())

        if cycles:
            self.logger.debug("Found circular dependencies", count=len(cycles))
        return cycles

    def get_impact_analysis(self, path: str) -> ImpactAnalysis:
        """
        Find files affected by a change to ``path``.

        Breadth-first search backward over import edges; each file is counted
        once, at its shallowest distance.

        Args:
            path: Repository-relative path of the changed file

        Returns:
            ImpactAnalysis; empty for unknown paths
        """
        return self._layered_search(path, self.graph.importers)

    def get_dependency_analysis(self, path: str) -> ImpactAnalysis:
        """
        Find files that ``path`` depends on, directly or transitively.

        Same search as ``get_impact_analysis`` run forward over import edges.
        """
        return self._layered_search(path, self.graph.import_targets)

    def _layered_search(
        self, path: str, neighbors: Callable[[str], list[str]]
    ) -> ImpactAnalysis:
        start = make_node_id(NodeKind.FILE, path)
        if not self.graph.has_node(start):
            return ImpactAnalysis(target=path)

        direct: list[str] = []
        indirect: list[str] = []
        visited = {start}
        queue: deque[tuple[str, int]] = deque([(start, 0)])

        while queue:
            node_id, depth = queue.popleft()
            for neighbor in neighbors(node_id):
                if neighbor in visited:
                    continue
                visited.add(neighbor)
                if depth == 0:
                    direct.append(self._file_of(neighbor))
                else:
                    indirect.append(self._file_of(neighbor))
                queue.append((neighbor, depth + 1))

        return ImpactAnalysis(
            target=path, direct_impact=tuple(direct), indirect_impact=tuple(indirect)
        )

    def analyze_coupling(self, path: str) -> CouplingMetrics:
        """Afferent (distinct importers) and efferent (distinct imports) coupling of a file."""
        file_id = make_node_id(NodeKind.FILE, path)
        return CouplingMetrics(
            path=path,
            afferent=len(set(self.graph.importers(file_id))),
            efferent=len(set(self.graph.import_targets(file_id))),
        )

    def get_coupling_report(self) -> list[CouplingMetrics]:
        """Coupling of every file, most unstable first."""
        report = [self.analyze_coupling(self._file_of(n)) for n in self.graph.file_node_ids()]
        return sorted(report, key=lambda m: m.instability, reverse=True)

    def calculate_max_depth(self) -> int:
        """
        Longest import chain found by depth-first search.

        Each root gets a fresh visited set; depth is the depth in that root's
        DFS tree, which can differ from the true longest path.
        """
        max_depth = 0
        for root in self.graph.file_node_ids():
            visited: set[str] = set()
            stack = [(root, 0)]
            while stack:
                node_id, depth = stack.pop()
                if node_id in visited:
                    continue
                visited.add(node_id)
                max_depth = max(max_depth, depth)
                for target in reversed(self.graph.import_targets(node_id)):
                    if target not in visited:
                        stack.append((target, depth + 1))
        return max_depth

    def get_architecture_metrics(self) -> ArchitectureMetrics:
        """Repository-wide totals; complexity is averaged over functions and methods."""
        functions = self.graph.nodes_of_kind(NodeKind.FUNCTION)
        total_complexity = sum(node.metadata.get("complexity", 1) for node in functions)

        return ArchitectureMetrics(
            total_files=len(self.graph.file_node_ids()),
            total_functions=len(functions),
            total_classes=len(self.graph.nodes_of_kind(NodeKind.CLASS)),
            average_complexity=total_complexity / len(functions) if functions else 0.0,
            max_depth=self.calculate_max_depth(),
            circular_dependencies=len(self.find_circular_dependencies()),
        )
