"""
Context aggregator: token-budgeted context windows over an analysis session.

Three retrieval modes select whole files into a ContextWindow:
- query-driven: files ranked by term matches in content, path and symbol names
- file-radius: a seed file, its imports and (radius > 1) its importers
- refactor: a caller-given file set plus each member's imports

Files are never split. Token counts use a character-based estimate.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from typing import Any, Optional

from repograph.context.architecture import detect_architecture_patterns, find_code_duplication
from repograph.context.graph_analytics import GraphAnalytics
from repograph.core.session import AnalysisSession
from repograph.models.analysis import FileAnalysis
from repograph.models.base import TruncationPolicy, estimate_tokens
from repograph.models.context_window import (
    ContextWindow,
    CrossFileReferences,
    FileContext,
    FileRelationships,
    ReferenceSite,
)
from repograph.models.graph import SymbolTableEntry
from repograph.models.metrics import (
    ArchitectureMetrics,
    ArchitecturePattern,
    DuplicationMatch,
    ImpactAnalysis,
)
from repograph.utils.logging import ComponentLogger

TERM_SPLIT_RE = re.compile(r"\W+")


class _WindowBuilder:
    """Accumulates files for one context window."""

    def __init__(self, aggregator: ContextAggregator, budget: Optional[int]) -> None:
        self.aggregator = aggregator
        self.budget = budget
        self.files: list[FileContext] = []
        self.seen: set[str] = set()
        self.total_tokens = 0
        self.truncated = False

    def fits(self, tokens: int) -> bool:
        return self.budget is None or self.total_tokens + tokens <= self.budget

    def add(self, path: str, relevance: float) -> bool:
        """Add a file regardless of budget; False for unknown or already included paths."""
        if path in self.seen:
            return False
        file_context = self.aggregator._file_context(path, relevance)
        if file_context is None:
            return False
        self.seen.add(path)
        self.files.append(file_context)
        self.total_tokens += file_context.tokens
        return True

    def try_add(self, path: str, relevance: float) -> bool:
        """Add a file only if it fits the remaining budget."""
        if path in self.seen:
            return False
        content = self.aggregator.session.get_content(path)
        if content is None:
            return False
        if not self.fits(self.aggregator.estimate_tokens(content)):
            self.truncated = True
            return False
        return self.add(path, relevance)

    def build(self, relevant_symbols: Iterable[SymbolTableEntry] = ()) -> ContextWindow:
        dependencies: list[str] = []
        for file_context in self.files:
            for source in file_context.relationships.imports:
                if source not in dependencies:
                    dependencies.append(source)
        return ContextWindow(
            files=tuple(self.files),
            total_tokens=self.total_tokens,
            relevant_symbols=tuple(relevant_symbols),
            dependencies=tuple(dependencies),
            truncated=self.truncated,
        )


class ContextAggregator:
    """Assemble context windows and repository-level reports for a session."""

    def __init__(self, session: AnalysisSession, analytics: Optional[GraphAnalytics] = None) -> None:
        """
        Initialize the aggregator.

        Args:
            session: Analysis session built by RepositoryMapper
            analytics: Graph analytics to reuse (created from the session graph if omitted)
        """
        self.logger = ComponentLogger("context_aggregator")
        self.session = session
        self.config = session.config.context
        self.analysis_config = session.config.analysis
        self.graph = session.graph
        self.analytics = analytics or GraphAnalytics(session.graph)

    # ========== Query-driven ==========

    def build_context_for_query(self, query: str, max_tokens: Optional[int] = None) -> ContextWindow:
        """
        Build a context window of the files most relevant to a query.

        Files are added greedily in score order, stopping before the next file
        would exceed the budget. Under ``always_include_top`` the highest
        scored file is included even when it alone exceeds the budget.

        Args:
            query: Free-text query
            max_tokens: Token budget (config default if omitted)

        Returns:
            ContextWindow with raw match scores as relevance
        """
        budget = self.config.default_max_tokens if max_tokens is None else max_tokens
        terms = self.extract_query_terms(query)
        scored = self.score_files(terms)
        builder = _WindowBuilder(self, budget)

        for rank, (path, score) in enumerate(scored):
            tokens = self.estimate_tokens(self.session.get_content(path) or "")
            if builder.fits(tokens):
                builder.add(path, float(score))
                continue
            if rank == 0 and self.config.truncation_policy == TruncationPolicy.ALWAYS_INCLUDE_TOP:
                builder.add(path, float(score))
                continue
            builder.truncated = True
            break

        window = builder.build(self.find_relevant_symbols(terms))
        self.logger.debug(
            "Built query context",
            terms=len(terms),
            candidates=len(scored),
            files=len(window.files),
            tokens=window.total_tokens,
        )
        return window

    def extract_query_terms(self, query: str) -> list[str]:
        """Lowercase query words above the minimum length, minus stop words, deduplicated."""
        stop_words = set(self.config.stop_words)
        terms: list[str] = []
        for word in TERM_SPLIT_RE.split(query.lower()):
            if len(word) >= self.config.min_term_length and word not in stop_words:
                if word not in terms:
                    terms.append(word)
        return terms

    def score_files(self, terms: Sequence[str]) -> list[tuple[str, int]]:
        """
        Score every file against query terms.

        Returns:
            ``(path, score)`` pairs with positive score, highest first, ties in batch order
        """
        config = self.config
        scores: list[tuple[str, int]] = []
        for path, source in self.session.files.items():
            content = source.content.lower()
            lower_path = path.lower()
            score = 0
            for term in terms:
                score += content.count(term) * config.content_match_weight
                if term in lower_path:
                    score += config.path_match_weight

            analysis = self.session.get_analysis(path)
            if analysis is not None:
                for symbol in analysis.functions + analysis.classes:
                    name = symbol.name.lower()
                    if any(term in name for term in terms):
                        score += config.symbol_match_weight

            if score > 0:
                scores.append((path, score))

        scores.sort(key=lambda item: item[1], reverse=True)
        return scores

    def find_relevant_symbols(self, terms: Sequence[str]) -> list[SymbolTableEntry]:
        if not terms:
            return []
        return [
            entry
            for entry in self.session.symbol_table
            if any(term in entry.name.lower() for term in terms)
        ]

    # ========== File-radius ==========

    def build_context_for_file(
        self,
        path: str,
        radius: Optional[int] = None,
        max_tokens: Optional[int] = None,
    ) -> ContextWindow:
        """
        Build a context window around one file.

        The seed file is always included. Its direct dependencies follow,
        then (radius > 1) its dependents; each of those is skipped when it
        would exceed the budget.

        Args:
            path: Seed file path
            radius: 1 for dependencies only, 2 or more to add dependents
            max_tokens: Token budget (config default if omitted)

        Returns:
            ContextWindow; empty for unknown paths
        """
        if path not in self.session:
            return ContextWindow()

        radius = self.config.default_radius if radius is None else radius
        budget = self.config.default_max_tokens if max_tokens is None else max_tokens
        builder = _WindowBuilder(self, budget)

        builder.add(path, self.config.seed_relevance)
        for dependency in self.graph.get_file_dependencies(path):
            builder.try_add(dependency, self.config.dependency_relevance)
        if radius > 1:
            for dependent in self.graph.get_file_dependents(path):
                builder.try_add(dependent, self.config.dependent_relevance)

        return builder.build(self._declared_symbols(builder.files))

    # ========== Refactor ==========

    def build_context_for_refactoring(
        self, paths: Sequence[str], max_tokens: Optional[int] = None
    ) -> ContextWindow:
        """
        Build a context window for a multi-file change.

        Every known member is included; then each member's direct
        dependencies, skipping files already present. Dependencies are
        budget-checked only when ``max_tokens`` is given.
        """
        builder = _WindowBuilder(self, max_tokens)
        for path in paths:
            builder.add(path, self.config.refactor_member_relevance)
        for path in paths:
            if path not in self.session:
                continue
            for dependency in self.graph.get_file_dependencies(path):
                builder.try_add(dependency, self.config.refactor_dependency_relevance)
        return builder.build(self._declared_symbols(builder.files))

    # ========== Cross-file references ==========

    def get_cross_file_references(self, name: str) -> CrossFileReferences:
        """
        Find a symbol's definition and the lines of importing files mentioning it.

        The scan is textual: every line containing ``name`` in every file
        listed in ``imported_in`` is reported.
        """
        definition = self.graph.get_symbol_usages(name)
        if definition is None:
            return CrossFileReferences(definition=None)

        usages: list[ReferenceSite] = []
        for importer in definition.imported_in:
            content = self.session.get_content(importer)
            if content is None:
                continue
            for index, line in enumerate(content.split("\n")):
                if name in line:
                    usages.append(ReferenceSite(file=importer, line=index + 1, context=line.strip()))

        return CrossFileReferences(definition=definition, usages=tuple(usages))

    # ========== Repository reports ==========

    def detect_architecture_patterns(self) -> list[ArchitecturePattern]:
        return detect_architecture_patterns(
            self.session.paths, self.analysis_config.min_component_files
        )

    def find_code_duplication(self) -> list[DuplicationMatch]:
        return find_code_duplication(
            [(path, source.content) for path, source in self.session.files.items()],
            threshold=self.analysis_config.duplication_threshold,
            max_chars=self.analysis_config.fragment_max_chars,
        )

    def find_circular_dependencies(self) -> list[list[str]]:
        return self.analytics.find_circular_dependencies()

    def get_impact_analysis(self, path: str) -> ImpactAnalysis:
        return self.analytics.get_impact_analysis(path)

    def get_architecture_metrics(self) -> ArchitectureMetrics:
        return self.analytics.get_architecture_metrics()

    def get_graph(self) -> dict[str, Any]:
        return self.graph.to_dict()

    def get_symbol_table(self) -> dict[str, Any]:
        return self.session.symbol_table.to_dict()

    # ========== Helpers ==========

    def estimate_tokens(self, text: str) -> int:
        return estimate_tokens(text, self.config.chars_per_token)

    def _file_context(self, path: str, relevance: float) -> Optional[FileContext]:
        content = self.session.get_content(path)
        if content is None:
            return None
        analysis = self.session.get_analysis(path) or FileAnalysis.empty(path)
        return FileContext(
            path=path,
            content=content,
            relevance_score=relevance,
            relationships=FileRelationships(
                imports=tuple(analysis.import_sources),
                exports=tuple(analysis.export_names),
                dependents=tuple(self.graph.get_file_dependents(path)),
            ),
            tokens=self.estimate_tokens(content),
        )

    def _declared_symbols(self, files: Sequence[FileContext]) -> list[SymbolTableEntry]:
        """Symbol table entries for functions and classes declared in the given files."""
        table = self.session.symbol_table
        entries: list[SymbolTableEntry] = []
        for file_context in files:
            analysis = self.session.get_analysis(file_context.path)
            if analysis is None:
                continue
            for symbol in analysis.functions + analysis.classes:
                entry = table.get(file_context.path, symbol.name)
                if entry is not None and entry not in entries:
                    entries.append(entry)
        return entries
