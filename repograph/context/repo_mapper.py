"""
Repository Mapper - analysis entry point.

Validates an input batch, parses every file, builds the repository graph
and symbol table, and returns everything as an AnalysisSession.
"""

from __future__ import annotations

import time
from typing import Any, Optional
from uuid import uuid4

from repograph.context.dependency_graph import RepositoryGraph, ResolverFactory
from repograph.context.resolver import NameBasedResolver
from repograph.context.source_parser import SourceParser
from repograph.core.config import RepographConfig
from repograph.core.session import AnalysisSession, validate_batch
from repograph.models.analysis import FileAnalysis, SourceFile
from repograph.utils.logging import ComponentLogger, get_session_logger


class RepositoryMapper:
    """
    Map a repository's structure from a batch of pre-fetched files.

    Coordinates:
    - batch validation
    - per-file parsing (grammar or heuristic front end)
    - the ordered graph build passes
    """

    def __init__(
        self,
        config: Optional[RepographConfig] = None,
        resolver_factory: ResolverFactory = NameBasedResolver,
    ) -> None:
        """
        Initialize the repository mapper.

        Args:
            config: Configuration (defaults if omitted)
            resolver_factory: Symbol resolution strategy passed to the graph builder
        """
        self.config = config or RepographConfig()
        self.logger = ComponentLogger("repo_mapper")
        self.parser = SourceParser(self.config.parser)
        self.resolver_factory = resolver_factory

    def map_repository(self, files: Any) -> AnalysisSession:
        """
        Analyze a batch of files.

        Args:
            files: Ordered list of ``{"path": str, "content": str}`` mappings or
                SourceFile objects, no duplicate paths

        Returns:
            AnalysisSession with analyses, graph and symbol table

        Raises:
            InvalidBatchError: If the batch violates the input contract
        """
        sources = validate_batch(files)
        session_id = uuid4().hex[:12]
        session_logger = get_session_logger(session_id)
        self.logger.info(f"Mapping repository batch of {len(sources)} files", session_id=session_id)

        session_logger.pass_start("parse")
        started = time.perf_counter()
        parsed_files: dict[str, SourceFile] = {}
        analyses: dict[str, FileAnalysis] = {}
        for source in sources:
            analysis = self.parser.parse_file(source.content, source.path)
            analyses[source.path] = analysis
            parsed_files[source.path] = SourceFile(
                path=source.path,
                content=source.content,
                language=analysis.language,
            )
        session_logger.pass_complete("parse", (time.perf_counter() - started) * 1000)

        failed = [a.path for a in analyses.values() if a.parse_error]
        if failed:
            self.logger.warning(f"{len(failed)} files could not be parsed", files=failed[:10])

        graph = RepositoryGraph(self.config.graph, resolver_factory=self.resolver_factory)
        graph.build_graph(analyses, session_logger=session_logger)

        self.logger.info(
            "Repository mapped",
            session_id=session_id,
            files=len(analyses),
            nodes=graph.node_count,
            edges=graph.edge_count,
        )

        return AnalysisSession(
            files=parsed_files,
            analyses=analyses,
            graph=graph,
            config=self.config,
            session_id=session_id,
        )

    def parse_file(self, content: str, path: str) -> FileAnalysis:
        """Parse a single file outside of a session."""
        return self.parser.parse_file(content, path)
