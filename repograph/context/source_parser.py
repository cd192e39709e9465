"""
Source parser: extension-based dispatch to a parser front end.

Both front ends produce the same FileAnalysis shape. Parsing never raises:
any failure degrades to an empty analysis carrying ``parse_error``, so one
malformed file cannot abort a repository scan.
"""

from __future__ import annotations

from typing import Callable, Optional

from repograph.context.heuristic_parser import HeuristicParser
from repograph.context.languages import LanguageSpec, detect_language
from repograph.context.symbol_extractor import SymbolExtractor
from repograph.context.tree_sitter_parser import TreeSitterParser
from repograph.core.config import ParserConfig
from repograph.models.analysis import FileAnalysis
from repograph.models.base import ParseStrategy
from repograph.utils.logging import ComponentLogger

FrontEnd = Callable[[str, str, LanguageSpec], FileAnalysis]


class SourceParser:
    """Parse repository files into FileAnalysis records."""

    def __init__(self, config: Optional[ParserConfig] = None) -> None:
        self.config = config or ParserConfig()
        self.logger = ComponentLogger("source_parser")
        self.grammar_extractor = SymbolExtractor(
            TreeSitterParser(), record_function_bodies=self.config.record_function_bodies
        )
        self.heuristic_parser = HeuristicParser(
            record_function_bodies=self.config.record_function_bodies
        )
        self._front_ends: dict[ParseStrategy, FrontEnd] = {
            ParseStrategy.GRAMMAR: self.grammar_extractor.extract,
            ParseStrategy.HEURISTIC: self.heuristic_parser.extract,
        }

    def detect_language(self, path: str) -> LanguageSpec:
        return detect_language(path)

    def parse_file(self, content: str, path: str) -> FileAnalysis:
        """
        Parse one file.

        Args:
            content: File text
            path: Repository-relative path (selects the front end by extension)

        Returns:
            FileAnalysis; empty for unsupported languages and failed parses
        """
        spec = detect_language(path)
        front_end = self._front_ends.get(spec.strategy)
        if front_end is None:
            return FileAnalysis.empty(path, spec.language, spec.strategy)

        if len(content) > self.config.max_file_chars:
            self.logger.warning(
                "Skipping oversized file",
                path=path,
                size=len(content),
                limit=self.config.max_file_chars,
            )
            return FileAnalysis.empty(
                path, spec.language, spec.strategy, error="file exceeds max_file_chars"
            )

        try:
            return front_end(content, path, spec)
        except Exception as e:
            self.logger.warning(f"Failed to parse {path}: {e}", path=path)
            return FileAnalysis.empty(path, spec.language, spec.strategy, error=str(e))
