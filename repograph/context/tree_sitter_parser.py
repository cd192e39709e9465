"""
Tree-sitter grammar loading and parsing.

Grammars come from tree-sitter-language-pack and are cached per grammar
name. A grammar that cannot be loaded is remembered as unavailable so the
warning is logged once per parser instance.
"""

from __future__ import annotations

from typing import Any, Optional

from repograph.utils.logging import ComponentLogger


class TreeSitterParser:
    """Parse source text into tree-sitter syntax trees."""

    def __init__(self) -> None:
        """Initialize the parser."""
        self.logger = ComponentLogger("tree_sitter")
        self._parsers: dict[str, Optional[Any]] = {}

    def _get_parser(self, grammar: str) -> Optional[Any]:
        """
        Get or create parser for a grammar.

        Args:
            grammar: Grammar name (e.g., "javascript", "typescript", "tsx")

        Returns:
            Tree-sitter parser for the grammar, or None if not available
        """
        if grammar not in self._parsers:
            try:
                from tree_sitter_language_pack import get_parser

                self._parsers[grammar] = get_parser(grammar)
                self.logger.debug(f"Loaded parser for {grammar}")
            except Exception as e:
                self.logger.warning(f"No parser available for {grammar}: {e}")
                self._parsers[grammar] = None
        return self._parsers[grammar]

    def is_available(self, grammar: str) -> bool:
        return self._get_parser(grammar) is not None

    def parse_bytes(self, content: bytes, grammar: str) -> Optional[Any]:
        """
        Parse source code bytes into a syntax tree.

        Syntax errors do not fail the parse: tree-sitter marks them with
        ERROR nodes and the rest of the tree stays usable.

        Args:
            content: Source code as bytes
            grammar: Grammar name

        Returns:
            Tree-sitter tree or None if the grammar is unavailable or parsing failed
        """
        parser = self._get_parser(grammar)
        if parser is None:
            return None

        try:
            return parser.parse(content)
        except Exception as e:
            self.logger.warning(f"Failed to parse content: {e}", grammar=grammar)
            return None

    def parse_string(self, content: str, grammar: str) -> Optional[Any]:
        """Parse a source code string into a syntax tree."""
        return self.parse_bytes(content.encode("utf-8"), grammar)
