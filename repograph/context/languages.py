"""
Extension lookup table selecting a parser front end per language.

Each extension maps to a LanguageSpec whose ``strategy`` tags the front end
capable of handling it: the tree-sitter grammar extractor, the line
heuristic parser, or none (the file still becomes a graph node and can be
packed into context windows, it just contributes no symbols).
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Optional

from repograph.models.base import ParseStrategy


@dataclass(frozen=True)
class LanguageSpec:
    """Language tag, parse strategy and tree-sitter grammar name."""

    language: str
    strategy: ParseStrategy
    grammar: Optional[str] = None


_JAVASCRIPT = LanguageSpec("javascript", ParseStrategy.GRAMMAR, "javascript")
_TYPESCRIPT = LanguageSpec("typescript", ParseStrategy.GRAMMAR, "typescript")
_TSX = LanguageSpec("typescript", ParseStrategy.GRAMMAR, "tsx")
_PYTHON = LanguageSpec("python", ParseStrategy.HEURISTIC)

LANGUAGE_SPECS: dict[str, LanguageSpec] = {
    # JavaScript
    ".js": _JAVASCRIPT,
    ".jsx": _JAVASCRIPT,
    ".mjs": _JAVASCRIPT,
    ".cjs": _JAVASCRIPT,
    # TypeScript
    ".ts": _TYPESCRIPT,
    ".mts": _TYPESCRIPT,
    ".cts": _TYPESCRIPT,
    ".tsx": _TSX,
    # Python
    ".py": _PYTHON,
    ".pyi": _PYTHON,
}

# Recognized for the language tag only
OTHER_LANGUAGES: dict[str, str] = {
    ".c": "c",
    ".h": "c",
    ".cpp": "cpp",
    ".cc": "cpp",
    ".hpp": "cpp",
    ".java": "java",
    ".kt": "kotlin",
    ".go": "go",
    ".rs": "rust",
    ".rb": "ruby",
    ".php": "php",
    ".cs": "csharp",
    ".swift": "swift",
    ".scala": "scala",
    ".vue": "vue",
    ".json": "json",
    ".md": "markdown",
    ".yml": "yaml",
    ".yaml": "yaml",
}

UNKNOWN = LanguageSpec("unknown", ParseStrategy.UNSUPPORTED)


def detect_language(path: str) -> LanguageSpec:
    """
    Look up the language spec for a repository path by extension.

    Args:
        path: Repository-relative path

    Returns:
        LanguageSpec, ``UNKNOWN`` for unrecognized extensions
    """
    suffix = PurePosixPath(path).suffix.lower()
    spec = LANGUAGE_SPECS.get(suffix)
    if spec is not None:
        return spec
    language = OTHER_LANGUAGES.get(suffix)
    if language is not None:
        return LanguageSpec(language, ParseStrategy.UNSUPPORTED)
    return UNKNOWN


def get_extensions_for_language(language: str) -> list[str]:
    """Get parseable file extensions for a language."""
    return [ext for ext, spec in LANGUAGE_SPECS.items() if spec.language == language]
