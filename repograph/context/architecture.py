"""
Architecture heuristics over file paths and contents.

Pattern detection looks only at path keywords; duplication detection
compares word vocabularies. Both are coarse signals, not proofs.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from itertools import combinations

from repograph.models.metrics import ArchitecturePattern, DuplicationMatch

WORD_SPLIT_RE = re.compile(r"\W+")
COMPONENT_EXTENSIONS = (".vue", ".jsx", ".tsx")


def detect_architecture_patterns(
    paths: Sequence[str], min_component_files: int = 5
) -> list[ArchitecturePattern]:
    """
    Suggest architectural styles from file naming.

    Args:
        paths: Repository-relative file paths
        min_component_files: Component-based needs more than this many component files

    Returns:
        Detected patterns, in the order MVC, layered, component-based, REST API
    """
    lowered = [(path, f"/{path.lower()}") for path in paths]

    def matching(*keywords: str) -> tuple[str, ...]:
        return tuple(p for p, low in lowered if any(k in low for k in keywords))

    def any_match(*keywords: str) -> bool:
        return any(k in low for _, low in lowered for k in keywords)

    patterns: list[ArchitecturePattern] = []

    if any_match("model") and any_match("view", "component") and any_match("controller"):
        patterns.append(
            ArchitecturePattern(
                name="MVC (Model-View-Controller)",
                confidence=0.9,
                files=matching("model", "view", "controller"),
            )
        )

    if any_match("service") and any_match("repository", "dao"):
        patterns.append(
            ArchitecturePattern(
                name="Layered Architecture",
                confidence=0.85,
                files=matching("service", "repository", "controller"),
            )
        )

    component_files = tuple(
        p for p, low in lowered if "component" in low or low.endswith(COMPONENT_EXTENSIONS)
    )
    if len(component_files) > min_component_files:
        patterns.append(
            ArchitecturePattern(
                name="Component-Based Architecture", confidence=0.95, files=component_files
            )
        )

    if any_match("route", "/api/"):
        patterns.append(
            ArchitecturePattern(
                name="REST API Architecture",
                confidence=0.8,
                files=matching("route", "/api/", "endpoint"),
            )
        )

    return patterns


def _vocabulary(content: str) -> set[str]:
    return {token for token in WORD_SPLIT_RE.split(content) if len(token) > 2}


def calculate_similarity(first: str, second: str) -> float:
    """Jaccard similarity of the word sets (tokens longer than 2 chars) of two texts."""
    words_a = _vocabulary(first)
    words_b = _vocabulary(second)
    union = words_a | words_b
    if not union:
        return 0.0
    return len(words_a & words_b) / len(union)


def extract_common_fragment(first: str, second: str, max_chars: int = 200) -> str:
    """
    Longest run of identical consecutive lines shared by two texts.

    Returns:
        The run joined by newlines, cut to ``max_chars`` with ``...`` appended
    """
    lines_a = first.split("\n")
    lines_b = second.split("\n")
    best_length = 0
    best_end = 0
    previous = [0] * (len(lines_b) + 1)

    for i, line_a in enumerate(lines_a, start=1):
        current = [0] * (len(lines_b) + 1)
        for j, line_b in enumerate(lines_b, start=1):
            if line_a == line_b:
                current[j] = previous[j - 1] + 1
                if current[j] > best_length:
                    best_length = current[j]
                    best_end = i
        previous = current

    fragment = "\n".join(lines_a[best_end - best_length : best_end])
    if len(fragment) > max_chars:
        return fragment[:max_chars] + "..."
    return fragment


def find_code_duplication(
    files: Sequence[tuple[str, str]],
    threshold: float = 0.7,
    max_chars: int = 200,
) -> list[DuplicationMatch]:
    """
    Report file pairs whose vocabularies overlap above ``threshold``.

    Args:
        files: ``(path, content)`` pairs
        threshold: Minimum Jaccard similarity (exclusive)
        max_chars: Maximum fragment length

    Returns:
        Matches sorted by similarity, highest first
    """
    vocabularies = [(path, content, _vocabulary(content)) for path, content in files]
    matches: list[DuplicationMatch] = []

    for (path_a, content_a, words_a), (path_b, content_b, words_b) in combinations(vocabularies, 2):
        union = words_a | words_b
        if not union:
            continue
        similarity = len(words_a & words_b) / len(union)
        if similarity > threshold:
            matches.append(
                DuplicationMatch(
                    similarity=similarity,
                    files=(path_a, path_b),
                    fragment=extract_common_fragment(content_a, content_b, max_chars),
                )
            )

    matches.sort(key=lambda m: m.similarity, reverse=True)
    return matches
