"""
Line-based heuristic parser for Python sources.

No grammar is involved: declarations are recognized by regular expressions
and block extents by indentation. The output has the same shape as the
grammar front end so the graph builder treats both alike.
"""

from __future__ import annotations

import builtins
import keyword
import re
from dataclasses import dataclass, field
from typing import Optional

from repograph.context.languages import LanguageSpec
from repograph.models.analysis import ExportEdge, FileAnalysis, ImportEdge, PropertyInfo, Symbol
from repograph.models.base import CodeSpan, ParseStrategy, Scope, SymbolKind
from repograph.utils.logging import ComponentLogger

FROM_IMPORT_RE = re.compile(r"^\s*from\s+([\w.]+)\s+import\s+(.+)$")
IMPORT_RE = re.compile(r"^\s*import\s+(.+)$")
DEF_RE = re.compile(r"^(\s*)(?:async\s+)?def\s+([A-Za-z_]\w*)\s*\((.*)$")
CLASS_RE = re.compile(r"^(\s*)class\s+([A-Za-z_]\w*)\s*(?:\((.*)\))?\s*:")
ASSIGN_RE = re.compile(r"^([A-Za-z_]\w*)\s*(?::[^=]+)?=(?!=)")
SELF_ASSIGN_RE = re.compile(r"^\s*self\.([A-Za-z_]\w*)\s*(?::[^=]+)?=(?!=)")
ALL_RE = re.compile(r"^__all__\s*(?::[^=]+)?\+?=")
QUOTED_NAME_RE = re.compile(r"['\"]([A-Za-z_]\w*)['\"]")

BRANCH_RE = re.compile(r"\b(?:if|elif|while|for|except|and|or)\b")
CALL_RE = re.compile(r"(?<!def )(?<!class )(?<![\w.])([A-Za-z_]\w*)\s*\(")
METHOD_CALL_RE = re.compile(r"\.([A-Za-z_]\w*)\s*\(")
IDENTIFIER_RE = re.compile(r"(?<![\w.])([A-Za-z_]\w*)")
STRING_RE = re.compile(
    r"(?:\b[rRbBuUfF]{1,2})?(?:'''.*?'''|\"\"\".*?\"\"\"|'(?:\\.|[^'\\\n])*'|\"(?:\\.|[^\"\\\n])*\")", re.S
)
COMMENT_RE = re.compile(r"#.*$", re.M)

ASSIGN_TARGETS_RE = re.compile(
    r"^\s*([A-Za-z_]\w*(?:\s*,\s*[A-Za-z_]\w*)*)\s*(?::[^=\n]+)?(?:[-+*/%|&^]|//|\*\*)?=(?!=)", re.M
)
FOR_TARGETS_RE = re.compile(r"\bfor\s+([\w\s,()]+?)\s+in\b")
AS_TARGET_RE = re.compile(r"\bas\s+([A-Za-z_]\w*)")
LAMBDA_RE = re.compile(r"\blambda\s+([^:]*):")
NESTED_DEF_PARAMS_RE = re.compile(r"^\s*(?:async\s+)?def\s+\w+\s*\(([^)]*)", re.M)
NESTED_DECL_RE = re.compile(r"^\s*(?:async\s+)?(?:def|class)\s+([A-Za-z_]\w*)", re.M)
GLOBAL_DECL_RE = re.compile(r"^\s*(?:global|nonlocal)\s+(.+)$", re.M)
IMPORT_BINDING_RE = re.compile(r"^\s*(?:from\s+[\w.]+\s+)?import\s+(.+)$", re.M)

PY_KEYWORDS = frozenset(keyword.kwlist) | frozenset({"self", "cls", "print"})
PY_BUILTINS = frozenset(dir(builtins))


@dataclass
class _Block:
    """An open ``def`` or ``class`` block."""

    kind: SymbolKind
    name: str
    indent: int
    line: int
    parent_class: Optional[str] = None
    scope: Scope = Scope.GLOBAL
    superclass: Optional[str] = None
    params: str = ""
    body_start: int = 0
    # Suite written on the header line, as in ``def f(): return g()``
    inline: str = ""
    end: int = 0
    methods: list["_Block"] = field(default_factory=list)
    properties: dict[str, PropertyInfo] = field(default_factory=dict)


def _indent_of(line: str) -> int:
    return len(line) - len(line.lstrip())


def _strip_code(text: str) -> str:
    """Remove string literals and comments."""
    return COMMENT_RE.sub("", STRING_RE.sub('""', text))


def _mask_strings(text: str) -> str:
    """Blank out string literals, keeping their line breaks so line numbers stay aligned."""
    return STRING_RE.sub(lambda m: '""' + "\n" * m.group(0).count("\n"), text)


def _split_top_level(text: str) -> list[str]:
    """Split on commas that are not nested in brackets."""
    parts: list[str] = []
    depth = 0
    current: list[str] = []
    for char in text:
        if char in "([{":
            depth += 1
        elif char in ")]}":
            depth -= 1
        if char == "," and depth == 0:
            parts.append("".join(current))
            current = []
        else:
            current.append(char)
    parts.append("".join(current))
    return [p.strip() for p in parts if p.strip()]


def _parameter_names(params: str) -> list[str]:
    names = []
    for part in _split_top_level(params):
        name = part.split(":", 1)[0].split("=", 1)[0].strip().lstrip("*").strip()
        if name and name not in ("/", "*") and name.isidentifier():
            names.append(name)
    return names


class HeuristicParser:
    """Extract Python symbols with line heuristics."""

    def __init__(self, record_function_bodies: bool = True) -> None:
        self.logger = ComponentLogger("heuristic_parser")
        self.record_function_bodies = record_function_bodies

    def extract(self, content: str, path: str, spec: LanguageSpec) -> FileAnalysis:
        """
        Extract the structural summary of one Python file.

        Args:
            content: Source text
            path: Repository-relative path
            spec: Language spec of the file

        Returns:
            FileAnalysis produced by the heuristic front end
        """
        lines = content.splitlines()
        imports = self._extract_imports(_mask_strings(content).splitlines(), path)
        exports = self._extract_exports(lines, path)
        ordered, blocks = self._extract_blocks(lines, path)

        symbols: list[Symbol] = []
        bodies: list[str] = []
        for item in ordered:
            if isinstance(item, Symbol):
                symbols.append(item)
                continue
            symbols.append(self._finish_block(item, lines, path))
        if self.record_function_bodies:
            for block in blocks:
                if block.kind == SymbolKind.FUNCTION:
                    bodies.append("\n".join(lines[block.line - 1 : block.end]))

        calls: dict[str, None] = {}
        for name in self._find_calls(_strip_code(content)):
            calls[name] = None

        self.logger.debug(
            "Extracted symbols",
            path=path,
            symbols=len(symbols),
            imports=len(imports),
        )

        return FileAnalysis(
            path=path,
            language=spec.language,
            strategy=ParseStrategy.HEURISTIC,
            imports=tuple(imports),
            exports=tuple(exports),
            symbols=tuple(symbols),
            function_bodies=tuple(bodies),
            calls=tuple(calls),
        )

    # ========== Imports / Exports ==========

    def _extract_imports(self, lines: list[str], path: str) -> list[ImportEdge]:
        """
        Extract import statements.

        Handles patterns like:
        - import os, sys
        - import numpy as np
        - from .models import (User, Group as G)
        """
        imports: list[ImportEdge] = []
        index = 0
        while index < len(lines):
            line = COMMENT_RE.sub("", lines[index])
            index += 1

            match = FROM_IMPORT_RE.match(line)
            if match:
                module, names = match.group(1), match.group(2).strip()
                if names.startswith("(") and ")" not in names:
                    while index < len(lines) and ")" not in names:
                        names += " " + COMMENT_RE.sub("", lines[index]).strip()
                        index += 1
                while names.endswith("\\") and index < len(lines):
                    names = names[:-1] + " " + COMMENT_RE.sub("", lines[index]).strip()
                    index += 1
                specifiers = tuple(
                    part.split(" as ")[0].strip()
                    for part in names.strip("()").split(",")
                    if part.strip()
                )
                imports.append(
                    ImportEdge(
                        file=path,
                        source=module,
                        specifiers=specifiers,
                        is_external=not module.startswith("."),
                    )
                )
                continue

            match = IMPORT_RE.match(line)
            if match:
                for part in match.group(1).split(","):
                    pieces = part.strip().split(" as ")
                    module = pieces[0].strip()
                    if not module:
                        continue
                    local = pieces[1].strip() if len(pieces) > 1 else module
                    imports.append(
                        ImportEdge(
                            file=path,
                            source=module,
                            specifiers=(local,),
                            is_external=not module.startswith("."),
                            is_module=True,
                        )
                    )
        return imports

    def _extract_exports(self, lines: list[str], path: str) -> list[ExportEdge]:
        """Extract names listed in ``__all__``."""
        exports: list[ExportEdge] = []
        seen: set[str] = set()
        index = 0
        while index < len(lines):
            line = lines[index]
            index += 1
            if not ALL_RE.match(line):
                continue
            text = line
            while index < len(lines) and text.count("[") + text.count("(") > text.count("]") + text.count(")"):
                text += lines[index]
                index += 1
            for name in QUOTED_NAME_RE.findall(text):
                if name not in seen:
                    seen.add(name)
                    exports.append(ExportEdge(file=path, name=name))
        return exports

    # ========== Declarations ==========

    def _extract_blocks(
        self, lines: list[str], path: str
    ) -> tuple[list[object], list[_Block]]:
        """
        Find def/class blocks and global variables.

        Returns:
            Tuple of (source-ordered top-level items, every def/class block)
        """
        ordered: list[object] = []
        blocks: list[_Block] = []
        stack: list[_Block] = []
        in_string = False

        index = 0
        while index < len(lines):
            line = lines[index]
            line_no = index + 1
            index += 1
            stripped = line.strip()

            # Track triple-quoted strings so docstring lines are not read as code
            if in_string:
                if stripped.count('"""') % 2 == 1 or stripped.count("'''") % 2 == 1:
                    in_string = False
                continue
            if not stripped or stripped.startswith("#"):
                continue

            indent = _indent_of(line)
            while stack and indent <= stack[-1].indent:
                closed = stack.pop()
                closed.end = self._block_end(lines, closed)

            if stripped.count('"""') % 2 == 1 or stripped.count("'''") % 2 == 1:
                in_string = True

            parent = stack[-1] if stack else None

            match = CLASS_RE.match(line)
            if match:
                bases = _split_top_level(match.group(3) or "")
                block = _Block(
                    kind=SymbolKind.CLASS,
                    name=match.group(2),
                    indent=indent,
                    line=line_no,
                    scope=Scope.LOCAL if parent else Scope.GLOBAL,
                    superclass=self._first_base(bases),
                    body_start=line_no,
                )
                stack.append(block)
                blocks.append(block)
                self._inline_properties(block, line[match.end() :], line_no)
                if parent is None or parent.kind == SymbolKind.FUNCTION:
                    ordered.append(block)
                continue

            match = DEF_RE.match(line)
            if match:
                params, sig_end, tail = self._collect_signature(lines, index - 1, match.group(3))
                block = _Block(
                    kind=SymbolKind.FUNCTION,
                    name=match.group(2),
                    indent=indent,
                    line=line_no,
                    scope=Scope.LOCAL if parent else Scope.GLOBAL,
                    params=params,
                    body_start=sig_end,
                    inline=self._inline_suite(tail),
                )
                stack.append(block)
                blocks.append(block)
                if parent is not None and parent.kind == SymbolKind.CLASS:
                    block.parent_class = parent.name
                    parent.methods.append(block)
                else:
                    ordered.append(block)
                index = max(index, sig_end)
                continue

            if parent is None:
                match = ASSIGN_RE.match(line)
                if match and match.group(1) != "__all__":
                    ordered.append(
                        Symbol(
                            name=match.group(1),
                            kind=SymbolKind.VARIABLE,
                            file=path,
                            span=CodeSpan(line=line_no),
                            scope=Scope.GLOBAL,
                        )
                    )
            elif parent.kind == SymbolKind.CLASS:
                match = ASSIGN_RE.match(stripped)
                if match and match.group(1) not in parent.properties:
                    parent.properties[match.group(1)] = PropertyInfo(
                        name=match.group(1), span=CodeSpan(line=line_no), is_static=True
                    )
            else:
                match = SELF_ASSIGN_RE.match(line)
                owner = stack[-2] if len(stack) > 1 else None
                if match and parent.name == "__init__" and owner and owner.kind == SymbolKind.CLASS:
                    if match.group(1) not in owner.properties:
                        owner.properties[match.group(1)] = PropertyInfo(
                            name=match.group(1), span=CodeSpan(line=line_no)
                        )

        while stack:
            closed = stack.pop()
            closed.end = self._block_end(lines, closed)

        return ordered, blocks

    def _collect_signature(
        self, lines: list[str], start: int, rest: str
    ) -> tuple[str, int, str]:
        """
        Gather a possibly multi-line parameter list.

        Returns:
            Tuple of (parameter text, 1-based line number of the signature end,
            text after the closing parenthesis)
        """
        text = rest
        index = start
        depth = 1 + text.count("(") - text.count(")")
        while depth > 0 and index + 1 < len(lines):
            index += 1
            text += " " + lines[index].strip()
            depth = 1 + text.count("(") - text.count(")")
        close = self._matching_paren(text)
        return text[:close].strip(), index + 1, text[close + 1 :]

    def _inline_suite(self, tail: str) -> str:
        """Statements following the header colon on the same line."""
        if ":" not in tail:
            return ""
        return tail.split(":", 1)[1].strip()

    def _inline_properties(self, block: _Block, suite: str, line_no: int) -> None:
        """Record class attributes assigned on a ``class X: a = 1`` header line."""
        for statement in _strip_code(suite).split(";"):
            match = ASSIGN_RE.match(statement.strip())
            if match and match.group(1) not in block.properties:
                block.properties[match.group(1)] = PropertyInfo(
                    name=match.group(1), span=CodeSpan(line=line_no), is_static=True
                )

    def _matching_paren(self, text: str) -> int:
        depth = 1
        for position, char in enumerate(text):
            if char == "(":
                depth += 1
            elif char == ")":
                depth -= 1
                if depth == 0:
                    return position
        return len(text)

    def _block_end(self, lines: list[str], block: _Block) -> int:
        """Get the 1-based last line of a block: the last non-blank deeper-indented line."""
        end = block.body_start
        for index in range(block.body_start, len(lines)):
            line = lines[index]
            if not line.strip():
                continue
            if _indent_of(line) <= block.indent:
                break
            end = index + 1
        return end

    def _first_base(self, bases: list[str]) -> Optional[str]:
        for base in bases:
            if "=" in base or base.startswith("*"):
                continue
            name = base.split("[", 1)[0].strip().rsplit(".", 1)[-1]
            if name and name != "object":
                return name
        return None

    # ========== Function bodies ==========

    def _finish_block(self, block: _Block, lines: list[str], path: str) -> Symbol:
        """Convert a block into a Symbol, analyzing function bodies."""
        if block.kind == SymbolKind.CLASS:
            return Symbol(
                name=block.name,
                kind=SymbolKind.CLASS,
                file=path,
                span=CodeSpan(line=block.line, column=block.indent, end_line=block.end),
                scope=block.scope,
                superclass=block.superclass,
                methods=tuple(self._finish_block(m, lines, path) for m in block.methods),
                properties=tuple(block.properties.values()),
            )

        parameters = _parameter_names(block.params)
        body = _strip_code("\n".join([block.inline, *lines[block.body_start : block.end]]))
        complexity = 1 + len(BRANCH_RE.findall(body))
        calls = tuple(dict.fromkeys(self._find_calls(body)))
        bound = set(parameters) | self._bound_names(body)
        references = tuple(
            dict.fromkeys(
                name
                for name in IDENTIFIER_RE.findall(body)
                if name not in bound and name not in PY_KEYWORDS and name not in PY_BUILTINS
            )
        )

        return Symbol(
            name=block.name,
            kind=SymbolKind.FUNCTION,
            file=path,
            span=CodeSpan(line=block.line, column=block.indent, end_line=block.end),
            scope=Scope.LOCAL if block.parent_class else block.scope,
            parameters=tuple(parameters),
            complexity=complexity,
            calls=calls,
            references=references,
            parent_class=block.parent_class,
        )

    def _find_calls(self, code: str) -> list[str]:
        """Find callee names: plain ``name(`` calls and ``obj.method(`` calls, in order."""
        found: list[tuple[int, str]] = []
        for match in CALL_RE.finditer(code):
            if match.group(1) not in keyword.kwlist:
                found.append((match.start(1), match.group(1)))
        for match in METHOD_CALL_RE.finditer(code):
            found.append((match.start(1), match.group(1)))
        found.sort()
        return [name for _, name in found]

    def _bound_names(self, body: str) -> set[str]:
        """Names bound inside a function body."""
        bound: set[str] = set()
        for match in ASSIGN_TARGETS_RE.finditer(body):
            bound.update(name.strip() for name in match.group(1).split(","))
        for match in FOR_TARGETS_RE.finditer(body):
            bound.update(re.findall(r"[A-Za-z_]\w*", match.group(1)))
        bound.update(AS_TARGET_RE.findall(body))
        bound.update(NESTED_DECL_RE.findall(body))
        for match in LAMBDA_RE.finditer(body):
            bound.update(_parameter_names(match.group(1)))
        for match in GLOBAL_DECL_RE.finditer(body):
            bound.update(name.strip() for name in match.group(1).split(","))
        for match in IMPORT_BINDING_RE.finditer(body):
            for part in match.group(1).strip("()").split(","):
                pieces = part.strip().split(" as ")
                name = pieces[-1].strip().split(".", 1)[0]
                if name:
                    bound.add(name)
        for match in NESTED_DEF_PARAMS_RE.finditer(body):
            bound.update(_parameter_names(match.group(1)))
        return bound
