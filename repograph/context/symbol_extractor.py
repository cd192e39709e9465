"""
Symbol extractor using Tree-sitter AST.

Extracts functions, classes, imports, exports and global variables from
JavaScript and TypeScript sources, together with per-function complexity,
callee names and free-variable references.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterator, Optional

from repograph.context.languages import LanguageSpec
from repograph.context.tree_sitter_parser import TreeSitterParser
from repograph.models.analysis import ExportEdge, FileAnalysis, ImportEdge, PropertyInfo, Symbol
from repograph.models.base import CodeSpan, ExportKind, ParseStrategy, Scope, SymbolKind
from repograph.utils.logging import ComponentLogger

FUNCTION_DECLARATION_TYPES = frozenset({"function_declaration", "generator_function_declaration"})
FUNCTION_VALUE_TYPES = frozenset(
    {"arrow_function", "function_expression", "function", "generator_function"}
)
CLASS_DECLARATION_TYPES = frozenset({"class_declaration", "abstract_class_declaration"})
FUNCTION_BODY_TYPES = FUNCTION_DECLARATION_TYPES | FUNCTION_VALUE_TYPES | {"method_definition"}

# Entering any of these puts the walk inside a function or class
SCOPE_BOUNDARY_TYPES = FUNCTION_BODY_TYPES | CLASS_DECLARATION_TYPES | {"class"}

BRANCH_NODE_TYPES = frozenset(
    {
        "if_statement",
        "while_statement",
        "do_statement",
        "for_statement",
        "for_in_statement",
        # switch_default has no test and is not counted
        "switch_case",
        "ternary_expression",
        "catch_clause",
    }
)
LOGICAL_OPERATORS = frozenset({"&&", "||", "??"})

NAMED_DECLARATION_TYPES = (
    FUNCTION_DECLARATION_TYPES
    | CLASS_DECLARATION_TYPES
    | {"interface_declaration", "type_alias_declaration", "enum_declaration"}
)
VARIABLE_DECLARATION_TYPES = frozenset({"lexical_declaration", "variable_declaration"})
FIELD_DEFINITION_TYPES = frozenset({"field_definition", "public_field_definition"})


@dataclass
class _FileState:
    """Mutable accumulator for one extraction run."""

    path: str
    source: bytes
    imports: list[ImportEdge] = field(default_factory=list)
    exports: list[ExportEdge] = field(default_factory=list)
    symbols: list[Symbol] = field(default_factory=list)
    bodies: list[str] = field(default_factory=list)
    calls: dict[str, None] = field(default_factory=dict)


def _walk(node: Any) -> Iterator[Any]:
    """Pre-order traversal of a subtree without recursion."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.children))


def _is_external(source: str) -> bool:
    return not source.startswith(".") and not source.startswith("/")


class SymbolExtractor:
    """Extract code symbols from JavaScript/TypeScript sources using Tree-sitter."""

    def __init__(
        self,
        parser: Optional[TreeSitterParser] = None,
        record_function_bodies: bool = True,
    ) -> None:
        """
        Initialize the symbol extractor.

        Args:
            parser: Shared tree-sitter parser (one is created if omitted)
            record_function_bodies: Keep the source text of every function
        """
        self.logger = ComponentLogger("symbol_extractor")
        self.parser = parser or TreeSitterParser()
        self.record_function_bodies = record_function_bodies

    def extract(self, content: str, path: str, spec: LanguageSpec) -> FileAnalysis:
        """
        Extract the structural summary of one file.

        Syntax errors are tolerated: ERROR subtrees are skipped and the rest
        of the file is extracted.

        Args:
            content: Source text
            path: Repository-relative path
            spec: Language spec naming the grammar

        Returns:
            FileAnalysis, empty with ``parse_error`` set if no tree could be built
        """
        grammar = spec.grammar or spec.language
        tree = self.parser.parse_string(content, grammar)
        if tree is None:
            return FileAnalysis.empty(
                path, spec.language, ParseStrategy.GRAMMAR, error=f"grammar unavailable: {grammar}"
            )

        root = tree.root_node
        if root.has_error:
            self.logger.debug("Recovered from syntax errors", path=path)

        state = _FileState(path=path, source=content.encode("utf-8"))
        self._visit(root, state)

        self.logger.debug(
            "Extracted symbols",
            path=path,
            symbols=len(state.symbols),
            imports=len(state.imports),
            exports=len(state.exports),
        )

        return FileAnalysis(
            path=path,
            language=spec.language,
            strategy=ParseStrategy.GRAMMAR,
            imports=tuple(state.imports),
            exports=tuple(state.exports),
            symbols=tuple(state.symbols),
            function_bodies=tuple(state.bodies),
            calls=tuple(state.calls),
        )

    def _visit(self, root: Any, state: _FileState) -> None:
        """Walk the tree in document order, dispatching on node type."""
        stack: list[tuple[Any, bool]] = [(root, False)]
        while stack:
            node, nested = stack.pop()
            node_type = node.type

            if node_type == "ERROR":
                continue

            if node_type == "import_statement":
                self._extract_import(node, state)
            elif node_type == "export_statement":
                self._extract_export(node, state)
            elif node_type in FUNCTION_DECLARATION_TYPES:
                name_node = node.child_by_field_name("name")
                if name_node is not None:
                    state.symbols.append(
                        self._build_function(
                            self._get_node_text(name_node, state.source),
                            node,
                            state,
                            Scope.LOCAL if nested else Scope.GLOBAL,
                        )
                    )
            elif node_type in CLASS_DECLARATION_TYPES:
                symbol = self._extract_class(node, state, nested)
                if symbol is not None:
                    state.symbols.append(symbol)
            elif node_type == "variable_declarator":
                self._extract_declarator(node, state, nested)
            elif node_type == "call_expression":
                self._extract_call(node, state)
            elif node_type == "expression_statement" and not nested:
                self._extract_exports_assignment(node, state)

            if node_type in FUNCTION_BODY_TYPES and self.record_function_bodies:
                state.bodies.append(self._get_node_text(node, state.source))

            child_nested = nested or node_type in SCOPE_BOUNDARY_TYPES
            for child in reversed(node.children):
                stack.append((child, child_nested))

    # ========== Functions ==========

    def _build_function(
        self,
        name: str,
        node: Any,
        state: _FileState,
        scope: Scope,
        parent_class: Optional[str] = None,
    ) -> Symbol:
        """Build a function symbol from any function-like node."""
        parameters = self._extract_parameters(node, state.source)
        complexity, calls, references = self._analyze_body(node, state.source)
        return Symbol(
            name=name,
            kind=SymbolKind.FUNCTION,
            file=state.path,
            span=self._span(node),
            scope=scope,
            parameters=parameters,
            complexity=complexity,
            calls=calls,
            references=references,
            parent_class=parent_class,
        )

    def _extract_declarator(self, node: Any, state: _FileState, nested: bool) -> None:
        """
        Extract a variable declarator.

        Handles patterns like:
        - const handler = (req, res) => { ... }
        - let processor = async function (data) { ... }
        - var LIMIT = 10
        """
        name_node = node.child_by_field_name("name")
        if name_node is None or name_node.type != "identifier":
            return
        name = self._get_node_text(name_node, state.source)
        value = node.child_by_field_name("value")

        if value is not None and value.type in FUNCTION_VALUE_TYPES:
            state.symbols.append(
                self._build_function(name, value, state, Scope.LOCAL if nested else Scope.GLOBAL)
            )
        elif not nested and self._is_top_level(node.parent):
            state.symbols.append(
                Symbol(
                    name=name,
                    kind=SymbolKind.VARIABLE,
                    file=state.path,
                    span=self._span(node),
                    scope=Scope.GLOBAL,
                )
            )

    def _extract_parameters(self, node: Any, source: bytes) -> tuple[str, ...]:
        params_node = node.child_by_field_name("parameters")
        if params_node is None:
            # Single param without parens: x => x * 2
            single = node.child_by_field_name("parameter")
            if single is None:
                return ()
            return (self._get_node_text(single, source),)

        names = []
        for child in params_node.named_children:
            if child.type == "comment":
                continue
            names.append(self._parameter_name(child, source))
        return tuple(names)

    def _parameter_name(self, node: Any, source: bytes) -> str:
        """Get the bound name of a parameter, or its pattern text when destructured."""
        target = node
        if target.type in ("required_parameter", "optional_parameter"):
            target = target.child_by_field_name("pattern") or target
        if target.type == "assignment_pattern":
            target = target.child_by_field_name("left") or target
        if target.type == "rest_pattern":
            bound = self._binding_names(target, source)
            return bound[0] if bound else self._get_node_text(target, source)
        return self._get_node_text(target, source)

    def _parameter_bindings(self, node: Any, source: bytes) -> list[str]:
        params_node = node.child_by_field_name("parameters")
        if params_node is None:
            return self._binding_names(node.child_by_field_name("parameter"), source)
        names: list[str] = []
        for child in params_node.named_children:
            names.extend(self._binding_names(child, source))
        return names

    def _binding_names(self, node: Optional[Any], source: bytes) -> list[str]:
        """Collect identifiers bound by a declaration pattern."""
        if node is None:
            return []
        if node.type in ("identifier", "shorthand_property_identifier_pattern"):
            return [self._get_node_text(node, source)]
        if node.type in ("assignment_pattern", "object_assignment_pattern"):
            return self._binding_names(node.child_by_field_name("left"), source)
        if node.type in ("required_parameter", "optional_parameter"):
            return self._binding_names(node.child_by_field_name("pattern"), source)
        if node.type == "pair_pattern":
            return self._binding_names(node.child_by_field_name("value"), source)
        if node.type not in ("object_pattern", "array_pattern", "rest_pattern"):
            return []

        names: list[str] = []
        for child in node.named_children:
            names.extend(self._binding_names(child, source))
        return names

    def _analyze_body(self, node: Any, source: bytes) -> tuple[int, tuple[str, ...], tuple[str, ...]]:
        """
        Compute complexity, callee names and free-variable references of a function.

        Returns:
            Tuple of (complexity, calls, references)
        """
        body = node.child_by_field_name("body")
        if body is None:
            return 1, (), ()

        bound = set(self._parameter_bindings(node, source))
        complexity = 1
        calls: dict[str, None] = {}
        candidates: dict[str, None] = {}

        for current in _walk(body):
            current_type = current.type

            if current_type in BRANCH_NODE_TYPES:
                complexity += 1
            elif current_type == "binary_expression":
                operator = current.child_by_field_name("operator")
                if operator is not None and operator.type in LOGICAL_OPERATORS:
                    complexity += 1

            if current_type == "call_expression":
                callee = self._callee_name(current, source)
                if callee:
                    calls[callee] = None
            elif current_type == "variable_declarator":
                bound.update(self._binding_names(current.child_by_field_name("name"), source))
            elif current_type in FUNCTION_DECLARATION_TYPES or current_type in CLASS_DECLARATION_TYPES:
                name_node = current.child_by_field_name("name")
                if name_node is not None:
                    bound.add(self._get_node_text(name_node, source))
                if current_type in FUNCTION_DECLARATION_TYPES:
                    bound.update(self._parameter_bindings(current, source))
            elif current_type in FUNCTION_VALUE_TYPES or current_type == "method_definition":
                bound.update(self._parameter_bindings(current, source))
            elif current_type == "catch_clause":
                bound.update(self._binding_names(current.child_by_field_name("parameter"), source))
            elif current_type == "for_in_statement":
                bound.update(self._binding_names(current.child_by_field_name("left"), source))
            elif current_type in ("identifier", "shorthand_property_identifier"):
                candidates[self._get_node_text(current, source)] = None

        references = tuple(name for name in candidates if name not in bound)
        return complexity, tuple(calls), references

    def _callee_name(self, node: Any, source: bytes) -> Optional[str]:
        """Get callee name: identifier, or property name for method calls."""
        function = node.child_by_field_name("function")
        if function is None:
            return None
        if function.type == "identifier":
            return self._get_node_text(function, source)
        if function.type == "member_expression":
            prop = function.child_by_field_name("property")
            if prop is not None and prop.type == "property_identifier":
                return self._get_node_text(prop, source)
        return None

    def _extract_call(self, node: Any, state: _FileState) -> None:
        """Record a callee name and pick up ``require()`` imports."""
        callee = self._callee_name(node, state.source)
        if not callee:
            return
        state.calls[callee] = None

        function = node.child_by_field_name("function")
        if callee != "require" or function is None or function.type != "identifier":
            return
        arguments = node.child_by_field_name("arguments")
        if arguments is None or not arguments.named_children:
            return
        first = arguments.named_children[0]
        if first.type != "string":
            return

        module = self._string_value(first, state.source)
        specifiers: list[str] = []
        parent = node.parent
        if parent is not None and parent.type == "variable_declarator":
            specifiers = self._binding_names(parent.child_by_field_name("name"), state.source)
        state.imports.append(
            ImportEdge(
                file=state.path,
                source=module,
                specifiers=tuple(specifiers),
                is_external=_is_external(module),
            )
        )

    # ========== Classes ==========

    def _extract_class(self, node: Any, state: _FileState, nested: bool) -> Optional[Symbol]:
        """Extract JavaScript/TypeScript class declaration with methods and fields."""
        name_node = node.child_by_field_name("name")
        if name_node is None:
            return None
        name = self._get_node_text(name_node, state.source)

        methods: list[Symbol] = []
        properties: list[PropertyInfo] = []
        body = node.child_by_field_name("body")
        if body is not None:
            for member in body.named_children:
                if member.type == "method_definition":
                    method_name = member.child_by_field_name("name")
                    if method_name is None:
                        continue
                    methods.append(
                        self._build_function(
                            self._get_node_text(method_name, state.source),
                            member,
                            state,
                            Scope.LOCAL,
                            parent_class=name,
                        )
                    )
                elif member.type in FIELD_DEFINITION_TYPES:
                    prop = member.child_by_field_name("property") or member.child_by_field_name("name")
                    if prop is None:
                        continue
                    properties.append(
                        PropertyInfo(
                            name=self._get_node_text(prop, state.source),
                            span=self._span(member),
                            is_static=any(c.type == "static" for c in member.children),
                        )
                    )

        return Symbol(
            name=name,
            kind=SymbolKind.CLASS,
            file=state.path,
            span=self._span(node),
            scope=Scope.LOCAL if nested else Scope.GLOBAL,
            superclass=self._extract_superclass(node, state.source),
            methods=tuple(methods),
            properties=tuple(properties),
        )

    def _extract_superclass(self, node: Any, source: bytes) -> Optional[str]:
        for child in node.children:
            if child.type != "class_heritage":
                continue
            for heritage in child.named_children:
                if heritage.type == "implements_clause":
                    continue
                if heritage.type == "extends_clause":
                    value = heritage.child_by_field_name("value")
                    if value is None and heritage.named_children:
                        value = heritage.named_children[0]
                    return self._expression_name(value, source)
                # JavaScript: the heritage expression follows `extends` directly
                return self._expression_name(heritage, source)
        return None

    def _expression_name(self, node: Optional[Any], source: bytes) -> Optional[str]:
        if node is None:
            return None
        if node.type in ("identifier", "type_identifier"):
            return self._get_node_text(node, source)
        if node.type == "member_expression":
            prop = node.child_by_field_name("property")
            if prop is not None:
                return self._get_node_text(prop, source)
        return None

    # ========== Imports / Exports ==========

    def _extract_import(self, node: Any, state: _FileState) -> None:
        """
        Extract an ES module import.

        Default and namespace imports record the local name (``* as ns`` for
        namespaces), named imports record the imported name.
        """
        source_node = node.child_by_field_name("source")
        if source_node is None:
            return
        module = self._string_value(source_node, state.source)

        specifiers: list[str] = []
        for child in node.named_children:
            if child.type != "import_clause":
                continue
            for part in child.named_children:
                if part.type == "identifier":
                    specifiers.append(self._get_node_text(part, state.source))
                elif part.type == "namespace_import":
                    for ident in part.named_children:
                        if ident.type == "identifier":
                            specifiers.append(f"* as {self._get_node_text(ident, state.source)}")
                elif part.type == "named_imports":
                    for spec in part.named_children:
                        if spec.type != "import_specifier":
                            continue
                        imported = spec.child_by_field_name("name")
                        if imported is not None:
                            specifiers.append(self._name_value(imported, state.source))

        state.imports.append(
            ImportEdge(
                file=state.path,
                source=module,
                specifiers=tuple(specifiers),
                is_external=_is_external(module),
            )
        )

    def _extract_export(self, node: Any, state: _FileState) -> None:
        """Extract named, default and re-exports from an export statement."""
        source = state.source
        declaration = node.child_by_field_name("declaration")
        is_default = any(child.type == "default" for child in node.children)

        if is_default:
            value = declaration or node.child_by_field_name("value")
            name = "default"
            if value is not None:
                if value.type == "identifier":
                    name = self._get_node_text(value, source)
                else:
                    name_node = value.child_by_field_name("name")
                    if name_node is not None:
                        name = self._get_node_text(name_node, source)
            state.exports.append(ExportEdge(file=state.path, name=name, kind=ExportKind.DEFAULT))
            return

        if declaration is not None:
            if declaration.type in NAMED_DECLARATION_TYPES:
                name_node = declaration.child_by_field_name("name")
                if name_node is not None:
                    state.exports.append(
                        ExportEdge(file=state.path, name=self._get_node_text(name_node, source))
                    )
            elif declaration.type in VARIABLE_DECLARATION_TYPES:
                for declarator in declaration.named_children:
                    if declarator.type != "variable_declarator":
                        continue
                    for name in self._binding_names(declarator.child_by_field_name("name"), source):
                        state.exports.append(ExportEdge(file=state.path, name=name))
            return

        reexported: list[str] = []
        wildcard = False
        for child in node.children:
            if child.type == "*":
                wildcard = True
            elif child.type == "namespace_export":
                wildcard = True
            elif child.type == "export_clause":
                for spec in child.named_children:
                    if spec.type != "export_specifier":
                        continue
                    local = spec.child_by_field_name("name")
                    alias = spec.child_by_field_name("alias")
                    exported = alias or local
                    if exported is not None:
                        state.exports.append(
                            ExportEdge(file=state.path, name=self._name_value(exported, source))
                        )
                    if local is not None:
                        reexported.append(self._name_value(local, source))

        source_node = node.child_by_field_name("source")
        if source_node is not None:
            module = self._string_value(source_node, source)
            state.imports.append(
                ImportEdge(
                    file=state.path,
                    source=module,
                    specifiers=("*",) if wildcard else tuple(reexported),
                    is_external=_is_external(module),
                )
            )

    def _extract_exports_assignment(self, node: Any, state: _FileState) -> None:
        """
        Extract CommonJS exports.

        Handles patterns like:
        - module.exports = Service
        - module.exports = { load, save }
        - module.exports.handler = (event) => { ... }
        - exports.processRequest = async (req, res) => { ... }
        """
        source = state.source
        for child in node.named_children:
            if child.type != "assignment_expression":
                continue
            left = child.child_by_field_name("left")
            right = child.child_by_field_name("right")
            if left is None or left.type != "member_expression":
                continue

            target = self._get_node_text(left, source)
            if target == "module.exports":
                if right is not None and right.type == "object":
                    for entry in right.named_children:
                        if entry.type == "shorthand_property_identifier":
                            state.exports.append(
                                ExportEdge(file=state.path, name=self._get_node_text(entry, source))
                            )
                        elif entry.type == "pair":
                            key = entry.child_by_field_name("key")
                            if key is not None:
                                state.exports.append(
                                    ExportEdge(file=state.path, name=self._name_value(key, source))
                                )
                else:
                    name = "default"
                    if right is not None and right.type == "identifier":
                        name = self._get_node_text(right, source)
                    state.exports.append(
                        ExportEdge(file=state.path, name=name, kind=ExportKind.DEFAULT)
                    )
                continue

            obj = left.child_by_field_name("object")
            prop = left.child_by_field_name("property")
            if obj is None or prop is None:
                continue
            if self._get_node_text(obj, source) not in ("module.exports", "exports"):
                continue

            name = self._get_node_text(prop, source)
            state.exports.append(ExportEdge(file=state.path, name=name))
            if right is not None and right.type in FUNCTION_VALUE_TYPES:
                state.symbols.append(self._build_function(name, right, state, Scope.GLOBAL))

    # ========== Helpers ==========

    def _is_top_level(self, declaration: Optional[Any]) -> bool:
        """Check whether a declaration sits directly in the program (or an export of it)."""
        if declaration is None:
            return False
        parent = declaration.parent
        if parent is None:
            return False
        if parent.type == "program":
            return True
        return (
            parent.type == "export_statement"
            and parent.parent is not None
            and parent.parent.type == "program"
        )

    def _span(self, node: Any) -> CodeSpan:
        return CodeSpan(
            line=node.start_point[0] + 1,
            column=node.start_point[1],
            end_line=node.end_point[0] + 1,
        )

    def _string_value(self, node: Any, source: bytes) -> str:
        """Get the value of a string literal node without quotes."""
        return self._get_node_text(node, source).strip("\"'`")

    def _name_value(self, node: Any, source: bytes) -> str:
        """Get an identifier name, unquoting string-named specifiers."""
        if node.type == "string":
            return self._string_value(node, source)
        return self._get_node_text(node, source)

    def _get_node_text(self, node: Any, source: bytes) -> str:
        """Get text content of a node."""
        return source[node.start_byte : node.end_byte].decode("utf-8", errors="replace")
