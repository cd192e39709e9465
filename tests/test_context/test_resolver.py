"""
Tests for import specifier resolution and name-based symbol resolution.
"""

import pytest

from repograph.context.resolver import ImportResolver, NameBasedResolver, SymbolResolver
from repograph.context.symbol_table import SymbolTable
from repograph.core.config import GraphConfig
from repograph.models.analysis import ImportEdge
from repograph.models.graph import SymbolTableEntry

KNOWN_PATHS = [
    "src/app.ts",
    "src/core.ts",
    "src/data.json",
    "src/lib/util.js",
    "src/components/index.ts",
    "lib/x.ts",
    "pkg/__init__.py",
    "pkg/models.py",
    "pkg/service.py",
    "pkg/sub/mod.py",
    "app.py",
]


@pytest.fixture
def resolver():
    return ImportResolver(KNOWN_PATHS)


class TestPathImports:
    """Test JavaScript/TypeScript specifier resolution."""

    def test_relative_with_suffix(self, resolver):
        assert resolver.resolve("./core", "src/app.ts") == "src/core.ts"

    def test_parent_directory(self, resolver):
        assert resolver.resolve("../lib/util", "src/app/main.js") == "src/lib/util.js"

    def test_directory_index(self, resolver):
        assert resolver.resolve("./components", "src/app.ts") == "src/components/index.ts"

    def test_literal_path_first(self, resolver):
        assert resolver.resolve("./data.json", "src/app.ts") == "src/data.json"

    def test_root_absolute(self, resolver):
        assert resolver.resolve("/lib/x", "src/app.ts") == "lib/x.ts"

    def test_bare_specifier_is_external(self, resolver):
        assert resolver.resolve("react", "src/app.ts") is None

    def test_escaping_the_root(self, resolver):
        assert resolver.resolve("../../outside", "src/app.ts") is None

    def test_unknown_target(self, resolver):
        assert resolver.resolve("./missing", "src/app.ts") is None

    def test_custom_suffixes(self):
        resolver = ImportResolver(["src/view.vue"], GraphConfig(import_suffixes=[".vue"]))
        assert resolver.resolve("./view", "src/app.js") == "src/view.vue"


class TestPythonImports:
    """Test dotted module resolution for Python files."""

    def test_relative_module(self, resolver):
        assert resolver.resolve(".models", "pkg/service.py") == "pkg/models.py"

    def test_package_itself(self, resolver):
        assert resolver.resolve(".", "pkg/service.py") == "pkg/__init__.py"

    def test_parent_package(self, resolver):
        assert resolver.resolve("..models", "pkg/sub/mod.py") == "pkg/models.py"

    def test_absolute_module(self, resolver):
        assert resolver.resolve("pkg.service", "app.py") == "pkg/service.py"

    def test_absolute_package(self, resolver):
        assert resolver.resolve("pkg", "app.py") == "pkg/__init__.py"

    def test_third_party_module(self, resolver):
        assert resolver.resolve("os", "app.py") is None

    def test_absolute_resolution_disabled(self):
        resolver = ImportResolver(
            KNOWN_PATHS, GraphConfig(resolve_python_absolute_imports=False)
        )

        assert resolver.resolve("pkg.service", "app.py") is None
        assert resolver.resolve(".models", "pkg/service.py") == "pkg/models.py"


class TestPackageSubmoduleImports:
    """Test ``from <package> import name`` where names are submodules."""

    @pytest.fixture
    def package_resolver(self):
        return ImportResolver(
            [
                "pkg/__init__.py",
                "pkg/utils.py",
                "pkg/pkg.py",
                "pkg/service.py",
                "pkg/sub/__init__.py",
                "ns/a.py",
                "ns/b.py",
                "app.py",
            ]
        )

    def resolve(self, resolver, from_file, source, *specifiers, **kwargs):
        imp = ImportEdge(file=from_file, source=source, specifiers=specifiers, **kwargs)
        pairs = resolver.resolve_import(imp, from_file)
        return [(bound.specifiers, target) for bound, target in pairs]

    def test_relative_submodule(self, package_resolver):
        assert self.resolve(package_resolver, "pkg/service.py", ".", "utils") == [
            (("utils",), "pkg/utils.py")
        ]

    def test_submodules_and_package_names(self, package_resolver):
        result = self.resolve(package_resolver, "pkg/service.py", ".", "utils", "VERSION", "sub")

        assert result == [
            (("VERSION",), "pkg/__init__.py"),
            (("utils",), "pkg/utils.py"),
            (("sub",), "pkg/sub/__init__.py"),
        ]

    def test_absolute_package_submodule(self, package_resolver):
        assert self.resolve(package_resolver, "app.py", "pkg", "utils") == [
            (("utils",), "pkg/utils.py")
        ]

    def test_module_import_is_not_split(self, package_resolver):
        result = self.resolve(package_resolver, "app.py", "pkg", "pkg", is_module=True)
        assert result == [(("pkg",), "pkg/__init__.py")]

    def test_import_from_module_is_unchanged(self, package_resolver):
        assert self.resolve(package_resolver, "app.py", "pkg.service", "utils") == [
            (("utils",), "pkg/service.py")
        ]

    def test_star_import_targets_the_package(self, package_resolver):
        assert self.resolve(package_resolver, "pkg/service.py", ".", "*") == [
            (("*",), "pkg/__init__.py")
        ]

    def test_namespace_package(self, package_resolver):
        assert self.resolve(package_resolver, "ns/a.py", ".", "b", "missing") == [
            (("b",), "ns/b.py")
        ]

    def test_path_imports_are_unchanged(self, package_resolver):
        assert self.resolve(package_resolver, "src/app.ts", "./lib", "utils") == []


class TestNameBasedResolver:
    """Test lookup order: the using file first, then its imports in order."""

    @pytest.fixture
    def table(self):
        table = SymbolTable()
        table.add(SymbolTableEntry(name="helper", type="function", file="a.ts", line=3))
        table.add(SymbolTableEntry(name="helper", type="function", file="b.ts", line=1))
        table.add(SymbolTableEntry(name="load", type="function", file="b.ts", line=5))
        table.add(SymbolTableEntry(name="load", type="function", file="c.ts", line=2))
        table.add(SymbolTableEntry(name="save", type="function", file="d.ts", line=1))
        return table

    @pytest.fixture
    def name_resolver(self, table):
        return NameBasedResolver(table, {"a.ts": ["b.ts", "c.ts"]})

    def test_is_a_symbol_resolver(self, name_resolver):
        assert isinstance(name_resolver, SymbolResolver)

    def test_local_declaration_wins(self, name_resolver):
        assert name_resolver.resolve("helper", "a.ts").file == "a.ts"

    def test_first_import_wins(self, name_resolver):
        assert name_resolver.resolve("load", "a.ts").file == "b.ts"

    def test_unimported_file_is_not_searched(self, name_resolver):
        assert name_resolver.resolve("save", "a.ts") is None

    def test_file_without_imports(self, name_resolver):
        assert name_resolver.resolve("load", "c.ts").file == "c.ts"
        assert name_resolver.resolve("helper", "c.ts") is None

    def test_abstract_resolver_cannot_be_instantiated(self):
        with pytest.raises(TypeError):
            SymbolResolver()
