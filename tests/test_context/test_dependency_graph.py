"""
Tests for repository graph construction.
"""

import pytest

from repograph.context.dependency_graph import RepositoryGraph
from repograph.context.resolver import SymbolResolver
from repograph.context.source_parser import SourceParser
from repograph.models.base import EdgeType, NodeKind
from repograph.models.graph import UsageSite


@pytest.fixture(scope="module")
def source_parser():
    return SourceParser()


@pytest.fixture
def build(source_parser):
    """Parse a batch and build a graph from it."""

    def _build(batch, **kwargs):
        analyses = [source_parser.parse_file(f["content"], f["path"]) for f in batch]
        return RepositoryGraph(**kwargs).build_graph(analyses)

    return _build


def edge_set(graph):
    return {(e.source, e.target, e.type) for e in graph.edges}


class TestReferenceExample:
    """A side-effect import plus a call into the imported file."""

    def test_import_edge(self, build, example_batch):
        graph = build(example_batch)
        assert ("file:a.ts", "file:b.ts", EdgeType.IMPORTS) in edge_set(graph)

    def test_call_edge(self, build, example_batch):
        graph = build(example_batch)
        assert ("function:a.ts:f", "function:b.ts:g", EdgeType.CALLS) in edge_set(graph)

    def test_importer_recorded(self, build, example_batch):
        graph = build(example_batch)
        entry = graph.symbol_table.get("b.ts", "g")

        assert entry.imported_in == ("a.ts",)
        assert entry.exported is True
        assert entry.type == "function"

    def test_usage_sites(self, build, example_batch):
        entry = build(example_batch).symbol_table.get("b.ts", "g")
        assert entry.usages == (UsageSite("b.ts", 1), UsageSite("a.ts", 1))

    def test_file_defines_its_symbols(self, build, example_batch):
        edges = edge_set(build(example_batch))

        assert ("file:a.ts", "function:a.ts:f", EdgeType.EXPORTS) in edges
        assert ("file:b.ts", "function:b.ts:g", EdgeType.EXPORTS) in edges


class TestNodes:
    """Test pass 1 node creation."""

    def test_file_node_metadata(self, build, chain_batch):
        node = build(chain_batch).get_node("file:src/core.ts")

        assert node.kind == NodeKind.FILE
        assert node.name == "core.ts"
        assert node.metadata["full_path"] == "src/core.ts"
        assert node.metadata["language"] == "typescript"
        assert node.metadata["parse_error"] is None

    def test_function_node_metadata(self, build, chain_batch):
        node = build(chain_batch).get_node("function:src/core.ts:compute")

        assert node.metadata["params"] == ["x"]
        assert node.metadata["complexity"] == 1
        assert node.metadata["line"] == 1

    def test_class_and_method_nodes(self, build, python_batch):
        graph = build(python_batch)

        user = graph.get_node("class:pkg/models.py:User")
        assert user.metadata["superclass"] == "BaseModel"
        assert user.metadata["method_count"] == 1
        assert graph.has_node("function:pkg/models.py:BaseModel.save")
        assert graph.get_node("function:pkg/models.py:User.__init__").metadata["class_name"] == "User"

    def test_only_global_variables_become_nodes(self, build):
        batch = [
            {
                "path": "config.js",
                "content": "const PORT = 80;\nfunction f() { const local = 1; return local; }\n",
            }
        ]
        graph = build(batch)

        assert graph.has_node("variable:config.js:PORT")
        assert not graph.has_node("variable:config.js:local")

    def test_unsupported_files_are_nodes(self, build):
        graph = build([{"path": "README.md", "content": "# Readme"}])

        assert graph.file_node_ids() == ["file:README.md"]
        assert graph.get_node("file:README.md").metadata["strategy"] == "unsupported"

    def test_unknown_node(self, build, chain_batch):
        assert build(chain_batch).get_node("file:nope.ts") is None


class TestImportEdges:
    """Test pass 2 import edges."""

    def test_chain_edges(self, build, chain_batch):
        graph = build(chain_batch)

        assert graph.get_file_dependencies("src/app.ts") == ["src/service.ts"]
        assert graph.get_file_dependents("src/core.ts") == ["src/service.ts"]
        assert graph.get_file_dependencies("src/core.ts") == []

    def test_weight_accumulates(self, build):
        batch = [
            {"path": "x.ts", "content": "export const a = 1, b = 2, c = 3;\n"},
            {
                "path": "y.ts",
                "content": "import { a } from './x';\nimport { b, c } from './x';\n",
            },
        ]
        graph = build(batch)
        imports = [e for e in graph.edges if e.type == EdgeType.IMPORTS]

        assert len(imports) == 1
        assert imports[0].weight == 3

    def test_external_and_self_imports_are_skipped(self, build):
        batch = [
            {
                "path": "a.ts",
                "content": "import React from 'react';\nimport { x } from './a';\nexport const x = 1;\n",
            }
        ]
        graph = build(batch)

        assert [e for e in graph.edges if e.type == EdgeType.IMPORTS] == []

    def test_python_imports(self, build, python_batch):
        graph = build(python_batch)

        assert graph.get_file_dependencies("pkg/service.py") == ["pkg/models.py"]
        assert graph.get_file_dependencies("app.py") == ["pkg/service.py"]

    def test_import_in_docstring_is_not_an_edge(self, build):
        batch = [
            {"path": "a.py", "content": '"""Usage:\n\nfrom b import thing\n"""\n'},
            {"path": "b.py", "content": "thing = 1\n"},
        ]
        graph = build(batch)

        assert graph.get_file_dependencies("a.py") == []
        assert graph.symbol_table.get("b.py", "thing").imported_in == ()

    def test_from_package_import_submodule(self, build):
        batch = [
            {"path": "pkg/__init__.py", "content": ""},
            {"path": "pkg/utils.py", "content": "def helper():\n    return 1\n"},
            {
                "path": "pkg/service.py",
                "content": "from . import utils\n\n\ndef run():\n    return utils.helper()\n",
            },
        ]
        graph = build(batch)

        assert graph.get_file_dependencies("pkg/service.py") == ["pkg/utils.py"]
        assert graph.get_file_dependents("pkg/utils.py") == ["pkg/service.py"]
        assert graph.get_file_dependents("pkg/__init__.py") == []
        assert (
            "function:pkg/service.py:run",
            "function:pkg/utils.py:helper",
            EdgeType.CALLS,
        ) in edge_set(graph)

    def test_named_importers(self, build, chain_batch):
        table = build(chain_batch).symbol_table

        assert table.get("src/core.ts", "compute").imported_in == ("src/service.ts",)
        assert table.get("src/service.ts", "run").imported_in == ("src/app.ts",)
        assert table.get("src/app.ts", "main").imported_in == ()


class TestSymbolEdges:
    """Test passes 3 and 4: calls, references and extends."""

    def test_call_and_reference_edges(self, build, chain_batch):
        edges = edge_set(build(chain_batch))

        assert ("function:src/service.ts:run", "function:src/core.ts:compute", EdgeType.CALLS) in edges
        assert (
            "function:src/service.ts:run",
            "function:src/core.ts:compute",
            EdgeType.REFERENCES,
        ) in edges

    def test_python_call_to_class(self, build, python_batch):
        edges = edge_set(build(python_batch))

        assert (
            "function:pkg/service.py:create_user",
            "class:pkg/models.py:User",
            EdgeType.CALLS,
        ) in edges
        assert ("function:app.py:main", "function:pkg/service.py:create_user", EdgeType.CALLS) in edges

    def test_unresolved_names_produce_no_edge(self, build, python_batch):
        graph = build(python_batch)
        targets = {e.target for e in graph.edges if e.source == "function:pkg/service.py:create_user"}

        assert targets == {"class:pkg/models.py:User"}

    def test_extends_edge(self, build, python_batch):
        edges = edge_set(build(python_batch))
        assert ("class:pkg/models.py:User", "class:pkg/models.py:BaseModel", EdgeType.EXTENDS) in edges

    def test_extends_across_files(self, build):
        batch = [
            {"path": "base.js", "content": "export class Animal {}\n"},
            {"path": "dog.js", "content": "import { Animal } from './base';\nclass Dog extends Animal {}\n"},
        ]
        graph = build(batch)

        assert ("class:dog.js:Dog", "class:base.js:Animal", EdgeType.EXTENDS) in edge_set(graph)

    def test_extends_requires_a_class_target(self, build):
        batch = [
            {"path": "a.js", "content": "function Base() {}\nclass Child extends Base {}\n"},
        ]
        graph = build(batch)

        assert [e for e in graph.edges if e.type == EdgeType.EXTENDS] == []

    def test_local_calls(self, build):
        batch = [
            {"path": "util.js", "content": "function a() { return b(); }\nfunction b() { return 1; }\n"},
        ]
        graph = build(batch)

        assert ("function:util.js:a", "function:util.js:b", EdgeType.CALLS) in edge_set(graph)
        assert graph.symbol_table.get("util.js", "b").imported_in == ()

    def test_one_line_python_def_calls(self, build):
        code = "def g():\n    return 1\n\n\ndef f(): return g()\n"
        graph = build([{"path": "mod.py", "content": code}])

        assert ("function:mod.py:f", "function:mod.py:g", EdgeType.CALLS) in edge_set(graph)

    def test_custom_resolver_factory(self, build, chain_batch):
        class NoResolution(SymbolResolver):
            def __init__(self, table, imports):
                pass

            def resolve(self, name, from_file):
                return None

        graph = build(chain_batch, resolver_factory=NoResolution)
        types = {e.type for e in graph.edges}

        assert EdgeType.CALLS not in types
        assert EdgeType.IMPORTS in types


class TestGraphInvariants:
    """Test properties that hold for every graph."""

    @pytest.mark.parametrize("batch_name", ["example_batch", "cycle_batch", "chain_batch", "python_batch"])
    def test_no_dangling_edges(self, build, request, batch_name):
        graph = build(request.getfixturevalue(batch_name))
        nodes = graph.nodes

        for edge in graph.edges:
            assert edge.source in nodes
            assert edge.target in nodes

    def test_build_is_deterministic(self, build, python_batch):
        assert build(python_batch).to_dict() == build(python_batch).to_dict()

    def test_rebuild_replaces_state(self, source_parser, chain_batch, example_batch):
        graph = RepositoryGraph()
        graph.build_graph([source_parser.parse_file(f["content"], f["path"]) for f in chain_batch])
        graph.build_graph([source_parser.parse_file(f["content"], f["path"]) for f in example_batch])

        assert sorted(graph.file_node_ids()) == ["file:a.ts", "file:b.ts"]

    def test_accepts_mapping_input(self, source_parser, example_batch):
        analyses = {f["path"]: source_parser.parse_file(f["content"], f["path"]) for f in example_batch}
        graph = RepositoryGraph().build_graph(analyses)

        assert graph.node_count == 4

    def test_to_dict_shape(self, build, example_batch):
        data = build(example_batch).to_dict()

        assert set(data) == {"nodes", "edges", "adjacency"}
        assert data["adjacency"]["file:a.ts"] == ["function:a.ts:f", "file:b.ts"]
        assert {"from", "to", "type", "weight"} == set(data["edges"][0])

    def test_symbol_usages_lookup(self, build, example_batch):
        graph = build(example_batch)

        assert graph.get_symbol_usages("g").file == "b.ts"
        assert graph.get_symbol_usages("missing") is None


class TestSymbolTableOnly:
    """Test building the symbol table without the graph."""

    def test_build_symbol_table(self, source_parser, example_batch):
        analyses = [source_parser.parse_file(f["content"], f["path"]) for f in example_batch]
        graph = RepositoryGraph()
        table = graph.build_symbol_table(analyses)

        assert table.get("b.ts", "g").imported_in == ("a.ts",)
        assert graph.node_count == 0

    def test_export_without_declaration(self, source_parser):
        analyses = [source_parser.parse_file("export { helper } from './h';\n", "index.ts")]
        table = RepositoryGraph().build_symbol_table(analyses)
        entry = table.get("index.ts", "helper")

        assert entry.exported is True
        assert entry.type == "named"

    def test_wildcard_without_exports_marks_public_globals(self, source_parser):
        batch = [
            ("helpers.py", "def visible():\n    pass\n\n\ndef _hidden():\n    pass\n"),
            ("main.py", "from helpers import *\n"),
        ]
        analyses = [source_parser.parse_file(content, path) for path, content in batch]
        table = RepositoryGraph().build_symbol_table(analyses)

        assert table.get("helpers.py", "visible").imported_in == ("main.py",)
        assert table.get("helpers.py", "_hidden").imported_in == ()
