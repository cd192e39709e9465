"""
Tests for the global symbol table.
"""

import pytest

from repograph.context.symbol_table import SymbolTable
from repograph.models.base import NodeKind
from repograph.models.graph import SymbolTableEntry, UsageSite


@pytest.fixture
def table():
    table = SymbolTable()
    table.add(SymbolTableEntry(name="g", type="function", file="b.ts", line=1))
    table.add(SymbolTableEntry(name="Config", type="class", file="c.ts", line=4))
    return table


class TestSymbolTable:
    """Test registration and mutation of frozen entries."""

    def test_first_registration_wins(self, table):
        added = table.add(SymbolTableEntry(name="g", type="variable", file="b.ts", line=9))

        assert added is False
        assert table.get("b.ts", "g").type == "function"
        assert len(table) == 2

    def test_contains_by_file_and_name(self, table):
        assert ("b.ts", "g") in table
        assert ("a.ts", "g") not in table

    def test_find_by_name(self, table):
        table.add(SymbolTableEntry(name="g", type="function", file="z.ts"))

        assert table.find_by_name("g").file == "b.ts"
        assert [e.file for e in table.find_all("g")] == ["b.ts", "z.ts"]
        assert table.find_by_name("missing") is None

    def test_entries_for_file(self, table):
        assert [e.name for e in table.entries_for_file("c.ts")] == ["Config"]

    def test_mark_exported(self, table):
        table.mark_exported("b.ts", "g")
        table.mark_exported("b.ts", "unknown")

        assert table.get("b.ts", "g").exported is True
        assert len(table) == 2

    def test_add_importer_deduplicates(self, table):
        table.add_importer("b.ts", "g", "a.ts")
        table.add_importer("b.ts", "g", "a.ts")
        table.add_importer("b.ts", "g", "d.ts")

        assert table.get("b.ts", "g").imported_in == ("a.ts", "d.ts")

    def test_add_usage(self, table):
        table.add_usage("b.ts", "g", UsageSite("a.ts", 3))
        table.add_usage("b.ts", "g", UsageSite("a.ts", 3))

        assert table.get("b.ts", "g").usages == (UsageSite("a.ts", 3),)

    def test_mutations_on_missing_entries_are_ignored(self, table):
        table.add_importer("x.ts", "nope", "a.ts")
        table.add_usage("x.ts", "nope", UsageSite("a.ts", 1))

        assert ("x.ts", "nope") not in table

    def test_to_dict_keys(self, table):
        data = table.to_dict()

        assert set(data) == {"b.ts:g", "c.ts:Config"}
        assert data["b.ts:g"]["type"] == "function"
        assert data["b.ts:g"]["imported_in"] == []

    def test_node_kind(self, table):
        assert table.get("c.ts", "Config").node_kind == NodeKind.CLASS
        assert SymbolTableEntry(name="x", type="named", file="f.ts").node_kind is None
