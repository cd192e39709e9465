"""
Tests for cycle, impact, coupling and architecture metrics.
"""

import pytest

from repograph.context.graph_analytics import GraphAnalytics


@pytest.fixture
def analytics_for(mapper):
    def _analytics(batch):
        return GraphAnalytics(mapper.map_repository(batch).graph)

    return _analytics


class TestCircularDependencies:
    """Test advisory cycle detection."""

    def test_three_file_ring(self, analytics_for, cycle_batch):
        cycles = analytics_for(cycle_batch).find_circular_dependencies()

        assert cycles == [["file:src/a.js", "file:src/b.js", "file:src/c.js"]]

    def test_acyclic_graph(self, analytics_for, chain_batch):
        assert analytics_for(chain_batch).find_circular_dependencies() == []

    def test_two_file_cycle(self, analytics_for):
        batch = [
            {"path": "x.js", "content": "import { y } from './y';\nexport const x = 1;\n"},
            {"path": "y.js", "content": "import { x } from './x';\nexport const y = 2;\n"},
        ]
        cycles = analytics_for(batch).find_circular_dependencies()

        assert cycles == [["file:x.js", "file:y.js"]]

    def test_long_chain_does_not_recurse(self, analytics_for):
        batch = [
            {"path": f"m{i}.js", "content": f"import {{ v }} from './m{i + 1}';\n"}
            for i in range(1200)
        ]
        batch.append({"path": "m1200.js", "content": "export const v = 1;\n"})
        analytics = analytics_for(batch)

        assert analytics.find_circular_dependencies() == []
        assert analytics.calculate_max_depth() == 1200


class TestImpactAnalysis:
    """Test breadth-first impact search over importers."""

    def test_direct_and_indirect(self, analytics_for, chain_batch):
        impact = analytics_for(chain_batch).get_impact_analysis("src/core.ts")

        assert impact.direct_impact == ("src/service.ts",)
        assert impact.indirect_impact == ("src/app.ts",)
        assert impact.total_impact == 2

    def test_leaf_importer_has_no_impact(self, analytics_for, chain_batch):
        assert analytics_for(chain_batch).get_impact_analysis("src/app.ts").total_impact == 0

    def test_unknown_file(self, analytics_for, chain_batch):
        impact = analytics_for(chain_batch).get_impact_analysis("src/missing.ts")

        assert impact.target == "src/missing.ts"
        assert impact.total_impact == 0

    def test_cycle_counts_each_file_once(self, analytics_for, cycle_batch):
        impact = analytics_for(cycle_batch).get_impact_analysis("src/a.js")

        assert impact.direct_impact == ("src/c.js",)
        assert impact.indirect_impact == ("src/b.js",)

    def test_submodule_imported_from_its_package(self, analytics_for):
        batch = [
            {"path": "pkg/__init__.py", "content": ""},
            {"path": "pkg/utils.py", "content": "def helper():\n    return 1\n"},
            {"path": "pkg/service.py", "content": "from . import utils\n"},
            {"path": "app.py", "content": "from pkg.service import utils\n"},
        ]
        analytics = analytics_for(batch)
        impact = analytics.get_impact_analysis("pkg/utils.py")

        assert impact.direct_impact == ("pkg/service.py",)
        assert impact.indirect_impact == ("app.py",)
        assert analytics.get_impact_analysis("pkg/__init__.py").total_impact == 0

    def test_dependency_analysis(self, analytics_for, chain_batch):
        dependencies = analytics_for(chain_batch).get_dependency_analysis("src/app.ts")

        assert dependencies.direct_impact == ("src/service.ts",)
        assert dependencies.indirect_impact == ("src/core.ts",)


class TestCoupling:
    """Test afferent/efferent coupling and instability."""

    def test_middle_of_chain(self, analytics_for, chain_batch):
        coupling = analytics_for(chain_batch).analyze_coupling("src/service.ts")

        assert (coupling.afferent, coupling.efferent) == (1, 1)
        assert coupling.instability == 0.5

    def test_isolated_file(self, analytics_for):
        batch = [{"path": "alone.js", "content": "export const x = 1;\n"}]
        coupling = analytics_for(batch).analyze_coupling("alone.js")

        assert (coupling.afferent, coupling.efferent) == (0, 0)
        assert coupling.instability == 0.0

    def test_report_is_sorted_by_instability(self, analytics_for, chain_batch):
        report = analytics_for(chain_batch).get_coupling_report()

        assert [m.path for m in report] == ["src/app.ts", "src/service.ts", "src/core.ts"]


class TestArchitectureMetrics:
    """Test repository-wide totals."""

    def test_chain_metrics(self, analytics_for, chain_batch):
        metrics = analytics_for(chain_batch).get_architecture_metrics()

        assert metrics.total_files == 3
        assert metrics.total_functions == 3
        assert metrics.total_classes == 0
        assert metrics.average_complexity == 1.0
        assert metrics.max_depth == 2
        assert metrics.circular_dependencies == 0

    def test_cycle_metrics(self, analytics_for, cycle_batch):
        metrics = analytics_for(cycle_batch).get_architecture_metrics()

        assert metrics.max_depth == 2
        assert metrics.circular_dependencies == 1

    def test_empty_graph(self, analytics_for):
        metrics = analytics_for([]).get_architecture_metrics()

        assert metrics.total_files == 0
        assert metrics.average_complexity == 0.0
        assert metrics.to_dict()["max_depth"] == 0
