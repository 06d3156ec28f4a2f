"""
Static dependency graph analysis.
"""

import pytest

from depinject import Injector, eager
from depinject.errors import CircularDependencyError, RegistryValidationError
from depinject.graph import DependencyGraph


def layered():
    return {
        "app": lambda db, cache: None,
        "db": lambda: None,
        "cache": lambda db: None,
    }


class TestGraphBuild:

    def test_adjacency_from_factories(self):
        graph = DependencyGraph.from_factories(layered())
        assert graph.adj_list == {"app": ["db", "cache"], "db": [], "cache": ["db"]}

    def test_eager_services_recorded(self):
        graph = DependencyGraph.from_factories({"a": eager(lambda: 1), "b": lambda: 2})
        assert graph.eager == {"a"}

    def test_injector_graph(self):
        graph = Injector(layered()).graph()
        assert set(graph.adj_list) == {"app", "db", "cache"}


class TestValidation:

    def test_missing(self):
        graph = DependencyGraph.from_factories({"a": lambda z: z, "b": lambda a: a})
        assert graph.missing() == [("a", "z")]

    def test_injector_name_is_never_missing(self):
        graph = DependencyGraph.from_factories({"a": lambda injector: injector})
        assert graph.missing() == []

    def test_two_node_cycle(self):
        graph = DependencyGraph.from_factories({
            "a": lambda b: b,
            "b": lambda a: a,
            "c": lambda: 1,
        })
        assert graph.detect_cycles() == [["a", "b"]]

    def test_self_loop(self):
        graph = DependencyGraph.from_factories({"a": lambda a: a})
        assert graph.detect_cycles() == [["a"]]

    def test_acyclic(self):
        assert DependencyGraph.from_factories(layered()).detect_cycles() == []

    def test_validate_reports_everything(self):
        graph = DependencyGraph.from_factories({
            "a": lambda z: z,
            "b": lambda c: c,
            "c": lambda b: b,
        })
        with pytest.raises(RegistryValidationError) as exc_info:
            graph.validate()

        err = exc_info.value
        assert err.missing == [("a", "z")]
        assert err.cycles == [["b", "c"]]
        assert "'a' requires unknown service 'z'" in str(err)
        assert "'b' <- 'c' <- 'b'" in str(err)

    def test_validate_passes(self):
        DependencyGraph.from_factories(layered()).validate()


class TestResolutionOrder:

    def test_dependencies_first(self):
        graph = DependencyGraph.from_factories({
            "c": lambda b: b,
            "b": lambda a: a,
            "a": lambda: 1,
        })
        assert graph.resolution_order() == ["a", "b", "c"]

    def test_cycle_raises(self):
        graph = DependencyGraph.from_factories({"a": lambda b: b, "b": lambda a: a})
        with pytest.raises(CircularDependencyError) as exc_info:
            graph.resolution_order()
        assert exc_info.value.path == ["a", "b", "a"]


class TestRendering:

    def test_tree(self):
        tree = DependencyGraph.from_factories(layered()).tree()
        assert tree == "app\n├── db\n└── cache\n    └── db"

    def test_tree_marks_missing(self):
        tree = DependencyGraph.from_factories({"a": lambda z: z}).tree(root="a")
        assert tree == "a\n└── z (missing)"

    def test_tree_marks_circular(self):
        graph = DependencyGraph.from_factories({"a": lambda b: b, "b": lambda a: a})
        assert graph.tree(root="a") == "a\n└── b\n    └── a (circular)"

    def test_tree_marks_eager_and_injector(self):
        graph = DependencyGraph.from_factories({"a": eager(lambda injector: injector)})
        assert graph.tree() == "a (eager)\n└── injector (injector)"

    def test_export_dot(self):
        graph = DependencyGraph.from_factories({
            "app": eager(lambda db, ghost: None),
            "db": lambda: None,
        })
        dot = graph.export_dot()

        assert dot.startswith("digraph Services {")
        assert '"app" -> "db";' in dot
        assert '"app" -> "ghost";' in dot
        assert '"ghost" [color="red" style=dashed];' in dot
        assert 'fillcolor="lightblue"' in dot
        assert dot.rstrip().endswith("}")
