"""Tests for the dependency graph builder and topological sorter."""

import logging

import pytest

from ext_order import order
from ext_order.analysis.dependency_graph import DependencyGraphBuilder
from ext_order.analysis.topo_sort import TopologicalSorter
from ext_order.errors import CircularDependencyError, UnresolvedDependencyError
from ext_order.models import SourceUnit


# ── Helpers ───────────────────────────────────────────────────

APP = """
Ext.application({
    name: 'App',
    controllers: ['Main']
});
"""

CONTROLLER = """
Ext.define('App.controller.Main', {
    extend: 'Ext.app.Controller',
    views: ['UserForm']
});
"""

VIEW = """
Ext.define('App.view.UserForm', {
    extend: 'Ext.form.FormPanel'
});
"""


def _define(name, **config):
    body = ", ".join(f"{key}: {value!r}" for key, value in config.items())
    return f"Ext.define({name!r}, {{ {body} }});"


def _units(*sources):
    return [SourceUnit(source, label=f"u{i}") for i, source in enumerate(sources)]


def _labels(units):
    return [u.label for u in units]


def _assert_respects_dependencies(ordered):
    position = {id(u): i for i, u in enumerate(ordered)}
    for unit in ordered:
        for dep in unit.dependencies:
            assert position[id(dep)] < position[id(unit)], f"{dep} must precede {unit}"


# ── Dependency Graph ──────────────────────────────────────────

class TestDependencyGraph:
    def test_build_empty(self):
        graph = DependencyGraphBuilder().build([])
        assert graph.units == []
        assert graph.edges == []

    def test_get_dependencies(self):
        app, controller, view = units = _units(APP, CONTROLLER, VIEW)
        graph = DependencyGraphBuilder().build(units)

        assert app.dependencies == (controller,)
        assert controller.dependencies == (view,)
        assert view.dependencies == ()
        assert graph.dependents_of(view) == [controller]
        assert graph.dependencies_of(app) == [controller]

    def test_resolve_dependencies_from_unit(self):
        app, controller, view = units = _units(APP, CONTROLLER, VIEW)
        assert controller.resolve_dependencies(units) == (view,)
        assert app.dependencies == (controller,)

    def test_class_index(self):
        units = _units(CONTROLLER, VIEW)
        graph = DependencyGraphBuilder().build(units)
        assert graph.class_index == {"App.controller.Main": 0, "App.view.UserForm": 1}

    def test_multiple_references_collapse_to_one_edge(self):
        units = _units(
            _define("A.Base"),
            "Ext.define('A.One', { extend: 'A.Base', requires: ['A.Base'], mixins: ['A.Base'] });",
        )
        graph = DependencyGraphBuilder().build(units)
        assert graph.forward[1] == [0]
        assert len(graph.edges) == 1
        assert graph.edges[0].class_name == "A.Base"

    def test_multiple_classes_in_one_unit(self):
        units = _units(
            "Ext.define('A.X', {}); Ext.define('A.Y', {});",
            "Ext.define('A.Z', { requires: ['A.X', 'A.Y'] });",
        )
        DependencyGraphBuilder().build(units)
        assert units[1].dependencies == (units[0],)

    def test_adjacency_is_in_input_order(self):
        units = _units(
            _define("A.Top", requires=["A.Z", "A.Y"]),
            _define("A.Y"),
            _define("A.Z", extend="A.Y"),
        )
        graph = DependencyGraphBuilder().build(units)
        assert graph.forward[0] == [1, 2]
        assert graph.reverse[1] == [0, 2]
        assert [(e.source, e.target) for e in graph.edges] == [(0, 1), (0, 2), (2, 1)]
        assert units[0].dependencies == (units[1], units[2])

    def test_self_reference_is_dropped(self):
        units = _units("Ext.define('A.X', {}); Ext.define('A.Y', { extend: 'A.X' });")
        graph = DependencyGraphBuilder().build(units)
        assert graph.forward[0] == []
        assert units[0].dependencies == ()

    def test_duplicate_class_first_occurrence_wins(self, caplog):
        units = _units(_define("A.Dup"), _define("A.Dup"), _define("A.User", extend="A.Dup"))
        with caplog.at_level(logging.WARNING):
            graph = DependencyGraphBuilder().build(units)

        assert graph.class_index["A.Dup"] == 0
        assert graph.duplicates == {"A.Dup": [0, 1]}
        assert units[2].dependencies == (units[0],)
        assert "A.Dup" in caplog.text

    def test_unresolved_names_are_reported(self):
        units = _units(
            "Ext.define('App.A', { extend: 'Ext.panel.Panel', requires: ['App.Missing', 'App.Missing', 'Ext'] });",
        )
        graph = DependencyGraphBuilder().build(units)
        assert graph.unresolved == {0: ["App.Missing"]}
        assert graph.unresolved_by_label() == {"u0": ["App.Missing"]}

    def test_require_resolved(self):
        graph = DependencyGraphBuilder().build(_units(_define("App.A", requires=["App.Gone"])))
        with pytest.raises(UnresolvedDependencyError) as exc:
            graph.require_resolved()
        assert exc.value.missing == {"u0": ["App.Gone"]}

        DependencyGraphBuilder().build(_units(APP, CONTROLLER, VIEW)).require_resolved()

    def test_custom_framework_namespaces(self):
        units = _units("Ext.define('App.A', { extend: 'Ext.Base', requires: ['Lib.Thing'] });")
        graph = DependencyGraphBuilder(framework_namespaces=["Lib"]).build(units)
        assert graph.unresolved == {0: ["Ext.Base"]}

    def test_unit_without_declarations_is_isolated(self):
        units = _units("var plain = true;", VIEW)
        graph = DependencyGraphBuilder().build(units)
        assert graph.forward[0] == []
        assert graph.reverse[0] == []


# ── Topological Sort ──────────────────────────────────────────

class TestTopologicalSort:
    def test_order_files(self):
        app, controller, view = units = _units(APP, CONTROLLER, VIEW)
        assert order(units) == [view, controller, app]

    def test_end_to_end_short_names(self):
        app = SourceUnit("Ext.application({ name: 'App', controllers: ['Main'] });", label="app")
        controller = SourceUnit("Ext.define('App.controller.Main', { views: ['UserForm'] });", label="ctrl")
        view = SourceUnit("Ext.define('App.view.UserForm', {});", label="view")
        assert _labels(order([app, controller, view])) == ["view", "ctrl", "app"]

    def test_independent_units_keep_input_order(self):
        units = _units(_define("A.C"), _define("A.A"), _define("A.B"))
        assert order(units) == units

    def test_single_unit_without_declarations(self):
        units = _units("console.log('hello');")
        assert order(units) == units

    def test_every_unit_emitted_once(self):
        units = _units(
            _define("A.D", requires=["A.B", "A.C"]),
            _define("A.B", extend="A.A"),
            _define("A.C", extend="A.A"),
            _define("A.A"),
            "/* nothing here */",
        )
        ordered = order(units)
        assert sorted(_labels(ordered)) == sorted(_labels(units))
        assert len(ordered) == len(units)
        _assert_respects_dependencies(ordered)

    def test_independent_dependencies_follow_input_order(self):
        units = _units(
            _define("A.Top", requires=["A.Second", "A.First"]),
            _define("A.First"),
            _define("A.Second"),
        )
        assert _labels(order(units)) == ["u1", "u2", "u0"]

    def test_application_dependencies_follow_input_order(self):
        app = SourceUnit(
            "Ext.application({ name: 'App', controllers: ['C'], views: ['V'] });", label="app",
        )
        view = SourceUnit("Ext.define('App.view.V', {});", label="view")
        ctrl = SourceUnit("Ext.define('App.controller.C', {});", label="ctrl")
        assert _labels(order([app, view, ctrl])) == ["view", "ctrl", "app"]

    def test_deterministic(self):
        sources = [
            _define("A.D", requires=["A.B", "A.C"]),
            _define("A.B", extend="A.A"),
            _define("A.C", extend="A.A"),
            _define("A.A"),
        ]
        first = _labels(order(_units(*sources)))
        second = _labels(order(_units(*sources)))
        assert first == second == ["u3", "u1", "u2", "u0"]

    def test_circular_dependency(self):
        units = _units(_define("A.One", requires=["A.Two"]), _define("A.Two", extend="A.One"))
        with pytest.raises(CircularDependencyError) as exc:
            order(units)
        assert exc.value.source == "u1"
        assert exc.value.target == "u0"
        assert "Circular dependency detected: 'u1' -> 'u0'" in str(exc.value)

    def test_longer_cycle_reports_back_edge(self):
        units = _units(
            _define("A.One", requires=["A.Two"]),
            _define("A.Two", requires=["A.Three"]),
            _define("A.Three", requires=["A.One"]),
        )
        with pytest.raises(CircularDependencyError) as exc:
            order(units)
        assert (exc.value.source, exc.value.target) == ("u2", "u0")

    def test_sorter_is_reusable(self):
        units = _units(APP, CONTROLLER, VIEW)
        graph = DependencyGraphBuilder().build(units)
        sorter = TopologicalSorter()
        assert sorter.sort(graph) == sorter.sort(graph)

    def test_deep_chain_does_not_recurse(self):
        count = 3000
        sources = [_define(f"A.C{i}", extend=f"A.C{i + 1}") for i in range(count - 1)]
        sources.append(_define(f"A.C{count - 1}"))
        ordered = order(_units(*sources))
        assert ordered[0].label == f"u{count - 1}"
        assert ordered[-1].label == "u0"

    def test_strict_unresolved(self):
        units = _units(_define("App.A", requires=["App.Gone"]))
        with pytest.raises(UnresolvedDependencyError) as exc:
            order(units, strict_unresolved=True)
        assert exc.value.missing == {"u0": ["App.Gone"]}

    def test_unresolved_is_not_fatal_by_default(self):
        units = _units(_define("App.A", requires=["App.Gone"]))
        assert order(units) == units
