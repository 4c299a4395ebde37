"""Dependency graph builder: links each unit to the units declaring the classes it needs."""

from __future__ import annotations

import logging

from ext_order.analysis.graph_models import DependencyEdge, DependencyGraph
from ext_order.models import SourceUnit
from ext_order.namespace import in_namespace

logger = logging.getLogger(__name__)

DEFAULT_FRAMEWORK_NAMESPACES = ("Ext",)


class DependencyGraphBuilder:
    """Build a unit-level dependency graph.

    Every unit must be fully loaded before ``build`` is called: edges are
    resolved against the complete class-name index, never a partial one.
    """

    def __init__(self, framework_namespaces: tuple[str, ...] | list[str] | None = None, extractor=None):
        if framework_namespaces is None:
            framework_namespaces = DEFAULT_FRAMEWORK_NAMESPACES
        self.framework_namespaces = tuple(framework_namespaces)
        self.extractor = extractor

    def build(self, units: list[SourceUnit]) -> DependencyGraph:
        graph = DependencyGraph(units=list(units))

        # Step 1: Extract declarations once per unit
        for unit in graph.units:
            unit.prepare(self.extractor)

        # Step 2: Index class names, first occurrence wins
        for idx, unit in enumerate(graph.units):
            graph.forward[idx] = []
            graph.reverse[idx] = []
            for class_name in unit.class_names:
                owners = graph.duplicates.setdefault(class_name, [])
                if idx not in owners:
                    owners.append(idx)
                graph.class_index.setdefault(class_name, idx)

        graph.duplicates = {name: owners for name, owners in graph.duplicates.items() if len(owners) > 1}
        for name, owners in graph.duplicates.items():
            logger.warning(
                "Class %s is declared in %d units; using %s",
                name, len(owners), graph.units[owners[0]].label,
            )

        # Step 3: Resolve dependency names to units
        for idx, unit in enumerate(graph.units):
            missing: list[str] = []
            for name in unit.dependency_names:
                target = graph.class_index.get(name)
                if target is None:
                    if not in_namespace(name, self.framework_namespaces) and name not in missing:
                        missing.append(name)
                    continue
                if target != idx:
                    self._add_edge(graph, idx, target, name)
            if missing:
                graph.unresolved[idx] = missing
                logger.info("%s: unresolved %s", unit.label, ", ".join(missing))

        # Adjacency follows input order, not reference order
        for idx in graph.forward:
            graph.forward[idx].sort()
            graph.reverse[idx].sort()
        graph.edges.sort(key=lambda e: (e.source, e.target))

        for idx, unit in enumerate(graph.units):
            unit.dependencies = tuple(graph.units[t] for t in graph.forward[idx])

        logger.info(
            "Built dependency graph: %d unit(s), %d edge(s), %d class(es)",
            len(graph.units), len(graph.edges), len(graph.class_index),
        )
        return graph

    def _add_edge(self, graph: DependencyGraph, source: int, target: int, class_name: str) -> None:
        # Avoid duplicate edges
        if target in graph.forward[source]:
            return
        graph.edges.append(DependencyEdge(source=source, target=target, class_name=class_name))
        graph.forward[source].append(target)
        graph.reverse[target].append(source)
