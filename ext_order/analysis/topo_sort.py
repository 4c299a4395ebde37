"""Dependency-first ordering of source units."""

from __future__ import annotations

import logging

from ext_order.analysis.dependency_graph import DependencyGraphBuilder
from ext_order.analysis.graph_models import DependencyGraph
from ext_order.errors import CircularDependencyError
from ext_order.extractor.base import BaseExtractor
from ext_order.models import SortColor, SourceUnit

logger = logging.getLogger(__name__)


class TopologicalSorter:
    """Three-colour depth-first sort over a :class:`DependencyGraph`.

    Units are started in input order and each unit's dependencies are
    visited in input order too, so ties between independent units are
    broken by their position in the input. The output and the edge reported
    for a cycle depend only on the input sequence.
    """

    def sort(self, graph: DependencyGraph) -> list[SourceUnit]:
        colors = {idx: SortColor.WHITE for idx in range(len(graph.units))}
        resolved: list[int] = []

        for idx in range(len(graph.units)):
            if colors[idx] is SortColor.WHITE:
                self._visit(graph, idx, colors, resolved)

        logger.info("Ordered %d unit(s)", len(resolved))
        return [graph.units[i] for i in resolved]

    def _visit(self, graph: DependencyGraph, start: int, colors: dict[int, SortColor], resolved: list[int]) -> None:
        # Iterative DFS; each frame is (unit index, iterator over its dependencies)
        colors[start] = SortColor.GRAY
        stack = [(start, iter(graph.forward.get(start, [])))]

        while stack:
            idx, deps = stack[-1]
            for dep in deps:
                if colors[dep] is SortColor.WHITE:
                    colors[dep] = SortColor.GRAY
                    stack.append((dep, iter(graph.forward.get(dep, []))))
                    break
                if colors[dep] is SortColor.GRAY:
                    raise CircularDependencyError(graph.units[idx].label, graph.units[dep].label)
            else:
                stack.pop()
                colors[idx] = SortColor.BLACK
                resolved.append(idx)
                logger.debug("Resolved %s", graph.units[idx].label)


def order(
    units: list[SourceUnit],
    *,
    extractor: BaseExtractor | None = None,
    framework_namespaces: tuple[str, ...] | list[str] | None = None,
    strict_unresolved: bool = False,
) -> list[SourceUnit]:
    """Return ``units`` ordered so that every unit follows the units it depends on.

    Raises :class:`CircularDependencyError` if two units depend on each other,
    directly or transitively. With ``strict_unresolved`` any dependency name
    that no unit declares (outside the framework namespaces) raises
    :class:`UnresolvedDependencyError` before sorting.
    """
    graph = DependencyGraphBuilder(framework_namespaces, extractor=extractor).build(units)
    if strict_unresolved:
        graph.require_resolved()
    return TopologicalSorter().sort(graph)
