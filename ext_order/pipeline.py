"""Pipeline orchestrator: scan -> load -> extract -> graph -> sort -> export."""

from __future__ import annotations

import time
from pathlib import Path
from typing import Callable

from ext_order.analysis.dependency_graph import DependencyGraphBuilder
from ext_order.analysis.topo_sort import TopologicalSorter
from ext_order.exporter import concat_units, minify_source, write_bundle
from ext_order.extractor import extractor_for_config
from ext_order.models import BundleResult, OrderConfig, OrderResult, SourceUnit
from ext_order.scanner import collect_files, load_units


ProgressCallback = Callable[[str, int, int], None]


def run_scan(config: OrderConfig, progress: ProgressCallback | None = None) -> list[SourceUnit]:
    """Stages 1-2: Collect files and load them into units."""
    if progress:
        progress("Scanning", 0, 1)
    files = collect_files(config)
    if progress:
        progress("Scanning", 1, 1)
    return load_units(files, encoding=config.encoding)


def run_order(
    config: OrderConfig,
    progress: ProgressCallback | None = None,
    units: list[SourceUnit] | None = None,
) -> OrderResult:
    """Order the configured sources (or the given ``units``) by dependency."""
    started = time.perf_counter()
    if units is None:
        units = run_scan(config, progress=progress)

    # Stage 3: Extract
    extractor = extractor_for_config(config)
    for i, unit in enumerate(units):
        if progress:
            progress("Extracting", i, len(units))
        unit.prepare(extractor)
    if progress:
        progress("Extracting", len(units), len(units))

    # Stage 4: Graph
    if progress:
        progress("Resolving", 0, 1)
    graph = DependencyGraphBuilder(config.framework_namespaces, extractor=extractor).build(units)
    unresolved = graph.unresolved_by_label()
    if config.strict_unresolved:
        graph.require_resolved()
    if progress:
        progress("Resolving", 1, 1)

    # Stage 5: Sort
    if progress:
        progress("Sorting", 0, 1)
    ordered = TopologicalSorter().sort(graph)
    if progress:
        progress("Sorting", 1, 1)

    return OrderResult(
        units=ordered,
        graph=graph,
        unresolved=unresolved,
        elapsed=time.perf_counter() - started,
    )


def run_bundle(
    config: OrderConfig,
    minify: bool = False,
    progress: ProgressCallback | None = None,
) -> BundleResult:
    """Order, concatenate, optionally minify, and write to ``config.output``."""
    if config.output is None:
        raise ValueError("Must specify file output path")

    started = time.perf_counter()
    result = run_order(config, progress=progress)
    content = concat_units(result.units, config.separator)

    # Stage 6: Export
    if minify:
        if progress:
            progress("Minifying", 0, 1)
        content = minify_source(content)
        if progress:
            progress("Minifying", 1, 1)

    byte_count = write_bundle(content, Path(config.output), encoding=config.encoding)
    return BundleResult(
        output_path=Path(config.output),
        units=result.units,
        byte_count=byte_count,
        elapsed_ms=int((time.perf_counter() - started) * 1000),
        minified=minify,
    )
