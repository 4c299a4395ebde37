"""ext-order: dependency-first load order for Ext JS class files."""

__version__ = "0.1.0"

from ext_order.analysis.dependency_graph import DependencyGraphBuilder
from ext_order.analysis.topo_sort import TopologicalSorter, order
from ext_order.errors import (
    CircularDependencyError,
    OrderError,
    SourceNotFoundError,
    SourceParseError,
    UnresolvedDependencyError,
)
from ext_order.extractor import extract_declarations, get_extractor
from ext_order.models import ClassDeclaration, OrderConfig, SourceUnit

__all__ = [
    "ClassDeclaration",
    "CircularDependencyError",
    "DependencyGraphBuilder",
    "OrderConfig",
    "OrderError",
    "SourceNotFoundError",
    "SourceParseError",
    "SourceUnit",
    "TopologicalSorter",
    "UnresolvedDependencyError",
    "extract_declarations",
    "get_extractor",
    "order",
]
