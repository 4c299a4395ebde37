"""Data models for the unit dependency graph."""

from __future__ import annotations

from dataclasses import dataclass, field

from ext_order.errors import UnresolvedDependencyError
from ext_order.models import SourceUnit


@dataclass
class DependencyEdge:
    source: int  # index of the depending unit
    target: int  # index of the unit that declares class_name
    class_name: str


@dataclass
class DependencyGraph:
    units: list[SourceUnit] = field(default_factory=list)
    edges: list[DependencyEdge] = field(default_factory=list)
    forward: dict[int, list[int]] = field(default_factory=dict)  # source -> [targets], input order
    reverse: dict[int, list[int]] = field(default_factory=dict)  # target -> [sources]
    class_index: dict[str, int] = field(default_factory=dict)  # class name -> owning unit
    duplicates: dict[str, list[int]] = field(default_factory=dict)  # class name -> every declaring unit
    unresolved: dict[int, list[str]] = field(default_factory=dict)  # unit -> missing class names

    def dependencies_of(self, unit: SourceUnit) -> list[SourceUnit]:
        return [self.units[i] for i in self.forward.get(self.index_of(unit), [])]

    def dependents_of(self, unit: SourceUnit) -> list[SourceUnit]:
        return [self.units[i] for i in self.reverse.get(self.index_of(unit), [])]

    def index_of(self, unit: SourceUnit) -> int:
        for i, u in enumerate(self.units):
            if u is unit:
                return i
        raise KeyError(unit.label)

    def unresolved_by_label(self) -> dict[str, list[str]]:
        return {self.units[i].label: names for i, names in self.unresolved.items() if names}

    def require_resolved(self) -> None:
        """Raise :class:`UnresolvedDependencyError` if any unit has unresolved names."""
        unresolved = self.unresolved_by_label()
        if unresolved:
            raise UnresolvedDependencyError(unresolved)
