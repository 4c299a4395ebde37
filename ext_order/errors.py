"""Exceptions raised by the ordering core and its collaborators."""

from __future__ import annotations

from pathlib import Path


class OrderError(Exception):
    """Base class for ext-order failures."""


class SourceParseError(OrderError):
    """A unit could not be parsed and strict parsing was requested."""

    def __init__(self, label: str, reason: str):
        self.label = label
        self.reason = reason
        super().__init__(f"Cannot parse {label}: {reason}")


class CircularDependencyError(OrderError, ValueError):
    """Two units were found on the same dependency path during sorting."""

    def __init__(self, source: str, target: str):
        self.source = source
        self.target = target
        super().__init__(f"Circular dependency detected: '{source}' -> '{target}'")


class UnresolvedDependencyError(OrderError):
    """Dependency names without an owning unit, raised only in strict mode."""

    def __init__(self, missing: dict[str, list[str]]):
        self.missing = missing
        lines = [f"  {label}: {', '.join(names)}" for label, names in missing.items()]
        super().__init__("Unresolved dependencies:\n" + "\n".join(lines))


class SourceNotFoundError(OrderError):
    """One or more include directories do not exist."""

    def __init__(self, paths: list[Path]):
        self.paths = paths
        super().__init__("; ".join(f"{p} does not exist" for p in paths))
