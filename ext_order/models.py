"""Data models for the ext-order pipeline."""

from __future__ import annotations

import enum
import itertools
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Callable

from ext_order.namespace import qualify, root_namespace

if TYPE_CHECKING:
    from ext_order.analysis.graph_models import DependencyGraph
    from ext_order.extractor.base import BaseExtractor


# Configuration keys whose values are already fully qualified class names
DIRECT_DEPENDENCY_KEYS: tuple[str, ...] = ("extend", "override", "mixins", "requires", "model")

# Pluralised configuration key -> module kind used for namespace qualification
MODULE_KEYS: dict[str, str] = {
    "controllers": "controller",
    "models": "model",
    "views": "view",
    "stores": "store",
}

VIEWPORT_KEY = "autoCreateViewport"
VIEWPORT_TOKEN = "Viewport"


class SortColor(enum.Enum):
    WHITE = "white"  # unvisited
    GRAY = "gray"    # on the current DFS path
    BLACK = "black"  # emitted


class DeclarationKind(enum.Enum):
    APPLICATION = "application"
    CLASS = "class"


@dataclass
class ClassDeclaration:
    """One ``Ext.application`` / ``Ext.define`` found in a source unit."""
    class_name: str | None = None
    application_name: str | None = None
    is_application: bool = False
    auto_create_viewport: bool | str | None = None
    dependency_tokens: list[tuple[str, str]] = field(default_factory=list)  # (config key, raw token)

    @property
    def kind(self) -> DeclarationKind:
        return DeclarationKind.APPLICATION if self.is_application else DeclarationKind.CLASS

    @property
    def namespace(self) -> str | None:
        if self.is_application:
            return self.application_name or None
        if not self.class_name:
            return None
        return root_namespace(self.class_name)

    def full_class_name(self, module: str, token: str) -> str:
        """Qualify a short ``module`` name like ``'MyView'`` under this declaration's namespace."""
        return qualify(self.namespace, module, token)

    @property
    def dependency_names(self) -> list[str]:
        names: list[str] = []
        for key, token in self.dependency_tokens:
            module = MODULE_KEYS.get(key)
            names.append(self.full_class_name(module, token) if module else token)

        viewport = self.viewport_dependency
        if viewport:
            names.append(viewport)
        return names

    @property
    def viewport_dependency(self) -> str | None:
        if not self.is_application:
            return None
        value = self.auto_create_viewport
        if value is True or value == "true":
            return self.full_class_name("view", VIEWPORT_TOKEN)
        if isinstance(value, str) and value and value != "false":
            return value
        return None

    @property
    def display_name(self) -> str:
        return self.class_name or self.application_name or "<anonymous>"

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "class_name": self.class_name,
            "application_name": self.application_name,
            "dependencies": self.dependency_names,
        }


_unit_counter = itertools.count(1)


class SourceUnit:
    """A single JavaScript source text analysed for class declarations.

    Units compare by identity: two files with the same text are still two
    nodes in the graph.
    """

    def __init__(self, content: str | None = None, label: str | None = None, *,
                 path: Path | None = None,
                 provider: Callable[[], str] | None = None):
        if content is None and provider is None:
            raise ValueError("SourceUnit needs either content or a content provider")
        self._content = content
        self._provider = provider
        self.path = path
        self.label = label or (str(path) if path else f"<unit {next(_unit_counter)}>")
        self._declarations: tuple[ClassDeclaration, ...] | None = None
        self.dependencies: tuple[SourceUnit, ...] | None = None

    @classmethod
    def from_path(cls, path: Path, encoding: str = "utf-8") -> SourceUnit:
        path = Path(path)
        return cls(path=path, provider=lambda: path.read_text(encoding=encoding, errors="replace"))

    @classmethod
    def from_provider(cls, provider: Callable[[], str], label: str | None = None) -> SourceUnit:
        return cls(label=label, provider=provider)

    @property
    def content(self) -> str:
        if self._content is None:
            self._content = self._provider()
        return self._content

    def prepare(self, extractor: BaseExtractor | None = None) -> tuple[ClassDeclaration, ...]:
        """Run extraction once and cache the declarations."""
        if self._declarations is None:
            if extractor is None:
                from ext_order.extractor import get_extractor
                extractor = get_extractor()
            self._declarations = tuple(extractor.extract(self.content, label=self.label))
        return self._declarations

    @property
    def declarations(self) -> tuple[ClassDeclaration, ...]:
        return self.prepare()

    @property
    def class_names(self) -> list[str]:
        return [d.class_name for d in self.declarations if d.class_name]

    @property
    def dependency_names(self) -> list[str]:
        return [name for d in self.declarations for name in d.dependency_names]

    def resolve_dependencies(self, units: list[SourceUnit]) -> tuple[SourceUnit, ...]:
        """Return the units among ``units`` that define classes this unit depends on.

        On first call this builds the graph for the whole population, which
        sets ``dependencies`` on every unit in ``units``, not only this one
        (replacing whatever an earlier build left there). Later calls return
        the cached result.
        """
        if self.dependencies is None:
            from ext_order.analysis.dependency_graph import DependencyGraphBuilder
            population = list(units)
            if not any(u is self for u in population):
                population.append(self)
            DependencyGraphBuilder().build(population)
        return self.dependencies

    def __repr__(self) -> str:
        return f"SourceUnit({self.label!r})"

    def __str__(self) -> str:
        return self.label


@dataclass
class OrderConfig:
    """Configuration for the ordering pipeline."""
    include: list[Path] = field(default_factory=list)
    include_recursive: list[Path] = field(default_factory=list)
    exclude: list[Path] = field(default_factory=list)
    pattern: str = "*.js"
    strategy: str = "auto"  # auto | treesitter | regex
    strict_parse: bool = False
    strict_unresolved: bool = False
    framework_namespaces: list[str] = field(default_factory=lambda: ["Ext"])
    application_calls: list[str] = field(default_factory=lambda: ["Ext.application"])
    class_calls: list[str] = field(default_factory=lambda: ["Ext.define", "Ext.override"])
    output: Path | None = None
    encoding: str = "utf-8"
    separator: str = "\n"


@dataclass
class OrderResult:
    """Result from the ordering stage."""
    units: list[SourceUnit]
    graph: DependencyGraph
    unresolved: dict[str, list[str]] = field(default_factory=dict)
    elapsed: float = 0.0


@dataclass
class BundleResult:
    """Result from the bundling stage."""
    output_path: Path
    units: list[SourceUnit]
    byte_count: int
    elapsed_ms: int
    minified: bool = False
