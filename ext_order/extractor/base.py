"""Abstract base extractor: turns call sites into class declarations."""

from __future__ import annotations

import abc
import logging
import re
from dataclasses import dataclass, field

from ext_order.errors import SourceParseError
from ext_order.models import (
    DIRECT_DEPENDENCY_KEYS,
    MODULE_KEYS,
    VIEWPORT_KEY,
    ClassDeclaration,
)

logger = logging.getLogger(__name__)

DEFAULT_APPLICATION_CALLS = ("Ext.application",)
DEFAULT_CLASS_CALLS = ("Ext.define", "Ext.override")

_ESCAPE_RE = re.compile(r"\\(u\{[0-9a-fA-F]+\}|u[0-9a-fA-F]{4}|x[0-9a-fA-F]{2}|\r\n|.)", re.DOTALL)
_SIMPLE_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "b": "\b", "f": "\f", "v": "\v", "0": "\0"}


class Opaque:
    """Stands for any value that is not a plain literal (functions, identifiers, expressions)."""

    def __repr__(self) -> str:
        return "OPAQUE"


OPAQUE = Opaque()


@dataclass
class CallSite:
    """A recognised call with its arguments converted to Python literals."""
    target: str
    arguments: list = field(default_factory=list)


def unescape_js(raw: str) -> str:
    """Decode backslash escapes in the body of a JS string literal."""
    def _replace(m: re.Match) -> str:
        seq = m.group(1)
        if seq in ("\n", "\r\n", "\r", "\u2028", "\u2029"):
            return ""  # line continuation
        if seq.startswith("u{"):
            return chr(int(seq[2:-1], 16))
        if len(seq) == 5 and seq[0] == "u":
            return chr(int(seq[1:], 16))
        if len(seq) == 3 and seq[0] == "x":
            return chr(int(seq[1:], 16))
        return _SIMPLE_ESCAPES.get(seq, seq)

    if "\\" not in raw:
        return raw
    return _ESCAPE_RE.sub(_replace, raw)


def normalize_target(text: str) -> str:
    return re.sub(r"\s+", "", text)


def _string_leaves(value, allow_record: bool = False) -> list[str]:
    if isinstance(value, str):
        return [value]
    if isinstance(value, list):
        return [v for v in value if isinstance(v, str)]
    if allow_record and isinstance(value, dict):
        return [v for v in value.values() if isinstance(v, str)]
    return []


def collect_dependency_tokens(config: dict) -> list[tuple[str, str]]:
    """Read raw dependency tokens from a config record in fixed key order."""
    tokens: list[tuple[str, str]] = []
    for key in DIRECT_DEPENDENCY_KEYS:
        for value in _string_leaves(config.get(key), allow_record=(key == "mixins")):
            tokens.append((key, value))
    for key in MODULE_KEYS:
        for value in _string_leaves(config.get(key)):
            tokens.append((key, value))
    return tokens


def declaration_from_config(
    config: dict,
    *,
    class_name: str | None = None,
    is_application: bool = False,
) -> ClassDeclaration:
    app_name = config.get("name") if is_application else None
    viewport = config.get(VIEWPORT_KEY) if is_application else None
    if not isinstance(viewport, (bool, str)):
        viewport = None

    return ClassDeclaration(
        class_name=class_name,
        application_name=app_name if isinstance(app_name, str) else None,
        is_application=is_application,
        auto_create_viewport=viewport,
        dependency_tokens=collect_dependency_tokens(config),
    )


class BaseExtractor(abc.ABC):
    """Base class for declaration extraction strategies.

    Subclasses only translate JavaScript syntax into :class:`CallSite` objects
    whose arguments are plain Python values (``str``, ``bool``, ``list``,
    ``dict`` or :data:`OPAQUE`). Turning those into declarations is shared, so
    every strategy yields the same result for well-formed input.
    """

    name: str

    def __init__(
        self,
        application_calls: tuple[str, ...] | list[str] | None = None,
        class_calls: tuple[str, ...] | list[str] | None = None,
        strict: bool = False,
    ):
        self.application_calls = tuple(application_calls or DEFAULT_APPLICATION_CALLS)
        self.class_calls = tuple(class_calls or DEFAULT_CLASS_CALLS)
        self.strict = strict

    @property
    def targets(self) -> tuple[str, ...]:
        return self.application_calls + self.class_calls

    @abc.abstractmethod
    def find_calls(self, source: str, label: str) -> list[CallSite]:
        """Return recognised call sites in source order.

        Raises :class:`SourceParseError` when the source cannot be read.
        """

    def extract(self, source: str, *, label: str = "<source>") -> list[ClassDeclaration]:
        """Extract class declarations; degrades to an empty list unless strict."""
        try:
            calls = self.find_calls(source, label)
        except SourceParseError as e:
            if self.strict:
                raise
            logger.warning("%s; treating it as having no declarations", e)
            return []
        except Exception as e:
            if self.strict:
                raise SourceParseError(label, str(e)) from e
            logger.warning("Error parsing %s: %s; treating it as having no declarations", label, e)
            return []

        declarations: list[ClassDeclaration] = []
        for call in calls:
            decl = self._declaration_from_call(call)
            if decl is not None:
                declarations.append(decl)

        logger.debug("%s: %d declaration(s) via %s", label, len(declarations), self.name)
        return declarations

    def _declaration_from_call(self, call: CallSite) -> ClassDeclaration | None:
        if call.target in self.application_calls:
            config = next((a for a in call.arguments if isinstance(a, dict)), None)
            if config is None:
                return None
            return declaration_from_config(config, is_application=True)

        if call.target in self.class_calls:
            if not call.arguments or not isinstance(call.arguments[0], str):
                return None
            config = next((a for a in call.arguments[1:] if isinstance(a, dict)), {})
            return declaration_from_config(config, class_name=call.arguments[0])

        return None
