"""Extractor registry."""

from __future__ import annotations

import logging

from ext_order.extractor.base import BaseExtractor, CallSite, OPAQUE
from ext_order.extractor.regex_extractor import RegexExtractor
from ext_order.models import ClassDeclaration, OrderConfig

logger = logging.getLogger(__name__)

# Try tree-sitter extractor; fall back to the pattern-matching one
_HAS_TREESITTER = False
try:
    from ext_order.extractor.treesitter_extractor import TreeSitterExtractor
    _HAS_TREESITTER = True
except ImportError:
    TreeSitterExtractor = None  # type: ignore[misc,assignment]

STRATEGIES = ("auto", "treesitter", "regex")


def has_treesitter() -> bool:
    return _HAS_TREESITTER


def get_extractor(
    strategy: str = "auto",
    *,
    strict: bool = False,
    application_calls: list[str] | None = None,
    class_calls: list[str] | None = None,
) -> BaseExtractor:
    """Return an extractor for ``strategy`` (``auto``, ``treesitter`` or ``regex``)."""
    if strategy not in STRATEGIES:
        raise ValueError(f"Unknown extraction strategy: {strategy!r}")

    kwargs = {
        "application_calls": application_calls,
        "class_calls": class_calls,
        "strict": strict,
    }
    if strategy == "treesitter" and not _HAS_TREESITTER:
        raise ValueError(
            "The treesitter strategy needs tree-sitter-language-pack. "
            "Install with: pip install 'ext-order[treesitter]'"
        )
    if strategy in ("auto", "treesitter") and _HAS_TREESITTER:
        try:
            return TreeSitterExtractor(**kwargs)
        except Exception as e:
            if strategy == "treesitter":
                raise ValueError(f"Cannot load the tree-sitter JavaScript grammar: {e}") from e
            logger.warning("Cannot load the tree-sitter JavaScript grammar (%s); using the regex extractor", e)
    return RegexExtractor(**kwargs)


def extractor_for_config(config: OrderConfig) -> BaseExtractor:
    return get_extractor(
        config.strategy,
        strict=config.strict_parse,
        application_calls=config.application_calls,
        class_calls=config.class_calls,
    )


def extract_declarations(
    unit_text: str,
    *,
    strategy: str = "auto",
    strict: bool = False,
    label: str = "<source>",
) -> list[ClassDeclaration]:
    """Extract class and application declarations from JavaScript source text."""
    return get_extractor(strategy, strict=strict).extract(unit_text, label=label)


__all__ = [
    "BaseExtractor",
    "CallSite",
    "OPAQUE",
    "RegexExtractor",
    "TreeSitterExtractor",
    "STRATEGIES",
    "extract_declarations",
    "extractor_for_config",
    "get_extractor",
    "has_treesitter",
]
