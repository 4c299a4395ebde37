"""Syntax-tree extraction strategy built on the tree-sitter JavaScript grammar."""

from __future__ import annotations

from ext_order.errors import SourceParseError
from ext_order.extractor.base import OPAQUE, BaseExtractor, CallSite, normalize_target, unescape_js

try:
    from tree_sitter_language_pack import get_parser
except ImportError as _err:
    raise ImportError(
        "tree-sitter-language-pack is required. Install with: "
        "pip install 'ext-order[treesitter]'"
    ) from _err

_GRAMMAR = "javascript"
_SKIPPED_TYPES = {"comment"}


class TreeSitterExtractor(BaseExtractor):
    """Walks the JavaScript syntax tree for recognised call expressions."""

    name = "treesitter"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        # Fails here, not per file, when the grammar cannot be loaded
        self._parser = get_parser(_GRAMMAR)

    def find_calls(self, source: str, label: str) -> list[CallSite]:
        source_bytes = source.encode("utf-8")
        tree = self._parser.parse(source_bytes)
        root = tree.root_node
        if self.strict and root.has_error:
            raise SourceParseError(label, "syntax error")

        calls: list[CallSite] = []
        self._walk_tree(root, calls)
        return calls

    def _walk_tree(self, root, calls: list[CallSite]) -> None:
        """Collect call sites in source order (pre-order)."""
        stack = [root]
        while stack:
            node = stack.pop()
            if node.type == "call_expression":
                call = self._call_site(node)
                if call is not None:
                    calls.append(call)
            stack.extend(reversed(node.children))

    def _call_site(self, node) -> CallSite | None:
        fn = node.child_by_field_name("function")
        args = node.child_by_field_name("arguments")
        if fn is None or args is None or args.type != "arguments":
            return None
        target = normalize_target(_text(fn))
        if target not in self.targets:
            return None
        return CallSite(target=target, arguments=[self._literal(a) for a in _named(args)])

    def _literal(self, node):
        kind = node.type
        if kind == "string":
            return unescape_js(_text(node)[1:-1])
        if kind == "template_string":
            if any(c.type == "template_substitution" for c in node.children):
                return OPAQUE
            return unescape_js(_text(node)[1:-1])
        if kind == "true":
            return True
        if kind == "false":
            return False
        if kind == "array":
            return [self._literal(c) for c in _named(node)]
        if kind == "object":
            return self._object(node)
        return OPAQUE

    def _object(self, node) -> dict:
        result: dict = {}
        for child in _named(node):
            if child.type == "pair":
                key = _key(child.child_by_field_name("key"))
                value_node = child.child_by_field_name("value")
                value = self._literal(value_node) if value_node is not None else OPAQUE
            elif child.type == "method_definition":
                key = _key(child.child_by_field_name("name"))
                value = OPAQUE
            elif child.type == "shorthand_property_identifier":
                key = _text(child)
                value = OPAQUE
            else:
                continue  # spread_element and friends
            if key is not None:
                result[key] = value
        return result


def _text(node) -> str:
    return node.text.decode("utf-8", errors="replace") if node.text else ""


def _named(node) -> list:
    return [c for c in node.named_children if c.type not in _SKIPPED_TYPES]


def _key(node) -> str | None:
    if node is None:
        return None
    if node.type == "string":
        return unescape_js(_text(node)[1:-1])
    if node.type in ("property_identifier", "number", "private_property_identifier"):
        return _text(node)
    return None  # computed_property_name
