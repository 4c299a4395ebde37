"""Pattern-matching extraction strategy.

Call targets are located with regular expressions; their argument lists are
read by a small literal reader that understands strings, arrays, object
literals and booleans, and skips everything else as an opaque expression.
"""

from __future__ import annotations

import re

from ext_order.errors import SourceParseError
from ext_order.extractor.base import OPAQUE, BaseExtractor, CallSite, unescape_js

_IDENT_RE = re.compile(r"[A-Za-z_$][\w$]*")
_NUMBER_RE = re.compile(r"[0-9][\w.]*")
_CLOSERS = {"(": ")", "[": "]", "{": "}"}
_DELIMITERS = ",)]}"
_MODIFIERS = {"get", "set", "async", "static"}

# A "/" after one of these starts a regex literal, otherwise it divides
_REGEX_PRECEDERS = "(,=:[!&|?{};+-*%<>~^"
_REGEX_KEYWORDS = {
    "return", "typeof", "instanceof", "in", "of", "new", "delete", "void",
    "throw", "case", "do", "else", "yield", "await",
}


def mask_source(source: str, label: str = "<source>") -> tuple[str, str]:
    """Blank out comments, string bodies and regex literal bodies.

    Returns ``(code, mask)``: ``code`` is the source with comments replaced by
    spaces, ``mask`` additionally blanks the inside of string and regex
    literals. Both keep every offset of the original text.
    """
    code = list(source)
    mask = list(source)
    length = len(source)
    pos = 0

    while pos < length:
        ch = source[pos]
        next_ch = source[pos + 1] if pos + 1 < length else ""

        if ch == "/" and next_ch == "/":
            end = source.find("\n", pos)
            end = length if end == -1 else end
            for i in range(pos, end):
                code[i] = mask[i] = " "
            pos = end
        elif ch == "/" and next_ch == "*":
            end = source.find("*/", pos + 2)
            if end == -1:
                raise SourceParseError(label, "unterminated block comment")
            for i in range(pos, end + 2):
                if source[i] != "\n":
                    code[i] = mask[i] = " "
            pos = end + 2
        elif ch in "'\"`":
            end = _string_end(source, pos)
            if end == -1:
                raise SourceParseError(label, f"unterminated string at offset {pos}")
            for i in range(pos + 1, end):
                mask[i] = " "
            pos = end + 1
        elif ch == "/" and _regex_allowed(code, pos):
            end = _regex_end(source, pos)
            if end == -1:
                raise SourceParseError(label, f"unterminated regular expression at offset {pos}")
            for i in range(pos + 1, end):
                mask[i] = " "
            pos = end + 1
        else:
            pos += 1

    return "".join(code), "".join(mask)


def _regex_allowed(text, pos: int) -> bool:
    """True when a ``/`` at ``pos`` starts a regex literal rather than a division.

    ``text`` is any indexable sequence of characters with comments blanked.
    """
    i = pos - 1
    while i >= 0 and text[i].isspace():
        i -= 1
    if i < 0:
        return True
    ch = text[i]
    if ch in _REGEX_PRECEDERS:
        return True
    if ch.isalnum() or ch in "_$":
        end = i + 1
        while i >= 0 and (text[i].isalnum() or text[i] in "_$"):
            i -= 1
        return "".join(text[i + 1:end]) in _REGEX_KEYWORDS
    return False


def _regex_end(source: str, start: int) -> int:
    """Offset of the closing ``/`` of the regex literal starting at ``start``, or -1."""
    pos = start + 1
    length = len(source)
    in_class = False
    while pos < length:
        ch = source[pos]
        if ch == "\\":
            pos += 2
            continue
        if ch == "\n":
            return -1
        if ch == "[":
            in_class = True
        elif ch == "]":
            in_class = False
        elif ch == "/" and not in_class:
            return pos
        pos += 1
    return -1


def _string_end(source: str, start: int) -> int:
    """Offset of the closing quote of the string starting at ``start``, or -1."""
    quote = source[start]
    pos = start + 1
    length = len(source)
    while pos < length:
        ch = source[pos]
        if ch == "\\":
            pos += 2
            continue
        if ch == quote:
            return pos
        if ch == "\n" and quote != "`":
            return -1
        pos += 1
    return -1


def _call_pattern(targets: tuple[str, ...]) -> re.Pattern:
    alternatives = [
        r"\s*\.\s*".join(re.escape(part) for part in target.split("."))
        for target in targets
    ]
    return re.compile(r"(?<![\w$.])(" + "|".join(alternatives) + r")\s*\(")


class _LiteralReader:
    """Reads JS literal values from comment-free source text."""

    def __init__(self, code: str, pos: int, label: str):
        self.code = code
        self.pos = pos
        self.label = label

    def error(self, message: str) -> SourceParseError:
        return SourceParseError(self.label, f"{message} at offset {self.pos}")

    def skip_ws(self) -> None:
        while self.pos < len(self.code) and self.code[self.pos].isspace():
            self.pos += 1

    def peek(self) -> str:
        self.skip_ws()
        return self.code[self.pos] if self.pos < len(self.code) else ""

    def expect(self, ch: str) -> None:
        if self.peek() != ch:
            raise self.error(f"expected {ch!r}")
        self.pos += 1

    def read_arguments(self) -> list:
        """Read a call's arguments; ``pos`` must be just past the opening paren."""
        args: list = []
        while True:
            ch = self.peek()
            if ch == ")":
                self.pos += 1
                return args
            if not ch or ch in "]}":
                raise self.error("unterminated argument list")
            args.append(self.read_value())
            if self.peek() == ",":
                self.pos += 1

    def read_value(self):
        ch = self.peek()
        if not ch:
            raise self.error("unexpected end of source")
        if ch in "'\"`":
            value = self._read_string()
        elif ch == "[":
            value = self._read_array()
        elif ch == "{":
            value = self._read_object()
        else:
            m = _IDENT_RE.match(self.code, self.pos)
            if m and m.group() in ("true", "false"):
                self.pos = m.end()
                value = m.group() == "true"
            else:
                self.skip_expression()
                return OPAQUE

        # Anything but a delimiter means the literal is part of a larger expression
        if self.peek() not in _DELIMITERS:
            self.skip_expression()
            return OPAQUE
        return value

    def _read_string(self):
        start = self.pos
        end = _string_end(self.code, start)
        if end == -1:
            raise self.error("unterminated string")
        self.pos = end + 1
        body = self.code[start + 1:end]
        if self.code[start] == "`" and "${" in body:
            return OPAQUE
        return unescape_js(body)

    def _read_array(self) -> list:
        self.expect("[")
        items: list = []
        while True:
            ch = self.peek()
            if ch == "]":
                self.pos += 1
                return items
            if ch == ",":
                self.pos += 1  # hole
                continue
            if not ch or ch in ")}":
                raise self.error("unterminated array")
            items.append(self.read_value())
            if self.peek() == ",":
                self.pos += 1

    def _read_object(self) -> dict:
        self.expect("{")
        result: dict = {}
        while True:
            ch = self.peek()
            if ch == "}":
                self.pos += 1
                return result
            if ch == ",":
                self.pos += 1
                continue
            if not ch:
                raise self.error("unterminated object literal")

            if self.code.startswith("...", self.pos):
                self.pos += 3
                self.skip_expression()
                continue

            key = self._read_key()
            ch = self.peek()
            if ch == ":":
                self.pos += 1
                value = self.read_value()
            elif ch == "(":
                self._skip_balanced()  # parameters
                if self.peek() != "{":
                    raise self.error("expected method body")
                self._skip_balanced()
                value = OPAQUE
            elif ch in ",}":
                value = OPAQUE  # shorthand property
            else:
                raise self.error("unexpected token in object literal")

            if key is not None:
                result[key] = value

    def _read_key(self) -> str | None:
        if self.peek() == "*":
            self.pos += 1
        ch = self.peek()
        if not ch:
            raise self.error("expected property name")
        if ch in "'\"":
            key = self._read_string()
            return key if isinstance(key, str) else None
        if ch == "[":
            self._skip_balanced()
            return None
        m = _IDENT_RE.match(self.code, self.pos) or _NUMBER_RE.match(self.code, self.pos)
        if not m:
            raise self.error("expected property name")
        self.pos = m.end()
        if m.group() in _MODIFIERS:
            nxt = self.peek()
            if nxt and (nxt in "[*'\"" or _IDENT_RE.match(nxt)):
                return self._read_key()
        return m.group()

    def _skip_balanced(self) -> None:
        """Skip a bracketed group starting at ``pos``."""
        stack = [_CLOSERS[self.code[self.pos]]]
        self.pos += 1
        while stack:
            if self.pos >= len(self.code):
                raise self.error("unbalanced brackets")
            ch = self.code[self.pos]
            if self._skip_literal(ch):
                continue
            if ch in _CLOSERS:
                stack.append(_CLOSERS[ch])
            elif ch in ")]}":
                if ch != stack.pop():
                    raise self.error("mismatched brackets")
            self.pos += 1

    def _skip_literal(self, ch: str) -> bool:
        """Step over a string or regex literal at ``pos``; False if there is none."""
        if ch in "'\"`":
            end = _string_end(self.code, self.pos)
            if end == -1:
                raise self.error("unterminated string")
        elif ch == "/" and _regex_allowed(self.code, self.pos):
            end = _regex_end(self.code, self.pos)
            if end == -1:
                raise self.error("unterminated regular expression")
        else:
            return False
        self.pos = end + 1
        return True

    def skip_expression(self) -> None:
        """Skip to the next top-level ``,`` or closing bracket."""
        while self.pos < len(self.code):
            ch = self.code[self.pos]
            if ch in _DELIMITERS:
                return
            if ch in _CLOSERS:
                self._skip_balanced()
                continue
            if self._skip_literal(ch):
                continue
            self.pos += 1
        raise self.error("unexpected end of source")


class RegexExtractor(BaseExtractor):
    """Lightweight extractor that works on raw text without a JS grammar."""

    name = "regex"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._call_re = _call_pattern(self.targets)

    def find_calls(self, source: str, label: str) -> list[CallSite]:
        code, mask = mask_source(source, label)
        calls: list[CallSite] = []
        for m in self._call_re.finditer(mask):
            target = re.sub(r"\s+", "", m.group(1))
            reader = _LiteralReader(code, m.end(), label)
            calls.append(CallSite(target=target, arguments=reader.read_arguments()))
        return calls
