"""
Line-oriented lexer and indentation tracker for CONL text.

Turns raw text into a lazy sequence of logical ``Line`` records. Each record
carries its indentation depth, its content with indentation and trailing
comment removed, a ``LineKind`` and the raw key/value scalar tokens.

Responsibilities
- Infer the indentation unit (tabs or N spaces) from the first indented line
  and enforce it for every structural line.
- Strip comments that start at an unquoted ``;``.
- Split key and value tokens and capture quoted tokens whole.
- Collect multiline bodies so that the tree builder never sees them as
  structure; the body lines are still yielded with kind ``multiline``.

Line kinds
----------
| Kind       | Example                 | key  | value         |
|------------|-------------------------|------|---------------|
| comment    | ``; note``              | None | None          |
| key_value  | ``port = 8080``         | set  | set           |
| key_only   | ``servers``             | set  | None          |
| list_item  | ``= 8080`` / ``=``      | None | set or None   |
| multiline  | body line of a block    | None | None          |

Notes:
    - Blank lines are skipped entirely.
    - Depth is measured in indentation units, not characters.
    - Dedent validation (landing on an open level) is the tree builder's job;
      the lexer only checks that indentation is well formed.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum

from .errors import InvalidIndentationError, ScalarDecodeError
from .scalars import RawScalar, ScalarStyle

__all__ = [
    "LineKind",
    "Line",
    "tokenize",
]

_WS = " \t"


class LineKind(Enum):
    """Discriminator for logical lines."""

    COMMENT = "comment"
    KEY_VALUE = "key_value"
    KEY_ONLY = "key_only"
    LIST_ITEM = "list_item"
    MULTILINE = "multiline"


@dataclass(slots=True, frozen=True)
class Line:
    """
    One logical line of CONL text.

    Attributes:
        lineno (int): 1-based physical line number.
        column (int): 1-based column of the first non-indent character.
        depth (int): Indentation depth in units.
        kind (LineKind): Line discriminator.
        content (str): Text with indentation and trailing comment stripped
            (verbatim body text for multiline lines).
        key (RawScalar | None): Key token for key lines.
        value (RawScalar | None): Inline value token, if any.
    """

    lineno: int
    column: int
    depth: int
    kind: LineKind
    content: str
    key: RawScalar | None = None
    value: RawScalar | None = None


def _indent_prefix(raw: str) -> str:
    return raw[: len(raw) - len(raw.lstrip(_WS))]


def _is_blank(raw: str) -> bool:
    return not raw.strip(_WS)


def _skip_ws(raw: str, pos: int) -> int:
    while pos < len(raw) and raw[pos] in _WS:
        pos += 1
    return pos


def _scan_quoted(raw: str, start: int, lineno: int) -> int:
    # Return the index just past the closing quote of the token starting at `start`.
    i = start + 1
    while i < len(raw):
        ch = raw[i]
        if ch == "\\":
            i += 2
            continue
        if ch == '"':
            return i + 1
        i += 1
    raise ScalarDecodeError("unterminated quoted scalar", lineno, start + 1)


class _Lexer:
    def __init__(self, text: str) -> None:
        self._lines = [ln[:-1] if ln.endswith("\r") else ln for ln in text.split("\n")]
        self._i = 0
        self._unit: str | None = None
        self._body_start = 0

    # ------------------------------------------------------------------
    # indentation
    # ------------------------------------------------------------------

    def _check_chars(self, prefix: str, lineno: int) -> None:
        if " " in prefix and "\t" in prefix:
            raise InvalidIndentationError("indentation mixes tabs and spaces", lineno, 1)
        if self._unit is not None and prefix and prefix[0] != self._unit[0]:
            used = "tabs" if self._unit[0] == "\t" else "spaces"
            raise InvalidIndentationError(
                f"indentation mixes tabs and spaces (file indents with {used})", lineno, 1
            )

    def _depth(self, prefix: str, lineno: int) -> int:
        if not prefix:
            return 0
        self._check_chars(prefix, lineno)
        if self._unit is None:
            self._unit = prefix
        unit = len(self._unit)
        if len(prefix) % unit:
            raise InvalidIndentationError(
                f"indentation of {len(prefix)} is not a multiple of the unit ({unit})",
                lineno,
                len(prefix) + 1,
            )
        return len(prefix) // unit

    # ------------------------------------------------------------------
    # tokens
    # ------------------------------------------------------------------

    def _key(self, raw: str, pos: int, lineno: int) -> tuple[RawScalar, int]:
        if raw[pos] == '"':
            end = _scan_quoted(raw, pos, lineno)
            return RawScalar(ScalarStyle.QUOTED, raw[pos + 1 : end - 1], lineno, pos + 1), end
        end = pos
        while end < len(raw) and raw[end] not in "=;":
            end += 1
        text = raw[pos:end].rstrip(_WS)
        return RawScalar(ScalarStyle.UNQUOTED, text, lineno, pos + 1), end

    def _expect_end(self, raw: str, pos: int, lineno: int, what: str) -> None:
        pos = _skip_ws(raw, pos)
        if pos < len(raw) and raw[pos] != ";":
            raise ScalarDecodeError(f"unexpected text after {what}", lineno, pos + 1)

    def _value(
        self, raw: str, pos: int, lineno: int, indent: str
    ) -> tuple[RawScalar | None, int]:
        # Returns the token and the index where the line's content ends.
        pos = _skip_ws(raw, pos)
        if pos >= len(raw) or raw[pos] == ";":
            return None, pos
        if raw.startswith('"""', pos):
            hint_end = pos + 3
            while hint_end < len(raw) and raw[hint_end] not in " \t;":
                hint_end += 1
            hint = raw[pos + 3 : hint_end] or None
            self._expect_end(raw, hint_end, lineno, "multiline opener")
            body = self._multiline_body(lineno, pos + 1, indent)
            token = RawScalar(ScalarStyle.MULTILINE, "", lineno, pos + 1, hint=hint, body=body)
            return token, hint_end
        if raw[pos] == '"':
            end = _scan_quoted(raw, pos, lineno)
            self._expect_end(raw, end, lineno, "quoted scalar")
            return RawScalar(ScalarStyle.QUOTED, raw[pos + 1 : end - 1], lineno, pos + 1), end
        end = raw.find(";", pos)
        if end == -1:
            end = len(raw)
        return RawScalar(ScalarStyle.UNQUOTED, raw[pos:end].strip(_WS), lineno, pos + 1), end

    def _multiline_body(self, lineno: int, column: int, indent: str) -> tuple[str, ...]:
        # Consume physical lines after the opener until one is indented at or
        # below the opening line.
        base: str | None = None
        body: list[str] = []
        while self._i < len(self._lines):
            raw = self._lines[self._i]
            if _is_blank(raw):
                if base is not None:
                    body.append(raw[len(base) :] if raw.startswith(base) else "")
                self._i += 1
                continue
            prefix = _indent_prefix(raw)
            if len(prefix) <= len(indent):
                break
            if base is None:
                self._check_chars(prefix, self._i + 1)
                base = prefix
                self._body_start = self._i + 1
            elif not raw.startswith(base):
                raise InvalidIndentationError(
                    "multiline body line is indented less than the first body line",
                    self._i + 1,
                    1,
                )
            body.append(raw[len(base) :])
            self._i += 1
        while body and _is_blank(body[-1]):
            body.pop()
        if base is None:
            raise ScalarDecodeError("multiline scalar has no indented body", lineno, column)
        return tuple(body)

    # ------------------------------------------------------------------
    # lines
    # ------------------------------------------------------------------

    def lines(self) -> Iterator[Line]:
        while self._i < len(self._lines):
            raw = self._lines[self._i]
            lineno = self._i + 1
            self._i += 1
            if _is_blank(raw):
                continue
            indent = _indent_prefix(raw)
            pos = len(indent)
            col = pos + 1
            if raw[pos] == ";":
                # Comment lines do not participate in structure; skip indentation checks.
                yield Line(lineno, col, 0, LineKind.COMMENT, raw[pos:].rstrip(_WS))
                continue
            depth = self._depth(indent, lineno)
            if raw[pos] == "=":
                value, end = self._value(raw, pos + 1, lineno, indent)
                content = raw[pos:end].rstrip(_WS)
                yield Line(lineno, col, depth, LineKind.LIST_ITEM, content, value=value)
            else:
                key, end = self._key(raw, pos, lineno)
                end = _skip_ws(raw, end)
                value = None
                if end < len(raw) and raw[end] == "=":
                    value, end = self._value(raw, end + 1, lineno, indent)
                elif end < len(raw) and raw[end] != ";":
                    raise ScalarDecodeError("expected '=' after quoted key", lineno, end + 1)
                kind = LineKind.KEY_ONLY if value is None else LineKind.KEY_VALUE
                content = raw[pos:end].rstrip(_WS)
                yield Line(lineno, col, depth, kind, content, key=key, value=value)
            if value is not None and value.style is ScalarStyle.MULTILINE:
                for offset, text in enumerate(value.body):
                    yield Line(
                        self._body_start + offset, col, depth + 1, LineKind.MULTILINE, text
                    )


def tokenize(text: str) -> Iterator[Line]:
    """
    Lazily split CONL text into logical lines.

    Args:
        text (str): Decoded document text.

    Yields:
        Line: Logical lines in source order (blank lines omitted).

    Raises:
        InvalidIndentationError: Mixed tabs/spaces or indentation that is not a
            whole number of units.
        ScalarDecodeError: Unterminated quotes, stray text after a quoted token,
            or a multiline opener without a body.
    """
    return _Lexer(text).lines()
