r"""
Scalar tokens, decoding and encoding.

A scalar occurrence in CONL text is captured by the lexer as a ``RawScalar``
token in one of three styles, and turned into ``(text, hint)`` here.

Styles
------
| Style     | Source form                     | Escapes | Hint                  |
|-----------|---------------------------------|---------|-----------------------|
| unquoted  | ``port = 8080``                 | none    | always None           |
| quoted    | ``name = "a\tb"``               | yes     | always None           |
| multiline | triple quote, then body lines   | none    | token after the quotes|

Escape grammar (quoted only): ``\\``, ``\"``, ``\t``, ``\n``, ``\r`` and
``\{HEX}`` where HEX is 1-6 hex digits naming a Unicode code point. Any other
backslash sequence is a ``ScalarDecodeError`` at the backslash position.

Notes:
    - Decoding is pure: the same token always decodes to the same pair.
    - ``encode_scalar``/``encode_key`` are the inverse used by the serializer;
      they only quote when the unquoted form would not read back identically.

Examples:
    >>> from conl.core.scalars import RawScalar, ScalarStyle, decode_scalar, encode_scalar
    >>> decode_scalar(RawScalar(ScalarStyle.QUOTED, "\\t\\{1F321}", line=1, column=5))
    ('\t🌡', None)
    >>> encode_scalar("has;semicolon")
    '"has;semicolon"'
"""

from __future__ import annotations

import string
from dataclasses import dataclass
from enum import Enum

from .errors import ScalarDecodeError

__all__ = [
    "ScalarStyle",
    "RawScalar",
    "decode_scalar",
    "decode_quoted",
    "encode_scalar",
    "encode_key",
    "needs_quoting",
]

_SIMPLE_ESCAPES: dict[str, str] = {
    "\\": "\\",
    '"': '"',
    "t": "\t",
    "n": "\n",
    "r": "\r",
}

_ENCODE_ESCAPES: dict[str, str] = {
    "\\": "\\\\",
    '"': '\\"',
    "\t": "\\t",
    "\n": "\\n",
    "\r": "\\r",
}

_HEX_DIGITS = frozenset(string.hexdigits)
_MAX_CODE_POINT = 0x10FFFF


class ScalarStyle(Enum):
    """How a scalar was written in the source text."""

    UNQUOTED = "unquoted"
    QUOTED = "quoted"
    MULTILINE = "multiline"


@dataclass(slots=True, frozen=True)
class RawScalar:
    """
    One scalar occurrence as captured by the lexer, before decoding.

    Attributes:
        style (ScalarStyle): Source form of the token.
        source (str): Unquoted: trimmed text. Quoted: text between the quotes,
            escapes still encoded. Multiline: unused (empty).
        line (int): 1-based line of the token start.
        column (int): 1-based column of the token start (the opening quote for quoted tokens).
        hint (str | None): Multiline hint written right after the opening quotes.
        body (tuple[str, ...]): Multiline body lines with the base indent removed.
    """

    style: ScalarStyle
    source: str
    line: int
    column: int
    hint: str | None = None
    body: tuple[str, ...] = ()


def decode_quoted(source: str, line: int, column: int) -> str:
    """
    Decode the inside of a quoted scalar.

    Args:
        source (str): Characters between the quotes.
        line (int): Line of the token, for error reporting.
        column (int): Column of the opening quote, for error reporting.

    Returns:
        str: Decoded text.

    Raises:
        ScalarDecodeError: On an unknown escape, an unterminated ``\\{`` escape,
            non-hex digits, too many digits, or an invalid code point.
    """
    out: list[str] = []
    i = 0
    n = len(source)
    while i < n:
        ch = source[i]
        if ch != "\\":
            out.append(ch)
            i += 1
            continue
        # Column of the backslash: opening quote + 1 + offset.
        col = column + 1 + i
        if i + 1 >= n:
            raise ScalarDecodeError("dangling backslash at end of quoted scalar", line, col)
        nxt = source[i + 1]
        if nxt in _SIMPLE_ESCAPES:
            out.append(_SIMPLE_ESCAPES[nxt])
            i += 2
            continue
        if nxt != "{":
            raise ScalarDecodeError(f"invalid escape sequence '\\{nxt}'", line, col)
        close = source.find("}", i + 2)
        if close == -1:
            raise ScalarDecodeError("unterminated '\\{' escape", line, col)
        digits = source[i + 2 : close]
        if not digits or len(digits) > 6:
            raise ScalarDecodeError(
                f"'\\{{...}}' escape needs 1 to 6 hex digits, got {digits!r}", line, col
            )
        bad = next((d for d in digits if d not in _HEX_DIGITS), None)
        if bad is not None:
            raise ScalarDecodeError(f"non-hex digit {bad!r} in '\\{{...}}' escape", line, col)
        code = int(digits, 16)
        if code > _MAX_CODE_POINT or 0xD800 <= code <= 0xDFFF:
            raise ScalarDecodeError(f"invalid code point U+{code:04X}", line, col)
        out.append(chr(code))
        i = close + 1
    return "".join(out)


def decode_scalar(raw: RawScalar) -> tuple[str, str | None]:
    """
    Decode one scalar token into ``(text, hint)``.

    Args:
        raw (RawScalar): Token produced by ``conl.core.lexer``.

    Returns:
        tuple[str, str | None]: Decoded text and the multiline hint (None unless multiline).

    Raises:
        ScalarDecodeError: For malformed escapes in quoted tokens.
    """
    if raw.style is ScalarStyle.UNQUOTED:
        return raw.source, None
    if raw.style is ScalarStyle.QUOTED:
        return decode_quoted(raw.source, raw.line, raw.column), None
    return "\n".join(raw.body), raw.hint


def needs_quoting(text: str) -> bool:
    """Return True when ``text`` would not read back unchanged as an unquoted token."""
    if not text:
        return True
    if text[0] in ' \t"' or text[-1] in " \t":
        return True
    if ";" in text or "=" in text:
        return True
    return any(ord(ch) < 0x20 or ord(ch) == 0x7F for ch in text)


def _quote(text: str) -> str:
    parts: list[str] = []
    for ch in text:
        if ch in _ENCODE_ESCAPES:
            parts.append(_ENCODE_ESCAPES[ch])
        elif ord(ch) < 0x20 or ord(ch) == 0x7F:
            parts.append(f"\\{{{ord(ch):X}}}")
        else:
            parts.append(ch)
    return '"' + "".join(parts) + '"'


def encode_scalar(text: str) -> str:
    """Encode a value as an unquoted token when safe, else as a quoted token."""
    return _quote(text) if needs_quoting(text) else text


def encode_key(text: str) -> str:
    """Encode a map key; keys follow the same quoting rules as values."""
    return encode_scalar(text)
