"""
Tree builder: CONL text to an immutable ``Value`` tree.

Consumes the logical lines from ``conl.core.lexer`` and assembles Map, List,
Scalar and Empty values with an explicit stack of frames, one per open
container. No Python recursion is used, so document depth is bounded only by
``max_depth``.

Structural rules
- A key line followed by a deeper line opens a child container: a Map when
  the first child line is a key, a List when it is an ``=`` item.
- A key (or ``=`` item) with neither an inline value nor a deeper block is Empty.
- A dedent must land exactly on the depth of an open container.
- Keys and ``=`` items may not be mixed under one parent.
- A line may not carry an inline value and also open a block.
- The document root is a Map (or Empty for text without content).

Errors are fail-fast: the first violation raises and no partial tree escapes.

Examples:
    >>> from conl.core.parser import parse
    >>> doc = parse("server\\n  port = 8080\\n  hosts\\n    = a\\n    = b\\n")
    >>> doc["server"]["port"].text
    '8080'
    >>> [item.text for item in doc["server"]["hosts"]]
    ['a', 'b']
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass, field

from .constants import DEFAULT_MAX_DEPTH
from .errors import (
    DuplicateKeyError,
    InvalidIndentationError,
    MalformedNodeError,
    MixedContainerError,
    NestingDepthError,
)
from .lexer import Line, LineKind, tokenize
from .scalars import RawScalar, decode_scalar
from .value import EMPTY, List, Map, Scalar, Value, ValueKind

__all__ = [
    "parse",
    "loads",
]

logger = logging.getLogger(__name__)

_STRUCTURAL = frozenset({LineKind.KEY_VALUE, LineKind.KEY_ONLY, LineKind.LIST_ITEM})


@dataclass(slots=True)
class _Frame:
    """One open container; ``kind`` is decided by its first child line."""

    depth: int
    line: int
    column: int
    kind: ValueKind | None = None
    keys: list[str] = field(default_factory=list)
    seen: set[str] = field(default_factory=set)
    values: list[Value] = field(default_factory=list)
    # Slot in the parent frame that receives this container when it closes.
    slot: int = -1

    def build(self) -> Value:
        if self.kind is ValueKind.LIST:
            return List(tuple(self.values))
        return Map(tuple(zip(self.keys, self.values)))


def _structural_lines(text: str) -> Iterator[Line]:
    return (line for line in tokenize(text) if line.kind in _STRUCTURAL)


def _scalar(raw: RawScalar) -> Scalar:
    text, hint = decode_scalar(raw)
    return Scalar(text, hint)


class _Builder:
    def __init__(self, max_depth: int) -> None:
        self._max_depth = max_depth
        self._stack: list[_Frame] = [_Frame(depth=0, line=1, column=1)]
        self._pending: Line | None = None
        self.line_count = 0

    def _close_top(self) -> None:
        frame = self._stack.pop()
        self._stack[-1].values[frame.slot] = frame.build()

    def _align(self, line: Line) -> _Frame:
        while len(self._stack) > 1 and line.depth < self._stack[-1].depth:
            self._close_top()
        top = self._stack[-1]
        if line.depth > top.depth:
            raise InvalidIndentationError("unexpected indentation", line.lineno, 1)
        if line.depth < top.depth:
            raise InvalidIndentationError(
                "dedent does not match any enclosing indentation level", line.lineno, 1
            )
        return top

    def _claim(self, frame: _Frame, line: Line) -> None:
        is_item = line.kind is LineKind.LIST_ITEM
        if frame.kind is None:
            if is_item and len(self._stack) == 1:
                raise MalformedNodeError(
                    "list items are not allowed at the document root", line.lineno, line.column
                )
            frame.kind = ValueKind.LIST if is_item else ValueKind.MAP
            return
        if is_item != (frame.kind is ValueKind.LIST):
            expected = "list items" if frame.kind is ValueKind.LIST else "keys"
            raise MixedContainerError(
                f"cannot mix keys and list items; this block already holds {expected}",
                line.lineno,
                line.column,
            )

    def _open_child(self, line: Line, child: Line, slot: int) -> None:
        nesting = len(self._stack)
        if nesting > self._max_depth:
            raise NestingDepthError(
                f"nesting exceeds the maximum depth of {self._max_depth}",
                child.lineno,
                child.column,
            )
        self._stack.append(
            _Frame(depth=child.depth, line=line.lineno, column=line.column, slot=slot)
        )

    def _settle(self, nxt: Line | None) -> None:
        # Decide the value of the previous line now that the following line is known.
        line = self._pending
        if line is None:
            return
        self._pending = None
        frame = self._stack[-1]
        has_block = nxt is not None and nxt.depth > line.depth
        if line.value is not None:
            if has_block:
                raise MalformedNodeError(
                    "a node cannot have both an inline value and an indented block",
                    nxt.lineno,
                    nxt.column,
                )
            frame.values.append(_scalar(line.value))
            return
        frame.values.append(EMPTY)
        if has_block:
            self._open_child(line, nxt, len(frame.values) - 1)

    def feed(self, line: Line) -> None:
        self._settle(line)
        self.line_count += 1
        frame = self._align(line)
        self._claim(frame, line)
        if line.key is not None:
            key, _ = decode_scalar(line.key)
            if key in frame.seen:
                raise DuplicateKeyError(f"duplicate key {key!r}", line.lineno, line.key.column)
            frame.keys.append(key)
            frame.seen.add(key)
        self._pending = line

    def finish(self) -> Value:
        self._settle(None)
        while len(self._stack) > 1:
            self._close_top()
        root = self._stack[0]
        if root.kind is None:
            return EMPTY
        return root.build()


def parse(text: str, *, max_depth: int = DEFAULT_MAX_DEPTH) -> Value:
    """
    Parse CONL text into a ``Value`` tree.

    Args:
        text (str): Decoded document text.
        max_depth (int): Maximum number of nested containers below the root.

    Returns:
        Value: A ``Map`` root, or ``EMPTY`` when the text has no content.

    Raises:
        InvalidIndentationError: Bad indentation or a dedent to no open level.
        ScalarDecodeError: Malformed quoted or multiline scalar.
        DuplicateKeyError: A key repeated within one map.
        MixedContainerError: Keys and ``=`` items under one parent.
        MalformedNodeError: Inline value plus block, or list items at the root.
        NestingDepthError: Nesting deeper than ``max_depth``.
    """
    builder = _Builder(max_depth)
    for line in _structural_lines(text):
        builder.feed(line)
    root = builder.finish()
    logger.debug("parsed CONL document: %d structural lines", builder.line_count)
    return root


loads = parse
