"""
Immutable document tree produced by the CONL parser.

A value is one of four closed variants, each tagged with a ``ValueKind``:

| Variant  | Payload                                  | CONL source                    |
|----------|------------------------------------------|--------------------------------|
| Scalar   | text, optional hint                      | ``key = text`` / ``= text``    |
| Map      | ordered (key, value) entries, keys unique| ``key`` followed by a block    |
| List     | ordered items                            | ``key`` followed by ``=`` lines|
| Empty    | none                                     | ``key`` with nothing after it  |

Consumers dispatch on ``value.kind`` rather than on subclass behavior.

Notes:
    - Map keys are case-sensitive. Insertion order is kept for iteration and
      serialization but two maps with the same entries in a different order
      compare equal.
    - List order is significant for equality.
    - Equality walks the tree with an explicit stack, so arbitrarily deep trees
      compare without recursion. Hashes cover only the top level.
    - ``EMPTY`` is the only Empty instance the parser produces.

Examples:
    >>> from conl.core.value import Map, Scalar, ValueKind
    >>> m = Map.from_pairs([("port", Scalar("8080"))])
    >>> m["port"].text
    '8080'
    >>> m.kind is ValueKind.MAP
    True
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from enum import Enum
from typing import ClassVar

__all__ = [
    "ValueKind",
    "Scalar",
    "Map",
    "List",
    "Empty",
    "EMPTY",
    "Value",
]


class ValueKind(Enum):
    """Variant tag for document values."""

    SCALAR = "scalar"
    MAP = "map"
    LIST = "list"
    EMPTY = "empty"


@dataclass(slots=True, frozen=True)
class Scalar:
    """Leaf value: decoded text plus the optional hint written after ``\"\"\"``."""

    text: str
    hint: str | None = None

    kind: ClassVar[ValueKind] = ValueKind.SCALAR


@dataclass(slots=True, frozen=True, eq=False)
class Map:
    """Ordered mapping of unique string keys to values."""

    entries: tuple[tuple[str, Value], ...] = ()

    kind: ClassVar[ValueKind] = ValueKind.MAP

    @classmethod
    def from_pairs(cls, pairs: Iterable[tuple[str, Value]]) -> Map:
        entries = tuple(pairs)
        seen: set[str] = set()
        for key, _ in entries:
            if key in seen:
                raise ValueError(f"duplicate map key: {key!r}")
            seen.add(key)
        return cls(entries=entries)

    def get(self, key: str, default: Value | None = None) -> Value | None:
        for k, v in self.entries:
            if k == key:
                return v
        return default

    def keys(self) -> list[str]:
        return [k for k, _ in self.entries]

    def items(self) -> list[tuple[str, Value]]:
        return list(self.entries)

    def __getitem__(self, key: str) -> Value:
        for k, v in self.entries:
            if k == key:
                return v
        raise KeyError(key)

    def __contains__(self, key: object) -> bool:
        return any(k == key for k, _ in self.entries)

    def __iter__(self) -> Iterator[str]:
        return (k for k, _ in self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Map):
            return NotImplemented
        return _same(self, other)

    def __hash__(self) -> int:
        return hash((ValueKind.MAP, frozenset(self.keys())))


@dataclass(slots=True, frozen=True, eq=False)
class List:
    """Ordered sequence of values."""

    items: tuple[Value, ...] = ()

    kind: ClassVar[ValueKind] = ValueKind.LIST

    def __getitem__(self, index: int) -> Value:
        return self.items[index]

    def __iter__(self) -> Iterator[Value]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, List):
            return NotImplemented
        return _same(self, other)

    def __hash__(self) -> int:
        return hash((ValueKind.LIST, len(self.items)))


@dataclass(slots=True, frozen=True)
class Empty:
    """A key or list item with no value; an unset default."""

    kind: ClassVar[ValueKind] = ValueKind.EMPTY

    def __repr__(self) -> str:
        return "EMPTY"


EMPTY = Empty()

Value = Scalar | Map | List | Empty


def _same(left: Value, right: Value) -> bool:
    # Structural equality without recursion; map entries compare by key.
    pending: list[tuple[Value, Value]] = [(left, right)]
    while pending:
        a, b = pending.pop()
        if a is b:
            continue
        if a.kind is not b.kind:
            return False
        if a.kind is ValueKind.SCALAR:
            if a != b:
                return False
        elif a.kind is ValueKind.LIST:
            if len(a.items) != len(b.items):
                return False
            pending.extend(zip(a.items, b.items))
        elif a.kind is ValueKind.MAP:
            if len(a.entries) != len(b.entries):
                return False
            theirs = dict(b.entries)
            for key, child in a.entries:
                if key not in theirs:
                    return False
                pending.append((child, theirs[key]))
    return True
