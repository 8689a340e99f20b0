"""
CONL serialization and plain-data conversion.

Provides ``dumps`` as the inverse of ``conl.core.parser.parse``, conversions
between ``Value`` trees and plain Python data, and pydantic model helpers for
typed loading and dumping.

Notes:
    - ``parse(dumps(parse(text)))`` equals ``parse(text)``: keys, order, scalar
      text and hints survive a round trip.
    - Scalars with a hint, or with newlines, are written as multiline blocks
      when the body can be read back verbatim; otherwise they are quoted and
      the hint is dropped.
    - Empty maps and lists have no CONL spelling and are written as bare keys
      (they read back as Empty).
    - ``to_python`` drops hints; ``from_python`` renders booleans as
      ``true``/``false`` and numbers with ``str``.

Examples:
    >>> from conl.core.serde import dumps, from_python
    >>> print(dumps(from_python({"name": "a;b", "ports": [80, 443]})), end="")
    name = "a;b"
    ports
      = 80
      = 443
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, TypeVar

from pydantic import BaseModel

from .constants import SERIALIZER_INDENT
from .parser import parse
from .scalars import encode_key, encode_scalar
from .value import EMPTY, List, Map, Scalar, Value, ValueKind

__all__ = [
    "dumps",
    "to_python",
    "from_python",
    "load_model",
    "dump_model",
]

ModelT = TypeVar("ModelT", bound=BaseModel)


def _multiline_safe(text: str, hint: str | None) -> bool:
    # The lexer ends a hint at whitespace or ';' and drops one trailing '\r' per line.
    if hint is not None and (
        not hint or any(ch in hint for ch in " \t;\n") or hint.endswith("\r")
    ):
        return False
    if not text:
        return False
    lines = text.split("\n")
    if any(line.endswith("\r") for line in lines):
        return False
    first, last = lines[0], lines[-1]
    if not first.strip(" \t") or first[0] in " \t":
        return False
    return bool(last.strip(" \t"))


def _write(root: Map, indent: str) -> list[str]:
    out: list[str] = []
    pending: list[tuple[str | None, Value, int]] = [
        (encode_key(key), child, 0) for key, child in reversed(root.entries)
    ]
    while pending:
        head, value, depth = pending.pop()
        pad = indent * depth
        lead = f"{pad}{head}" if head is not None else f"{pad}="
        sep = " = " if head is not None else " "
        if value.kind is ValueKind.SCALAR:
            wants_block = value.hint is not None or "\n" in value.text
            if wants_block and _multiline_safe(value.text, value.hint):
                out.append(f'{lead}{sep}"""{value.hint or ""}')
                body_pad = indent * (depth + 1)
                for line in value.text.split("\n"):
                    out.append(f"{body_pad}{line}" if line else "")
            else:
                out.append(f"{lead}{sep}{encode_scalar(value.text)}")
            continue
        out.append(lead)
        if value.kind is ValueKind.MAP:
            pending.extend(
                (encode_key(key), child, depth + 1) for key, child in reversed(value.entries)
            )
        elif value.kind is ValueKind.LIST:
            pending.extend((None, child, depth + 1) for child in reversed(value.items))
    return out


def dumps(value: Value, *, indent: str = SERIALIZER_INDENT) -> str:
    """
    Serialize a document tree to CONL text.

    Args:
        value (Value): Document root; must be a ``Map`` or ``EMPTY``.
        indent (str): Indentation unit to write (spaces or a single tab).

    Returns:
        str: CONL text ending with a newline ("" for ``EMPTY``).

    Raises:
        TypeError: If the root is a Scalar or a List.
    """
    if value.kind is ValueKind.EMPTY:
        return ""
    if value.kind is not ValueKind.MAP:
        raise TypeError(f"document root must be a map, got {value.kind.value}")
    return "\n".join(_write(value, indent)) + "\n"


def to_python(value: Value) -> Any:
    """Convert a tree to dict/list/str/None. Hints are dropped."""
    # Each container is placed in its parent slot before its children are filled in.
    result: list[Any] = [None]
    pending: list[tuple[Value, Any, Any]] = [(value, result, 0)]
    while pending:
        node, parent, slot = pending.pop()
        if node.kind is ValueKind.SCALAR:
            parent[slot] = node.text
        elif node.kind is ValueKind.MAP:
            built: dict[str, Any] = dict.fromkeys(node.keys())
            parent[slot] = built
            pending.extend((child, built, key) for key, child in node.entries)
        elif node.kind is ValueKind.LIST:
            items: list[Any] = [None] * len(node.items)
            parent[slot] = items
            pending.extend((child, items, i) for i, child in enumerate(node.items))
        else:
            parent[slot] = None
    return result[0]


def from_python(obj: Any) -> Value:
    """
    Convert plain Python data to a tree.

    Args:
        obj (Any): Mapping, list/tuple, str, bool, int, float, None, or a Value.

    Returns:
        Value: Equivalent tree; None becomes ``EMPTY``.

    Raises:
        TypeError: For unsupported types.
    """
    if isinstance(obj, (Scalar, Map, List)) or obj is EMPTY:
        return obj
    if obj is None:
        return EMPTY
    if isinstance(obj, bool):
        return Scalar("true" if obj else "false")
    if isinstance(obj, (int, float)):
        return Scalar(str(obj))
    if isinstance(obj, str):
        return Scalar(obj)
    if isinstance(obj, Mapping):
        return Map.from_pairs((str(key), from_python(child)) for key, child in obj.items())
    if isinstance(obj, (list, tuple)):
        return List(tuple(from_python(child) for child in obj))
    raise TypeError(f"cannot convert {type(obj).__name__} to a CONL value")


def load_model(source: str | Value, model: type[ModelT]) -> ModelT:
    """
    Parse CONL text (or take a parsed tree) and validate it into a pydantic model.

    Args:
        source (str | Value): CONL text or an already parsed tree.
        model (type[BaseModel]): Target model class.

    Returns:
        BaseModel: Instance of ``model``.

    Raises:
        ParseError: If ``source`` is text that does not parse.
        pydantic.ValidationError: If the data does not fit the model.
    """
    value = parse(source) if isinstance(source, str) else source
    return model.model_validate(to_python(value))


def dump_model(instance: BaseModel) -> str:
    """Serialize a pydantic model to CONL text, omitting None fields."""
    return dumps(from_python(instance.model_dump(mode="json", exclude_none=True)))
