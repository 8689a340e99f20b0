"""
Schema model: typed definitions interpreted from a parsed schema document.

A schema is itself a CONL document. It names a root definition and a map of
named definitions; each definition has exactly one shape.

Schema document
---------------
```
root = <config>
definitions
  config
    docs = Top-level service configuration
    required keys
      name = <name>
    keys
      port
        matches = \\d+
        docs = TCP port
  name
    scalar = [a-z][a-z0-9_]*
```

Shapes
------
| Kind    | Keys in the definition map             | Model     |
|---------|----------------------------------------|-----------|
| scalar  | ``scalar``                             | ScalarDef |
| list    | ``required items`` and/or ``items``    | ListDef   |
| map     | ``required keys`` and/or ``keys``      | MapDef    |
| any_of  | ``any of``                             | AnyOfDef  |

Matchers are either a bare scalar (a pattern, or ``<name>`` for a reference)
or a map with ``matches`` and optional ``docs``. Documentation never affects
matching. Unknown keys in definition and matcher maps are ignored.

Notes:
    - Definitions live in a name-indexed arena (``SchemaModel.definitions``);
      references are plain names, never object links.
    - This module only checks shape. Reference targets, cycles and pattern
      syntax are checked by ``conl.schema.resolver``.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import ClassVar

from conl.core.constants import DEFAULT_MAX_DEPTH
from conl.core.errors import SchemaShapeError
from conl.core.parser import parse
from conl.core.value import Map, Value, ValueKind

__all__ = [
    "MatcherKind",
    "Matcher",
    "KeyRule",
    "DefinitionKind",
    "ScalarDef",
    "ListDef",
    "MapDef",
    "AnyOfDef",
    "Definition",
    "SchemaModel",
    "iter_matchers",
    "build_schema_model",
    "parse_schema_model",
]

logger = logging.getLogger(__name__)


class MatcherKind(Enum):
    """Variant tag for matchers."""

    PATTERN = "pattern"
    REFERENCE = "reference"


@dataclass(slots=True, frozen=True)
class Matcher:
    """
    A schema-side rule for one value or key.

    Attributes:
        kind (MatcherKind): Pattern or reference.
        text (str): Regex source for patterns, definition name for references.
        docs (str | None): Documentation; excluded from equality.
    """

    kind: MatcherKind
    text: str
    docs: str | None = field(default=None, compare=False)

    @classmethod
    def parse(cls, raw: str, docs: str | None = None) -> Matcher:
        if len(raw) > 2 and raw.startswith("<") and raw.endswith(">"):
            return cls(MatcherKind.REFERENCE, raw[1:-1], docs)
        return cls(MatcherKind.PATTERN, raw, docs)

    def __str__(self) -> str:
        if self.kind is MatcherKind.REFERENCE:
            return f"<{self.text}>"
        return self.text


@dataclass(slots=True, frozen=True)
class KeyRule:
    """One ``key pattern = value matcher`` line of ``required keys`` or ``keys``."""

    key: Matcher
    value: Matcher


class DefinitionKind(Enum):
    """Variant tag for definitions."""

    SCALAR = "scalar"
    LIST = "list"
    MAP = "map"
    ANY_OF = "any_of"


@dataclass(slots=True, frozen=True)
class ScalarDef:
    matcher: Matcher
    docs: str | None = field(default=None, compare=False)

    kind: ClassVar[DefinitionKind] = DefinitionKind.SCALAR


@dataclass(slots=True, frozen=True)
class ListDef:
    required_items: tuple[Matcher, ...] = ()
    items: Matcher | None = None
    docs: str | None = field(default=None, compare=False)

    kind: ClassVar[DefinitionKind] = DefinitionKind.LIST


@dataclass(slots=True, frozen=True)
class MapDef:
    required_keys: tuple[KeyRule, ...] = ()
    keys: tuple[KeyRule, ...] = ()
    docs: str | None = field(default=None, compare=False)

    kind: ClassVar[DefinitionKind] = DefinitionKind.MAP


@dataclass(slots=True, frozen=True)
class AnyOfDef:
    alternatives: tuple[Matcher, ...]
    docs: str | None = field(default=None, compare=False)

    kind: ClassVar[DefinitionKind] = DefinitionKind.ANY_OF


Definition = ScalarDef | ListDef | MapDef | AnyOfDef


@dataclass(slots=True, frozen=True)
class SchemaModel:
    """
    Unresolved schema: the definitions arena plus the root definition name.

    Attributes:
        definitions (Mapping[str, Definition]): Read-only name-to-definition arena.
        root (str): Name of the definition the document root must match.
    """

    definitions: Mapping[str, Definition]
    root: str


def iter_matchers(definition: Definition) -> Iterator[Matcher]:
    """Yield every matcher of a definition, key matchers included, in schema order."""
    if definition.kind is DefinitionKind.SCALAR:
        yield definition.matcher
    elif definition.kind is DefinitionKind.LIST:
        yield from definition.required_items
        if definition.items is not None:
            yield definition.items
    elif definition.kind is DefinitionKind.MAP:
        for rule in (*definition.required_keys, *definition.keys):
            yield rule.key
            yield rule.value
    else:
        yield from definition.alternatives


# ============================================================================
# Interpretation of the parsed schema tree
# ============================================================================

_SHAPE_KEYS: dict[DefinitionKind, tuple[str, ...]] = {
    DefinitionKind.SCALAR: ("scalar",),
    DefinitionKind.LIST: ("required items", "items"),
    DefinitionKind.MAP: ("required keys", "keys"),
    DefinitionKind.ANY_OF: ("any of",),
}


def _docs(node: Map, where: str) -> str | None:
    docs = node.get("docs")
    if docs is None:
        return None
    if docs.kind is not ValueKind.SCALAR:
        raise SchemaShapeError(f"{where}: 'docs' must be a scalar")
    return docs.text


def _matcher(node: Value, where: str) -> Matcher:
    if node.kind is ValueKind.SCALAR:
        return Matcher.parse(node.text)
    if node.kind is ValueKind.MAP:
        matches = node.get("matches")
        if matches is None or matches.kind is not ValueKind.SCALAR:
            raise SchemaShapeError(f"{where}: matcher map needs a scalar 'matches'")
        return Matcher.parse(matches.text, _docs(node, where))
    raise SchemaShapeError(
        f"{where}: expected a pattern, a <reference>, or a map with 'matches'"
    )


def _matcher_list(node: Value, where: str) -> tuple[Matcher, ...]:
    if node.kind is ValueKind.EMPTY:
        return ()
    if node.kind is not ValueKind.LIST:
        raise SchemaShapeError(f"{where}: expected a list of matchers")
    return tuple(_matcher(item, f"{where}[{i}]") for i, item in enumerate(node.items))


def _key_rules(node: Value, where: str) -> tuple[KeyRule, ...]:
    if node.kind is ValueKind.EMPTY:
        return ()
    if node.kind is not ValueKind.MAP:
        raise SchemaShapeError(f"{where}: expected a map of key patterns to matchers")
    return tuple(
        KeyRule(Matcher.parse(key), _matcher(value, f"{where}.{key}"))
        for key, value in node.entries
    )


def _definition(name: str, node: Value) -> Definition:
    where = f"definitions.{name}"
    if node.kind is not ValueKind.MAP:
        raise SchemaShapeError(f"{where}: a definition must be a map")
    present = [kind for kind, keys in _SHAPE_KEYS.items() if any(k in node for k in keys)]
    if not present:
        raise SchemaShapeError(
            f"{where}: needs one of 'scalar', 'required items'/'items', "
            "'required keys'/'keys', or 'any of'"
        )
    if len(present) > 1:
        shapes = ", ".join(kind.value for kind in present)
        raise SchemaShapeError(f"{where}: mixes incompatible shapes ({shapes})")
    docs = _docs(node, where)
    kind = present[0]
    if kind is DefinitionKind.SCALAR:
        return ScalarDef(_matcher(node["scalar"], f"{where}.scalar"), docs)
    if kind is DefinitionKind.LIST:
        required = node.get("required items")
        items = node.get("items")
        return ListDef(
            required_items=(
                _matcher_list(required, f"{where}.required items") if required is not None else ()
            ),
            items=_matcher(items, f"{where}.items") if items is not None else None,
            docs=docs,
        )
    if kind is DefinitionKind.MAP:
        required = node.get("required keys")
        keys = node.get("keys")
        return MapDef(
            required_keys=(
                _key_rules(required, f"{where}.required keys") if required is not None else ()
            ),
            keys=_key_rules(keys, f"{where}.keys") if keys is not None else (),
            docs=docs,
        )
    return AnyOfDef(_matcher_list(node["any of"], f"{where}.any of"), docs)


def build_schema_model(tree: Value) -> SchemaModel:
    """
    Interpret a parsed schema document.

    Args:
        tree (Value): Root of the parsed schema document.

    Returns:
        SchemaModel: Definitions arena and root name (not yet resolved).

    Raises:
        SchemaShapeError: Missing ``root``/``definitions``, a definition with no
            or conflicting shapes, or a malformed matcher.
    """
    if tree.kind is not ValueKind.MAP:
        raise SchemaShapeError("schema document must be a map with 'root' and 'definitions'")
    root = tree.get("root")
    if root is None or root.kind is not ValueKind.SCALAR:
        raise SchemaShapeError("schema needs a scalar 'root' naming a definition")
    root_matcher = Matcher.parse(root.text)
    definitions = tree.get("definitions")
    if definitions is None or definitions.kind is not ValueKind.MAP:
        raise SchemaShapeError("schema needs a 'definitions' map")
    arena = {name: _definition(name, node) for name, node in definitions.entries}
    logger.debug("built schema model: %d definitions, root <%s>", len(arena), root_matcher.text)
    return SchemaModel(definitions=MappingProxyType(arena), root=root_matcher.text)


def parse_schema_model(text: str, *, max_depth: int = DEFAULT_MAX_DEPTH) -> SchemaModel:
    """Parse schema text and interpret it; parse errors propagate unchanged."""
    return build_schema_model(parse(text, max_depth=max_depth))
