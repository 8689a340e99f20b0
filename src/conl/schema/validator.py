"""
Validation of document trees against a resolved schema.

The validator is a pure function of (value, schema): it never raises for a
mismatch and always returns every violation it can reach from the root, each
with the document path where it occurred.

Rules
-----
| Definition | Value must be | Violations                                             |
|------------|---------------|--------------------------------------------------------|
| scalar     | Scalar        | TypeMismatch (wrong shape or pattern mismatch)         |
| list       | List          | MissingRequiredItem, UnexpectedItem, item violations   |
| map        | Map           | MissingRequiredKey, UnexpectedKey, value violations    |
| any_of     | anything      | NoAlternativeMatched (causes: closest alternative)     |

Map binding
- Required rules are taken in schema order; each binds to the first unused
  entry (document order) whose key and value both match.
- An unsatisfied required rule yields one MissingRequiredKey. Entries left
  unconsumed after all required rules are bound, whose key matched it but whose
  value did not, are attached as ``causes`` and are not reported again.
- Every other entry must satisfy some ``keys`` rule. An entry whose key matches
  no rule is an UnexpectedKey; an entry whose key matches but whose value does
  not reports the value violations of the first rule whose key matched.

Closest alternative
- When no ``any of`` alternative matches, the causes come from the alternative
  that accepts the value's shape with the fewest violations (ties: schema order).

Notes:
    - Empty values satisfy no definition.
    - Paths are tuples of map keys (str) and list indices (int);
      ``format_path`` renders them as ``servers[0].port``.
    - Recursion follows ``<name>`` references only, so its depth is bounded by
      the resolver's ``max_reference_depth``.
"""

from __future__ import annotations

import logging
import re
from enum import Enum

from pydantic import BaseModel, ConfigDict

from conl.core.value import Scalar, Value, ValueKind

from .model import (
    AnyOfDef,
    Definition,
    DefinitionKind,
    KeyRule,
    ListDef,
    MapDef,
    Matcher,
    MatcherKind,
)
from .resolver import Schema

__all__ = [
    "ViolationKind",
    "Violation",
    "ValidationResult",
    "Validator",
    "validate",
    "format_path",
]

logger = logging.getLogger(__name__)

Path = tuple[str | int, ...]

_PLAIN_KEY_RE = re.compile(r"[A-Za-z0-9_\-]+")


class ViolationKind(Enum):
    """Kinds of schema violations."""

    TYPE_MISMATCH = "TypeMismatch"
    MISSING_REQUIRED_ITEM = "MissingRequiredItem"
    UNEXPECTED_ITEM = "UnexpectedItem"
    MISSING_REQUIRED_KEY = "MissingRequiredKey"
    UNEXPECTED_KEY = "UnexpectedKey"
    NO_ALTERNATIVE_MATCHED = "NoAlternativeMatched"


def format_path(path: Path) -> str:
    """
    Render a document path for humans.

    Examples:
        >>> format_path(("servers", 0, "port"))
        'servers[0].port'
        >>> format_path(("odd key",))
        "['odd key']"
        >>> format_path(())
        '<root>'
    """
    if not path:
        return "<root>"
    parts: list[str] = []
    for step in path:
        if isinstance(step, int):
            parts.append(f"[{step}]")
        elif _PLAIN_KEY_RE.fullmatch(step):
            parts.append(f".{step}" if parts else step)
        else:
            parts.append(f"[{step!r}]")
    return "".join(parts)


class Violation(BaseModel):
    """
    One mismatch between a document value and the schema.

    Attributes:
        path (tuple[str | int, ...]): Document path of the offending value.
        kind (ViolationKind): Violation kind.
        message (str): Human-readable description.
        causes (tuple[Violation, ...]): Underlying violations (diagnostics only).
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    path: tuple[str | int, ...] = ()
    kind: ViolationKind
    message: str
    causes: tuple[Violation, ...] = ()

    @property
    def location(self) -> str:
        return format_path(self.path)

    def __str__(self) -> str:
        return f"{self.location}: {self.message}"


Violation.model_rebuild()


class ValidationResult(BaseModel):
    """
    Verdict of one validation run.

    Attributes:
        ok (bool): True when there are no violations.
        violations (list[Violation]): Violations in discovery order.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    ok: bool
    violations: list[Violation]


def _describe(value: Value) -> str:
    if value.kind is ValueKind.SCALAR:
        return f"scalar {value.text!r}"
    if value.kind is ValueKind.MAP:
        return "a map"
    if value.kind is ValueKind.LIST:
        return "a list"
    return "an empty value"


class Validator:
    """
    Validates document trees against one resolved schema.

    Args:
        schema (Schema): Resolved schema from ``conl.schema.resolver.resolve``.

    Notes:
        The validator holds no per-call state; one instance may be shared.
    """

    def __init__(self, schema: Schema) -> None:
        self._schema = schema

    @property
    def schema(self) -> Schema:
        return self._schema

    def validate(self, value: Value) -> ValidationResult:
        violations = self.check(value, self._schema.root_definition())
        logger.debug(
            "validated document against <%s>: %d violations", self._schema.root, len(violations)
        )
        return ValidationResult(ok=not violations, violations=violations)

    def check(self, value: Value, definition: Definition, path: Path = ()) -> list[Violation]:
        """Return the violations of ``value`` at ``path`` against ``definition``."""
        if definition.kind is DefinitionKind.SCALAR:
            if value.kind is not ValueKind.SCALAR:
                return [self._mismatch(path, f"expected a scalar, got {_describe(value)}")]
            return self.match(value, definition.matcher, path)
        if definition.kind is DefinitionKind.LIST:
            return self._check_list(value, definition, path)
        if definition.kind is DefinitionKind.MAP:
            return self._check_map(value, definition, path)
        return self._check_any_of(value, definition, path)

    def match(self, value: Value, matcher: Matcher, path: Path = ()) -> list[Violation]:
        """Return the violations of ``value`` against a single matcher."""
        if matcher.kind is MatcherKind.REFERENCE:
            return self.check(value, self._schema.definition(matcher.text), path)
        if value.kind is not ValueKind.SCALAR:
            return [
                self._mismatch(
                    path, f"expected a scalar matching {matcher.text!r}, got {_describe(value)}"
                )
            ]
        if self._schema.matches(matcher.text, value.text):
            return []
        return [self._mismatch(path, f"{value.text!r} does not match {matcher.text!r}")]

    # ------------------------------------------------------------------

    @staticmethod
    def _mismatch(path: Path, message: str) -> Violation:
        return Violation(path=path, kind=ViolationKind.TYPE_MISMATCH, message=message)

    def _key_matches(self, key: str, matcher: Matcher) -> bool:
        return not self.match(Scalar(key), matcher)

    def _check_list(self, value: Value, definition: ListDef, path: Path) -> list[Violation]:
        if value.kind is not ValueKind.LIST:
            return [self._mismatch(path, f"expected a list, got {_describe(value)}")]
        out: list[Violation] = []
        items = value.items
        required = definition.required_items
        for index, matcher in enumerate(required):
            if index >= len(items):
                out.append(
                    Violation(
                        path=(*path, index),
                        kind=ViolationKind.MISSING_REQUIRED_ITEM,
                        message=f"missing required item {index} matching {matcher}",
                    )
                )
            else:
                out.extend(self.match(items[index], matcher, (*path, index)))
        for index in range(len(required), len(items)):
            if definition.items is None:
                out.append(
                    Violation(
                        path=(*path, index),
                        kind=ViolationKind.UNEXPECTED_ITEM,
                        message=f"unexpected item; at most {len(required)} items are allowed",
                    )
                )
            else:
                out.extend(self.match(items[index], definition.items, (*path, index)))
        return out

    def _check_map(self, value: Value, definition: MapDef, path: Path) -> list[Violation]:
        if value.kind is not ValueKind.MAP:
            return [self._mismatch(path, f"expected a map, got {_describe(value)}")]
        entries = value.entries
        out: list[Violation] = []
        consumed: set[int] = set()
        reported: set[int] = set()

        unbound: list[KeyRule] = []
        for rule in definition.required_keys:
            for index, (key, child) in enumerate(entries):
                if index in consumed or not self._key_matches(key, rule.key):
                    continue
                if not self.match(child, rule.value, (*path, key)):
                    consumed.add(index)
                    break
            else:
                unbound.append(rule)

        # Near misses are entries left unconsumed once every required rule is bound.
        for rule in unbound:
            near: list[tuple[int, list[Violation]]] = []
            for index, (key, child) in enumerate(entries):
                if index in consumed or not self._key_matches(key, rule.key):
                    continue
                near.append((index, self.match(child, rule.value, (*path, key))))
            message = f"missing required key matching {rule.key} = {rule.value}"
            if near:
                present = ", ".join(repr(entries[index][0]) for index, _ in near)
                message += f" ({present} present with a non-matching value)"
            reported.update(index for index, _ in near)
            out.append(
                Violation(
                    path=path,
                    kind=ViolationKind.MISSING_REQUIRED_KEY,
                    message=message,
                    causes=tuple(v for _, problems in near for v in problems),
                )
            )

        for index, (key, child) in enumerate(entries):
            if index in consumed or index in reported:
                continue
            first: list[Violation] | None = None
            for rule in definition.keys:
                if not self._key_matches(key, rule.key):
                    continue
                problems = self.match(child, rule.value, (*path, key))
                if not problems:
                    first = []
                    break
                if first is None:
                    first = problems
            if first is None:
                out.append(
                    Violation(
                        path=(*path, key),
                        kind=ViolationKind.UNEXPECTED_KEY,
                        message=f"unexpected key {key!r}",
                    )
                )
            else:
                out.extend(first)
        return out

    def _check_any_of(self, value: Value, definition: AnyOfDef, path: Path) -> list[Violation]:
        best: list[Violation] | None = None
        best_rank: tuple[bool, int] | None = None
        for matcher in definition.alternatives:
            problems = self.match(value, matcher, path)
            if not problems:
                return []
            # Alternatives that reject the value outright rank below ones that accept its shape.
            rejected = any(
                v.path == path and v.kind is ViolationKind.TYPE_MISMATCH for v in problems
            )
            rank = (rejected, len(problems))
            if best_rank is None or rank < best_rank:
                best, best_rank = problems, rank
        alternatives = ", ".join(str(m) for m in definition.alternatives)
        return [
            Violation(
                path=path,
                kind=ViolationKind.NO_ALTERNATIVE_MATCHED,
                message=f"{_describe(value)} matches none of: {alternatives}",
                causes=tuple(best or ()),
            )
        ]


def validate(value: Value, schema: Schema) -> ValidationResult:
    """Validate ``value`` against the root definition of ``schema``."""
    return Validator(schema).validate(value)
