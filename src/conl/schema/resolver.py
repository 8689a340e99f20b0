"""
Reference resolution, cycle detection and pattern compilation.

``resolve`` turns a ``SchemaModel`` into a frozen ``Schema`` that validators can
share. It runs once per schema and performs every static check up front:

1. Every ``<name>`` reference (and the root) names an existing definition.
2. The reference graph is acyclic (self-references included).
3. No chain of references is longer than ``max_reference_depth``.
4. Every pattern compiles with the configured pattern engine.

Pattern engine
--------------
Matching is a pluggable capability. A ``PatternEngine`` compiles a pattern into
a predicate answering "does the whole string match". ``RegexEngine`` is the
default and uses the stdlib ``re`` module with ``fullmatch`` semantics.

Notes:
    - The resolved ``Schema`` is immutable; sharing it across threads needs no locking.
    - Validators must not call ``resolve`` again; they receive a ``Schema``.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Protocol

from conl.core.constants import DEFAULT_MAX_DEPTH, DEFAULT_MAX_REFERENCE_DEPTH
from conl.core.errors import (
    CyclicDefinitionError,
    InvalidPatternError,
    SchemaShapeError,
    UnknownDefinitionError,
)

from .model import Definition, MatcherKind, SchemaModel, iter_matchers, parse_schema_model

__all__ = [
    "PatternTest",
    "PatternEngine",
    "RegexEngine",
    "Schema",
    "reference_graph",
    "find_cycle",
    "chain_depths",
    "resolve",
    "load_schema",
]

logger = logging.getLogger(__name__)

PatternTest = Callable[[str], bool]


class PatternEngine(Protocol):
    """Compiles a pattern into a full-string match predicate."""

    def compile(self, pattern: str) -> PatternTest: ...


class RegexEngine:
    """
    Default pattern engine backed by ``re``.

    Args:
        flags (int): Flags passed to ``re.compile``.

    Examples:
        >>> test = RegexEngine().compile(r"\\d+")
        >>> test("8080"), test("8080ms")
        (True, False)
    """

    def __init__(self, flags: int = 0) -> None:
        self._flags = flags

    def compile(self, pattern: str) -> PatternTest:
        try:
            compiled = re.compile(pattern, self._flags)
        except re.error as exc:
            raise InvalidPatternError(pattern, str(exc)) from exc

        def test(text: str) -> bool:
            return compiled.fullmatch(text) is not None

        return test


@dataclass(slots=True, frozen=True)
class Schema:
    """
    A resolved schema, ready to validate any number of documents.

    Attributes:
        model (SchemaModel): Definitions arena and root name.
        patterns (Mapping[str, PatternTest]): Compiled predicate per pattern source.
    """

    model: SchemaModel
    patterns: Mapping[str, PatternTest] = field(compare=False)

    @property
    def root(self) -> str:
        return self.model.root

    @property
    def definitions(self) -> Mapping[str, Definition]:
        return self.model.definitions

    def definition(self, name: str) -> Definition:
        return self.model.definitions[name]

    def root_definition(self) -> Definition:
        return self.model.definitions[self.model.root]

    def matches(self, pattern: str, text: str) -> bool:
        return self.patterns[pattern](text)


def reference_graph(model: SchemaModel) -> dict[str, tuple[str, ...]]:
    """Map each definition name to the distinct names it references, in schema order."""
    graph: dict[str, tuple[str, ...]] = {}
    for name, definition in model.definitions.items():
        targets = (m.text for m in iter_matchers(definition) if m.kind is MatcherKind.REFERENCE)
        graph[name] = tuple(dict.fromkeys(targets))
    return graph


class _Mark(Enum):
    NEW = 0
    ON_STACK = 1
    DONE = 2


def find_cycle(graph: Mapping[str, tuple[str, ...]]) -> tuple[str, ...] | None:
    """
    Find one cycle in a directed graph using an iterative depth-first search.

    Args:
        graph (Mapping[str, tuple[str, ...]]): Adjacency lists; targets missing
            from the mapping are treated as leaves.

    Returns:
        tuple[str, ...] | None: The cycle as ``(a, b, ..., a)``, or None when acyclic.

    Examples:
        >>> find_cycle({"a": ("b",), "b": ("a",)})
        ('a', 'b', 'a')
        >>> find_cycle({"a": ("a",)})
        ('a', 'a')
        >>> find_cycle({"a": ("b",), "b": ()}) is None
        True
    """
    marks = dict.fromkeys(graph, _Mark.NEW)
    for start in graph:
        if marks[start] is not _Mark.NEW:
            continue
        path = [start]
        marks[start] = _Mark.ON_STACK
        pending: list[Iterator[str]] = [iter(graph[start])]
        while pending:
            nxt = next(pending[-1], None)
            if nxt is None:
                marks[path.pop()] = _Mark.DONE
                pending.pop()
                continue
            mark = marks.get(nxt, _Mark.DONE)
            if mark is _Mark.ON_STACK:
                return (*path[path.index(nxt) :], nxt)
            if mark is _Mark.NEW:
                marks[nxt] = _Mark.ON_STACK
                path.append(nxt)
                pending.append(iter(graph[nxt]))
    return None


def chain_depths(graph: Mapping[str, tuple[str, ...]]) -> dict[str, int]:
    """
    Length of the longest reference chain starting at each node of an acyclic graph.

    Args:
        graph (Mapping[str, tuple[str, ...]]): Acyclic adjacency lists; targets
            missing from the mapping count as leaves.

    Returns:
        dict[str, int]: Number of reference hops on the longest path from each node.

    Examples:
        >>> chain_depths({"a": ("b",), "b": ("c",), "c": ()})
        {'c': 0, 'b': 1, 'a': 2}
    """
    depths: dict[str, int] = {}
    for start in graph:
        if start in depths:
            continue
        pending: list[tuple[str, Iterator[str]]] = [(start, iter(graph[start]))]
        while pending:
            node, targets = pending[-1]
            nxt = next((t for t in targets if t in graph and t not in depths), None)
            if nxt is not None:
                pending.append((nxt, iter(graph[nxt])))
                continue
            pending.pop()
            depths[node] = max((depths.get(t, 0) + 1 for t in graph[node]), default=0)
    return depths


def _check_chain_length(graph: Mapping[str, tuple[str, ...]], limit: int) -> None:
    depths = chain_depths(graph)
    name, longest = max(depths.items(), key=lambda item: item[1], default=("", 0))
    if longest > limit:
        raise SchemaShapeError(
            f"reference chain starting at <{name}> is {longest} references deep; "
            f"the limit is {limit}"
        )


def _check_references(model: SchemaModel, graph: Mapping[str, tuple[str, ...]]) -> None:
    if model.root not in model.definitions:
        raise UnknownDefinitionError(model.root, "root")
    for name, targets in graph.items():
        for target in targets:
            if target not in model.definitions:
                raise UnknownDefinitionError(target, name)


def _compile(engine: PatternEngine, pattern: str) -> PatternTest:
    try:
        return engine.compile(pattern)
    except InvalidPatternError:
        raise
    except Exception as exc:
        raise InvalidPatternError(pattern, str(exc)) from exc


def resolve(
    model: SchemaModel,
    *,
    engine: PatternEngine | None = None,
    max_reference_depth: int = DEFAULT_MAX_REFERENCE_DEPTH,
) -> Schema:
    """
    Resolve references, reject cycles and compile patterns.

    Args:
        model (SchemaModel): Interpreted schema document.
        engine (PatternEngine | None): Pattern engine; defaults to ``RegexEngine()``.
        max_reference_depth (int): Longest allowed chain of references.

    Returns:
        Schema: Frozen, resolved schema.

    Raises:
        UnknownDefinitionError: A reference (or the root) names no definition.
        CyclicDefinitionError: The reference graph has a cycle.
        SchemaShapeError: A reference chain is longer than ``max_reference_depth``.
        InvalidPatternError: A pattern fails to compile.
    """
    engine = engine or RegexEngine()
    graph = reference_graph(model)
    _check_references(model, graph)
    cycle = find_cycle(graph)
    if cycle is not None:
        raise CyclicDefinitionError(cycle)
    _check_chain_length(graph, max_reference_depth)
    patterns: dict[str, PatternTest] = {}
    for definition in model.definitions.values():
        for matcher in iter_matchers(definition):
            if matcher.kind is MatcherKind.PATTERN and matcher.text not in patterns:
                patterns[matcher.text] = _compile(engine, matcher.text)
    logger.debug(
        "resolved schema: %d definitions, %d patterns, root <%s>",
        len(model.definitions),
        len(patterns),
        model.root,
    )
    return Schema(model=model, patterns=MappingProxyType(patterns))


def load_schema(
    text: str,
    *,
    engine: PatternEngine | None = None,
    max_depth: int = DEFAULT_MAX_DEPTH,
    max_reference_depth: int = DEFAULT_MAX_REFERENCE_DEPTH,
) -> Schema:
    """Parse, interpret and resolve schema text in one call."""
    model = parse_schema_model(text, max_depth=max_depth)
    return resolve(model, engine=engine, max_reference_depth=max_reference_depth)
