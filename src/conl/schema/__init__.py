"""
conl.schema — CONL schemas: model, resolution and validation.

## Responsibilities
- Interpret a parsed schema document into typed definitions (``model``).
- Resolve references, reject cyclic definitions and compile patterns once (``resolver``).
- Validate document trees and collect path-qualified violations (``validator``).

## Public API
- load_schema — schema text to a resolved, immutable ``Schema``.
- Validator / validate — document tree + Schema to a ``ValidationResult``.
- RegexEngine / PatternEngine — default and pluggable full-string matching.

## Import DAG discipline
- Depends on stdlib, pydantic, and conl.core; does not import conl.io.

## Examples
```python
from conl.core import parse
from conl.schema import load_schema, validate

schema = load_schema(
    "root = <doc>\\n"
    "definitions\\n"
    "  doc\\n"
    "    required keys\\n"
    "      port = \\\\d+\\n"
)
validate(parse("port = 8080\\n"), schema).ok  # True
validate(parse("port = http\\n"), schema).ok  # False
```
"""

from __future__ import annotations

from .model import (
    AnyOfDef,
    Definition,
    DefinitionKind,
    KeyRule,
    ListDef,
    MapDef,
    Matcher,
    MatcherKind,
    ScalarDef,
    SchemaModel,
    build_schema_model,
    parse_schema_model,
)
from .resolver import (
    PatternEngine,
    RegexEngine,
    Schema,
    chain_depths,
    find_cycle,
    load_schema,
    resolve,
)
from .validator import ValidationResult, Validator, Violation, ViolationKind, format_path, validate

__all__ = [
    "AnyOfDef",
    "Definition",
    "DefinitionKind",
    "KeyRule",
    "ListDef",
    "MapDef",
    "Matcher",
    "MatcherKind",
    "ScalarDef",
    "SchemaModel",
    "build_schema_model",
    "parse_schema_model",
    "PatternEngine",
    "RegexEngine",
    "Schema",
    "chain_depths",
    "find_cycle",
    "load_schema",
    "resolve",
    "ValidationResult",
    "Validator",
    "Violation",
    "ViolationKind",
    "format_path",
    "validate",
]
