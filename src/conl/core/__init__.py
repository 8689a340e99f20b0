"""
Core package aggregator for the CONL document model (values, lexer, scalars, parser, serde).

## Contracts (single source of truth)
- Value — immutable Scalar/Map/List/Empty tree tagged by ValueKind.
- Lexer — logical lines with indentation depth and raw scalar tokens.
- Scalars — escape grammar, decoding and encoding of scalar tokens.
- Parser — fail-fast tree builder over the lexer output.
- Serde — CONL serializer, plain-data conversion, pydantic model helpers.
- Errors — ParseError/SchemaError taxonomy with stable ``kind`` strings.

## Notes
- Zero-IO policy: stdlib + pydantic only; no file or network access.
- Values are created once by the parser and never mutated afterwards.

## Downstream usage
- conl.schema — parses schema text with ``parse`` and validates ``Value`` trees.
- conl.io — reads files and hands decoded text to ``parse``.

## Examples
```python
from conl.core import parse, dumps
doc = parse("name = demo\\nports\\n  = 80\\n")
doc["ports"][0].text  # '80'
dumps(doc) == "name = demo\\nports\\n  = 80\\n"  # True
```
"""

from __future__ import annotations

from .errors import ConlError, ErrorReport, ParseError, SchemaError
from .parser import loads, parse
from .serde import dump_model, dumps, from_python, load_model, to_python
from .value import EMPTY, Empty, List, Map, Scalar, Value, ValueKind

__all__ = [
    "ConlError",
    "ErrorReport",
    "ParseError",
    "SchemaError",
    "parse",
    "loads",
    "dumps",
    "to_python",
    "from_python",
    "load_model",
    "dump_model",
    "Value",
    "ValueKind",
    "Scalar",
    "Map",
    "List",
    "Empty",
    "EMPTY",
]
