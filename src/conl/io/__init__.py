"""
conl.io — File loading for CONL documents and schemas.

## Responsibilities
- Load runtime limits (ConlSettings) from environment, TOML, or defaults.
- Read files with a size ceiling and a configurable encoding, then parse them.

## Public API
- ConlSettings — Loader limits (defaults sourced from conl.core.constants).
- read_text / load_document / load_schema — File loaders.
- IoError / IoConfigError / IoReadError — IO-layer errors.

## Import DAG discipline
- Depends only on stdlib, conl.core.* and conl.schema.*.
- conl.core and conl.schema MUST NOT import conl.io.

## Examples
```python
from conl.io import ConlSettings, load_document, load_schema
from conl.schema import validate

settings = ConlSettings.load()  # doctest: +SKIP
schema = load_schema("service.schema.conl", settings)  # doctest: +SKIP
result = validate(load_document("service.conl", settings), schema)  # doctest: +SKIP
```
"""

from __future__ import annotations

from .config import ConlSettings
from .errors import IoConfigError, IoError, IoReadError
from .read import load_document, load_schema, read_text

__all__ = [
    "ConlSettings",
    "IoError",
    "IoConfigError",
    "IoReadError",
    "read_text",
    "load_document",
    "load_schema",
]
